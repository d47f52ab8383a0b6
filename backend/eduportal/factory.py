"""Application factory wiring Flask extensions, error handlers, API blueprints and CLI commands."""

from __future__ import annotations

from flask import Flask

from eduportal.core.config import BaseConfig, get_config
from eduportal.core.logger import configure_logging, init_app as init_logging


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    Parameters
    ----------
    config:
        Config class/object (or import path) to load. Defaults to the class
        selected by ``APP_ENV``.
    instance_relative_config:
        Also read ``instance/<instance_config_filename>`` when present.
    instance_config_filename:
        File name of the optional instance config.

    Returns
    -------
    flask.Flask
        Application with extensions, error handlers, blueprints and CLI commands bound.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from eduportal.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from eduportal.core import errors

    errors.init_app(app)

    from eduportal import api

    api.init_app(app)

    from eduportal import cli as app_cli

    app_cli.init_app(app)

    return app
