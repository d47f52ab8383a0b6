"""HTTP delivery layer: versioned blueprints over the authentication services."""

from __future__ import annotations

from collections.abc import Iterable

from flask import Blueprint, Flask


def _join(*segments: str) -> str:
    """Join URL segments into ``/a/b/c`` ignoring empty pieces and stray slashes."""
    parts = [s.strip("/") for s in segments if s and s.strip("/")]
    return "/" + "/".join(parts) if parts else ""


def register_blueprint_group(
    app: Flask,
    *,
    base_prefix: str,
    entries: Iterable[tuple[Blueprint, str]],
) -> None:
    """Mount ``(blueprint, relative_prefix)`` pairs below ``base_prefix``.

    Parameters
    ----------
    app:
        Application receiving the blueprints.
    base_prefix:
        Version root, e.g. ``"/api/v1"``.
    entries:
        Pairs whose relative prefix may be empty to mount at the version root
        (the health check does).
    """

    for bp, rel_prefix in entries:
        app.register_blueprint(bp, url_prefix=_join(base_prefix, rel_prefix) or None)


def init_app(app: Flask) -> None:
    """Register API v1 beneath ``API_BASE_PREFIX`` (``/api`` by default)."""

    from eduportal.api.v1 import API_VERSION, REGISTRY

    base = _join(app.config.get("API_BASE_PREFIX", "/api"), API_VERSION)
    register_blueprint_group(app, base_prefix=base, entries=REGISTRY)


__all__ = ["init_app", "register_blueprint_group"]
