"""Extension wiring: import order and startup secret checks."""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

import pytest

import eduportal
from eduportal.core.config import (
    DEV_JWT_SECRET_KEY,
    DEV_SECRET_KEY,
    ProductionConfig,
    ensure_deployable_secrets,
)
from eduportal.factory import create_app

BACKEND_DIR = Path(eduportal.__file__).resolve().parents[1]
STRONG_SECRET = "s" * 48


@pytest.mark.parametrize(
    "statement",
    [
        "import eduportal.core.extensions",
        "import eduportal.security",
        "import eduportal.services._shared.errors",
        "from eduportal import create_app; create_app('eduportal.core.config.TestingConfig')",
    ],
)
def test_modules_import_in_a_fresh_interpreter(statement):
    env = {**os.environ, "PYTHONPATH": str(BACKEND_DIR), "APP_ENV": "testing"}
    env.pop("REDIS_URL", None)
    result = subprocess.run(
        [sys.executable, "-c", statement],
        cwd=BACKEND_DIR,
        env=env,
        capture_output=True,
        text=True,
        timeout=60,
    )
    assert result.returncode == 0, result.stderr


def _production(**overrides) -> type[ProductionConfig]:
    attrs = {
        "SECRET_KEY": STRONG_SECRET,
        "JWT_SECRET_KEY": STRONG_SECRET,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "REDIS_URL": None,
    }
    attrs.update(overrides)
    return type("ProductionUnderTest", (ProductionConfig,), attrs)


@pytest.mark.parametrize(
    "overrides,missing",
    [
        ({"JWT_SECRET_KEY": DEV_JWT_SECRET_KEY}, "JWT_SECRET_KEY"),
        ({"JWT_SECRET_KEY": ""}, "JWT_SECRET_KEY"),
        ({"SECRET_KEY": DEV_SECRET_KEY}, "SECRET_KEY"),
        ({"SECRET_KEY": None}, "SECRET_KEY"),
    ],
)
def test_production_app_refuses_placeholder_secrets(overrides, missing):
    with pytest.raises(ValueError, match=f"^{missing} "):
        create_app(_production(**overrides), instance_relative_config=False)


def test_deployable_secrets_accept_real_values():
    ensure_deployable_secrets({"SECRET_KEY": STRONG_SECRET, "JWT_SECRET_KEY": STRONG_SECRET})
