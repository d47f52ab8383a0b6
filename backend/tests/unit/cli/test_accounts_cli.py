"""Tests for the ``flask accounts`` command group."""

from __future__ import annotations

import pytest

from eduportal.cli.accounts import DEMO_ACCOUNTS, DEMO_PASSWORD
from eduportal.services.container import build_auth_service
from tests.factories.account import DEFAULT_PASSWORD, AccountFactory


@pytest.fixture()
def runner(app, app_redis):
    return app.test_cli_runner()


def test_create_admin(runner):
    result = runner.invoke(
        args=[
            "accounts",
            "create",
            "Root@Example.com",
            "--display-name",
            "Root",
            "--role",
            "admin",
            "--password",
            "Adm1n!pass",
        ]
    )

    assert result.exit_code == 0, result.output
    assert "Account created:" in result.output
    assert "root@example.com" in result.output
    assert "role=admin" in result.output


def test_create_duplicate_fails(runner):
    AccountFactory(email="taken@example.com")
    result = runner.invoke(
        args=["accounts", "create", "taken@example.com", "--display-name", "X", "--password", "pw"]
    )
    assert result.exit_code == 1
    assert "Email already in use" in result.output


def test_suspend_revokes_sessions_and_unsuspend(app, runner):
    AccountFactory(email="ada@example.com")
    build_auth_service(app).login("ada@example.com", DEFAULT_PASSWORD)

    suspended = runner.invoke(args=["accounts", "suspend", "ada@example.com"])
    assert suspended.exit_code == 0, suspended.output
    assert "suspended" in suspended.output

    service = build_auth_service(app)
    account = service.find_account("ada@example.com")
    assert account.suspended is True
    assert service.count_sessions(account.id) == 0

    reinstated = runner.invoke(args=["accounts", "unsuspend", "ada@example.com"])
    assert "Account reinstated:" in reinstated.output
    assert service.find_account("ada@example.com").suspended is False


def test_revoke_sessions(app, runner):
    AccountFactory(email="ada@example.com")
    service = build_auth_service(app)
    service.login("ada@example.com", DEFAULT_PASSWORD)
    service.login("ada@example.com", DEFAULT_PASSWORD)

    result = runner.invoke(args=["accounts", "revoke-sessions", "ada@example.com"])

    assert "Revoked 2 session(s) for ada@example.com." in result.output


def test_unknown_account(runner):
    result = runner.invoke(args=["accounts", "suspend", "ghost@example.com"])
    assert result.exit_code == 1
    assert "No account registered" in result.output


def test_seed_demo_is_idempotent(app, runner):
    first = runner.invoke(args=["accounts", "seed-demo"])
    assert f"created={len(DEMO_ACCOUNTS)} existing=0" in first.output

    second = runner.invoke(args=["accounts", "seed-demo"])
    assert f"created=0 existing={len(DEMO_ACCOUNTS)}" in second.output

    email = DEMO_ACCOUNTS[0][0]
    assert build_auth_service(app).login(email, DEMO_PASSWORD).account.email == email


def test_seed_demo_refuses_production(app, runner, monkeypatch):
    monkeypatch.setitem(app.config, "TESTING", False)
    monkeypatch.setitem(app.config, "DEBUG", False)
    result = runner.invoke(args=["accounts", "seed-demo"])
    assert result.exit_code == 2
    assert "non-production" in result.output
