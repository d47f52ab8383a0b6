"""Flask CLI commands for account administration."""

from __future__ import annotations

import logging

import click
from flask import current_app
from flask.cli import with_appcontext

from eduportal.core.roles import Role
from eduportal.services._shared.errors import ServiceError
from eduportal.services.auth.dto import AccountOut
from eduportal.services.container import build_auth_service

LOGGER = logging.getLogger(__name__)

DEMO_PASSWORD = "Password123!"
DEMO_ACCOUNTS: tuple[tuple[str, str, Role], ...] = (
    ("admin@eduportal.test", "Demo Admin", Role.ADMIN),
    ("teacher@eduportal.test", "Demo Teacher", Role.TEACHER),
    ("student@eduportal.test", "Demo Student", Role.STUDENT),
)


def _ensure_non_production() -> None:
    """Abort demo-data commands when running in production."""
    config = current_app.config
    app_env = str(config.get("APP_ENV", "")).lower()
    is_debug = bool(config.get("DEBUG"))
    is_testing = bool(config.get("TESTING"))
    if app_env == "production" or not (is_debug or is_testing):
        raise click.UsageError(
            "The 'flask accounts seed-demo' command is restricted to non-production environments."
        )


def _echo_account(account: AccountOut) -> None:
    state = "suspended" if account.suspended else "active"
    login = "password" if account.has_password else "provider-only"
    click.echo(
        f"  #{account.id}  {account.email}  role={account.role.value}  {state}  {login}"
    )


def _require_account(email: str) -> AccountOut:
    account = build_auth_service().find_account(email)
    if account is None:
        raise click.ClickException(f"No account registered for {email!r}.")
    return account


@click.group("accounts")
def accounts_cli() -> None:
    """Account administration commands."""


@accounts_cli.command("create")
@click.argument("email")
@click.option("--display-name", required=True, help="Name shown in the portal.")
@click.option(
    "--role",
    type=click.Choice([r.value for r in Role]),
    default=Role.STUDENT.value,
    show_default=True,
)
@click.password_option(help="Initial password (prompted when omitted).")
@with_appcontext
def create_command(email: str, display_name: str, role: str, password: str) -> None:
    """Create a password account (the only way to create admins)."""
    try:
        account = build_auth_service().register(email, password, display_name, role)
    except (ServiceError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo("Account created:")
    _echo_account(account)


@accounts_cli.command("suspend")
@click.argument("email")
@with_appcontext
def suspend_command(email: str) -> None:
    """Suspend an account and revoke all of its sessions."""
    service = build_auth_service()
    account = service.set_suspended(_require_account(email).id, True)
    click.echo("Account suspended:")
    _echo_account(account)


@accounts_cli.command("unsuspend")
@click.argument("email")
@with_appcontext
def unsuspend_command(email: str) -> None:
    """Reinstate a suspended account."""
    service = build_auth_service()
    account = service.set_suspended(_require_account(email).id, False)
    click.echo("Account reinstated:")
    _echo_account(account)


@accounts_cli.command("revoke-sessions")
@click.argument("email")
@with_appcontext
def revoke_sessions_command(email: str) -> None:
    """Log an account out of every device."""
    service = build_auth_service()
    revoked = service.logout_all(_require_account(email).id)
    click.echo(f"Revoked {revoked} session(s) for {email}.")


@accounts_cli.command("seed-demo")
@with_appcontext
def seed_demo_command() -> None:
    """Create one demo account per role (idempotent)."""
    _ensure_non_production()
    service = build_auth_service()
    created = existing = 0
    for email, display_name, role in DEMO_ACCOUNTS:
        if service.find_account(email) is not None:
            existing += 1
            continue
        service.register(email, DEMO_PASSWORD, display_name, role)
        created += 1
    LOGGER.info("Demo accounts seeded", extra={"event": "cli.seed_demo"})
    click.echo(f"Demo accounts: created={created} existing={existing}")
    click.echo(f"Demo password: {DEMO_PASSWORD}")
