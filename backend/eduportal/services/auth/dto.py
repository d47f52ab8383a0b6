# comments in English; reST docstrings strict
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from eduportal.core.roles import Role


@dataclass(frozen=True, slots=True)
class AccountOut:
    """
    Public-safe view of an account. Never carries the password hash.

    :param id: Account primary key.
    :type id: int
    :param email: Normalized email.
    :type email: str
    :param display_name: Display name.
    :type display_name: str
    :param role: Account role.
    :type role: Role
    :param suspended: Suspension flag.
    :type suspended: bool
    :param has_password: ``False`` for provider-only accounts.
    :type has_password: bool
    :param created_at: Creation timestamp.
    :type created_at: datetime | None
    """

    id: int
    email: str
    display_name: str
    role: Role
    suspended: bool
    has_password: bool
    created_at: datetime | None = None

    @classmethod
    def from_model(cls, account) -> AccountOut:
        return cls(
            id=account.id,
            email=account.email,
            display_name=account.display_name,
            role=Role.parse(account.role),
            suspended=bool(account.suspended),
            has_password=account.has_password,
            created_at=account.created_at,
        )


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Access and refresh tokens handed to a client.

    :param access_token: Signed JWT.
    :type access_token: str
    :param refresh_token: Opaque refresh token.
    :type refresh_token: str
    :param token_type: Always ``"Bearer"``.
    :type token_type: str
    :param expires_in: Access token lifetime in seconds.
    :type expires_in: int
    """

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = 0


@dataclass(frozen=True, slots=True)
class LoginOut:
    """
    Result of a successful login (password or provider).

    :param account: Authenticated account.
    :type account: AccountOut
    :param tokens: Issued token pair.
    :type tokens: TokenPairOut
    """

    account: AccountOut
    tokens: TokenPairOut

    @property
    def access_token(self) -> str:
        return self.tokens.access_token

    @property
    def refresh_token(self) -> str:
        return self.tokens.refresh_token
