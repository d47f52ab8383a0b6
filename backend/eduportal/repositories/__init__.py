"""Repository package exposing persistence-layer access for the identity store."""

from __future__ import annotations

from eduportal.repositories.account import AccountRepository
from eduportal.repositories.base import BaseRepository
from eduportal.repositories.identity_link import ExternalIdentityLinkRepository

__all__ = [
    "BaseRepository",
    "AccountRepository",
    "ExternalIdentityLinkRepository",
]
