"""Convenience exports for application schemas."""

from __future__ import annotations

from .oauth import GoogleProfileSchema, GoogleTokenResponseSchema

__all__ = [
    "GoogleProfileSchema",
    "GoogleTokenResponseSchema",
]
