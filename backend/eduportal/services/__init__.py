"""Service layer public API.

Only the base primitives and the error hierarchy are re-exported here; import
services from their subpackages (``eduportal.services.auth.service``,
``eduportal.services.oauth.service``) or build them through
:mod:`eduportal.services.container`.
"""

from __future__ import annotations

from ._shared.base import BaseService, ServiceContext
from ._shared.errors import (
    AlreadyExistsError,
    ForbiddenError,
    IdentityProviderError,
    InvalidCredentialsError,
    NotFoundError,
    ServiceError,
    StoreError,
    TokenExpiredError,
    TokenInvalidError,
    UnauthorizedError,
)

__all__ = [
    # Base
    "BaseService",
    "ServiceContext",
    # Errors
    "ServiceError",
    "AlreadyExistsError",
    "InvalidCredentialsError",
    "UnauthorizedError",
    "TokenExpiredError",
    "TokenInvalidError",
    "IdentityProviderError",
    "ForbiddenError",
    "NotFoundError",
    "StoreError",
]
