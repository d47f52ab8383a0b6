"""Base class and helpers shared by application services."""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, TypeVar

from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from eduportal.services._shared.errors import ServiceError, StoreError
from eduportal.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)

F = TypeVar("F", bound=Callable[..., Any])

log = logging.getLogger(__name__)


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data (actor, request ids).

    :param actor_id: Authenticated account identifier.
    :param request_id: Correlation id for logging/tracing.
    """

    actor_id: int | None = None
    request_id: str | None = None


def translate_store_errors(func: F) -> F:
    """
    Surface backing-store failures as :class:`StoreError`.

    ``RedisError`` and non-integrity ``SQLAlchemyError`` are wrapped with the
    original exception chained. :class:`ServiceError` and ``IntegrityError``
    pass through untouched so callers keep their precise meaning.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        try:
            return func(*args, **kwargs)
        except (ServiceError, IntegrityError):
            raise
        except RedisError as exc:
            log.error("TTL store failure in %s", func.__qualname__, exc_info=True)
            raise StoreError("Session store unavailable") from exc
        except SQLAlchemyError as exc:
            log.error("Relational store failure in %s", func.__qualname__, exc_info=True)
            raise StoreError("Identity store unavailable") from exc

    return wrapper  # type: ignore[return-value]


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Provide a single clock so time-dependent logic is testable.

    Notes
    -----
    Services never touch the global session directly; always use a Unit of Work.
    """

    def __init__(
        self,
        *,
        ctx: ServiceContext | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize the base service.

        :param ctx: Optional request-scoped context.
        :type ctx: ServiceContext | None
        :param clock: Returns the current aware UTC time. Defaults to ``datetime.now(UTC)``.
        :type clock: Callable[[], datetime] | None
        """
        self.ctx = ctx or ServiceContext()
        self._clock = clock or (lambda: datetime.now(UTC))

    def now_utc(self) -> datetime:
        return self._clock()

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(self) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork()
