"""Column mixins shared by the account and identity-link models."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar

from sqlalchemy import DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column


class PKMixin:
    """Integer surrogate primary key ``id``."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True)


class TimestampMixin:
    """
    Database-managed ``created_at`` / ``updated_at`` columns (timezone-aware).

    Both are filled by the server on insert; ``updated_at`` is refreshed on
    every ORM update.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class ReprMixin:
    """
    ``__repr__`` built from an explicit allow-list of attributes.

    Models list the fields in ``__repr_fields__``; anything not listed (hashes,
    provider tokens) never shows up in logs or tracebacks.
    """

    __repr_fields__: ClassVar[tuple[str, ...]] = ("id",)

    def __repr__(self) -> str:
        parts = " ".join(f"{name}={getattr(self, name, None)!r}" for name in self.__repr_fields__)
        return f"<{self.__class__.__name__} {parts}>"
