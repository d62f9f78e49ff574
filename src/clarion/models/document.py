# src/clarion/models/document.py
"""Columns shared by every document collection."""

from datetime import datetime

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from clarion.db.time import utcnow


class DocumentMixin:
    """Adds the write version used for optimistic conflict detection.

    Every committed write bumps ``version``; a transaction attempt that read
    version ``n`` may only overwrite or delete the row while it is still ``n``.
    """

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
