# src/clarion/models/follow.py
"""Mirrored follow edge tables.

A follow from A to B is stored twice: ``following_edge(owner=A, other=B)``
and ``follower_edge(owner=B, other=A)``. Both rows are written and removed in
the same transaction so either side can be listed with a key lookup.
"""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from clarion.db.session import Base

from .document import DocumentMixin


class FollowingEdge(DocumentMixin, Base):
    """Edge stored under the follower, keyed by the followee."""

    __tablename__ = "following_edge"

    owner_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("user_profile.id", ondelete="CASCADE"),
        primary_key=True,
    )
    other_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("user_profile.id", ondelete="CASCADE"),
        primary_key=True,
    )


class FollowerEdge(DocumentMixin, Base):
    """Edge stored under the followee, keyed by the follower."""

    __tablename__ = "follower_edge"

    owner_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("user_profile.id", ondelete="CASCADE"),
        primary_key=True,
    )
    other_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("user_profile.id", ondelete="CASCADE"),
        primary_key=True,
    )
