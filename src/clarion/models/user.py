# src/clarion/models/user.py
"""SQLAlchemy model for user profiles."""

from sqlalchemy import CheckConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from clarion.db.session import Base

from .document import DocumentMixin


class User(DocumentMixin, Base):
    """Public profile keyed by the opaque principal id from the identity provider.

    ``followers_count`` and ``following_count`` are denormalized from the
    follow edge tables and only change through transactional increments.
    """

    __tablename__ = "user_profile"
    __table_args__ = (
        CheckConstraint("followers_count >= 0", name="ck_user_profile_followers_count"),
        CheckConstraint("following_count >= 0", name="ck_user_profile_following_count"),
    )

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    username: Mapped[str] = mapped_column(Text, nullable=False)
    user_id_handle: Mapped[str] = mapped_column(Text, nullable=False)
    followers_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    following_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
