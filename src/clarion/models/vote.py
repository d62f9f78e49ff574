# src/clarion/models/vote.py
"""Models capturing voting interactions on questions."""

from sqlalchemy import CheckConstraint, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from clarion.db.session import Base

from .document import DocumentMixin

VOTE_TYPE_UP = "up"
VOTE_TYPE_DOWN = "down"


class VoteRecord(DocumentMixin, Base):
    """Per-user vote on a question.

    The row existing is the only record that the user voted; deleting it
    returns the user to "no vote".
    """

    __tablename__ = "vote_record"
    __table_args__ = (
        CheckConstraint("type IN ('up', 'down')", name="ck_vote_record_type"),
        Index("ix_vote_record_question_id", "question_id"),
    )

    # Composite primary key prevents duplicate votes from the same user.
    user_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("user_profile.id"),
        primary_key=True,
    )
    question_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("question.id", ondelete="CASCADE"),
        primary_key=True,
    )
    type: Mapped[str] = mapped_column(String(8), nullable=False)
