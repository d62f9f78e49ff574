# src/clarion/models/question.py
"""SQLAlchemy model for questions."""

from sqlalchemy import JSON, CheckConstraint, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from clarion.db.session import Base

from .document import DocumentMixin


class Question(DocumentMixin, Base):
    """A question asked on the board.

    Vote and answer/comment counters are aggregates over the vote, answer and
    comment tables. They start at zero and are only moved by relative
    increments inside a transaction that also writes the underlying record.
    """

    __tablename__ = "question"
    __table_args__ = (
        CheckConstraint("upvotes >= 0", name="ck_question_upvotes"),
        CheckConstraint("downvotes >= 0", name="ck_question_downvotes"),
        CheckConstraint("vote_count = upvotes - downvotes", name="ck_question_vote_count"),
        Index("ix_question_author_id", "author_id"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    author_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("user_profile.id"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    author_handle: Mapped[str] = mapped_column(Text, nullable=False)
    author_initial: Mapped[str] = mapped_column(String(8), nullable=False)

    upvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Signed net score, always upvotes - downvotes.
    vote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    answer_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    comment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
