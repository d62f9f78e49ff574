# src/clarion/models/answer.py
"""SQLAlchemy models for answers and comments."""

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from clarion.db.session import Base

from .document import DocumentMixin

PARENT_TYPE_QUESTION = "question"
PARENT_TYPE_ANSWER = "answer"


class Answer(DocumentMixin, Base):
    """Answer posted under a question."""

    __tablename__ = "answer"
    __table_args__ = (Index("ix_answer_question_id", "question_id"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    question_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("question.id", ondelete="CASCADE"),
        nullable=False,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("user_profile.id"),
        nullable=False,
    )
    author_handle: Mapped[str] = mapped_column(Text, nullable=False)
    author_initial: Mapped[str] = mapped_column(String(8), nullable=False)
    comment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Comment(DocumentMixin, Base):
    """Comment attached to a question or to one of its answers."""

    __tablename__ = "comment"
    __table_args__ = (
        CheckConstraint(
            "parent_type IN ('question', 'answer')",
            name="ck_comment_parent_type",
        ),
        Index("ix_comment_question_id", "question_id"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    # Thread the comment is shown in, regardless of its direct parent.
    question_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("question.id", ondelete="CASCADE"),
        nullable=False,
    )
    parent_id: Mapped[str] = mapped_column(String(64), nullable=False)
    parent_type: Mapped[str] = mapped_column(String(16), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("user_profile.id"),
        nullable=False,
    )
    author_handle: Mapped[str] = mapped_column(Text, nullable=False)
