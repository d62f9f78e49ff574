# src/clarion/models/report.py
"""Model recording user reports against content."""

from sqlalchemy import CheckConstraint, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from clarion.db.session import Base

from .document import DocumentMixin


class Report(DocumentMixin, Base):
    """Audit record that a user flagged a question, answer or comment.

    Reports are recorded only; nothing acts on them automatically.
    """

    __tablename__ = "report"
    __table_args__ = (
        CheckConstraint(
            "target_type IN ('question', 'answer', 'comment')",
            name="ck_report_target_type",
        ),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    target_id: Mapped[str] = mapped_column(String(64), nullable=False)
    target_type: Mapped[str] = mapped_column(String(16), nullable=False)
    reporter_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("user_profile.id"),
        nullable=False,
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
