"""initial schema

Revision ID: 5c1d0e7a9b42
Revises:
Create Date: 2026-10-18 09:12:40.518204

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1d0e7a9b42"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _document_columns() -> list[sa.Column]:
    return [
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create profile, question, vote, follow, answer, comment and report tables."""
    op.create_table(
        "user_profile",
        sa.Column("id", sa.String(length=128), nullable=False),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("user_id_handle", sa.Text(), nullable=False),
        sa.Column("followers_count", sa.Integer(), nullable=False),
        sa.Column("following_count", sa.Integer(), nullable=False),
        *_document_columns(),
        sa.CheckConstraint("followers_count >= 0", name="ck_user_profile_followers_count"),
        sa.CheckConstraint("following_count >= 0", name="ck_user_profile_following_count"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "question",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("author_id", sa.String(length=128), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("author_handle", sa.Text(), nullable=False),
        sa.Column("author_initial", sa.String(length=8), nullable=False),
        sa.Column("upvotes", sa.Integer(), nullable=False),
        sa.Column("downvotes", sa.Integer(), nullable=False),
        sa.Column("vote_count", sa.Integer(), nullable=False),
        sa.Column("answer_count", sa.Integer(), nullable=False),
        sa.Column("comment_count", sa.Integer(), nullable=False),
        *_document_columns(),
        sa.CheckConstraint("upvotes >= 0", name="ck_question_upvotes"),
        sa.CheckConstraint("downvotes >= 0", name="ck_question_downvotes"),
        sa.CheckConstraint("vote_count = upvotes - downvotes", name="ck_question_vote_count"),
        sa.ForeignKeyConstraint(["author_id"], ["user_profile.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_question_author_id", "question", ["author_id"])
    op.create_table(
        "vote_record",
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("question_id", sa.String(length=64), nullable=False),
        sa.Column("type", sa.String(length=8), nullable=False),
        *_document_columns(),
        sa.CheckConstraint("type IN ('up', 'down')", name="ck_vote_record_type"),
        sa.ForeignKeyConstraint(["user_id"], ["user_profile.id"]),
        sa.ForeignKeyConstraint(["question_id"], ["question.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "question_id"),
    )
    op.create_index("ix_vote_record_question_id", "vote_record", ["question_id"])
    for table_name in ("following_edge", "follower_edge"):
        op.create_table(
            table_name,
            sa.Column("owner_id", sa.String(length=128), nullable=False),
            sa.Column("other_id", sa.String(length=128), nullable=False),
            *_document_columns(),
            sa.ForeignKeyConstraint(["owner_id"], ["user_profile.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["other_id"], ["user_profile.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("owner_id", "other_id"),
        )
    op.create_table(
        "answer",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("question_id", sa.String(length=64), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("author_id", sa.String(length=128), nullable=False),
        sa.Column("author_handle", sa.Text(), nullable=False),
        sa.Column("author_initial", sa.String(length=8), nullable=False),
        sa.Column("comment_count", sa.Integer(), nullable=False),
        *_document_columns(),
        sa.ForeignKeyConstraint(["question_id"], ["question.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["author_id"], ["user_profile.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_answer_question_id", "answer", ["question_id"])
    op.create_table(
        "comment",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("question_id", sa.String(length=64), nullable=False),
        sa.Column("parent_id", sa.String(length=64), nullable=False),
        sa.Column("parent_type", sa.String(length=16), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("author_id", sa.String(length=128), nullable=False),
        sa.Column("author_handle", sa.Text(), nullable=False),
        *_document_columns(),
        sa.CheckConstraint(
            "parent_type IN ('question', 'answer')",
            name="ck_comment_parent_type",
        ),
        sa.ForeignKeyConstraint(["question_id"], ["question.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["author_id"], ["user_profile.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comment_question_id", "comment", ["question_id"])
    op.create_table(
        "report",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("target_id", sa.String(length=64), nullable=False),
        sa.Column("target_type", sa.String(length=16), nullable=False),
        sa.Column("reporter_id", sa.String(length=128), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        *_document_columns(),
        sa.CheckConstraint(
            "target_type IN ('question', 'answer', 'comment')",
            name="ck_report_target_type",
        ),
        sa.ForeignKeyConstraint(["reporter_id"], ["user_profile.id"]),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    """Drop every Clarion table."""
    op.drop_table("report")
    op.drop_index("ix_comment_question_id", table_name="comment")
    op.drop_table("comment")
    op.drop_index("ix_answer_question_id", table_name="answer")
    op.drop_table("answer")
    op.drop_table("follower_edge")
    op.drop_table("following_edge")
    op.drop_index("ix_vote_record_question_id", table_name="vote_record")
    op.drop_table("vote_record")
    op.drop_index("ix_question_author_id", table_name="question")
    op.drop_table("question")
    op.drop_table("user_profile")
