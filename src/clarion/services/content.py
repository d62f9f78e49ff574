"""Questions, answers, comments and reports.

Submissions that bump a counter on another document (answers, comments) go
through the transaction coordinator with the same increment discipline as
votes: the new row and the ``+1`` on its parent commit together.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from clarion.core.settings import settings
from clarion.db.time import utcnow
from clarion.models import Answer, Comment, Question, Report, User
from clarion.models.answer import PARENT_TYPE_ANSWER, PARENT_TYPE_QUESTION
from clarion.schemas.question import (
    AnswerRecord,
    AnswerThread,
    CommentRecord,
    QuestionRecord,
    QuestionThread,
)
from clarion.schemas.report import ReportRecord
from clarion.schemas.user import UserRecord
from clarion.services.errors import TargetNotFound, ValidationError
from clarion.services.transaction import (
    DocumentRef,
    IncrementFields,
    SetDocument,
    Snapshots,
    TransactionCoordinator,
    Write,
)

logger = logging.getLogger(__name__)

_REPORTABLE = {
    "question": Question,
    "answer": Answer,
    "comment": Comment,
}


def _new_id() -> str:
    return uuid.uuid4().hex


def _clean_text(value: str, *, field: str, max_length: int) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} must not be empty")
    if len(text) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return text


def _clean_tags(tags: Iterable[str]) -> list[str]:
    cleaned: list[str] = []
    for tag in tags:
        tag = tag.strip().lstrip("#").lower()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


def submit_question(
    coordinator: TransactionCoordinator,
    author_id: str,
    title: str,
    tags: Iterable[str] = (),
) -> QuestionRecord:
    """Create a question with every counter at zero."""
    title = _clean_text(title, field="Title", max_length=settings.question_title_max_length)
    author = DocumentRef.of(User, author_id)
    question = DocumentRef.of(Question, _new_id())
    base = {
        "author_id": author_id,
        "title": title,
        "tags": _clean_tags(tags),
        "upvotes": 0,
        "downvotes": 0,
        "vote_count": 0,
        "answer_count": 0,
        "comment_count": 0,
        "created_at": utcnow(),
    }

    def values(snapshots: Snapshots) -> dict[str, object]:
        profile = snapshots[author].to_record(UserRecord, "User not found")
        return {**base, "author_handle": profile.user_id_handle, "author_initial": profile.initial}

    committed = coordinator.run_atomic(
        [author, question],
        lambda snapshots: [SetDocument(question, values(snapshots))],
    )
    logger.info("Question %s submitted by %s", question.key[0], author_id)
    return QuestionRecord(id=question.key[0], **values(committed))


def submit_answer(
    coordinator: TransactionCoordinator,
    author_id: str,
    question_id: str,
    text: str,
) -> AnswerRecord:
    """Post an answer and bump the question's ``answer_count`` in one commit."""
    text = _clean_text(text, field="Answer", max_length=settings.answer_max_length)
    author = DocumentRef.of(User, author_id)
    question = DocumentRef.of(Question, question_id)
    answer = DocumentRef.of(Answer, _new_id())
    created_at = utcnow()

    def values(snapshots: Snapshots) -> dict[str, object]:
        snapshots[question].to_record(QuestionRecord, "Question not found")
        profile = snapshots[author].to_record(UserRecord, "User not found")
        return {
            "question_id": question_id,
            "text": text,
            "author_id": author_id,
            "author_handle": profile.user_id_handle,
            "author_initial": profile.initial,
            "comment_count": 0,
            "created_at": created_at,
        }

    def mutate(snapshots: Snapshots) -> list[Write]:
        return [
            SetDocument(answer, values(snapshots)),
            IncrementFields(question, {"answer_count": 1}),
        ]

    committed = coordinator.run_atomic([question, author, answer], mutate)
    return AnswerRecord(id=answer.key[0], **values(committed))


def submit_comment(
    coordinator: TransactionCoordinator,
    author_id: str,
    question_id: str,
    text: str,
    *,
    parent_type: str = PARENT_TYPE_QUESTION,
    parent_id: str | None = None,
) -> CommentRecord:
    """Post a comment under the question or one of its answers.

    The parent's ``comment_count`` is incremented in the same commit.

    Raises:
        ValidationError: If the parent is not part of ``question_id``'s thread.
        TargetNotFound: If the question or the parent answer does not exist.
    """
    text = _clean_text(text, field="Comment", max_length=settings.comment_max_length)
    author = DocumentRef.of(User, author_id)
    question = DocumentRef.of(Question, question_id)

    if parent_type == PARENT_TYPE_QUESTION:
        if parent_id not in (None, question_id):
            raise ValidationError("Question comments must target the question itself")
        parent_id = question_id
        parent = question
    elif parent_type == PARENT_TYPE_ANSWER:
        if not parent_id:
            raise ValidationError("An answer id is required to comment on an answer")
        parent = DocumentRef.of(Answer, parent_id)
    else:
        raise ValidationError(f"Cannot comment on {parent_type!r}")

    comment = DocumentRef.of(Comment, _new_id())
    created_at = utcnow()

    def values(snapshots: Snapshots) -> dict[str, object]:
        snapshots[question].to_record(QuestionRecord, "Question not found")
        if parent is not question:
            parent_answer = snapshots[parent].to_record(AnswerRecord, "Answer not found")
            if parent_answer.question_id != question_id:
                raise ValidationError("Answer does not belong to this question")
        profile = snapshots[author].to_record(UserRecord, "User not found")
        return {
            "question_id": question_id,
            "parent_id": parent_id,
            "parent_type": parent_type,
            "text": text,
            "author_id": author_id,
            "author_handle": profile.user_id_handle,
            "created_at": created_at,
        }

    def mutate(snapshots: Snapshots) -> list[Write]:
        return [
            SetDocument(comment, values(snapshots)),
            IncrementFields(parent, {"comment_count": 1}),
        ]

    committed = coordinator.run_atomic([question, parent, author, comment], mutate)
    return CommentRecord(id=comment.key[0], **values(committed))


def report_content(
    coordinator: TransactionCoordinator,
    reporter_id: str,
    target_type: str,
    target_id: str,
    reason: str | None = None,
) -> ReportRecord:
    """Record that ``reporter_id`` flagged a question, answer or comment."""
    model = _REPORTABLE.get(target_type)
    if model is None:
        raise ValidationError(f"Cannot report {target_type!r}")

    reporter = DocumentRef.of(User, reporter_id)
    target = DocumentRef.of(model, target_id)
    report = DocumentRef.of(Report, _new_id())
    base = {
        "target_id": target_id,
        "target_type": target_type,
        "reporter_id": reporter_id,
        "reason": reason.strip() if reason and reason.strip() else None,
        "created_at": utcnow(),
    }

    def mutate(snapshots: Snapshots) -> list[Write]:
        if not snapshots[target].exists:
            raise TargetNotFound(f"{target_type.capitalize()} not found")
        snapshots[reporter].to_record(UserRecord, "User not found")
        return [SetDocument(report, base)]

    coordinator.run_atomic([target, reporter, report], mutate)
    logger.info("%s %s reported by %s", target_type, target_id, reporter_id)
    return ReportRecord(id=report.key[0], **base)


def list_questions(db: Session) -> list[QuestionRecord]:
    """Return every question, newest first."""
    rows = db.scalars(select(Question).order_by(Question.created_at.desc())).all()
    return [QuestionRecord.model_validate(row) for row in rows]


def list_user_questions(db: Session, user_id: str) -> list[QuestionRecord]:
    """Return the questions asked by ``user_id``, newest first."""
    rows = db.scalars(
        select(Question)
        .where(Question.author_id == user_id)
        .order_by(Question.created_at.desc())
    ).all()
    return [QuestionRecord.model_validate(row) for row in rows]


def get_question_thread(db: Session, question_id: str) -> QuestionThread:
    """Return a question with its answers (newest first) and comments (oldest first)."""
    question = db.get(Question, question_id)
    if question is None:
        raise TargetNotFound("Question not found")

    answers = db.scalars(
        select(Answer)
        .where(Answer.question_id == question_id)
        .order_by(Answer.created_at.desc())
    ).all()
    comments = db.scalars(
        select(Comment)
        .where(Comment.question_id == question_id)
        .order_by(Comment.created_at.asc())
    ).all()

    by_parent: dict[str, list[CommentRecord]] = defaultdict(list)
    for comment in comments:
        by_parent[comment.parent_id].append(CommentRecord.model_validate(comment))

    return QuestionThread(
        question=QuestionRecord.model_validate(question),
        answers=[
            AnswerThread(
                **AnswerRecord.model_validate(answer).model_dump(),
                comments=by_parent.get(answer.id, []),
            )
            for answer in answers
        ],
        comments=by_parent.get(question_id, []),
    )


__all__ = [
    "get_question_thread",
    "list_questions",
    "list_user_questions",
    "report_content",
    "submit_answer",
    "submit_comment",
    "submit_question",
]
