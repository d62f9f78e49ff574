# src/clarion/api/v1/endpoints/questions.py
"""Question, answer and comment endpoints."""

from fastapi import APIRouter, status

from clarion.api.v1.dependencies import CoordinatorDep, CurrentUserDep, SessionDep
from clarion.schemas.question import (
    AnswerCreate,
    AnswerRecord,
    CommentCreate,
    CommentRecord,
    QuestionCreate,
    QuestionRecord,
    QuestionThread,
)
from clarion.services import content

router = APIRouter(prefix="/questions", tags=["questions"])


@router.get("/", response_model=list[QuestionRecord])
async def list_questions(db: SessionDep) -> list[QuestionRecord]:
    """List every question, newest first."""
    return content.list_questions(db)


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=QuestionRecord)
def ask_question(
    payload: QuestionCreate,
    current_user: CurrentUserDep,
    coordinator: CoordinatorDep,
) -> QuestionRecord:
    """Ask a new question."""
    return content.submit_question(coordinator, current_user.id, payload.title, payload.tags)


@router.get("/{question_id}", response_model=QuestionThread)
async def get_question(question_id: str, db: SessionDep) -> QuestionThread:
    """Return a question with its answers and comments."""
    return content.get_question_thread(db, question_id)


@router.post(
    "/{question_id}/answers",
    status_code=status.HTTP_201_CREATED,
    response_model=AnswerRecord,
)
def answer_question(
    question_id: str,
    payload: AnswerCreate,
    current_user: CurrentUserDep,
    coordinator: CoordinatorDep,
) -> AnswerRecord:
    """Answer a question."""
    return content.submit_answer(coordinator, current_user.id, question_id, payload.text)


@router.post(
    "/{question_id}/comments",
    status_code=status.HTTP_201_CREATED,
    response_model=CommentRecord,
)
def comment_on_question(
    question_id: str,
    payload: CommentCreate,
    current_user: CurrentUserDep,
    coordinator: CoordinatorDep,
) -> CommentRecord:
    """Comment on a question or on one of its answers."""
    return content.submit_comment(
        coordinator,
        current_user.id,
        question_id,
        payload.text,
        parent_type=payload.parent_type,
        parent_id=payload.parent_id,
    )
