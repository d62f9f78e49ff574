"""Question, answer and comment Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QuestionRecord(BaseModel):
    """Validated view of a ``question`` row."""

    id: str
    author_id: str
    title: str
    tags: list[str] = Field(default_factory=list)
    author_handle: str
    author_initial: str
    upvotes: int = Field(..., ge=0)
    downvotes: int = Field(..., ge=0)
    vote_count: int
    answer_count: int = Field(..., ge=0)
    comment_count: int = Field(..., ge=0)
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True, extra="ignore")


class AnswerRecord(BaseModel):
    """Validated view of an ``answer`` row."""

    id: str
    question_id: str
    text: str
    author_id: str
    author_handle: str
    author_initial: str
    comment_count: int = Field(..., ge=0)
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True, extra="ignore")


class CommentRecord(BaseModel):
    """Validated view of a ``comment`` row."""

    id: str
    question_id: str
    parent_id: str
    parent_type: Literal["question", "answer"]
    text: str
    author_id: str
    author_handle: str
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True, extra="ignore")


class AnswerThread(AnswerRecord):
    """Answer together with the comments posted under it."""

    comments: list[CommentRecord] = Field(default_factory=list)


class QuestionThread(BaseModel):
    """Everything shown on a question page."""

    question: QuestionRecord
    answers: list[AnswerThread]
    comments: list[CommentRecord] = Field(
        default_factory=list,
        description="Comments posted directly on the question",
    )


class _TextPayload(BaseModel):
    @field_validator("*", mode="before")
    @classmethod
    def _strip_strings(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v


class QuestionCreate(_TextPayload):
    """Schema for asking a question."""

    title: str = Field(..., min_length=1, description="Question title")
    tags: list[str] = Field(default_factory=list, max_length=10)


class AnswerCreate(_TextPayload):
    """Schema for answering a question."""

    text: str = Field(..., min_length=1)


class CommentCreate(_TextPayload):
    """Schema for commenting on a question or an answer."""

    text: str = Field(..., min_length=1)
    parent_id: str | None = Field(
        None,
        description="Answer id, or omitted to comment on the question itself",
    )
    parent_type: Literal["question", "answer"] = "question"
