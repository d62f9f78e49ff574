"""Vote-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class VoteRecordEntry(BaseModel):
    """Validated view of a ``vote_record`` row."""

    user_id: str
    question_id: str
    type: Literal["up", "down"]

    model_config = ConfigDict(from_attributes=True, extra="ignore")


class VoteCreate(BaseModel):
    """Schema for casting a vote."""

    question_id: str = Field(..., min_length=1)
    direction: Literal["up", "down"] = Field(..., description="'up' or 'down'")


class VoteResponse(BaseModel):
    """Vote state after the cast committed."""

    question_id: str
    vote: Literal["none", "up", "down"] = Field(..., description="Caller's vote after the action")
    upvotes_delta: int
    downvotes_delta: int
    vote_count_delta: int


class MyVoteResponse(BaseModel):
    """The caller's current vote on a question."""

    question_id: str
    vote: Literal["none", "up", "down"]
