"""Report-related Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ReportRecord(BaseModel):
    """Validated view of a ``report`` row."""

    id: str
    target_id: str
    target_type: Literal["question", "answer", "comment"]
    reporter_id: str
    reason: str | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True, extra="ignore")


class ReportCreate(BaseModel):
    """Schema for reporting a piece of content."""

    target_id: str = Field(..., min_length=1)
    target_type: Literal["question", "answer", "comment"]
    reason: str | None = Field(None, max_length=1000)
