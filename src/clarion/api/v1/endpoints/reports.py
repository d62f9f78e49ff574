# src/clarion/api/v1/endpoints/reports.py
"""Content report endpoint."""

from fastapi import APIRouter, status

from clarion.api.v1.dependencies import CoordinatorDep, CurrentUserDep
from clarion.schemas.report import ReportCreate, ReportRecord
from clarion.services.content import report_content

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=ReportRecord)
def report(
    payload: ReportCreate,
    current_user: CurrentUserDep,
    coordinator: CoordinatorDep,
) -> ReportRecord:
    """Record a report against a question, answer or comment."""
    return report_content(
        coordinator,
        current_user.id,
        payload.target_type,
        payload.target_id,
        payload.reason,
    )
