# src/clarion/api/v1/endpoints/auth.py
"""Authentication endpoints for the Clarion API."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, status

from clarion.api.v1.dependencies import CoordinatorDep
from clarion.core.security import create_access_token
from clarion.schemas.user import TokenResponse
from clarion.services.profiles import get_or_create_profile

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/anonymous",
    status_code=status.HTTP_201_CREATED,
    response_model=TokenResponse,
    summary="Sign in as a new anonymous user",
)
def sign_in_anonymously(coordinator: CoordinatorDep) -> TokenResponse:
    """Mint a fresh principal, bootstrap its profile and return a bearer token."""
    principal_id = uuid.uuid4().hex
    profile = get_or_create_profile(coordinator, principal_id)
    return TokenResponse(
        access_token=create_access_token(principal_id),
        token_type="bearer",
        user=profile,
    )
