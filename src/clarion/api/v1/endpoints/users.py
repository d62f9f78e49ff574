# src/clarion/api/v1/endpoints/users.py
"""Profile and follow endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from clarion.api.v1.dependencies import (
    CoordinatorDep,
    CurrentUserDep,
    FollowGraphDep,
    SessionDep,
)
from clarion.schemas.question import QuestionRecord
from clarion.schemas.user import FollowEdgeResponse, FollowResponse, UserRecord
from clarion.services.content import list_user_questions
from clarion.services.follow_graph import list_followers, list_following
from clarion.services.profiles import get_profile

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserRecord)
async def get_me(current_user: CurrentUserDep) -> UserRecord:
    """Return the caller's profile."""
    return current_user


@router.get("/{user_id}", response_model=UserRecord)
async def get_user(user_id: str, coordinator: CoordinatorDep) -> UserRecord:
    """Return a user's public profile with follower counts."""
    return get_profile(coordinator, user_id)


@router.post("/{user_id}/follow", response_model=FollowResponse)
def toggle_follow(
    user_id: str,
    current_user: CurrentUserDep,
    graph: FollowGraphDep,
) -> FollowResponse:
    """Follow the user, or unfollow if the caller already follows them.

    Clients re-read the profile afterwards to refresh the displayed counts.
    """
    outcome = graph.toggle_follow(current_user.id, user_id)
    return FollowResponse(user_id=user_id, following=outcome.following)


@router.get("/{user_id}/followers", response_model=list[FollowEdgeResponse])
async def get_followers(user_id: str, db: SessionDep) -> list[FollowEdgeResponse]:
    """List the users following ``user_id``."""
    return list_followers(db, user_id)


@router.get("/{user_id}/following", response_model=list[FollowEdgeResponse])
async def get_following(user_id: str, db: SessionDep) -> list[FollowEdgeResponse]:
    """List the users ``user_id`` follows."""
    return list_following(db, user_id)


@router.get("/{user_id}/questions", response_model=list[QuestionRecord])
async def get_user_questions(user_id: str, db: SessionDep) -> list[QuestionRecord]:
    """List the questions asked by ``user_id``, newest first."""
    return list_user_questions(db, user_id)
