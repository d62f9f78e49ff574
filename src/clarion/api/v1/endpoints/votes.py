# src/clarion/api/v1/endpoints/votes.py
"""Vote-related endpoints for the Clarion API."""

from fastapi import APIRouter, status

from clarion.api.v1.dependencies import CurrentUserDep, VoteLedgerDep
from clarion.schemas.vote import MyVoteResponse, VoteCreate, VoteResponse

router = APIRouter(prefix="/votes", tags=["votes"])


# Plain def: FastAPI runs it in the threadpool, where retry backoff may sleep.
@router.post("/", status_code=status.HTTP_201_CREATED, response_model=VoteResponse)
def cast_vote(
    vote_data: VoteCreate,
    current_user: CurrentUserDep,
    ledger: VoteLedgerDep,
) -> VoteResponse:
    """Press the up or down button on a question.

    Pressing the same button twice withdraws the vote.
    """
    outcome = ledger.cast_vote(current_user.id, vote_data.question_id, vote_data.direction)
    return VoteResponse(
        question_id=outcome.question_id,
        vote=outcome.state.value,
        upvotes_delta=outcome.delta.upvotes,
        downvotes_delta=outcome.delta.downvotes,
        vote_count_delta=outcome.delta.vote_count,
    )


@router.get("/{question_id}/my-vote", response_model=MyVoteResponse)
async def get_my_vote(
    question_id: str,
    current_user: CurrentUserDep,
    ledger: VoteLedgerDep,
) -> MyVoteResponse:
    """Get current user's vote on a specific question."""
    state = ledger.current_vote(current_user.id, question_id)
    return MyVoteResponse(question_id=question_id, vote=state.value)
