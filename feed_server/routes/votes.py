"""Vote endpoints: one up/down vote per user and resource."""

import logging
import uuid
from typing import List

from fastapi import APIRouter, HTTPException

from recommender.models import ResourceVote

from ..models import VoteRequest, VoteResponse
from ..state import get_state

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(vote: ResourceVote) -> VoteResponse:
    return VoteResponse(**vote.model_dump())


@router.post("", response_model=VoteResponse)
async def cast_vote(request: VoteRequest):
    """Create the user's vote on a resource, or change its direction."""
    state = get_state()
    resource = await state.store.resources.get_by_id(request.resource_id)
    if resource is None:
        raise HTTPException(status_code=404, detail=f"Resource not found: {request.resource_id}")
    vote = await state.store.votes.upsert_vote(
        ResourceVote(
            id=str(uuid.uuid4()),
            user_id=request.user_id,
            resource_id=request.resource_id,
            vote_type=request.vote_type,
        )
    )
    logger.info(
        "[votes] VOTE user_id=%s resource_id=%s vote_type=%s",
        vote.user_id, vote.resource_id, vote.vote_type.value,
    )
    return _to_response(vote)


@router.get("/{user_id}", response_model=List[VoteResponse])
async def list_votes(user_id: str):
    state = get_state()
    votes = await state.store.votes.get_by_user(user_id)
    votes.sort(key=lambda v: v.last_changed, reverse=True)
    return [_to_response(v) for v in votes]
