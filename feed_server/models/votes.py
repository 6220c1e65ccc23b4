"""Vote request/response models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from recommender.models import VoteType


class VoteRequest(BaseModel):
    user_id: str
    resource_id: str
    vote_type: VoteType


class VoteResponse(BaseModel):
    id: str
    user_id: str
    resource_id: str
    vote_type: VoteType
    created_at: datetime
    updated_at: Optional[datetime] = None
