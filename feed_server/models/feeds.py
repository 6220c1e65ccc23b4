"""Feed and history request/response models."""

from typing import List, Optional

from pydantic import BaseModel

from .common import RecommendationCard


class FeedResponse(BaseModel):
    user_id: str
    feed_type: str
    requested_date: str
    # Date the rows belong to; differs from requested_date when falling back to the latest feed
    date: Optional[str] = None
    created: bool = False
    degraded: bool = False
    items: List[RecommendationCard] = []


class HistoryResponse(BaseModel):
    user_id: str
    feed_type: Optional[str] = None
    page: int
    page_size: int
    items: List[RecommendationCard] = []
