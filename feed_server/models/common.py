"""Common Pydantic models shared across routes."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class ResourceCard(BaseModel):
    id: str
    title: str
    description: str = ""
    url: str = ""
    type: str
    source_id: Optional[str] = None
    source_name: Optional[str] = None
    topic_ids: List[str] = []
    published_date: Optional[datetime] = None


class RecommendationCard(BaseModel):
    id: str
    resource_id: str
    feed_type: str
    date: str
    position: int
    score: float
    resource: Optional[ResourceCard] = None


class ErrorResponse(BaseModel):
    error: str
    detail: str
    # Set for scoring failures
    scorer: Optional[str] = None
