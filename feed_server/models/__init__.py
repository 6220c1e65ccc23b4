"""Pydantic request/response models for the API."""

from .common import ErrorResponse, RecommendationCard, ResourceCard
from .feeds import FeedResponse, HistoryResponse
from .votes import VoteRequest, VoteResponse

__all__ = [
    "ErrorResponse",
    "RecommendationCard",
    "ResourceCard",
    "FeedResponse",
    "HistoryResponse",
    "VoteRequest",
    "VoteResponse",
]
