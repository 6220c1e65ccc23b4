"""Shared utilities for scoring, similarity, and run cancellation."""

from .cancellation import raise_if_cancelled
from .scores import clamp_unit, days_between, logistic, recency_score, start_of_day
from .similarity import cosine_similarity, mean_pool

__all__ = [
    "raise_if_cancelled",
    "clamp_unit",
    "days_between",
    "logistic",
    "recency_score",
    "start_of_day",
    "cosine_similarity",
    "mean_pool",
]
