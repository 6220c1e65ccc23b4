"""
Scoring stage: per-signal scorers and their weighted composite.

Public API: CompositeScorer, WeightedScorer, default_scorers and the score_* functions.
"""

from .composite import CompositeScorer
from .signals import (
    NEUTRAL_SCORE,
    ScoreFn,
    WeightedScorer,
    default_scorers,
    score_recency,
    score_similarity,
    score_source,
    score_vote_history,
)

__all__ = [
    "CompositeScorer",
    "NEUTRAL_SCORE",
    "ScoreFn",
    "WeightedScorer",
    "default_scorers",
    "score_recency",
    "score_similarity",
    "score_source",
    "score_vote_history",
]
