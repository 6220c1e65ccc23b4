"""
Per-signal scorers: pure functions (resource, context, profile) -> score in [0, 1].

Tunable parameters are keyword-only so default_scorers() can bind them from config with
functools.partial and the result is still a plain three-argument scorer.
"""

import math
from functools import partial
from typing import Callable, List, NamedTuple

from ...models.config import RecommendationConfig
from ...models.context import RecommendationContext
from ...models.profile import UserInterestProfile
from ...models.resource import Resource
from ...utils.scores import clamp_unit, days_between, recency_score

ScoreFn = Callable[[Resource, RecommendationContext, UserInterestProfile], float]

NEUTRAL_SCORE = 0.5


class WeightedScorer(NamedTuple):
    """A named scorer and its weight in the composite."""

    name: str
    score: ScoreFn
    weight: float


def score_source(
    resource: Resource,
    context: RecommendationContext,
    profile: UserInterestProfile,
    *,
    favored_score: float = 0.9,
    neutral_score: float = NEUTRAL_SCORE,
) -> float:
    """Fixed high score when the resource comes from a source the user configured."""
    if resource.source_id and resource.source_id in profile.favored_source_ids:
        return favored_score
    return neutral_score


def score_recency(
    resource: Resource,
    context: RecommendationContext,
    profile: UserInterestProfile,
    *,
    decay_days: float = 30.0,
    floor: float = 0.05,
) -> float:
    """Exponential decay of age relative to the feed date; never below floor."""
    age = days_between(resource.reference_time, context.date)
    return recency_score(age, decay_days, floor)


def score_vote_history(
    resource: Resource,
    context: RecommendationContext,
    profile: UserInterestProfile,
    *,
    neutral_score: float = NEUTRAL_SCORE,
) -> float:
    """
    Average topic affinity across the resource's topics.

    Topics the user never voted on count as neutral, so a resource is not pulled
    down just for carrying an extra unfamiliar topic. Empty profile or no topics -> neutral.
    """
    if profile.is_empty or not resource.topic_ids:
        return neutral_score
    affinities = [profile.get_topic_score(t, neutral_score) for t in resource.topic_ids]
    return clamp_unit(sum(affinities) / len(affinities))


def score_similarity(
    resource: Resource,
    context: RecommendationContext,
    profile: UserInterestProfile,
    *,
    neutral_score: float = NEUTRAL_SCORE,
) -> float:
    """
    Vector similarity from retrieval, clamped to [0, 1].

    A candidate the completed vector search did not return (below top_k or
    vector_min_score) scores 0.0, never above the weakest hit. Without a
    completed vector search every candidate is neutral.
    """
    similarity = context.similarity_by_id.get(resource.id)
    if similarity is None or math.isnan(similarity):
        return 0.0 if context.vector_used else neutral_score
    return clamp_unit(similarity)


def default_scorers(config: RecommendationConfig) -> List[WeightedScorer]:
    """Registered scorers in evaluation order, weighted from config."""
    weights = config.scorer_weights()
    return [
        WeightedScorer(
            "similarity",
            partial(score_similarity, neutral_score=config.neutral_score),
            weights["similarity"],
        ),
        WeightedScorer(
            "vote_history",
            partial(score_vote_history, neutral_score=config.neutral_score),
            weights["vote_history"],
        ),
        WeightedScorer(
            "recency",
            partial(
                score_recency,
                decay_days=config.recency_decay_days,
                floor=config.recency_floor,
            ),
            weights["recency"],
        ),
        WeightedScorer(
            "source",
            partial(
                score_source,
                favored_score=config.favored_source_score,
                neutral_score=config.neutral_score,
            ),
            weights["source"],
        ),
    ]
