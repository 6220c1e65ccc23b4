"""
Topic diversity — greedy selection with a per-topic cap and a small repeat penalty.

Walks candidates by final_score (desc). A candidate is dropped when any of its topics
already has max_per_topic accepted resources; otherwise it is accepted with a penalty
based on the most-repeated of its topics among those already accepted.
"""

import logging
from typing import Dict, List

from ...models.context import RecommendationContext
from ...models.scoring import ScoredResource

logger = logging.getLogger(__name__)


def occurrence_penalty(
    prior_count: int,
    second_occurrence_penalty: float = 0.02,
    repeat_occurrence_penalty: float = 0.05,
) -> float:
    """0 prior -> 0, 1 prior -> second_occurrence_penalty, 2+ -> repeat_occurrence_penalty."""
    if prior_count <= 0:
        return 0.0
    if prior_count == 1:
        return second_occurrence_penalty
    return repeat_occurrence_penalty


def select_with_topic_cap(
    candidates: List[ScoredResource],
    max_per_topic: int = 2,
    second_occurrence_penalty: float = 0.02,
    repeat_occurrence_penalty: float = 0.05,
) -> List[ScoredResource]:
    """
    Greedy topic-capped selection.

    Args:
        candidates: Scored candidates in any order. Not mutated.
        max_per_topic: Hard cap on accepted resources sharing one topic.
        second_occurrence_penalty: Penalty when a topic already appears once.
        repeat_occurrence_penalty: Penalty when a topic already appears twice or more.

    Returns:
        Accepted candidates in descending original final_score, ties in input order,
        each carrying its diversity penalty.
    """
    ordered = sorted(candidates, key=lambda c: c.final_score, reverse=True)
    topic_counts: Dict[str, int] = {}
    accepted: List[ScoredResource] = []

    for candidate in ordered:
        topics = set(candidate.resource.topic_ids)
        prior = max((topic_counts.get(t, 0) for t in topics), default=0)

        # Hard cap: skip if any topic already at max
        if prior >= max_per_topic:
            continue

        penalty = occurrence_penalty(prior, second_occurrence_penalty, repeat_occurrence_penalty)
        accepted.append(candidate.with_penalty(penalty))
        for t in topics:
            topic_counts[t] = topic_counts.get(t, 0) + 1

    return accepted


def diversity_filter(
    candidates: List[ScoredResource],
    context: RecommendationContext,
    max_per_topic: int = 2,
    second_occurrence_penalty: float = 0.02,
    repeat_occurrence_penalty: float = 0.05,
) -> List[ScoredResource]:
    accepted = select_with_topic_cap(
        candidates, max_per_topic, second_occurrence_penalty, repeat_occurrence_penalty
    )
    dropped = len(candidates) - len(accepted)
    if dropped:
        logger.debug(
            "[filters] TOPIC_CAP_DROPPED user_id=%s dropped=%d max_per_topic=%d",
            context.user_id, dropped, max_per_topic,
        )
    return accepted
