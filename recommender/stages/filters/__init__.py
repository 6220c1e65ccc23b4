"""
Filter stage: ordered, named transformations over scored candidates.

Each filter is (candidates, context) -> candidates, returns a new list and never
introduces resources that were not in its input. Filters run in declared order.
"""

from functools import partial
from typing import Callable, List, NamedTuple

from ...models.config import RecommendationConfig
from ...models.context import RecommendationContext
from ...models.scoring import ScoredResource
from .diversity import diversity_filter, occurrence_penalty, select_with_topic_cap
from .seen import seen_filter

FilterFn = Callable[[List[ScoredResource], RecommendationContext], List[ScoredResource]]


class NamedFilter(NamedTuple):
    name: str
    apply: FilterFn


def default_filters(config: RecommendationConfig) -> List[NamedFilter]:
    """Seen-removal first, then topic diversification."""
    return [
        NamedFilter("seen", seen_filter),
        NamedFilter(
            "diversity",
            partial(
                diversity_filter,
                max_per_topic=config.max_per_topic,
                second_occurrence_penalty=config.second_occurrence_penalty,
                repeat_occurrence_penalty=config.repeat_occurrence_penalty,
            ),
        ),
    ]


__all__ = [
    "FilterFn",
    "NamedFilter",
    "default_filters",
    "diversity_filter",
    "occurrence_penalty",
    "seen_filter",
    "select_with_topic_cap",
]
