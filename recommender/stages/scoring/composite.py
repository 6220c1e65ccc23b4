"""
Composite scoring: weighted sum of the registered scorers.

final_score = sum(weight_i * scorer_i(resource, context, profile)); weights sum to 1.0,
so final_score stays in [0, 1] before filtering.
"""

import asyncio
import logging
import math
from numbers import Real
from typing import Dict, List, Optional, Sequence

from ...errors import InvalidConfiguration, ScoringFailed
from ...models.config import WEIGHT_SUM_TOLERANCE
from ...models.context import RecommendationContext
from ...models.profile import UserInterestProfile
from ...models.resource import Resource
from ...models.scoring import ScoreBreakdown, ScoredResource
from ...utils.cancellation import raise_if_cancelled
from .signals import WeightedScorer

logger = logging.getLogger(__name__)


def _validate_scorers(scorers: Sequence[WeightedScorer]) -> None:
    if not scorers:
        raise InvalidConfiguration("At least one scorer must be registered")
    names = [s.name for s in scorers]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise InvalidConfiguration(f"Duplicate scorer names: {duplicates}")
    for scorer in scorers:
        if not 0.0 <= scorer.weight <= 1.0:
            raise InvalidConfiguration(
                f"Weight for scorer {scorer.name!r} must be in [0, 1], got {scorer.weight}"
            )
    total = sum(s.weight for s in scorers)
    if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
        raise InvalidConfiguration(f"Scorer weights must sum to 1.0, got {total}")


def _checked_value(name: str, value) -> float:
    """Reject non-numeric, NaN and out-of-range scorer output."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ScoringFailed(name, message=f"returned non-numeric value {value!r}")
    value = float(value)
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        raise ScoringFailed(name, message=f"returned {value} outside [0, 1]")
    return value

class CompositeScorer:
    """Weighted combination of named scorers, validated at construction."""

    def __init__(self, scorers: Sequence[WeightedScorer]):
        scorers = list(scorers)
        _validate_scorers(scorers)
        self._scorers: List[WeightedScorer] = scorers

    @property
    def names(self) -> List[str]:
        return [s.name for s in self._scorers]

    @property
    def weights(self) -> Dict[str, float]:
        return {s.name: s.weight for s in self._scorers}

    def score(
        self,
        resource: Resource,
        context: RecommendationContext,
        profile: UserInterestProfile,
    ) -> ScoredResource:
        """Score one resource. Raises ScoringFailed naming the first scorer that failed."""
        signals: Dict[str, float] = {}
        final = 0.0
        for scorer in self._scorers:
            try:
                raw = scorer.score(resource, context, profile)
            except Exception as e:
                logger.error(
                    "[scoring] SCORER_FAILED scorer=%s resource_id=%s error=%s",
                    scorer.name, resource.id, e,
                )
                raise ScoringFailed(scorer.name, e) from e
            value = _checked_value(scorer.name, raw)
            signals[scorer.name] = value
            final += scorer.weight * value
        return ScoredResource(
            resource=resource,
            scores=ScoreBreakdown(signals=signals),
            final_score=final,
        )

    def score_all(
        self,
        resources: Sequence[Resource],
        context: RecommendationContext,
        profile: UserInterestProfile,
        cancel: Optional[asyncio.Event] = None,
    ) -> List[ScoredResource]:
        """Score resources in input order; aborts on the first failure."""
        scored = []
        for resource in resources:
            raise_if_cancelled(cancel, "scoring")
            scored.append(self.score(resource, context, profile))
        return scored
