"""
Scoring model — a candidate resource with its per-signal scores.

ScoredResource is transient: it flows through scoring and filters and is never persisted.
Filters fold over it by returning new instances rather than mutating.
"""

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field

from .resource import Resource


class ScoreBreakdown(BaseModel):
    """Per-scorer signal values plus the diversity penalty applied by filtering."""

    model_config = ConfigDict(frozen=True)

    signals: Dict[str, float] = Field(default_factory=dict)
    diversity_penalty: float = 0.0

    def get(self, name: str, default: float = 0.0) -> float:
        return self.signals.get(name, default)


class ScoredResource(BaseModel):
    """A resource with all its scoring components."""

    model_config = ConfigDict(frozen=True)

    resource: Resource
    scores: ScoreBreakdown
    final_score: float

    @property
    def resource_id(self) -> str:
        return self.resource.id

    def with_penalty(self, penalty: float) -> "ScoredResource":
        """Copy with the diversity penalty recorded and subtracted from final_score."""
        return ScoredResource(
            resource=self.resource,
            scores=ScoreBreakdown(
                signals=dict(self.scores.signals),
                diversity_penalty=penalty,
            ),
            final_score=self.final_score - penalty,
        )
