"""
Pipeline configuration: candidate pool, vector retrieval, scoring and diversity parameters.

RecommendationConfig defaults are defined here. The server may pass a dict
(e.g. from a JSON file named by ALGORITHM_CONFIG_PATH); from_dict() merges it with these defaults.
"""

from typing import Dict, Optional

from pydantic import BaseModel, ValidationError, model_validator

from ..errors import InvalidConfiguration

WEIGHT_SUM_TOLERANCE = 1e-6


class RecommendationConfig(BaseModel):
    """Configuration for the recommendation pipeline."""

    # -------------------------------------------------------------------------
    # Candidate Pool (rule-based retrieval)
    # -------------------------------------------------------------------------

    # Only resources published within this many days of the feed date are eligible.
    # Doubled (up to max_freshness_window_days) when fewer than feed_size candidates pass.
    freshness_window_days: int = 90
    max_freshness_window_days: int = 365

    # Max number of rule-based candidates, newest first.
    candidate_pool_size: int = 200

    # -------------------------------------------------------------------------
    # Feed
    # -------------------------------------------------------------------------

    # Number of resources per daily feed (K).
    feed_size: int = 5

    # Resources recommended within this many days before the feed date are excluded.
    recent_recommendation_lookback_days: int = 7

    # -------------------------------------------------------------------------
    # Vector Retrieval
    # top_k = feed_size * vector_candidate_multiplier
    # -------------------------------------------------------------------------

    vector_candidate_multiplier: int = 10

    # Hits below this similarity are dropped by the vector store. None = no threshold.
    vector_min_score: Optional[float] = None

    # Max number of recent upvoted resources mean-pooled into the query vector.
    query_vector_limit: int = 10

    # -------------------------------------------------------------------------
    # Scoring Weights (must sum to 1.0)
    # final_score = sum(weight_i * signal_i)
    # -------------------------------------------------------------------------

    # Weight for vector similarity to the user's recent positive interactions.
    weight_similarity: float = 0.4
    # Weight for topic affinity learned from votes.
    weight_vote_history: float = 0.3
    # Weight for recency. Higher = fresher content favored.
    weight_recency: float = 0.2
    # Weight for favored-source match.
    weight_source: float = 0.1

    # -------------------------------------------------------------------------
    # Recency Score
    # recency = max(recency_floor, exp(-days_old / recency_decay_days))
    # -------------------------------------------------------------------------

    recency_decay_days: float = 30.0
    recency_floor: float = 0.05

    # -------------------------------------------------------------------------
    # Source Score
    # -------------------------------------------------------------------------

    # Score for resources from a source the user configured.
    favored_source_score: float = 0.9
    # Score for everything else, and the fallback for signals with no opinion.
    neutral_score: float = 0.5

    # -------------------------------------------------------------------------
    # Interest Profile
    # topic_score = 1 / (1 + exp(-topic_affinity_steepness * net_weight))
    # -------------------------------------------------------------------------

    upvote_weight: float = 1.0
    downvote_weight: float = -1.0
    topic_affinity_steepness: float = 1.0

    # -------------------------------------------------------------------------
    # Topic Diversity (greedy selection after seen-removal)
    # -------------------------------------------------------------------------

    # Hard cap: no more than this many resources sharing a topic in one feed.
    max_per_topic: int = 2
    # Penalty for a resource whose topic already appears once in the accepted set.
    second_occurrence_penalty: float = 0.02
    # Penalty when a topic already appears twice or more.
    repeat_occurrence_penalty: float = 0.05

    @model_validator(mode="after")
    def validate_parameters(self):
        weights = self.scorer_weights()
        for name, weight in weights.items():
            if not 0.0 <= weight <= 1.0:
                raise ValueError(f"Scoring weight {name} must be in [0, 1], got {weight}")
        total = sum(weights.values())
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise ValueError(f"Scoring weights must sum to 1.0, got {total}")
        if self.feed_size < 1:
            raise ValueError(f"feed_size must be positive, got {self.feed_size}")
        if self.max_per_topic < 1:
            raise ValueError(f"max_per_topic must be positive, got {self.max_per_topic}")
        # Scorer constants are returned as scores, so they must be valid scores themselves
        for name in ("favored_source_score", "neutral_score", "recency_floor"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")
        if self.recency_decay_days <= 0:
            raise ValueError(f"recency_decay_days must be positive, got {self.recency_decay_days}")
        for name in ("second_occurrence_penalty", "repeat_occurrence_penalty"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
        return self

    def scorer_weights(self) -> Dict[str, float]:
        """Weights keyed by scorer name, in registration order."""
        return {
            "similarity": self.weight_similarity,
            "vote_history": self.weight_vote_history,
            "recency": self.weight_recency,
            "source": self.weight_source,
        }

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "RecommendationConfig":
        """
        Create config from a nested dictionary (e.g., loaded from JSON).

        Raises InvalidConfiguration when the merged values do not validate.
        """
        flat = {}
        for section in ("candidate_pool", "feed", "vector", "recency", "source", "profile"):
            if section in config_dict:
                flat.update(config_dict[section])
        if "weights" in config_dict:
            for name, weight in config_dict["weights"].items():
                flat[f"weight_{name}"] = weight
        if "diversity" in config_dict:
            div = config_dict["diversity"]
            if "max_per_topic" in div:
                flat["max_per_topic"] = div["max_per_topic"]
            if "penalties" in div:
                penalties = div["penalties"]
                flat["second_occurrence_penalty"] = penalties.get("second", 0.02)
                flat["repeat_occurrence_penalty"] = penalties.get("repeat", 0.05)
        allowed = set(cls.model_fields)
        filtered = {k: v for k, v in flat.items() if k in allowed}
        try:
            return cls.model_validate(filtered)
        except ValidationError as e:
            raise InvalidConfiguration(str(e)) from e


DEFAULT_CONFIG = RecommendationConfig()


def resolve_config(config: Optional["RecommendationConfig"]) -> "RecommendationConfig":
    """Return config or DEFAULT_CONFIG when none is provided."""
    return config if config is not None else DEFAULT_CONFIG
