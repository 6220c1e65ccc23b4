"""
Error taxonomy for the recommendation pipeline.

Storage and vector adapters translate their driver errors into these types so the
engine and the HTTP layer can decide what is fatal without knowing the backend.
"""

from typing import Optional


class RecommendationError(Exception):
    """Base class for all pipeline errors."""


class StorageUnavailable(RecommendationError):
    """A repository read or write failed. Surfaced to the caller, never retried here."""


class DuplicateFeed(RecommendationError):
    """A feed batch already exists for (user_id, date, feed_type)."""

    def __init__(self, user_id: str, feed_type: str, date: str):
        super().__init__(
            f"Feed already exists for user_id={user_id} feed_type={feed_type} date={date}"
        )
        self.user_id = user_id
        self.feed_type = feed_type
        self.date = date


class ScoringFailed(RecommendationError):
    """A scorer raised or returned a malformed value. Fatal to the run."""

    def __init__(self, scorer_name: str, cause: Optional[BaseException] = None, message: str = ""):
        detail = message or (f"{type(cause).__name__}: {cause}" if cause is not None else "unknown")
        super().__init__(f"Scorer {scorer_name!r} failed: {detail}")
        self.scorer_name = scorer_name
        self.cause = cause


class VectorStoreUnavailable(RecommendationError):
    """Vector retrieval could not be performed. The engine degrades to rule-based candidates."""


class EmbeddingUnavailable(VectorStoreUnavailable):
    """The query embedding could not be computed."""


class InvalidConfiguration(RecommendationError, ValueError):
    """Scorer weights or pipeline wiring are invalid. Raised at construction."""


class RunCancelled(RecommendationError):
    """A recommendation run was cancelled between stages. Nothing is persisted."""

    def __init__(self, stage: str):
        super().__init__(f"Recommendation run cancelled before {stage}")
        self.stage = stage
