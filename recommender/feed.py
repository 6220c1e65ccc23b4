"""
Daily feed materialization.

FeedGenerator turns an engine run into the persisted feed for (user_id, date, feed_type),
at most once: existing rows are returned as-is, and a losing concurrent writer re-reads
the winner's rows instead of writing its own.
"""

import asyncio
import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from .errors import DuplicateFeed, RecommendationError, RunCancelled
from .models.config import RecommendationConfig, resolve_config
from .models.context import RecommendationContext
from .models.recommendation import (
    DEFAULT_HISTORY_PAGE_SIZE,
    MAX_HISTORY_PAGE_SIZE,
    FeedResult,
    Recommendation,
)
from .models.resource import ResourceType, utc_now
from .models.scoring import ScoredResource
from .stages.orchestrator import HybridRecommendationEngine
from .stores import RecommendationRepository, VoteRepository
from .utils.cancellation import raise_if_cancelled

logger = logging.getLogger(__name__)


def build_rows(
    items: List[ScoredResource],
    user_id: str,
    feed_type: ResourceType,
    feed_date: date,
) -> List[Recommendation]:
    """Persistable rows with positions 1..n in ranked order."""
    created_at = utc_now()
    return [
        Recommendation(
            user_id=user_id,
            resource_id=item.resource_id,
            feed_type=feed_type,
            date=feed_date,
            score=item.final_score,
            position=position,
            created_at=created_at,
        )
        for position, item in enumerate(items, start=1)
    ]


class FeedGenerator:
    """Idempotent per-day feed creation plus read-only feed and history access."""

    def __init__(
        self,
        engine: HybridRecommendationEngine,
        recommendation_repository: RecommendationRepository,
        vote_repository: VoteRepository,
        config: Optional[RecommendationConfig] = None,
    ):
        self._engine = engine
        self._recommendations = recommendation_repository
        self._votes = vote_repository
        self._config = resolve_config(config)

    async def build_context(
        self,
        user_id: str,
        feed_type: ResourceType,
        feed_date: date,
        count: Optional[int] = None,
    ) -> RecommendationContext:
        """Seen = resources the user voted on; recent = recommended in the lookback window."""
        votes = await self._votes.get_by_user(user_id)
        lookback = self._config.recent_recommendation_lookback_days
        recent = await self._recommendations.get_recent_by_user(
            user_id, feed_date - timedelta(days=lookback), feed_date
        )
        return RecommendationContext(
            user_id=user_id,
            feed_type=feed_type,
            date=feed_date,
            count=count or self._config.feed_size,
            seen_resource_ids=frozenset(v.resource_id for v in votes),
            recently_recommended_ids=frozenset(r.resource_id for r in recent),
        )

    async def generate_or_get_feed(
        self,
        user_id: str,
        feed_type: ResourceType,
        feed_date: date,
        cancel: Optional[asyncio.Event] = None,
    ) -> FeedResult:
        """
        Return the feed for (user_id, feed_type, feed_date), creating it if absent.

        Safe under concurrent calls for the same key: exactly one batch is persisted and
        every caller gets those rows. Cancellation before the write persists nothing.
        """
        existing = await self._recommendations.get_by_user_date_and_type(
            user_id, feed_date, feed_type
        )
        if existing:
            logger.info(
                "[feed] FEED_EXISTS user_id=%s feed_type=%s date=%s rows=%d",
                user_id, feed_type.value, feed_date, len(existing),
            )
            return FeedResult(recommendations=existing, created=False)

        context = await self.build_context(user_id, feed_type, feed_date)
        ranked = await self._engine.recommend(context, cancel)
        rows = build_rows(ranked.items, user_id, feed_type, feed_date)

        raise_if_cancelled(cancel, "persist")
        if not rows:
            logger.info(
                "[feed] FEED_EMPTY user_id=%s feed_type=%s date=%s degraded=%s",
                user_id, feed_type.value, feed_date, ranked.degraded,
            )
            return FeedResult(recommendations=[], degraded=ranked.degraded, created=False)

        try:
            await self._recommendations.create_batch(rows)
        except DuplicateFeed:
            winner = await self._recommendations.get_by_user_date_and_type(
                user_id, feed_date, feed_type
            )
            logger.info(
                "[feed] FEED_CONFLICT user_id=%s feed_type=%s date=%s using_existing=%d",
                user_id, feed_type.value, feed_date, len(winner),
            )
            return FeedResult(recommendations=winner, created=False)

        logger.info(
            "[feed] FEED_CREATED user_id=%s feed_type=%s date=%s rows=%d degraded=%s",
            user_id, feed_type.value, feed_date, len(rows), ranked.degraded,
        )
        return FeedResult(recommendations=rows, degraded=ranked.degraded, created=True)

    async def generate_all_feeds(
        self,
        user_id: str,
        feed_date: date,
        cancel: Optional[asyncio.Event] = None,
    ) -> Dict[ResourceType, FeedResult]:
        """
        Generate every feed type for the user. A failing type is logged and skipped;
        cancellation stops the whole run.
        """
        results: Dict[ResourceType, FeedResult] = {}
        for feed_type in ResourceType:
            raise_if_cancelled(cancel, f"feed:{feed_type.value}")
            try:
                results[feed_type] = await self.generate_or_get_feed(
                    user_id, feed_type, feed_date, cancel
                )
            except RunCancelled:
                raise
            except RecommendationError as e:
                logger.error(
                    "[feed] FEED_FAILED user_id=%s feed_type=%s date=%s error=%s",
                    user_id, feed_type.value, feed_date, e,
                )
        return results

    async def get_feed(
        self,
        user_id: str,
        feed_type: ResourceType,
        feed_date: date,
    ) -> Tuple[Optional[date], List[Recommendation]]:
        """
        Read-only: rows for the date, else rows for the most recent date that has a feed.
        Returns (effective_date, rows); (None, []) when the user has no feed of this type.
        """
        rows = await self._recommendations.get_by_user_date_and_type(user_id, feed_date, feed_type)
        if rows:
            return feed_date, rows
        latest = await self._recommendations.get_most_recent_date(user_id, feed_type)
        if latest is None:
            return None, []
        rows = await self._recommendations.get_by_user_date_and_type(user_id, latest, feed_type)
        return latest, rows

    async def get_history(
        self,
        user_id: str,
        feed_type: Optional[ResourceType] = None,
        page_size: int = DEFAULT_HISTORY_PAGE_SIZE,
        page: int = 1,
    ) -> List[Recommendation]:
        """Past feed rows, newest date first then by position."""
        page_size = max(1, min(page_size, MAX_HISTORY_PAGE_SIZE))
        page = max(1, page)
        return await self._recommendations.get_history(user_id, feed_type, page_size, page)
