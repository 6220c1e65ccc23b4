#!/usr/bin/env python3
"""
Generate the day's feeds (every feed type) for all users or a given list.

Feeds that already exist are left as they are, so the job can be re-run safely.
Uses the same stores and pipeline as the API server (DATA_SOURCE, VECTOR_BACKEND, ...).

Usage:
  From repo root:
    python -m feed_server.scripts.generate_daily_feeds
    python -m feed_server.scripts.generate_daily_feeds --date 2026-03-01 --user-id alice --user-id bob
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from recommender import FeedGenerator, RecommendationError, ResourceType, RunCancelled

from ..config import configure_logging, get_config
from ..state import AppState
from ..utils import today_utc

logger = logging.getLogger(__name__)


@dataclass
class DailyRunSummary:
    feed_date: date
    users: int = 0
    feeds_created: int = 0
    feeds_existing: int = 0
    degraded: int = 0
    feeds_failed: int = 0
    failed_users: List[str] = field(default_factory=list)


async def generate_daily_feeds(
    feed_generator: FeedGenerator,
    user_ids: List[str],
    feed_date: date,
    cancel: Optional[asyncio.Event] = None,
) -> DailyRunSummary:
    """Generate all feed types for each user; one user's failure does not stop the run."""
    summary = DailyRunSummary(feed_date=feed_date)
    for user_id in user_ids:
        summary.users += 1
        try:
            results = await feed_generator.generate_all_feeds(user_id, feed_date, cancel)
        except RunCancelled:
            raise
        except RecommendationError as e:
            logger.error("[daily] USER_FAILED user_id=%s date=%s error=%s", user_id, feed_date, e)
            summary.failed_users.append(user_id)
            continue
        for result in results.values():
            if result.created:
                summary.feeds_created += 1
            elif result.recommendations:
                summary.feeds_existing += 1
            if result.degraded:
                summary.degraded += 1
        summary.feeds_failed += len(ResourceType) - len(results)
    logger.info(
        "[daily] DONE date=%s users=%d created=%d existing=%d degraded=%d failed_feeds=%d failed_users=%d",
        feed_date, summary.users, summary.feeds_created, summary.feeds_existing,
        summary.degraded, summary.feeds_failed, len(summary.failed_users),
    )
    return summary


async def _run(args: argparse.Namespace) -> int:
    state = AppState(get_config())
    user_ids = args.user_id or await state.store.users.list_user_ids()
    if not user_ids:
        logger.warning("[daily] no users to process")
        return 0
    summary = await generate_daily_feeds(state.feed_generator, user_ids, args.date)
    print(
        f"{summary.feed_date}: {summary.users} users, {summary.feeds_created} feeds created, "
        f"{summary.feeds_existing} already existed, {summary.degraded} degraded, "
        f"{len(summary.failed_users)} users failed"
    )
    return 1 if summary.failed_users or summary.feeds_failed else 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate daily feeds for all feed types")
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=today_utc(),
        help="Feed date YYYY-MM-DD (default: today, UTC)",
    )
    parser.add_argument(
        "--user-id",
        action="append",
        default=None,
        help="User to generate for (repeatable; default: all users)",
    )
    args = parser.parse_args()
    configure_logging(get_config().log_level)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
