"""Daily feed endpoints: generate-or-get, read with fallback, history."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Query

from recommender.models import DEFAULT_HISTORY_PAGE_SIZE, MAX_HISTORY_PAGE_SIZE

from ..models import FeedResponse, HistoryResponse
from ..state import get_state
from ..utils import (
    parse_feed_type,
    parse_optional_feed_type,
    to_recommendation_cards,
    today_utc,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{user_id}/history", response_model=HistoryResponse)
async def get_history(
    user_id: str,
    feed_type: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_HISTORY_PAGE_SIZE, ge=1, le=MAX_HISTORY_PAGE_SIZE),
):
    """Past recommendations, newest date first."""
    state = get_state()
    ftype = parse_optional_feed_type(feed_type)
    rows = await state.feed_generator.get_history(user_id, ftype, page_size, page)
    return HistoryResponse(
        user_id=user_id,
        feed_type=ftype.value if ftype else None,
        page=page,
        page_size=page_size,
        items=await to_recommendation_cards(rows, state.store.resources),
    )


@router.post("/{user_id}/{feed_type}", response_model=FeedResponse)
async def generate_feed(
    user_id: str,
    feed_type: str,
    feed_date: Optional[date] = Query(None, alias="date"),
):
    """Return the day's feed, generating and persisting it on first request."""
    state = get_state()
    ftype = parse_feed_type(feed_type)
    requested = feed_date or today_utc()
    result = await state.feed_generator.generate_or_get_feed(user_id, ftype, requested)
    return FeedResponse(
        user_id=user_id,
        feed_type=ftype.value,
        requested_date=requested.isoformat(),
        date=requested.isoformat() if result.recommendations else None,
        created=result.created,
        degraded=result.degraded,
        items=await to_recommendation_cards(result.recommendations, state.store.resources),
    )


@router.get("/{user_id}/{feed_type}", response_model=FeedResponse)
async def get_feed(
    user_id: str,
    feed_type: str,
    feed_date: Optional[date] = Query(None, alias="date"),
):
    """Read-only; falls back to the most recent feed when the date has none."""
    state = get_state()
    ftype = parse_feed_type(feed_type)
    requested = feed_date or today_utc()
    effective, rows = await state.feed_generator.get_feed(user_id, ftype, requested)
    if effective is not None and effective != requested:
        logger.info(
            "[feeds] FEED_FALLBACK user_id=%s feed_type=%s requested=%s served=%s",
            user_id, ftype.value, requested, effective,
        )
    return FeedResponse(
        user_id=user_id,
        feed_type=ftype.value,
        requested_date=requested.isoformat(),
        date=effective.isoformat() if effective else None,
        items=await to_recommendation_cards(rows, state.store.resources),
    )
