"""Pure helpers: feed type parsing and recommendation card formatting."""

from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from fastapi import HTTPException

from recommender.models import Recommendation, Resource, ResourceType

from .models import RecommendationCard, ResourceCard


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def parse_feed_type(value: str) -> ResourceType:
    """ResourceType from a path segment; accepts value or enum name, any case."""
    normalized = value.strip().lower().replace("-", "_")
    for feed_type in ResourceType:
        if normalized in (feed_type.value, feed_type.name.lower()):
            return feed_type
    allowed = ", ".join(t.value for t in ResourceType)
    raise HTTPException(status_code=400, detail=f"Unknown feed type {value!r}. Use one of: {allowed}")


def parse_optional_feed_type(value: Optional[str]) -> Optional[ResourceType]:
    return parse_feed_type(value) if value else None


def to_resource_card(resource: Resource) -> ResourceCard:
    return ResourceCard(
        id=resource.id,
        title=resource.title,
        description=resource.description,
        url=resource.url,
        type=resource.type.value,
        source_id=resource.source_id,
        source_name=resource.source_name,
        topic_ids=list(resource.topic_ids),
        published_date=resource.published_date,
    )


def to_recommendation_card(
    row: Recommendation,
    resources_by_id: Dict[str, Resource],
) -> RecommendationCard:
    """Format a persisted row as an API card, with resource details when available."""
    resource = resources_by_id.get(row.resource_id)
    return RecommendationCard(
        id=row.id,
        resource_id=row.resource_id,
        feed_type=row.feed_type.value,
        date=row.date.isoformat(),
        position=row.position,
        score=round(row.score, 4),
        resource=to_resource_card(resource) if resource else None,
    )


async def to_recommendation_cards(rows: List[Recommendation], resource_repository) -> List[RecommendationCard]:
    resources = await resource_repository.get_by_ids([r.resource_id for r in rows])
    by_id = {r.id: r for r in resources}
    return [to_recommendation_card(row, by_id) for row in rows]
