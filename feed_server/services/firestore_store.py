"""
Firestore repositories: resources, votes, users/sources and daily feeds.

Used when DATA_SOURCE=firebase. Uses google.cloud.firestore.AsyncClient with the
service account at FIREBASE_CREDENTIALS_PATH (or application default credentials).

Layout:
    resources/{resource_id}
    votes/{user_id}_{resource_id}           (one vote per user and resource)
    users/{user_id}                         { source_ids: [...] }
    recommendations/{recommendation_id}
    feeds/{user_id}_{date}_{feed_type}      uniqueness marker for one feed batch

A feed batch is one write batch that `create`s the marker document, so a second
writer for the same key fails as a whole with AlreadyExists.
"""

import functools
import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Union

from google.api_core.exceptions import Conflict, GoogleAPIError
from google.cloud.firestore import AsyncClient
from google.cloud.firestore_v1.base_query import FieldFilter
from google.oauth2 import service_account

from recommender.errors import DuplicateFeed, StorageUnavailable
from recommender.models import (
    DEFAULT_HISTORY_PAGE_SIZE,
    Recommendation,
    Resource,
    ResourceType,
    ResourceVote,
    sort_feed_rows,
    utc_now,
)

logger = logging.getLogger(__name__)

RESOURCES = "resources"
VOTES = "votes"
USERS = "users"
RECOMMENDATIONS = "recommendations"
FEEDS = "feeds"

# Firestore get_all / batch limits
MAX_BATCH_WRITES = 500


def _project_id_from_credentials_file(credentials_path: Union[Path, str]) -> Optional[str]:
    """Read project_id from a Google service account JSON file if present."""
    path = Path(credentials_path)
    if not path.is_file():
        return None
    with open(path) as f:
        data = json.load(f)
    return data.get("project_id") or data.get("projectId")


def create_async_client(
    project_id: Optional[str] = None,
    credentials_path: Optional[Union[Path, str]] = None,
) -> AsyncClient:
    """AsyncClient from a service account file, or application default credentials."""
    if credentials_path:
        resolved = str(Path(credentials_path).resolve())
        creds = service_account.Credentials.from_service_account_file(resolved)
        project = project_id or _project_id_from_credentials_file(resolved)
        return AsyncClient(project=project, credentials=creds)
    return AsyncClient(project=project_id)


def storage_errors(operation: str):
    """Translate Google API errors raised by a repository method into StorageUnavailable."""

    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            try:
                return await fn(*args, **kwargs)
            except GoogleAPIError as e:
                logger.error("[firestore] %s failed: %s: %s", operation, type(e).__name__, e)
                raise StorageUnavailable(f"Firestore {operation} failed: {e}") from e

        return wrapper

    return decorator


def feed_document_id(user_id: str, feed_date: date, feed_type: ResourceType) -> str:
    return f"{user_id}_{feed_date.isoformat()}_{feed_type.value}"


def vote_document_id(user_id: str, resource_id: str) -> str:
    return f"{user_id}_{resource_id}"


def _resource_from_doc(doc_id: str, data: Dict[str, Any]) -> Resource:
    return Resource.model_validate({**data, "id": doc_id})


def _recommendation_to_doc(row: Recommendation) -> Dict[str, Any]:
    return {
        "user_id": row.user_id,
        "resource_id": row.resource_id,
        "feed_type": row.feed_type.value,
        "date": row.date.isoformat(),
        "score": row.score,
        "position": row.position,
        "created_at": row.created_at,
    }


def _recommendation_from_doc(doc_id: str, data: Dict[str, Any]) -> Recommendation:
    return Recommendation.model_validate({**data, "id": doc_id})


class FirestoreResourceRepository:
    def __init__(self, db: AsyncClient):
        self._db = db

    @storage_errors("get_resource")
    async def get_by_id(self, resource_id: str) -> Optional[Resource]:
        snap = await self._db.collection(RESOURCES).document(resource_id).get()
        return _resource_from_doc(snap.id, snap.to_dict()) if snap.exists else None

    @storage_errors("get_resources")
    async def get_by_ids(self, resource_ids: Iterable[str]) -> List[Resource]:
        ids = list(dict.fromkeys(resource_ids))
        if not ids:
            return []
        refs = [self._db.collection(RESOURCES).document(rid) for rid in ids]
        found: Dict[str, Resource] = {}
        async for snap in self._db.get_all(refs):
            if snap.exists:
                found[snap.id] = _resource_from_doc(snap.id, snap.to_dict())
        return [found[rid] for rid in ids if rid in found]

    @storage_errors("get_resources_by_type")
    async def get_by_type(self, resource_type: ResourceType) -> List[Resource]:
        query = self._db.collection(RESOURCES).where(
            filter=FieldFilter("type", "==", resource_type.value)
        )
        return [_resource_from_doc(s.id, s.to_dict()) async for s in query.stream()]

    @storage_errors("get_resources_by_topics")
    async def get_by_topics(self, topic_ids: Iterable[str]) -> List[Resource]:
        topics = list(topic_ids)[:30]  # array-contains-any accepts at most 30 values
        if not topics:
            return []
        query = self._db.collection(RESOURCES).where(
            filter=FieldFilter("topic_ids", "array_contains_any", topics)
        )
        return [_resource_from_doc(s.id, s.to_dict()) async for s in query.stream()]

    @storage_errors("get_resources_by_source")
    async def get_by_source(self, source_id: str) -> List[Resource]:
        query = self._db.collection(RESOURCES).where(filter=FieldFilter("source_id", "==", source_id))
        return [_resource_from_doc(s.id, s.to_dict()) async for s in query.stream()]

    @storage_errors("exists_by_url")
    async def exists_by_url(self, url: str) -> bool:
        query = self._db.collection(RESOURCES).where(filter=FieldFilter("url", "==", url)).limit(1)
        async for _ in query.stream():
            return True
        return False

    @storage_errors("add_resource")
    async def add(self, resource: Resource) -> None:
        data = resource.model_dump(mode="python", exclude={"id"})
        data["type"] = resource.type.value
        await self._db.collection(RESOURCES).document(resource.id).set(data)

    @storage_errors("list_resources")
    async def list_all(self) -> List[Resource]:
        return [
            _resource_from_doc(s.id, s.to_dict())
            async for s in self._db.collection(RESOURCES).stream()
        ]


class FirestoreVoteRepository:
    def __init__(self, db: AsyncClient):
        self._db = db

    @storage_errors("get_votes_by_user")
    async def get_by_user(self, user_id: str) -> List[ResourceVote]:
        query = self._db.collection(VOTES).where(filter=FieldFilter("user_id", "==", user_id))
        return [ResourceVote.model_validate({**s.to_dict(), "id": s.id}) async for s in query.stream()]

    @storage_errors("get_votes_by_resource")
    async def get_by_resource(self, resource_id: str) -> List[ResourceVote]:
        query = self._db.collection(VOTES).where(filter=FieldFilter("resource_id", "==", resource_id))
        return [ResourceVote.model_validate({**s.to_dict(), "id": s.id}) async for s in query.stream()]

    @storage_errors("get_vote")
    async def get_by_user_and_resource(
        self, user_id: str, resource_id: str
    ) -> Optional[ResourceVote]:
        snap = await self._db.collection(VOTES).document(vote_document_id(user_id, resource_id)).get()
        if not snap.exists:
            return None
        return ResourceVote.model_validate({**snap.to_dict(), "id": snap.id})

    @storage_errors("upsert_vote")
    async def upsert_vote(self, vote: ResourceVote) -> ResourceVote:
        doc_id = vote_document_id(vote.user_id, vote.resource_id)
        ref = self._db.collection(VOTES).document(doc_id)
        snap = await ref.get()
        if snap.exists:
            existing = ResourceVote.model_validate({**snap.to_dict(), "id": doc_id})
            vote = existing.model_copy(update={"vote_type": vote.vote_type, "updated_at": utc_now()})
        else:
            vote = vote.model_copy(update={"id": doc_id})
        await ref.set({
            "user_id": vote.user_id,
            "resource_id": vote.resource_id,
            "vote_type": vote.vote_type.value,
            "created_at": vote.created_at,
            "updated_at": vote.updated_at,
        })
        return vote


class FirestoreRecommendationRepository:
    def __init__(self, db: AsyncClient):
        self._db = db

    @storage_errors("feed_exists")
    async def exists_for(self, user_id: str, feed_date: date, feed_type: ResourceType) -> bool:
        snap = await self._db.collection(FEEDS).document(
            feed_document_id(user_id, feed_date, feed_type)
        ).get()
        return snap.exists

    @storage_errors("get_feed")
    async def get_by_user_date_and_type(
        self, user_id: str, feed_date: date, feed_type: ResourceType
    ) -> List[Recommendation]:
        query = (
            self._db.collection(RECOMMENDATIONS)
            .where(filter=FieldFilter("user_id", "==", user_id))
            .where(filter=FieldFilter("date", "==", feed_date.isoformat()))
            .where(filter=FieldFilter("feed_type", "==", feed_type.value))
        )
        rows = [_recommendation_from_doc(s.id, s.to_dict()) async for s in query.stream()]
        return sorted(rows, key=lambda r: r.position)

    async def create_batch(self, rows: Sequence[Recommendation]) -> None:
        if not rows:
            return
        keys = {r.feed_key for r in rows}
        if len(keys) != 1:
            raise ValueError(f"A feed batch must share one (user, date, feed_type), got {len(keys)}")
        if len(rows) + 1 > MAX_BATCH_WRITES:
            raise ValueError(f"Feed batch too large for one Firestore commit: {len(rows)} rows")
        user_id, feed_date, feed_type = keys.pop()

        batch = self._db.batch()
        batch.create(
            self._db.collection(FEEDS).document(feed_document_id(user_id, feed_date, feed_type)),
            {
                "user_id": user_id,
                "date": feed_date.isoformat(),
                "feed_type": feed_type.value,
                "resource_ids": [r.resource_id for r in rows],
                "created_at": utc_now(),
            },
        )
        for row in rows:
            batch.set(self._db.collection(RECOMMENDATIONS).document(row.id), _recommendation_to_doc(row))
        try:
            await batch.commit()
        except Conflict as e:
            raise DuplicateFeed(user_id, feed_type.value, feed_date.isoformat()) from e
        except GoogleAPIError as e:
            logger.error("[firestore] create_batch failed: %s: %s", type(e).__name__, e)
            raise StorageUnavailable(f"Firestore create_batch failed: {e}") from e

    @storage_errors("get_recent_feeds")
    async def get_recent_by_user(
        self, user_id: str, start: date, end: date
    ) -> List[Recommendation]:
        query = (
            self._db.collection(RECOMMENDATIONS)
            .where(filter=FieldFilter("user_id", "==", user_id))
            .where(filter=FieldFilter("date", ">=", start.isoformat()))
            .where(filter=FieldFilter("date", "<=", end.isoformat()))
        )
        return [_recommendation_from_doc(s.id, s.to_dict()) async for s in query.stream()]

    @storage_errors("get_history")
    async def get_history(
        self,
        user_id: str,
        feed_type: Optional[ResourceType] = None,
        page_size: int = DEFAULT_HISTORY_PAGE_SIZE,
        page: int = 1,
    ) -> List[Recommendation]:
        query = self._db.collection(RECOMMENDATIONS).where(filter=FieldFilter("user_id", "==", user_id))
        if feed_type is not None:
            query = query.where(filter=FieldFilter("feed_type", "==", feed_type.value))
        rows = [_recommendation_from_doc(s.id, s.to_dict()) async for s in query.stream()]
        start = (page - 1) * page_size
        return sort_feed_rows(rows)[start:start + page_size]

    @storage_errors("get_most_recent_date")
    async def get_most_recent_date(
        self, user_id: str, feed_type: ResourceType
    ) -> Optional[date]:
        query = (
            self._db.collection(FEEDS)
            .where(filter=FieldFilter("user_id", "==", user_id))
            .where(filter=FieldFilter("feed_type", "==", feed_type.value))
        )
        dates = [s.to_dict().get("date") async for s in query.stream()]
        dates = [d for d in dates if d]
        return date.fromisoformat(max(dates)) if dates else None


class FirestoreSourceRepository:
    """Favored sources are stored on the user document as `source_ids`."""

    def __init__(self, db: AsyncClient):
        self._db = db

    @storage_errors("get_user_sources")
    async def get_source_ids_for_user(self, user_id: str) -> Set[str]:
        snap = await self._db.collection(USERS).document(user_id).get()
        if not snap.exists:
            return set()
        return set((snap.to_dict() or {}).get("source_ids") or [])


class FirestoreUserRepository:
    def __init__(self, db: AsyncClient):
        self._db = db

    @storage_errors("list_users")
    async def list_user_ids(self) -> List[str]:
        return [ref.id async for ref in self._db.collection(USERS).list_documents()]


class FirestoreStore:
    """All Firestore repositories over one AsyncClient."""

    def __init__(
        self,
        project_id: Optional[str] = None,
        credentials_path: Optional[Union[Path, str]] = None,
        client: Optional[AsyncClient] = None,
    ):
        self.db = client or create_async_client(project_id, credentials_path)
        self.resources = FirestoreResourceRepository(self.db)
        self.votes = FirestoreVoteRepository(self.db)
        self.recommendations = FirestoreRecommendationRepository(self.db)
        self.sources = FirestoreSourceRepository(self.db)
        self.users = FirestoreUserRepository(self.db)
