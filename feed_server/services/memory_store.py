"""
In-memory repositories for local runs and tests.

Used when DATA_SOURCE=memory (or json, seeded from a catalog file). Feed uniqueness on
(user_id, date, feed_type) is enforced under an asyncio.Lock, so concurrent
create_batch calls for one key persist exactly one batch.
"""

import asyncio
import json
import logging
import uuid
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from recommender.errors import DuplicateFeed, StorageUnavailable, VectorStoreUnavailable
from recommender.models import (
    DEFAULT_HISTORY_PAGE_SIZE,
    Recommendation,
    Resource,
    ResourceDocument,
    ResourceType,
    ResourceVote,
    VectorSearchRequest,
    VectorSearchResult,
    sort_feed_rows,
    utc_now,
)
from recommender.utils import cosine_similarity

logger = logging.getLogger(__name__)

FeedKey = Tuple[str, date, ResourceType]


class FailureSwitch:
    """Makes a store raise on demand (fault injection for tests)."""

    def __init__(self, error_type=StorageUnavailable):
        self._error_type = error_type
        self.failing = False

    def check(self, operation: str) -> None:
        if self.failing:
            raise self._error_type(f"{operation} failed: store unavailable")


class InMemoryResourceRepository:
    def __init__(self, resources: Optional[Iterable[Resource]] = None):
        self._resources: Dict[str, Resource] = {}
        self.failure = FailureSwitch()
        for resource in resources or []:
            self._resources[resource.id] = resource

    async def get_by_id(self, resource_id: str) -> Optional[Resource]:
        self.failure.check("get_by_id")
        return self._resources.get(resource_id)

    async def get_by_ids(self, resource_ids: Iterable[str]) -> List[Resource]:
        self.failure.check("get_by_ids")
        return [self._resources[rid] for rid in resource_ids if rid in self._resources]

    async def get_by_type(self, resource_type: ResourceType) -> List[Resource]:
        self.failure.check("get_by_type")
        return [r for r in self._resources.values() if r.type == resource_type]

    async def get_by_topics(self, topic_ids: Iterable[str]) -> List[Resource]:
        self.failure.check("get_by_topics")
        wanted = set(topic_ids)
        return [r for r in self._resources.values() if wanted.intersection(r.topic_ids)]

    async def get_by_source(self, source_id: str) -> List[Resource]:
        self.failure.check("get_by_source")
        return [r for r in self._resources.values() if r.source_id == source_id]

    async def exists_by_url(self, url: str) -> bool:
        self.failure.check("exists_by_url")
        return any(r.url == url for r in self._resources.values())

    async def add(self, resource: Resource) -> None:
        self.failure.check("add")
        self._resources[resource.id] = resource

    async def list_all(self) -> List[Resource]:
        self.failure.check("list_all")
        return list(self._resources.values())


class InMemoryVoteRepository:
    def __init__(self, votes: Optional[Iterable[ResourceVote]] = None):
        self._votes: Dict[Tuple[str, str], ResourceVote] = {}
        self.failure = FailureSwitch()
        for vote in votes or []:
            self._votes[(vote.user_id, vote.resource_id)] = vote

    async def get_by_user(self, user_id: str) -> List[ResourceVote]:
        self.failure.check("get_by_user")
        return [v for (uid, _), v in self._votes.items() if uid == user_id]

    async def get_by_resource(self, resource_id: str) -> List[ResourceVote]:
        self.failure.check("get_by_resource")
        return [v for (_, rid), v in self._votes.items() if rid == resource_id]

    async def get_by_user_and_resource(
        self, user_id: str, resource_id: str
    ) -> Optional[ResourceVote]:
        self.failure.check("get_by_user_and_resource")
        return self._votes.get((user_id, resource_id))

    async def upsert_vote(self, vote: ResourceVote) -> ResourceVote:
        self.failure.check("upsert_vote")
        key = (vote.user_id, vote.resource_id)
        existing = self._votes.get(key)
        if existing is not None:
            vote = existing.model_copy(
                update={"vote_type": vote.vote_type, "updated_at": utc_now()}
            )
        self._votes[key] = vote
        return vote


class InMemoryRecommendationRepository:
    def __init__(self):
        self._feeds: Dict[FeedKey, List[Recommendation]] = {}
        self._lock = asyncio.Lock()
        self.failure = FailureSwitch()

    async def exists_for(self, user_id: str, feed_date: date, feed_type: ResourceType) -> bool:
        self.failure.check("exists_for")
        return (user_id, feed_date, feed_type) in self._feeds

    async def get_by_user_date_and_type(
        self, user_id: str, feed_date: date, feed_type: ResourceType
    ) -> List[Recommendation]:
        self.failure.check("get_by_user_date_and_type")
        return list(self._feeds.get((user_id, feed_date, feed_type), []))

    async def create_batch(self, rows: Sequence[Recommendation]) -> None:
        self.failure.check("create_batch")
        if not rows:
            return
        keys = {r.feed_key for r in rows}
        if len(keys) != 1:
            raise ValueError(f"A feed batch must share one (user, date, feed_type), got {len(keys)}")
        key = keys.pop()
        async with self._lock:
            if key in self._feeds:
                raise DuplicateFeed(key[0], key[2].value, key[1].isoformat())
            self._feeds[key] = sorted(rows, key=lambda r: r.position)

    async def get_recent_by_user(
        self, user_id: str, start: date, end: date
    ) -> List[Recommendation]:
        self.failure.check("get_recent_by_user")
        return [
            row
            for (uid, feed_date, _), rows in self._feeds.items()
            if uid == user_id and start <= feed_date <= end
            for row in rows
        ]

    async def get_history(
        self,
        user_id: str,
        feed_type: Optional[ResourceType] = None,
        page_size: int = DEFAULT_HISTORY_PAGE_SIZE,
        page: int = 1,
    ) -> List[Recommendation]:
        self.failure.check("get_history")
        rows = [
            row
            for (uid, _, ftype), rows in self._feeds.items()
            if uid == user_id and (feed_type is None or ftype == feed_type)
            for row in rows
        ]
        start = (page - 1) * page_size
        return sort_feed_rows(rows)[start:start + page_size]

    async def get_most_recent_date(
        self, user_id: str, feed_type: ResourceType
    ) -> Optional[date]:
        self.failure.check("get_most_recent_date")
        dates = [d for (uid, d, ftype) in self._feeds if uid == user_id and ftype == feed_type]
        return max(dates) if dates else None

    def batch_count(self) -> int:
        return len(self._feeds)


class InMemorySourceRepository:
    def __init__(self, sources_by_user: Optional[Dict[str, Set[str]]] = None):
        self._sources = {uid: set(ids) for uid, ids in (sources_by_user or {}).items()}

    async def get_source_ids_for_user(self, user_id: str) -> Set[str]:
        return set(self._sources.get(user_id, set()))

    def set_sources(self, user_id: str, source_ids: Iterable[str]) -> None:
        self._sources[user_id] = set(source_ids)


class InMemoryUserRepository:
    def __init__(self, user_ids: Optional[Iterable[str]] = None):
        self._user_ids: List[str] = list(dict.fromkeys(user_ids or []))

    async def list_user_ids(self) -> List[str]:
        return list(self._user_ids)

    def add(self, user_id: str) -> None:
        if user_id not in self._user_ids:
            self._user_ids.append(user_id)


class InMemoryVectorStore:
    """Brute-force cosine search over documents held in memory."""

    def __init__(self):
        self._documents: Dict[str, ResourceDocument] = {}
        self.failure = FailureSwitch(VectorStoreUnavailable)

    async def initialize(self) -> None:
        self.failure.check("initialize")

    async def upsert_documents(self, documents: Sequence[ResourceDocument]) -> None:
        self.failure.check("upsert_documents")
        for doc in documents:
            self._documents[doc.id] = doc

    async def delete_document(self, resource_id: str) -> None:
        self.failure.check("delete_document")
        self._documents.pop(resource_id, None)

    async def search(self, request: VectorSearchRequest) -> List[VectorSearchResult]:
        self.failure.check("search")
        hits = []
        for doc in self._documents.values():
            if not _matches(doc, request):
                continue
            score = cosine_similarity(request.query_vector, doc.embedding)
            if request.minimum_score is not None and score < request.minimum_score:
                continue
            hits.append(VectorSearchResult(resource_id=doc.id, score=score))
        hits.sort(key=lambda h: h.score, reverse=True)
        return hits[:request.top_k]

    async def count(self) -> int:
        return len(self._documents)


def _matches(doc: ResourceDocument, request: VectorSearchRequest) -> bool:
    if doc.id in request.exclude_resource_ids:
        return False
    if request.resource_type is not None and doc.type != request.resource_type:
        return False
    if request.source_ids and doc.source_id not in request.source_ids:
        return False
    published = doc.published_date or doc.created_at
    if request.published_after is not None and (published is None or published < request.published_after):
        return False
    if request.published_before is not None and (published is None or published > request.published_before):
        return False
    return True


class InMemoryStore:
    """All in-memory repositories sharing one process, optionally seeded from a catalog file."""

    def __init__(self):
        self.resources = InMemoryResourceRepository()
        self.votes = InMemoryVoteRepository()
        self.recommendations = InMemoryRecommendationRepository()
        self.sources = InMemorySourceRepository()
        self.users = InMemoryUserRepository()

    @classmethod
    def from_json(cls, path: Union[Path, str]) -> "InMemoryStore":
        """
        Seed from a catalog JSON file:
        {"resources": [...], "users": [{"id": ..., "source_ids": [...]}], "votes": [...]}
        """
        with open(path) as f:
            data = json.load(f)
        store = cls()
        for item in data.get("resources", []):
            resource = Resource.model_validate(item)
            store.resources._resources[resource.id] = resource
        for user in data.get("users", []):
            store.users.add(user["id"])
            store.sources.set_sources(user["id"], user.get("source_ids", []))
        for item in data.get("votes", []):
            item = {"id": str(uuid.uuid4()), **item}
            vote = ResourceVote.model_validate(item)
            store.votes._votes[(vote.user_id, vote.resource_id)] = vote
            store.users.add(vote.user_id)
        logger.info(
            "[memory_store] SEEDED path=%s resources=%d users=%d",
            path, len(store.resources._resources), len(store.users._user_ids),
        )
        return store
