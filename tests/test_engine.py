"""
HybridRecommendationEngine: retrieval, scoring, filtering and top-K selection.

Uses the conftest catalog: alice upvoted three python papers, downvoted two cooking
papers and follows src-rust.
"""

import asyncio

import pytest

from feed_server.services.memory_store import (
    InMemoryResourceRepository,
    InMemoryStore,
    InMemoryVectorStore,
    InMemoryVoteRepository,
)
from recommender import (
    CompositeScorer,
    EmbeddingUnavailable,
    HybridRecommendationEngine,
    InvalidConfiguration,
    NamedFilter,
    RecommendationConfig,
    RecommendationContext,
    ResourceType,
    RunCancelled,
    StorageUnavailable,
    UserProfileService,
    WeightedScorer,
    default_scorers,
)
from recommender.models import ResourceDocument
from recommender.stages import top_k

from helpers import (
    FEED_DATE,
    KeywordEmbeddingService,
    make_engine,
    make_resource,
    make_vote,
    scored,
)

SEEN = {"p-liked-1", "p-liked-2", "p-liked-3", "p-disliked-1", "p-disliked-2"}


def _context(user_id="alice", feed_type=ResourceType.PAPER, count=5, seen=SEEN):
    return RecommendationContext(
        user_id=user_id,
        feed_type=feed_type,
        date=FEED_DATE,
        count=count,
        seen_resource_ids=frozenset(seen),
    )


def _index(vector_store, resources, embedding_service):
    async def run():
        vectors = await embedding_service.embed_many([r.searchable_text for r in resources])
        await vector_store.upsert_documents([
            ResourceDocument.from_resource(r, v) for r, v in zip(resources, vectors)
        ])
    asyncio.run(run())


class FailingEmbeddingService(KeywordEmbeddingService):
    async def embed_many(self, texts):
        self.calls += 1
        raise EmbeddingUnavailable("embedding provider rate limited")


class BrokenVectorStore(InMemoryVectorStore):
    async def search(self, request):
        raise RuntimeError("connection reset by peer")


class TestRuleBasedRanking:
    def test_ranks_liked_topic_first_and_caps_topics(self, store):
        ranked = asyncio.run(make_engine(store).recommend(_context()))
        ids = [item.resource_id for item in ranked.items]

        assert ids == ["p-py-1", "p-py-2", "p-rust-1", "p-hist-1", "p-cook-1"]
        assert not ranked.degraded
        assert not ranked.vector_used
        assert not SEEN.intersection(ids)
        scores = [item.final_score for item in ranked.items]
        assert scores == sorted(scores, reverse=True)

    def test_liked_topic_beats_disliked_topic(self, store):
        ranked = asyncio.run(make_engine(store).recommend(_context()))
        by_id = {item.resource_id: item for item in ranked.items}
        assert by_id["p-py-1"].scores.get("vote_history") > by_id["p-cook-1"].scores.get("vote_history")
        assert by_id["p-py-1"].final_score > by_id["p-cook-1"].final_score

    def test_favored_source_scored(self, store):
        ranked = asyncio.run(make_engine(store).recommend(_context()))
        by_id = {item.resource_id: item for item in ranked.items}
        assert by_id["p-rust-1"].scores.get("source") == 0.9
        assert by_id["p-hist-1"].scores.get("source") == 0.5

    def test_empty_profile_is_neutral(self, store):
        ranked = asyncio.run(make_engine(store).recommend(_context(user_id="newcomer", seen=())))
        assert ranked.items
        for item in ranked.items:
            assert item.scores.get("vote_history") == 0.5
            assert item.scores.get("similarity") == 0.5

    def test_fewer_candidates_than_k(self, store):
        ranked = asyncio.run(make_engine(store).recommend(_context(feed_type=ResourceType.VIDEO)))
        assert {item.resource_id for item in ranked.items} == {"v-py-1", "v-cook-1"}

    def test_no_candidates_gives_empty_feed(self, store):
        ranked = asyncio.run(make_engine(store).recommend(_context(feed_type=ResourceType.BLOG_POST)))
        assert ranked.items == []
        assert ranked.candidate_count == 0

    def test_freshness_window_expands_when_short(self):
        store = InMemoryStore()
        store.resources = InMemoryResourceRepository([
            make_resource("recent", topics=["a"], days_old=10),
            make_resource("older", topics=["b"], days_old=150),
            make_resource("ancient", topics=["c"], days_old=400),
        ])
        ranked = asyncio.run(make_engine(store).recommend(_context(user_id="bob", seen=())))
        assert [item.resource_id for item in ranked.items] == ["recent", "older"]

    def test_storage_failure_is_fatal(self, store):
        store.resources.failure.failing = True
        with pytest.raises(StorageUnavailable):
            asyncio.run(make_engine(store).recommend(_context()))

    def test_top_k_is_stable(self):
        items = [scored(make_resource(rid), 0.5) for rid in ("a", "b", "c")]
        assert [i.resource_id for i in top_k(items, 2)] == ["a", "b"]


class TestVectorRetrieval:
    def test_vector_hits_feed_similarity_signal(self, store, catalog):
        embeddings = KeywordEmbeddingService()
        vector_store = InMemoryVectorStore()
        _index(vector_store, catalog, embeddings)

        engine = make_engine(store, vector_store=vector_store, embedding_service=embeddings)
        ranked = asyncio.run(engine.recommend(_context()))

        assert ranked.vector_used
        assert not ranked.degraded
        by_id = {item.resource_id: item for item in ranked.items}
        assert by_id["p-py-1"].scores.get("similarity") == pytest.approx(1.0)
        assert by_id["p-cook-1"].scores.get("similarity") < 0.5
        assert not SEEN.intersection(by_id)

    def test_vector_failure_degrades_to_rule_based(self, store):
        vector_store = InMemoryVectorStore()
        vector_store.failure.failing = True
        engine = make_engine(
            store, vector_store=vector_store, embedding_service=KeywordEmbeddingService()
        )
        ranked = asyncio.run(engine.recommend(_context()))

        assert ranked.degraded
        assert not ranked.vector_used
        assert len(ranked.items) == 5
        assert all(item.scores.get("similarity") == 0.5 for item in ranked.items)

    def test_search_misses_rank_below_weakest_hit(self):
        store = InMemoryStore()
        store.resources = InMemoryResourceRepository([
            make_resource("liked", title="python python", days_old=3),
            make_resource("close", title="python rust rust"),
            make_resource("far", title="rust cooking"),
        ])
        store.votes = InMemoryVoteRepository([make_vote("carol", "liked")])
        embeddings = KeywordEmbeddingService()
        vector_store = InMemoryVectorStore()
        _index(vector_store, asyncio.run(store.resources.list_all()), embeddings)

        # "far" is orthogonal to the query and falls below the threshold
        config = RecommendationConfig(vector_min_score=0.3)
        engine = make_engine(
            store, config=config, vector_store=vector_store, embedding_service=embeddings
        )
        ranked = asyncio.run(engine.recommend(_context(user_id="carol", seen={"liked"})))

        assert ranked.vector_used
        assert [item.resource_id for item in ranked.items] == ["close", "far"]
        by_id = {item.resource_id: item for item in ranked.items}
        assert by_id["close"].scores.get("similarity") == pytest.approx(1 / 5 ** 0.5)
        assert by_id["far"].scores.get("similarity") == 0.0

    def test_embedding_failure_degrades_to_rule_based(self, store):
        embeddings = FailingEmbeddingService()
        engine = make_engine(store, vector_store=InMemoryVectorStore(), embedding_service=embeddings)
        ranked = asyncio.run(engine.recommend(_context()))

        assert embeddings.calls == 1
        assert ranked.degraded
        assert not ranked.vector_used
        assert len(ranked.items) == 5
        assert all(item.scores.get("similarity") == 0.5 for item in ranked.items)

    def test_unexpected_vector_error_degrades_to_rule_based(self, store):
        engine = make_engine(
            store, vector_store=BrokenVectorStore(), embedding_service=KeywordEmbeddingService()
        )
        ranked = asyncio.run(engine.recommend(_context()))

        assert ranked.degraded
        assert not ranked.vector_used
        assert [item.resource_id for item in ranked.items] == [
            "p-py-1", "p-py-2", "p-rust-1", "p-hist-1", "p-cook-1",
        ]

    def test_no_positive_votes_skips_vector_search(self, store):
        embeddings = KeywordEmbeddingService()
        engine = make_engine(store, vector_store=InMemoryVectorStore(), embedding_service=embeddings)
        ranked = asyncio.run(engine.recommend(_context(user_id="newcomer", seen=())))
        assert embeddings.calls == 0
        assert not ranked.degraded
        assert not ranked.vector_used


class TestCancellationAndWiring:
    def test_cancelled_before_start(self, store):
        cancel = asyncio.Event()
        cancel.set()
        with pytest.raises(RunCancelled) as exc_info:
            asyncio.run(make_engine(store).recommend(_context(), cancel))
        assert exc_info.value.stage == "profile"

    def test_cancelled_during_scoring(self, store):
        cancel = asyncio.Event()

        def cancelling(resource, context, profile):
            cancel.set()
            return 0.5

        scorer = CompositeScorer([WeightedScorer("cancelling", cancelling, 1.0)])
        engine = make_engine(store, scorer=scorer)
        with pytest.raises(RunCancelled) as exc_info:
            asyncio.run(engine.recommend(_context(), cancel))
        assert exc_info.value.stage == "scoring"

    def test_filters_required_and_unique(self, store):
        config = RecommendationConfig()
        profiles = UserProfileService(store.votes, store.resources, store.sources, config)
        scorer = CompositeScorer(default_scorers(config))
        with pytest.raises(InvalidConfiguration):
            HybridRecommendationEngine(profiles, store.resources, scorer, [], config)
        noop = NamedFilter("noop", lambda candidates, context: candidates)
        with pytest.raises(InvalidConfiguration):
            HybridRecommendationEngine(profiles, store.resources, scorer, [noop, noop], config)
