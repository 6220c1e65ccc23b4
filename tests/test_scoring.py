"""
Scorers and the weighted composite.

Each scorer returns a value in [0, 1]; the composite validates its weights at
construction and names the scorer that failed.
"""

import math

import pytest
from pydantic import ValidationError

from recommender import (
    CompositeScorer,
    InvalidConfiguration,
    RecommendationConfig,
    RecommendationContext,
    ResourceType,
    ScoringFailed,
    UserInterestProfile,
    WeightedScorer,
    default_scorers,
)
from recommender.models.config import WEIGHT_SUM_TOLERANCE
from recommender.stages.scoring import (
    score_recency,
    score_similarity,
    score_source,
    score_vote_history,
)

from helpers import FEED_DATE, make_resource


def _context(**kwargs):
    return RecommendationContext(
        user_id="alice", feed_type=ResourceType.PAPER, date=FEED_DATE, **kwargs
    )


def _profile(**kwargs):
    return UserInterestProfile(user_id="alice", **kwargs)


def _constant(value):
    return lambda resource, context, profile: value


class TestSignals:
    def test_source_favored_and_neutral(self):
        profile = _profile(favored_source_ids=frozenset({"src-a"}))
        favored = make_resource("r1", source_id="src-a")
        other = make_resource("r2", source_id="src-b")
        assert score_source(favored, _context(), profile) == 0.9
        assert score_source(other, _context(), profile) == 0.5
        assert score_source(make_resource("r3"), _context(), profile) == 0.5

    def test_recency_decays_to_floor(self):
        ctx, profile = _context(), _profile()
        assert score_recency(make_resource("new", days_old=0), ctx, profile) == pytest.approx(1.0)
        assert score_recency(make_resource("month", days_old=30), ctx, profile) == pytest.approx(math.exp(-1))
        assert score_recency(make_resource("ancient", days_old=1000), ctx, profile) == 0.05

    def test_recency_of_future_resource_is_one(self):
        assert score_recency(make_resource("future", days_old=-3), _context(), _profile()) == 1.0

    def test_vote_history_averages_topic_affinity(self):
        profile = _profile(topic_scores={"python": 0.9, "cooking": 0.1}, total_interactions=4)
        ctx = _context()
        assert score_vote_history(make_resource("a", topics=["python"]), ctx, profile) == pytest.approx(0.9)
        assert score_vote_history(make_resource("b", topics=["python", "cooking"]), ctx, profile) == pytest.approx(0.5)
        # Unknown topics count as neutral
        assert score_vote_history(make_resource("c", topics=["python", "rust"]), ctx, profile) == pytest.approx(0.7)

    def test_vote_history_neutral_for_empty_profile(self):
        assert score_vote_history(make_resource("a", topics=["python"]), _context(), _profile()) == 0.5

    def test_similarity_reads_context_and_clamps(self):
        ctx = _context(similarity_by_id={"a": 0.8, "b": 1.3, "c": -0.2})
        profile = _profile()
        assert score_similarity(make_resource("a"), ctx, profile) == 0.8
        assert score_similarity(make_resource("b"), ctx, profile) == 1.0
        assert score_similarity(make_resource("c"), ctx, profile) == 0.0
        assert score_similarity(make_resource("missing"), ctx, profile) == 0.5

    def test_similarity_miss_after_vector_search_scores_zero(self):
        searched = _context().with_similarities({"hit": 0.3})
        profile = _profile()
        assert searched.vector_used
        assert score_similarity(make_resource("hit"), searched, profile) == 0.3
        assert score_similarity(make_resource("miss"), searched, profile) == 0.0
        # A run without a completed search keeps misses neutral
        skipped = _context().with_similarities({}, vector_used=False)
        assert score_similarity(make_resource("miss"), skipped, profile) == 0.5


class TestCompositeScorer:
    def test_default_scorers_weighted_sum(self):
        config = RecommendationConfig()
        scorer = CompositeScorer(default_scorers(config))
        resource = make_resource("r", topics=["python"], days_old=0, source_id="src-a")
        profile = _profile(
            topic_scores={"python": 1.0}, favored_source_ids=frozenset({"src-a"}), total_interactions=1
        )
        result = scorer.score(resource, _context(similarity_by_id={"r": 1.0}), profile)
        assert result.scores.signals == {
            "similarity": 1.0, "vote_history": 1.0, "recency": 1.0, "source": 0.9,
        }
        assert result.final_score == pytest.approx(0.4 + 0.3 + 0.2 + 0.09)
        assert 0.0 <= result.final_score <= 1.0

    @pytest.mark.parametrize("weights", [
        [0.5, 0.4],
        [0.6, 0.6],
        [1.2, -0.2],
    ])
    def test_invalid_weights_rejected_at_construction(self, weights):
        scorers = [WeightedScorer(f"s{i}", _constant(0.5), w) for i, w in enumerate(weights)]
        with pytest.raises(InvalidConfiguration):
            CompositeScorer(scorers)

    def test_config_and_composite_share_weight_tolerance(self):
        # Drift within the tolerance passes both checks; anything larger fails both
        within = RecommendationConfig(weight_similarity=0.4 + WEIGHT_SUM_TOLERANCE / 2)
        CompositeScorer(default_scorers(within))
        outside = 0.4 + WEIGHT_SUM_TOLERANCE * 10
        with pytest.raises(ValidationError):
            RecommendationConfig(weight_similarity=outside)
        scorers = [
            WeightedScorer("a", _constant(0.5), outside),
            WeightedScorer("b", _constant(0.5), 0.6),
        ]
        with pytest.raises(InvalidConfiguration):
            CompositeScorer(scorers)

    def test_empty_and_duplicate_scorers_rejected(self):
        with pytest.raises(InvalidConfiguration):
            CompositeScorer([])
        with pytest.raises(InvalidConfiguration):
            CompositeScorer([
                WeightedScorer("same", _constant(0.5), 0.5),
                WeightedScorer("same", _constant(0.5), 0.5),
            ])

    def test_raising_scorer_is_named(self):
        def broken(resource, context, profile):
            raise RuntimeError("boom")

        scorer = CompositeScorer([
            WeightedScorer("fine", _constant(0.5), 0.5),
            WeightedScorer("broken", broken, 0.5),
        ])
        with pytest.raises(ScoringFailed) as exc_info:
            scorer.score(make_resource("r"), _context(), _profile())
        assert exc_info.value.scorer_name == "broken"
        assert isinstance(exc_info.value.cause, RuntimeError)

    @pytest.mark.parametrize("bad_value", [1.5, -0.1, float("nan"), "high", None, True])
    def test_malformed_scorer_output_fails(self, bad_value):
        scorer = CompositeScorer([WeightedScorer("odd", _constant(bad_value), 1.0)])
        with pytest.raises(ScoringFailed) as exc_info:
            scorer.score(make_resource("r"), _context(), _profile())
        assert exc_info.value.scorer_name == "odd"
