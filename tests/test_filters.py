"""
Seen-removal and topic diversity filters.
"""

import pytest

from recommender import RecommendationContext, ResourceType
from recommender.stages.filters import (
    diversity_filter,
    occurrence_penalty,
    seen_filter,
    select_with_topic_cap,
)

from helpers import FEED_DATE, make_resource, scored


def _context(seen=(), recent=()):
    return RecommendationContext(
        user_id="alice",
        feed_type=ResourceType.PAPER,
        date=FEED_DATE,
        seen_resource_ids=frozenset(seen),
        recently_recommended_ids=frozenset(recent),
    )


class TestSeenFilter:
    def test_removes_exactly_seen_and_recent(self):
        candidates = [scored(make_resource(rid), 0.5) for rid in ("a", "b", "c", "d")]
        kept = seen_filter(candidates, _context(seen={"b"}, recent={"d", "zzz"}))
        assert [c.resource_id for c in kept] == ["a", "c"]
        assert kept[0] is candidates[0]

    def test_nothing_excluded_returns_copy(self):
        candidates = [scored(make_resource("a"), 0.5)]
        kept = seen_filter(candidates, _context())
        assert kept == candidates
        assert kept is not candidates


class TestDiversity:
    def test_occurrence_penalty(self):
        assert occurrence_penalty(0) == 0.0
        assert occurrence_penalty(1) == 0.02
        assert occurrence_penalty(2) == 0.05
        assert occurrence_penalty(7) == 0.05

    def test_single_topic_capped_at_two(self):
        candidates = [
            scored(make_resource(f"ml-{i}", topics=["ml"]), score)
            for i, score in enumerate([0.9, 0.8, 0.7, 0.6, 0.5])
        ]
        accepted = select_with_topic_cap(candidates, max_per_topic=2)
        assert [c.resource_id for c in accepted] == ["ml-0", "ml-1"]
        assert accepted[0].scores.diversity_penalty == 0.0
        assert accepted[0].final_score == pytest.approx(0.9)
        assert accepted[1].scores.diversity_penalty == 0.02
        assert accepted[1].final_score == pytest.approx(0.78)

    def test_multi_topic_resource_blocked_by_any_full_topic(self):
        candidates = [
            scored(make_resource("a", topics=["ml"]), 0.9),
            scored(make_resource("b", topics=["ml"]), 0.8),
            scored(make_resource("c", topics=["ml", "stats"]), 0.7),
            scored(make_resource("d", topics=["stats"]), 0.6),
            scored(make_resource("e"), 0.5),
        ]
        accepted = select_with_topic_cap(candidates, max_per_topic=2)
        assert [c.resource_id for c in accepted] == ["a", "b", "d", "e"]
        # Untagged resources never share a topic
        assert accepted[-1].scores.diversity_penalty == 0.0

    def test_input_is_not_mutated(self):
        candidates = [
            scored(make_resource("a", topics=["ml"]), 0.9),
            scored(make_resource("b", topics=["ml"]), 0.8),
        ]
        select_with_topic_cap(candidates)
        assert candidates[1].final_score == 0.8
        assert candidates[1].scores.diversity_penalty == 0.0

    def test_ties_keep_input_order(self):
        candidates = [scored(make_resource(rid, topics=[rid]), 0.5) for rid in ("x", "y", "z")]
        accepted = diversity_filter(candidates, _context())
        assert [c.resource_id for c in accepted] == ["x", "y", "z"]

    def test_higher_cap_applies_repeat_penalty(self):
        candidates = [
            scored(make_resource(f"ml-{i}", topics=["ml"]), 0.9 - i * 0.1) for i in range(4)
        ]
        accepted = diversity_filter(candidates, _context(), max_per_topic=3)
        assert [c.scores.diversity_penalty for c in accepted] == [0.0, 0.02, 0.05]
