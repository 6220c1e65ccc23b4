"""
Fixtures: a small catalog with one user ("alice") who likes python, dislikes cooking
and follows the rust source.
"""

import pytest

from feed_server.services.memory_store import (
    InMemoryResourceRepository,
    InMemoryStore,
    InMemoryVoteRepository,
)
from recommender import ResourceType, VoteType

from helpers import make_resource, make_vote

PAPER = ResourceType.PAPER
VIDEO = ResourceType.VIDEO


@pytest.fixture
def catalog():
    return [
        # Voted on by alice
        make_resource("p-liked-1", PAPER, ["python"], days_old=10),
        make_resource("p-liked-2", PAPER, ["python"], days_old=11),
        make_resource("p-liked-3", PAPER, ["python"], days_old=12),
        make_resource("p-disliked-1", PAPER, ["cooking"], days_old=10),
        make_resource("p-disliked-2", PAPER, ["cooking"], days_old=11),
        # Paper candidates
        make_resource("p-py-1", PAPER, ["python"], days_old=2),
        make_resource("p-py-2", PAPER, ["python"], days_old=3),
        make_resource("p-py-3", PAPER, ["python"], days_old=4),
        make_resource("p-cook-1", PAPER, ["cooking"], days_old=2),
        make_resource("p-rust-1", PAPER, ["rust"], days_old=5, source_id="src-rust"),
        make_resource("p-hist-1", PAPER, ["history"], days_old=6),
        make_resource("p-old", PAPER, ["python"], days_old=200),
        # Video candidates
        make_resource("v-py-1", VIDEO, ["python"], days_old=1),
        make_resource("v-cook-1", VIDEO, ["cooking"], days_old=1),
    ]


@pytest.fixture
def votes():
    return [
        make_vote("alice", "p-liked-1", VoteType.UPVOTE, minutes_ago=1),
        make_vote("alice", "p-liked-2", VoteType.UPVOTE, minutes_ago=2),
        make_vote("alice", "p-liked-3", VoteType.UPVOTE, minutes_ago=3),
        make_vote("alice", "p-disliked-1", VoteType.DOWNVOTE, minutes_ago=4),
        make_vote("alice", "p-disliked-2", VoteType.DOWNVOTE, minutes_ago=5),
    ]


@pytest.fixture
def store(catalog, votes):
    store = InMemoryStore()
    store.resources = InMemoryResourceRepository(catalog)
    store.votes = InMemoryVoteRepository(votes)
    store.sources.set_sources("alice", ["src-rust"])
    store.users.add("alice")
    store.users.add("bob")
    return store
