"""Tests for the visitor session flow against an in-process backend."""

import pytest

from errors import StorageUnavailable
from session import LocalBackend, VotingSession


@pytest.fixture
def session(db, cast_ids, store):
    s = VotingSession(LocalBackend(db), store)
    s.load_tags()
    return s


def test_new_session_gets_a_visitor_id(session, store):
    assert session.visitor_id.startswith("sess-")
    assert store.current_visitor() == session.visitor_id


def test_tags_loaded_from_backend(session):
    assert session.tag_filter.tags == ["hero", "human", "robot", "villain"]


def test_vote_updates_and_persists_stats(session, store):
    character = session.load_character()
    outcome = session.vote(True)

    # first vote on a character is always 100% yes, a majority vote
    assert outcome["voteStats"] == {"yesVotes": 1, "noVotes": 0, "totalVotes": 1}
    assert outcome["majority"] is True
    assert outcome["earnedPoints"] == 100
    assert store.load(session.visitor_id) == session.stats
    assert session.stats["interactedCharacters"] == [character["id"]]


def test_guard_blocks_second_action_until_next_character(session):
    session.load_character()
    assert session.vote(False) is not None
    assert session.vote(True) is None
    assert session.skip() is None
    assert session.stats["noVotesTotal"] == 1

    session.load_character()
    assert session.skip() is not None


def test_nothing_happens_without_a_character(session):
    assert session.vote(True) is None
    assert session.skip() is None


def test_skip_shows_community_results_without_counting(session, db):
    character = session.load_character()
    LocalBackend(db).vote(character["id"], "sess-someone-else", False)

    outcome = session.skip()

    assert outcome["voteStats"] == {"yesVotes": 0, "noVotes": 1, "totalVotes": 1}
    assert outcome["earnedPoints"] == 0
    assert session.stats["skipsTotal"] == 1
    assert session.stats["majorityStreak"] == 0


def test_seen_characters_are_not_repeated(session, cast_ids):
    seen = []
    for _ in cast_ids:
        character = session.load_character()
        seen.append(character["id"])
        session.skip()
    assert sorted(seen) == sorted(cast_ids.values())
    assert session.load_character() is None


def test_filters_are_applied(session, cast_ids):
    session.tag_filter.toggle_include("robot")
    session.tag_filter.toggle_exclude("hero")
    assert session.load_character()["id"] == cast_ids["Drone"]


def test_reset_stats_starts_over(session):
    session.load_character()
    session.vote(True)
    old_id = session.visitor_id

    session.reset_stats()

    assert session.visitor_id != old_id
    assert session.stats["interactedCharacters"] == []
    assert session.stats["yesVotesTotal"] == 0


class _BrokenBackend(LocalBackend):
    def vote(self, character_id, visitor_id, vote):
        raise StorageUnavailable("down")


def test_failed_request_holds_guard_until_abandoned(db, cast_ids, store):
    session = VotingSession(_BrokenBackend(db), store)
    session.load_character()
    with pytest.raises(StorageUnavailable):
        session.vote(True)
    assert session.vote(True) is None

    session.abandon()
    assert session.skip() is not None
