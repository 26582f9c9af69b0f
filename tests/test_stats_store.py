"""Tests for the per-visitor stats store."""

import json
import os

from scoring import apply_skip, apply_vote, default_stats
from stats_store import StatsStore


def test_round_trip(store):
    stats = apply_vote(default_stats("sess-abc"), 3, False, 90.0)
    stats = apply_skip(stats, 5)
    store.save(stats)

    assert store.load("sess-abc") == stats
    assert StatsStore(store.directory).load("sess-abc") == stats


def test_missing_blob_gives_defaults(store):
    assert store.load("sess-new") == default_stats("sess-new")


def test_corrupted_blob_gives_defaults(store):
    store.save(apply_vote(default_stats("sess-bad"), 1, True, 75.0))
    with open(store._path("sess-bad"), "w", encoding="utf-8") as fh:
        fh.write("{not json")

    assert store.load("sess-bad") == default_stats("sess-bad")
    assert not os.path.exists(store._path("sess-bad"))


def test_wrong_shape_gives_defaults(store):
    with open(store._path("sess-list"), "w", encoding="utf-8") as fh:
        json.dump([1, 2, 3], fh)
    assert store.load("sess-list") == default_stats("sess-list")

    with open(store._path("sess-seen"), "w", encoding="utf-8") as fh:
        json.dump({"interactedCharacters": "oops"}, fh)
    assert store.load("sess-seen") == default_stats("sess-seen")

    with open(store._path("sess-types"), "w", encoding="utf-8") as fh:
        json.dump({"skipsTotal": None, "majorityStreak": "x"}, fh)
    stats = store.load("sess-types")
    assert stats == default_stats("sess-types")
    assert apply_skip(stats, 1)["skipsTotal"] == 1
    assert not os.path.exists(store._path("sess-types"))

    for bad in ({"majorityPoints": True}, {"interactedCharacters": [1, "2"]}):
        with open(store._path("sess-more"), "w", encoding="utf-8") as fh:
            json.dump(bad, fh)
        assert store.load("sess-more") == default_stats("sess-more")


def test_partial_blob_is_filled_from_defaults(store):
    with open(store._path("sess-old"), "w", encoding="utf-8") as fh:
        json.dump({"skipsTotal": 4}, fh)
    stats = store.load("sess-old")
    assert stats["skipsTotal"] == 4
    assert stats["majorityPoints"] == 0
    assert stats["interactedCharacters"] == []


def test_unsafe_visitor_id_stays_inside_directory(store):
    path = store._path("../../etc/passwd")
    assert os.path.dirname(path) == store.directory


def test_current_visitor_is_remembered(store):
    assert store.current_visitor() is None
    first = store.load_current()
    assert store.current_visitor() == first["sessionId"]
    assert store.load_current()["sessionId"] == first["sessionId"]

    fresh = store.reset()
    assert fresh["sessionId"] != first["sessionId"]
    assert store.current_visitor() == fresh["sessionId"]


def test_similar_visitor_ids_do_not_share_a_blob(store):
    store.save(apply_skip(default_stats("a b"), 1))
    store.save(apply_vote(default_stats("a_b"), 2, True, 75.0))

    assert store._path("a b") != store._path("a_b")
    assert store.load("a b")["skipsTotal"] == 1
    assert store.load("a_b")["skipsTotal"] == 0
    assert store.load("a_b")["interactedCharacters"] == [2]
