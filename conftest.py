import os

import pytest

from database import Database
from stats_store import StatsStore

CAST = [
    ("Alice", "Wonder Tales", "alice.png", ["hero", "human"]),
    ("Bolt", "Steel City", "bolt.png", ["hero", "robot"]),
    ("Cruella", "Spotted", "cruella.png", ["human", "villain"]),
    ("Drone", "Steel City", "drone.png", ["robot"]),
    ("Ember", "Ashlands", "ember.png", []),
]


@pytest.fixture
def db(tmp_path):
    database = Database(os.path.join(tmp_path, "test.db"))
    yield database
    database.close()


@pytest.fixture
def cast_ids(db):
    """Seed the database; returns {name: id}."""
    return {
        name: db.add_character(name, franchise, image, tags)
        for name, franchise, image, tags in CAST
    }


@pytest.fixture
def store(tmp_path):
    return StatsStore(os.path.join(tmp_path, "visitors"))
