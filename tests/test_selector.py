"""Tests for random candidate selection."""

import pytest

from errors import StorageUnavailable
from selector import build_selection_query, parse_id_list, parse_name_list, select_random


class TestParsing:
    def test_name_list_strips_and_drops_empties(self):
        assert parse_name_list(" hero, ,robot,, ") == ["hero", "robot"]
        assert parse_name_list("") == []
        assert parse_name_list(None) == []
        assert parse_name_list(["a", " ", "b "]) == ["a", "b"]

    def test_id_list_ignores_non_integers(self):
        assert parse_id_list("1, 2,x,,3") == [1, 2, 3]
        assert parse_id_list([4, "5"]) == [4, 5]
        assert parse_id_list(None) == []

    def test_id_list_drops_ids_beyond_sqlite_integers(self):
        assert parse_id_list("1,99999999999999999999,-99999999999999999999,2") == [1, 2]
        assert parse_id_list([2 ** 63 - 1, 2 ** 63]) == [2 ** 63 - 1]


class TestQuery:
    def test_no_filters(self):
        sql, params = build_selection_query()
        assert "WHERE" not in sql
        assert sql.endswith("ORDER BY RANDOM() LIMIT 1")
        assert params == []

    def test_param_order_matches_placeholders(self):
        sql, params = build_selection_query(["hero"], ["robot"], [7, 8])
        assert sql.count("?") == len(params)
        assert params == ["hero", 7, 8, "robot"]


class TestSelectRandom:
    def _draw_names(self, db, ids_by_name, rounds=60, **kwargs):
        names = {v: k for k, v in ids_by_name.items()}
        drawn = set()
        for _ in range(rounds):
            row = select_random(db, **kwargs)
            if row is None:
                break
            drawn.add(names[row["id"]])
        return drawn

    def test_returns_character_with_all_its_tags(self, db, cast_ids):
        row = select_random(db, included=["robot"], excluded=["hero"])
        assert row["id"] == cast_ids["Drone"]
        assert row["name"] == "Drone"
        assert row["tags"] == ["robot"]

    def test_tags_are_complete_even_when_filtered_by_one(self, db, cast_ids):
        row = select_random(db, included=["villain"])
        assert row["name"] == "Cruella"
        assert sorted(row["tags"]) == ["human", "villain"]

    def test_inclusion_matches_any_tag(self, db, cast_ids):
        drawn = self._draw_names(db, cast_ids, included=["villain", "robot"])
        assert drawn <= {"Cruella", "Bolt", "Drone"}
        assert "Alice" not in drawn and "Ember" not in drawn

    def test_exclusion_removes_any_tagged_character(self, db, cast_ids):
        drawn = self._draw_names(db, cast_ids, excluded=["hero", "villain"])
        assert drawn <= {"Drone", "Ember"}

    def test_untagged_characters_pass_exclusion(self, db, cast_ids):
        seen = [cast_ids[n] for n in ("Alice", "Bolt", "Cruella", "Drone")]
        row = select_random(db, excluded=["robot"], seen=seen)
        assert row["name"] == "Ember"
        assert row["tags"] == []

    def test_never_returns_seen(self, db, cast_ids):
        seen = [cast_ids["Alice"], cast_ids["Bolt"]]
        drawn = self._draw_names(db, cast_ids, seen=seen)
        assert not drawn & {"Alice", "Bolt"}

    def test_not_found_when_everything_seen(self, db, cast_ids):
        assert select_random(db, seen=list(cast_ids.values())) is None

    def test_not_found_when_filters_conflict(self, db, cast_ids):
        assert select_random(db, included=["robot"], excluded=["robot"]) is None

    def test_accepts_comma_joined_strings(self, db, cast_ids):
        seen = ",".join(str(cast_ids[n]) for n in ("Alice", "Bolt", "Cruella"))
        row = select_random(db, included="robot, human", excluded="", seen=seen)
        assert row["name"] == "Drone"

    def test_every_eligible_character_can_be_drawn(self, db, cast_ids):
        drawn = self._draw_names(db, cast_ids, rounds=300)
        assert drawn == set(cast_ids)

    def test_storage_failure_is_surfaced(self, db, cast_ids):
        db.close()
        with pytest.raises(StorageUnavailable):
            select_random(db)
