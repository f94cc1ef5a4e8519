"""Tests for merging achievement schema with player progress."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from nesta.services.reconciler import merge_schema_and_player_achievements

APP_ID = 620


def _merge(schema, player):
    return merge_schema_and_player_achievements(schema, player, APP_ID)


class TestOuterJoin:
    """The merge keeps every key from both sides exactly once."""

    @pytest.mark.parametrize(
        ("schema_names", "player_names"),
        [
            ([], []),
            (["a1", "a2"], []),
            ([], ["a1", "a2"]),
            (["a1", "a2"], ["a2", "a3"]),
            (["a1"], ["a1"]),
        ],
    )
    def test_key_set_is_union(self, schema_names, player_names) -> None:
        schema = [{"name": n} for n in schema_names]
        player = [{"apiname": n, "achieved": 0} for n in player_names]

        merged = _merge(schema, player)
        keys = [a.api_name for a in merged]
        assert set(keys) == set(schema_names) | set(player_names)
        assert len(keys) == len(set(keys))

    def test_all_records_belong_to_app(self) -> None:
        merged = _merge([{"name": "a1"}], [{"apiname": "a2", "achieved": 1}])
        assert {a.game_app_id for a in merged} == {APP_ID}


class TestFieldPrecedence:
    def test_schema_metadata_and_player_status(self) -> None:
        schema = [{"name": "a1", "displayName": "First", "description": "Do it"}]
        player = [{"apiname": "a1", "achieved": 1, "unlocktime": 1700000000}]

        [ach] = _merge(schema, player)
        assert ach.display_name == "First"
        assert ach.description == "Do it"
        assert ach.achieved is True
        assert ach.unlocked_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)

    def test_schema_defaults(self) -> None:
        """Missing displayName falls back to the API name, description to ''."""
        [ach] = _merge([{"name": "a1"}], [])
        assert ach.display_name == "a1"
        assert ach.description == ""
        assert ach.achieved is False
        assert ach.unlocked_at is None


class TestUnlockTime:
    def test_zero_unlock_time_leaves_timestamp_unset(self) -> None:
        [ach] = _merge([], [{"apiname": "a1", "achieved": 1, "unlocktime": 0}])
        assert ach.achieved is True
        assert ach.unlocked_at is None

    def test_missing_unlock_time(self) -> None:
        [ach] = _merge([], [{"apiname": "a1", "achieved": 1}])
        assert ach.unlocked_at is None

    def test_not_achieved_ignores_unlock_time(self) -> None:
        [ach] = _merge([{"name": "a1"}], [{"apiname": "a1", "achieved": 0, "unlocktime": 1700000000}])
        assert ach.achieved is False
        assert ach.unlocked_at is None


class TestScenario:
    def test_schema_and_progress_with_progress_only_entry(self) -> None:
        schema = [
            {"name": "a1", "displayName": "First", "description": "d1"},
            {"name": "a2", "displayName": "Second", "description": "d2"},
        ]
        player = [
            {"apiname": "a1", "achieved": 1, "unlocktime": 1700000000},
            {"apiname": "a3", "achieved": 1, "unlocktime": 1700000001},
        ]

        a1, a2, a3 = _merge(schema, player)

        assert (a1.api_name, a1.achieved) == ("a1", True)
        assert a1.unlocked_at is not None

        assert (a2.api_name, a2.achieved, a2.unlocked_at) == ("a2", False, None)

        assert a3.api_name == "a3"
        assert a3.achieved is True
        assert a3.display_name == "a3"
        assert a3.description == ""
        assert a3.unlocked_at == datetime(2023, 11, 14, 22, 13, 21, tzinfo=timezone.utc)

    def test_order_is_schema_then_progress_only(self) -> None:
        schema = [{"name": "s2"}, {"name": "s1"}]
        player = [
            {"apiname": "p2", "achieved": 0},
            {"apiname": "s1", "achieved": 1},
            {"apiname": "p1", "achieved": 0},
        ]
        assert [a.api_name for a in _merge(schema, player)] == ["s2", "s1", "p2", "p1"]


class TestMalformedEntries:
    def test_entries_without_key_are_skipped(self) -> None:
        merged = _merge([{"displayName": "No name"}, {"name": "a1"}], [{"achieved": 1}, {"apiname": None}])
        assert [a.api_name for a in merged] == ["a1"]

    def test_non_object_entries_are_skipped(self) -> None:
        merged = _merge([None, "a0", {"name": "a1"}], ["oops", 7, {"apiname": "a1", "achieved": 1}])
        assert [(a.api_name, a.achieved) for a in merged] == [("a1", True)]
