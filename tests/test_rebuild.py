"""Tests for the chronological rebuild of the rating history."""

from __future__ import annotations

from sqlalchemy.orm import Session, sessionmaker

from conftest import one_v_one, race
from domain.pipeline import compute_rating_history, rebuild_rating_history, replay_matches
from domain.ratings.common import RatingHistoryEntry, chronological, most_recent_first
from domain.ratings.elo.calculator import EloParameters
from domain.ratings.elo.config import EloSystemConfig, LedgerPolicy, default_elo_system_config
from repositories.ledger import append_history, append_match, fetch_history, store_session


def _config(*, include_ignored: bool = False) -> EloSystemConfig:
    base = default_elo_system_config()
    return EloSystemConfig(
        name="test",
        description=None,
        file_path=base.file_path,
        parameters=EloParameters(),
        ledger=LedgerPolicy(include_ignored_in_rebuild=include_ignored),
    )


def _seed(session_factory: sessionmaker[Session], matches: list) -> None:
    with store_session(session_factory) as session:
        for match in matches:
            append_match(session, match)


def test_two_entries_per_match_with_unrounded_carry() -> None:
    matches = [
        one_v_one(0, "2024-03-01", "Alice", "Bob", "Alice"),
        one_v_one(1, "2024-03-02", "Alice", "Bob", "Alice"),
    ]
    history = compute_rating_history(matches, EloParameters())

    assert [(entry.player, entry.rating) for entry in history] == [
        ("Alice", 1208),
        ("Bob", 1192),
        ("Alice", 1216),
        ("Bob", 1184),
    ]
    assert history[0].opponent == "Bob"
    assert history[0].match_type == "1v1"
    assert history[0].game_type == "8-ball"


def test_race_entries_use_weighted_margin() -> None:
    history = compute_rating_history([race(0, "2024-03-01", "Alice", "Bob", 2, 6)], EloParameters())
    assert [(entry.player, entry.rating) for entry in history] == [("Alice", 1178), ("Bob", 1222)]
    assert history[0].match_type == "Race"


def test_replay_order_is_by_date_then_table() -> None:
    matches = [
        race(0, "2024-03-01", "Alice", "Bob", 5, 2),
        one_v_one(0, "2024-03-02", "Bob", "Cara", "Cara"),
        one_v_one(1, "2024-03-01", "Cara", "Alice", "Cara"),
    ]
    ordered = chronological(matches)
    assert [match.match_id for match in ordered] == ["1v1-1", "race-0", "1v1-0"]
    assert [match.match_id for match in most_recent_first(matches)] == ["1v1-0", "race-0", "1v1-1"]


def test_replay_orders_offset_dates_by_instant() -> None:
    matches = [
        one_v_one(0, "2024-03-02T01:00:00+00:00", "Alice", "Bob", "Alice"),
        one_v_one(1, "2024-03-01T23:00:00-05:00", "Bob", "Cara", "Cara"),
    ]
    history = compute_rating_history(matches, EloParameters())
    assert [entry.player for entry in history] == ["Alice", "Bob", "Bob", "Cara"]
    assert history[2].rating == 1184


def test_rebuild_is_deterministic() -> None:
    matches = [
        one_v_one(0, "2024-03-01", "Alice", "Bob", "Bob"),
        race(0, "2024-03-01", "Cara", "Bob", 7, 4),
        one_v_one(1, "2024-03-03", "Alice", "Cara", "Alice"),
    ]
    first = compute_rating_history(matches, EloParameters())
    second = compute_rating_history(list(reversed(matches)), EloParameters())
    assert first == second
    assert len(first) == 6


def test_ignored_matches_are_skipped_by_default() -> None:
    matches = [
        one_v_one(0, "2024-03-01", "Alice", "Bob", "Alice", ignored=True),
        one_v_one(1, "2024-03-02", "Alice", "Bob", "Bob"),
    ]
    history = compute_rating_history(matches, EloParameters())
    assert [(entry.player, entry.rating) for entry in history] == [("Alice", 1192), ("Bob", 1208)]


def test_ignored_matches_can_be_included() -> None:
    matches = [
        one_v_one(0, "2024-03-01", "Alice", "Bob", "Alice", ignored=True),
        one_v_one(1, "2024-03-02", "Alice", "Bob", "Bob"),
    ]
    history = compute_rating_history(matches, EloParameters(), include_ignored=True)
    assert len(history) == 4
    assert history[0].rating == 1208


def test_replay_tracks_names_case_insensitively() -> None:
    matches = [
        one_v_one(0, "2024-03-01", "Alice", "Bob", "Alice"),
        one_v_one(1, "2024-03-02", "ALICE", "bob", "ALICE"),
    ]
    events, calculator = replay_matches(matches, EloParameters())
    assert calculator.tracked_entity_count() == 2
    assert events[2].rounded_post_elo == 1216


def test_rebuild_replaces_stored_history(session_factory: sessionmaker[Session]) -> None:
    matches = [
        one_v_one(0, "2024-03-01", "Alice", "Bob", "Alice"),
        race(0, "2024-03-02", "Bob", "Alice", 5, 3),
    ]
    _seed(session_factory, matches)
    with store_session(session_factory) as session:
        append_history(session, [RatingHistoryEntry(date="2020-01-01", player="Stale", rating=999)])

    summary = rebuild_rating_history(session_factory=session_factory, system_config=_config())
    assert summary.processed_matches == 2
    assert summary.inserted_entries == 4
    assert summary.tracked_players == 2
    assert summary.dry_run is False

    with store_session(session_factory) as session:
        stored = fetch_history(session)
    assert stored == compute_rating_history(matches, EloParameters())

    rebuild_rating_history(session_factory=session_factory, system_config=_config())
    with store_session(session_factory) as session:
        assert fetch_history(session) == stored


def test_rebuild_counts_skipped_ignored(session_factory: sessionmaker[Session]) -> None:
    _seed(
        session_factory,
        [
            one_v_one(0, "2024-03-01", "Alice", "Bob", "Alice", ignored=True),
            one_v_one(1, "2024-03-02", "Alice", "Bob", "Bob"),
        ],
    )
    excluded = rebuild_rating_history(session_factory=session_factory, system_config=_config())
    assert excluded.processed_matches == 1
    assert excluded.skipped_ignored == 1

    included = rebuild_rating_history(
        session_factory=session_factory,
        system_config=_config(include_ignored=True),
    )
    assert included.processed_matches == 2
    assert included.skipped_ignored == 0


def test_rebuild_of_empty_ledger_clears_history(session_factory: sessionmaker[Session]) -> None:
    with store_session(session_factory) as session:
        append_history(session, [RatingHistoryEntry(date="2024-03-01", player="Alice", rating=1216)])

    summary = rebuild_rating_history(session_factory=session_factory, system_config=_config())
    assert summary.processed_matches == 0
    assert summary.inserted_entries == 0
    with store_session(session_factory) as session:
        assert fetch_history(session) == []


def test_dry_run_leaves_history_untouched(session_factory: sessionmaker[Session]) -> None:
    _seed(session_factory, [one_v_one(0, "2024-03-01", "Alice", "Bob", "Alice")])
    lines: list[str] = []

    summary = rebuild_rating_history(
        session_factory=session_factory,
        system_config=_config(),
        dry_run=True,
        echo=lines.append,
    )
    assert summary.dry_run is True
    assert summary.processed_matches == 1
    assert summary.inserted_entries == 0
    assert lines and lines[0].startswith("[dry-run]")
    with store_session(session_factory) as session:
        assert fetch_history(session) == []
