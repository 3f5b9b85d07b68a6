"""End-to-end tests for the request-facing operations over a SQLite store."""

from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy.orm import Session, sessionmaker

from db import create_db_engine, create_session_factory
from domain.errors import NoMatchesError, StoreIOError, UnknownPlayerError, ValidationError
from domain.operations import (
    get_head_to_head,
    get_match_history,
    get_player_stats,
    get_rating_history,
    list_players,
    rebuild_ratings,
    record_one_v_one,
    record_race,
    remove_last_match,
    set_match_ignored,
)
from domain.ratings.elo.config import EloSystemConfig, LedgerPolicy, default_elo_system_config
from repositories.ledger import fetch_history, fetch_matches, fetch_rating_map, store_session


def _ratings(session_factory: sessionmaker[Session]) -> dict[str, int]:
    with store_session(session_factory) as session:
        return fetch_rating_map(session)


def _history(session_factory: sessionmaker[Session]) -> list:
    with store_session(session_factory) as session:
        return fetch_history(session)


def test_record_one_v_one_updates_roster_and_history(
    session_factory: sessionmaker[Session],
    roster: list[str],
) -> None:
    recorded = record_one_v_one(
        session_factory,
        player_a="Alice",
        player_b="Bob",
        winner="alice",
        date="2024-03-01",
        game_type="8-ball",
    )

    assert recorded.match.match_id == "1v1-0"
    assert recorded.match.winner == "Alice"
    assert (recorded.update.winner_post_elo, recorded.update.loser_post_elo) == (1216, 1184)
    ratings = _ratings(session_factory)
    assert (ratings["alice"], ratings["bob"], ratings["cara"]) == (1216, 1184, 1200)
    assert len(_history(session_factory)) == 2


def test_record_race_derives_winner_and_margin(
    session_factory: sessionmaker[Session],
    roster: list[str],
) -> None:
    recorded = record_race(
        session_factory,
        player_a="Alice",
        player_b="Bob",
        score_a="2",
        score_b=5,
        race_to=5,
        date="2024-03-01",
    )
    assert recorded.match.winner == "Bob"
    assert recorded.update.margin == 3
    assert (recorded.update.winner_post_elo, recorded.update.loser_post_elo) == (1244, 1156)


def test_record_defaults_date_to_today(
    session_factory: sessionmaker[Session],
    roster: list[str],
) -> None:
    recorded = record_one_v_one(session_factory, player_a="Alice", player_b="Bob", winner="Bob")
    assert recorded.match.date
    assert recorded.match.event_time.hour == 0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"player_a": "", "player_b": "Bob", "winner": "Bob"},
        {"player_a": "Alice", "player_b": "Bob", "winner": None},
        {"player_a": "Alice", "player_b": "Bob", "winner": "Cara"},
        {"player_a": "Alice", "player_b": "alice", "winner": "Alice"},
        {"player_a": "Alice", "player_b": "Bob", "winner": "Bob", "date": "someday"},
    ],
)
def test_invalid_one_v_one_writes_nothing(
    session_factory: sessionmaker[Session],
    roster: list[str],
    kwargs: dict,
) -> None:
    with pytest.raises(ValidationError):
        record_one_v_one(session_factory, **kwargs)
    with store_session(session_factory) as session:
        assert fetch_matches(session) == []
    assert _history(session_factory) == []


@pytest.mark.parametrize(
    ("score_a", "score_b"),
    [(3, 3), (-1, 2), ("x", 2), (True, 2)],
)
def test_invalid_race_scores_are_rejected(
    session_factory: sessionmaker[Session],
    roster: list[str],
    score_a: object,
    score_b: object,
) -> None:
    with pytest.raises(ValidationError):
        record_race(session_factory, player_a="Alice", player_b="Bob", score_a=score_a, score_b=score_b)


def test_unknown_player_leaves_ledger_untouched(
    session_factory: sessionmaker[Session],
    roster: list[str],
) -> None:
    with pytest.raises(UnknownPlayerError):
        record_one_v_one(session_factory, player_a="Alice", player_b="Zed", winner="Zed")
    with store_session(session_factory) as session:
        assert fetch_matches(session) == []


def test_ignore_then_unignore_restores_history(
    session_factory: sessionmaker[Session],
    roster: list[str],
) -> None:
    record_one_v_one(session_factory, player_a="Alice", player_b="Bob", winner="Alice", date="2024-03-01")
    record_race(
        session_factory, player_a="Bob", player_b="Cara", score_a=5, score_b=4, date="2024-03-02"
    )
    record_one_v_one(session_factory, player_a="Bob", player_b="Alice", winner="Alice", date="2024-03-03")
    baseline = rebuild_ratings(session_factory)
    assert baseline.processed_matches == 3
    before = _history(session_factory)
    h2h_before = get_head_to_head(session_factory, "Alice", "Bob")
    matches_before = get_match_history(session_factory)
    assert (h2h_before.wins_a, h2h_before.wins_b) == (2, 0)
    assert h2h_before.longest_streaks == {"Alice": 2, "Bob": 0}
    assert h2h_before.current_streak is not None
    assert (h2h_before.current_streak.player, h2h_before.current_streak.count) == ("Alice", 2)

    summary = set_match_ignored(session_factory, source="1v1", row_index="0", ignore=True)
    assert summary is not None
    assert summary.processed_matches == 2
    assert summary.skipped_ignored == 1
    ignored_h2h = get_head_to_head(session_factory, "Alice", "Bob")
    assert (ignored_h2h.wins_a, ignored_h2h.wins_b) == (1, 0)
    assert ignored_h2h.current_streak is not None
    assert ignored_h2h.current_streak.count == 1
    assert [item.ignored for item in get_match_history(session_factory)].count(True) == 1

    set_match_ignored(session_factory, source="1v1", row_index=0, ignore=False)
    assert _history(session_factory) == before
    assert get_head_to_head(session_factory, "Alice", "Bob") == h2h_before
    assert get_match_history(session_factory) == matches_before


def test_ignore_without_rebuild_when_disabled(
    session_factory: sessionmaker[Session],
    roster: list[str],
) -> None:
    base = default_elo_system_config()
    config = EloSystemConfig(
        name="lazy",
        description=None,
        file_path=base.file_path,
        parameters=base.parameters,
        ledger=LedgerPolicy(rebuild_on_ignore=False),
    )
    record_one_v_one(session_factory, player_a="Alice", player_b="Bob", winner="Alice", date="2024-03-01")

    assert set_match_ignored(session_factory, source="1v1", row_index=0, ignore=True, config=config) is None
    assert len(_history(session_factory)) == 2
    with store_session(session_factory) as session:
        assert fetch_matches(session)[0].ignored is True


def test_set_match_ignored_validates_input(
    session_factory: sessionmaker[Session],
    roster: list[str],
) -> None:
    with pytest.raises(ValidationError):
        set_match_ignored(session_factory, source="doubles", row_index=0, ignore=True)
    with pytest.raises(ValidationError):
        set_match_ignored(session_factory, source="1v1", row_index="first", ignore=True)
    with pytest.raises(ValidationError):
        set_match_ignored(session_factory, source="1v1", row_index=0, ignore=True)


def test_remove_last_match_matches_never_recording_it(
    session_factory: sessionmaker[Session],
    roster: list[str],
) -> None:
    record_one_v_one(session_factory, player_a="Alice", player_b="Bob", winner="Alice", date="2024-03-01")
    record_one_v_one(session_factory, player_a="Bob", player_b="Cara", winner="Cara", date="2024-03-02")
    rebuild_ratings(session_factory)
    expected_history = _history(session_factory)
    expected_ratings = _ratings(session_factory)

    record_race(
        session_factory, player_a="Alice", player_b="Cara", score_a=1, score_b=7, date="2024-03-03"
    )
    result = remove_last_match(session_factory)

    assert result.removed.source.value == "Race"
    assert result.removed.row_index == 0
    assert result.rebuild.processed_matches == 2
    assert _history(session_factory) == expected_history
    assert _ratings(session_factory) == expected_ratings


def test_remove_last_match_resets_roster_when_ledger_empties(
    session_factory: sessionmaker[Session],
    roster: list[str],
) -> None:
    record_one_v_one(session_factory, player_a="Alice", player_b="Bob", winner="Alice", date="2024-03-01")
    remove_last_match(session_factory)

    assert _history(session_factory) == []
    assert set(_ratings(session_factory).values()) == {1200}
    with pytest.raises(NoMatchesError):
        remove_last_match(session_factory)


def test_rebuild_without_roster_sync_keeps_cached_ratings(
    session_factory: sessionmaker[Session],
    roster: list[str],
) -> None:
    record_race(
        session_factory, player_a="Alice", player_b="Bob", score_a=7, score_b=2, date="2024-03-01"
    )
    rebuild_ratings(session_factory, sync_roster=False)
    ratings = _ratings(session_factory)
    assert ratings["alice"] == 1267

    rebuild_ratings(session_factory)
    ratings = _ratings(session_factory)
    assert ratings["alice"] == 1224
    assert ratings["bob"] == 1176


def test_queries_over_recorded_matches(
    session_factory: sessionmaker[Session],
    roster: list[str],
) -> None:
    record_one_v_one(session_factory, player_a="Alice", player_b="Bob", winner="Alice", date="2024-03-01")
    record_one_v_one(session_factory, player_a="Bob", player_b="Alice", winner="Alice", date="2024-03-02")
    rebuild_ratings(session_factory)

    summary = get_head_to_head(session_factory, "alice", "bob")
    assert (summary.wins_a, summary.wins_b) == (2, 0)

    stats = get_player_stats(session_factory, "ALICE")
    assert stats.player == "Alice"
    assert stats.profile is not None
    assert stats.wins == 2

    history = get_rating_history(session_factory)
    assert [point.rating for point in history["Alice"]] == [1208, 1216]

    assert [item.match_id for item in get_match_history(session_factory)] == ["1v1-1", "1v1-0"]

    players = {profile.name: profile.elo for profile in list_players(session_factory)}
    assert players == {"Alice": 1216, "Bob": 1184, "Cara": 1200}


def test_stats_for_player_off_the_roster(
    session_factory: sessionmaker[Session],
    roster: list[str],
) -> None:
    stats = get_player_stats(session_factory, "Dana")
    assert stats.total_games == 0
    assert stats.profile is None


def test_queries_require_names(session_factory: sessionmaker[Session]) -> None:
    with pytest.raises(ValidationError):
        get_head_to_head(session_factory, "Alice", " ")
    with pytest.raises(ValidationError):
        get_player_stats(session_factory, None)


def test_store_failures_surface_as_store_io_error(tmp_path: Path) -> None:
    engine = create_db_engine(f"sqlite+pysqlite:///{tmp_path / 'empty.db'}")
    try:
        with pytest.raises(StoreIOError):
            get_match_history(create_session_factory(engine))
    finally:
        engine.dispose()


def test_recorded_names_use_roster_spelling(
    session_factory: sessionmaker[Session],
    roster: list[str],
) -> None:
    record_one_v_one(session_factory, player_a="Alice", player_b="Bob", winner="Alice", date="2024-03-01")
    recorded = record_one_v_one(
        session_factory, player_a=" alice ", player_b="BOB", winner="bob", date="2024-03-02"
    )
    assert (recorded.match.player_a, recorded.match.player_b, recorded.match.winner) == (
        "Alice",
        "Bob",
        "Bob",
    )
    rebuild_ratings(session_factory)

    history = get_rating_history(session_factory)
    assert sorted(history) == ["Alice", "Bob"]
    assert len(history["Alice"]) == 2
    with store_session(session_factory) as session:
        assert {match.player_a for match in fetch_matches(session)} == {"Alice"}
