"""Shared fixtures: a throwaway SQLite ledger store and match builders."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy.orm import Session, sessionmaker

from db import create_db_engine, create_session_factory
from domain.ratings.common import OneVOneMatch, RaceMatch, parse_event_time
from repositories.ledger import add_player, ensure_ledger_schema, store_session


@pytest.fixture
def session_factory(tmp_path: Path) -> Iterator[sessionmaker[Session]]:
    engine = create_db_engine(f"sqlite+pysqlite:///{tmp_path / 'ledger.db'}")
    ensure_ledger_schema(engine)
    factory = create_session_factory(engine)
    yield factory
    engine.dispose()


@pytest.fixture
def roster(session_factory: sessionmaker[Session]) -> list[str]:
    names = ["Alice", "Bob", "Cara"]
    with store_session(session_factory) as session:
        for name in names:
            add_player(session, name)
    return names


def one_v_one(
    row_index: int,
    date: str,
    player_a: str,
    player_b: str,
    winner: str,
    *,
    game_type: str | None = "8-ball",
    ignored: bool = False,
) -> OneVOneMatch:
    return OneVOneMatch(
        row_index=row_index,
        date=date,
        event_time=parse_event_time(date),
        player_a=player_a,
        player_b=player_b,
        winner=winner,
        game_type=game_type,
        ignored=ignored,
    )


def race(
    row_index: int,
    date: str,
    player_a: str,
    player_b: str,
    score_a: int,
    score_b: int,
    *,
    race_to: int | None = None,
    game_type: str | None = "9-ball",
    ignored: bool = False,
) -> RaceMatch:
    return RaceMatch(
        row_index=row_index,
        date=date,
        event_time=parse_event_time(date),
        player_a=player_a,
        player_b=player_b,
        winner=player_a if score_a > score_b else player_b,
        race_to=race_to if race_to is not None else max(score_a, score_b),
        score_a=score_a,
        score_b=score_b,
        game_type=game_type,
        ignored=ignored,
    )
