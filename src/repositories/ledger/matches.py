"""Match ledger reader/writer over the one_v_one_games and race_matches tables."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from domain.errors import NoMatchesError, ValidationError
from domain.ratings.common import (
    Match,
    MatchSource,
    OneVOneMatch,
    RaceMatch,
    parse_event_time,
    player_key,
)
from models import OneVOneGame, RaceMatch as RaceMatchRow
from repositories.ledger.base import (
    SheetTableRepository,
    clean_cell,
    format_ignore_cell,
    parse_ignore_cell,
    parse_int_cell,
)

logger = logging.getLogger(__name__)

ONE_V_ONE_REPOSITORY = SheetTableRepository[OneVOneGame](
    model=OneVOneGame,
    columns=(
        "date",
        "player_a",
        "player_b",
        "winner",
        "game_type",
        "session_id",
        "notes",
        "ignore",
    ),
    label="1v1 Games",
)

RACE_REPOSITORY = SheetTableRepository[RaceMatchRow](
    model=RaceMatchRow,
    columns=(
        "date",
        "player_a",
        "player_b",
        "race_to",
        "score_a",
        "score_b",
        "winner",
        "game_type",
        "notes",
        "ignore",
    ),
    label="2-Player Races",
)


@dataclass(frozen=True)
class RemovedMatch:
    """Identifies the row dropped by `remove_most_recent`."""

    source: MatchSource
    row_index: int
    date: str | None
    player_a: str | None
    player_b: str | None
    winner: str | None


def _repository_for(source: MatchSource) -> SheetTableRepository:
    if source is MatchSource.ONE_V_ONE:
        return ONE_V_ONE_REPOSITORY
    return RACE_REPOSITORY


def _resolve_winner(winner: str | None, player_a: str, player_b: str) -> str | None:
    key = player_key(winner)
    if key == player_key(player_a):
        return player_a
    if key == player_key(player_b):
        return player_b
    return None


def _one_v_one_from_row(row: OneVOneGame, row_index: int) -> OneVOneMatch | None:
    player_a = clean_cell(row.player_a)
    player_b = clean_cell(row.player_b)
    event_time = parse_event_time(row.date)
    if player_a is None or player_b is None or event_time is None:
        if any((row.date, row.player_a, row.player_b, row.winner)):
            logger.warning("skipping malformed 1v1 row %d: date=%r", row_index, row.date)
        return None
    if player_key(player_a) == player_key(player_b):
        logger.warning("skipping 1v1 row %d: identical players %r", row_index, player_a)
        return None

    winner = _resolve_winner(row.winner, player_a, player_b)
    if winner is None:
        logger.warning(
            "skipping 1v1 row %d: winner %r is not %r or %r", row_index, row.winner, player_a, player_b
        )
        return None

    return OneVOneMatch(
        row_index=row_index,
        date=row.date.strip() if row.date else "",
        event_time=event_time,
        player_a=player_a,
        player_b=player_b,
        winner=winner,
        game_type=clean_cell(row.game_type),
        session_id=clean_cell(row.session_id),
        notes=clean_cell(row.notes),
        ignored=parse_ignore_cell(row.ignore),
    )


def _race_from_row(row: RaceMatchRow, row_index: int) -> RaceMatch | None:
    player_a = clean_cell(row.player_a)
    player_b = clean_cell(row.player_b)
    event_time = parse_event_time(row.date)
    if player_a is None or player_b is None or event_time is None:
        if any((row.date, row.player_a, row.player_b, row.winner)):
            logger.warning("skipping malformed race row %d: date=%r", row_index, row.date)
        return None
    if player_key(player_a) == player_key(player_b):
        logger.warning("skipping race row %d: identical players %r", row_index, player_a)
        return None

    score_a = parse_int_cell(row.score_a)
    score_b = parse_int_cell(row.score_b)
    derived_winner: str | None = None
    if score_a is not None and score_b is not None and score_a != score_b:
        derived_winner = player_a if score_a > score_b else player_b

    winner = _resolve_winner(row.winner, player_a, player_b)
    if winner is None:
        winner = derived_winner
    elif derived_winner is not None and winner != derived_winner:
        logger.warning(
            "race row %d: winner cell %r disagrees with scores %s-%s",
            row_index,
            row.winner,
            score_a,
            score_b,
        )
    if winner is None:
        logger.warning("skipping race row %d: no winner in cells or scores", row_index)
        return None

    return RaceMatch(
        row_index=row_index,
        date=row.date.strip() if row.date else "",
        event_time=event_time,
        player_a=player_a,
        player_b=player_b,
        winner=winner,
        race_to=parse_int_cell(row.race_to),
        score_a=score_a,
        score_b=score_b,
        game_type=clean_cell(row.game_type),
        notes=clean_cell(row.notes),
        ignored=parse_ignore_cell(row.ignore),
    )


def fetch_one_v_one_matches(session: Session) -> list[OneVOneMatch]:
    matches: list[OneVOneMatch] = []
    for row_index, row in enumerate(ONE_V_ONE_REPOSITORY.fetch_rows(session)):
        match = _one_v_one_from_row(row, row_index)
        if match is not None:
            matches.append(match)
    return matches


def fetch_race_matches(session: Session) -> list[RaceMatch]:
    matches: list[RaceMatch] = []
    for row_index, row in enumerate(RACE_REPOSITORY.fetch_rows(session)):
        match = _race_from_row(row, row_index)
        if match is not None:
            matches.append(match)
    return matches


def fetch_matches(session: Session) -> list[Match]:
    """Read both tables; 1v1 rows first, then race rows, each in table order."""
    return [*fetch_one_v_one_matches(session), *fetch_race_matches(session)]


def append_match(session: Session, match: Match) -> int:
    """Append one match row and return its zero-based row index."""
    if isinstance(match, OneVOneMatch):
        repository = ONE_V_ONE_REPOSITORY
        row = {
            "date": match.date,
            "player_a": match.player_a,
            "player_b": match.player_b,
            "winner": match.winner,
            "game_type": match.game_type,
            "session_id": match.session_id,
            "notes": match.notes or "",
            "ignore": format_ignore_cell(match.ignored),
        }
    elif isinstance(match, RaceMatch):
        repository = RACE_REPOSITORY
        row = {
            "date": match.date,
            "player_a": match.player_a,
            "player_b": match.player_b,
            "race_to": match.race_to,
            "score_a": match.score_a,
            "score_b": match.score_b,
            "winner": match.winner,
            "game_type": match.game_type,
            "notes": match.notes or "",
            "ignore": format_ignore_cell(match.ignored),
        }
    else:
        raise ValidationError(f"Unsupported match type: {type(match)!r}")

    row_index = repository.count_rows(session)
    repository.append_rows(session, [row])
    logger.info(
        "appended %s row %d: %s vs %s, winner=%s",
        match.source.value,
        row_index,
        match.player_a,
        match.player_b,
        match.winner,
    )
    return row_index


def set_ignored(session: Session, source: MatchSource | str, row_index: int, ignore: bool) -> None:
    """Set or clear the ignore flag of one row in place."""
    match_source = source if isinstance(source, MatchSource) else MatchSource.parse(source)
    repository = _repository_for(match_source)
    repository.update_cell(session, row_index, "ignore", format_ignore_cell(ignore))
    logger.info("set ignore=%s on %s row %d", ignore, match_source.value, row_index)


def _last_row_time(row: object | None) -> datetime | None:
    if row is None:
        return None
    return parse_event_time(getattr(row, "date"))


def remove_most_recent(session: Session) -> RemovedMatch:
    """Delete whichever table's last row is later; the race row wins ties.

    Unreadable dates count as earliest.
    """
    last_one_v_one = ONE_V_ONE_REPOSITORY.last_row(session)
    last_race = RACE_REPOSITORY.last_row(session)
    if last_one_v_one is None and last_race is None:
        raise NoMatchesError("No matches to delete")

    one_v_one_time = _last_row_time(last_one_v_one)
    race_time = _last_row_time(last_race)

    remove_one_v_one = last_race is None or (
        last_one_v_one is not None
        and one_v_one_time is not None
        and (race_time is None or one_v_one_time > race_time)
    )
    if remove_one_v_one:
        source, repository, row = MatchSource.ONE_V_ONE, ONE_V_ONE_REPOSITORY, last_one_v_one
    else:
        source, repository, row = MatchSource.RACE, RACE_REPOSITORY, last_race

    row_index = repository.count_rows(session) - 1
    removed = RemovedMatch(
        source=source,
        row_index=row_index,
        date=getattr(row, "date"),
        player_a=getattr(row, "player_a"),
        player_b=getattr(row, "player_b"),
        winner=getattr(row, "winner"),
    )
    repository.delete_row(session, row)
    logger.info("removed %s row %d dated %r", source.value, row_index, removed.date)
    return removed
