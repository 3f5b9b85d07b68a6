"""Request-facing operations: record, ignore, remove, rebuild and query.

Each function takes plain values, runs in one store session and returns a
dataclass or raises one of the typed errors in `domain.errors`. Mutating
operations are serialized through a process-wide writer lock so that the
roster read-modify-write and the remove-then-rebuild sequence never interleave.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from datetime import date as date_type, datetime

from sqlalchemy.orm import Session, sessionmaker

from domain.analytics import (
    HeadToHeadSummary,
    MatchHistoryItem,
    PlayerStats,
    RatingPoint,
    head_to_head,
    latest_ratings,
    match_history,
    player_stats,
    rating_history_by_player,
)
from domain.errors import ValidationError
from domain.incremental import IncrementalUpdate, apply_incremental_update
from domain.pipeline import RebuildSummary, rebuild_in_session
from domain.ratings.common import (
    Match,
    MatchSource,
    OneVOneMatch,
    RaceMatch,
    parse_event_time,
    player_key,
)
from domain.ratings.elo.calculator import round_rating
from domain.ratings.elo.config import EloSystemConfig, default_elo_system_config
from domain.ratings.match_adapter import validate_match
from repositories.ledger import (
    PlayerProfile,
    RemovedMatch,
    append_match,
    fetch_history,
    fetch_matches,
    fetch_players,
    find_player,
    remove_most_recent,
    require_players,
    set_ignored,
    store_session,
    write_ratings,
)

logger = logging.getLogger(__name__)

_WRITE_LOCK = threading.RLock()


@dataclass(frozen=True)
class RecordedMatch:
    match: Match
    update: IncrementalUpdate


@dataclass(frozen=True)
class RemovalResult:
    removed: RemovedMatch
    rebuild: RebuildSummary


def _config(config: EloSystemConfig | None) -> EloSystemConfig:
    return config if config is not None else default_elo_system_config()


def _required_name(value: object, field_name: str) -> str:
    text = "" if value is None else str(value).strip()
    if not text:
        raise ValidationError(f"{field_name} is required")
    return text


def _optional_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _match_date(value: object) -> tuple[str, datetime]:
    if value is None or not str(value).strip():
        today = date_type.today()
        return today.isoformat(), datetime(today.year, today.month, today.day)
    text = str(value).strip()
    event_time = parse_event_time(text)
    if event_time is None:
        raise ValidationError(f"Unreadable match date: {value!r}")
    return text, event_time


def _score(value: object, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a whole number, got {value!r}")
    if isinstance(value, int):
        score = value
    else:
        try:
            score = int(str(value).strip())
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"{field_name} must be a whole number, got {value!r}") from exc
    if score < 0:
        raise ValidationError(f"{field_name} must be >= 0, got {score}")
    return score


def _sync_roster_ratings(session: Session, system_config: EloSystemConfig) -> int:
    """Point every roster rating at its latest rebuilt value (baseline when absent)."""
    latest = latest_ratings(fetch_history(session))
    baseline = round_rating(system_config.parameters.initial_elo)
    ratings = {
        player_key(profile.name): latest.get(player_key(profile.name), baseline)
        for profile in fetch_players(session)
    }
    return write_ratings(session, ratings)


def _rebuild_and_sync(session: Session, system_config: EloSystemConfig) -> RebuildSummary:
    summary = rebuild_in_session(session, system_config)
    session.flush()
    synced = _sync_roster_ratings(session, system_config)
    logger.info(
        "rebuild complete: matches=%d entries=%d roster_synced=%d",
        summary.processed_matches,
        summary.inserted_entries,
        synced,
    )
    return summary


def _with_roster_names(session: Session, match: Match) -> Match:
    """Store the roster's spelling of both players so every table agrees on names."""
    names: dict[str, str] = {}
    for name in (match.player_a, match.player_b):
        profile = find_player(session, name)
        names[player_key(name)] = profile.name if profile is not None else name
    return replace(
        match,
        player_a=names[player_key(match.player_a)],
        player_b=names[player_key(match.player_b)],
        winner=names[player_key(match.winner)],
    )


def _record(
    session_factory: sessionmaker[Session],
    match: Match,
    system_config: EloSystemConfig,
) -> RecordedMatch:
    validate_match(match)
    with _WRITE_LOCK:
        with store_session(session_factory) as session:
            # Roster membership is checked before the ledger append.
            require_players(session, match.player_a, match.player_b)
            match = _with_roster_names(session, match)
            row_index = append_match(session, match)
            match = replace(match, row_index=row_index)
            update = apply_incremental_update(session, match, system_config.parameters)
    return RecordedMatch(match=match, update=update)


def record_one_v_one(
    session_factory: sessionmaker[Session],
    *,
    player_a: object,
    player_b: object,
    winner: object,
    date: object = None,
    game_type: object = None,
    session_id: object = None,
    notes: object = None,
    config: EloSystemConfig | None = None,
) -> RecordedMatch:
    """Append a 1v1 game and apply the incremental rating update (margin 1)."""
    name_a = _required_name(player_a, "playerA")
    name_b = _required_name(player_b, "playerB")
    winner_name = _required_name(winner, "winner")
    match_date, event_time = _match_date(date)

    if player_key(winner_name) == player_key(name_a):
        winner_name = name_a
    elif player_key(winner_name) == player_key(name_b):
        winner_name = name_b

    match = OneVOneMatch(
        row_index=-1,
        date=match_date,
        event_time=event_time,
        player_a=name_a,
        player_b=name_b,
        winner=winner_name,
        game_type=_optional_text(game_type),
        session_id=_optional_text(session_id),
        notes=_optional_text(notes),
    )
    return _record(session_factory, match, _config(config))


def record_race(
    session_factory: sessionmaker[Session],
    *,
    player_a: object,
    player_b: object,
    score_a: object,
    score_b: object,
    race_to: object = None,
    date: object = None,
    game_type: object = None,
    notes: object = None,
    config: EloSystemConfig | None = None,
) -> RecordedMatch:
    """Append a race; the winner is the higher score and the margin the score gap."""
    name_a = _required_name(player_a, "player1")
    name_b = _required_name(player_b, "player2")
    parsed_a = _score(score_a, "p1Score")
    parsed_b = _score(score_b, "p2Score")
    if parsed_a == parsed_b:
        raise ValidationError(f"Race scores cannot be tied ({parsed_a}-{parsed_b})")
    parsed_race_to = None if race_to in (None, "") else _score(race_to, "raceTo")
    match_date, event_time = _match_date(date)

    match = RaceMatch(
        row_index=-1,
        date=match_date,
        event_time=event_time,
        player_a=name_a,
        player_b=name_b,
        winner=name_a if parsed_a > parsed_b else name_b,
        race_to=parsed_race_to,
        score_a=parsed_a,
        score_b=parsed_b,
        game_type=_optional_text(game_type),
        notes=_optional_text(notes),
    )
    return _record(session_factory, match, _config(config))


def set_match_ignored(
    session_factory: sessionmaker[Session],
    *,
    source: object,
    row_index: object,
    ignore: bool,
    config: EloSystemConfig | None = None,
) -> RebuildSummary | None:
    """Toggle a match's ignore flag; rebuilds afterwards unless the config disables it."""
    match_source = MatchSource.parse(source)
    if isinstance(row_index, bool) or not isinstance(row_index, int):
        try:
            row_index = int(str(row_index).strip())
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"rowIndex must be a whole number, got {row_index!r}") from exc

    system_config = _config(config)
    with _WRITE_LOCK:
        with store_session(session_factory) as session:
            set_ignored(session, match_source, row_index, bool(ignore))
            if not system_config.ledger.rebuild_on_ignore:
                return None
            session.flush()
            return _rebuild_and_sync(session, system_config)


def remove_last_match(
    session_factory: sessionmaker[Session],
    *,
    config: EloSystemConfig | None = None,
) -> RemovalResult:
    """Drop the most recent match across both tables, then rebuild."""
    system_config = _config(config)
    with _WRITE_LOCK:
        with store_session(session_factory) as session:
            removed = remove_most_recent(session)
            session.flush()
            summary = _rebuild_and_sync(session, system_config)
    return RemovalResult(removed=removed, rebuild=summary)


def rebuild_ratings(
    session_factory: sessionmaker[Session],
    *,
    config: EloSystemConfig | None = None,
    sync_roster: bool = True,
) -> RebuildSummary:
    """Full rebuild of the history; optionally refresh roster ratings from it."""
    system_config = _config(config)
    with _WRITE_LOCK:
        with store_session(session_factory) as session:
            if sync_roster:
                return _rebuild_and_sync(session, system_config)
            return rebuild_in_session(session, system_config)


def get_head_to_head(
    session_factory: sessionmaker[Session],
    player_a: object,
    player_b: object,
) -> HeadToHeadSummary:
    name_a = _required_name(player_a, "playerA")
    name_b = _required_name(player_b, "playerB")
    with store_session(session_factory) as session:
        matches = fetch_matches(session)
    return head_to_head(matches, name_a, name_b)


def get_player_stats(
    session_factory: sessionmaker[Session],
    player: object,
    *,
    config: EloSystemConfig | None = None,
) -> PlayerStats:
    """Stats for one player; players off the roster still get (possibly empty) stats."""
    name = _required_name(player, "name")
    system_config = _config(config)
    with store_session(session_factory) as session:
        profile = find_player(session, name)
        matches = fetch_matches(session)
    return player_stats(
        matches,
        profile.name if profile is not None else name,
        profile=profile,
        recent_limit=system_config.ledger.recent_match_limit,
    )


def get_rating_history(session_factory: sessionmaker[Session]) -> dict[str, list[RatingPoint]]:
    with store_session(session_factory) as session:
        entries = fetch_history(session)
    return rating_history_by_player(entries)


def get_match_history(session_factory: sessionmaker[Session]) -> list[MatchHistoryItem]:
    with store_session(session_factory) as session:
        matches = fetch_matches(session)
    return match_history(matches)


def list_players(
    session_factory: sessionmaker[Session],
    *,
    config: EloSystemConfig | None = None,
) -> list[PlayerProfile]:
    """Roster with each rating taken from the latest history entry, baseline when absent."""
    baseline = round_rating(_config(config).parameters.initial_elo)
    with store_session(session_factory) as session:
        profiles = fetch_players(session)
        latest = latest_ratings(fetch_history(session))
    return [
        replace(profile, elo=latest.get(player_key(profile.name), baseline))
        for profile in profiles
    ]


__all__ = [
    "RecordedMatch",
    "RemovalResult",
    "get_head_to_head",
    "get_match_history",
    "get_player_stats",
    "get_rating_history",
    "list_players",
    "rebuild_ratings",
    "record_one_v_one",
    "record_race",
    "remove_last_match",
    "set_match_ignored",
]
