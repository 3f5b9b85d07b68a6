"""Full rebuild of the rating history from the match ledger."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from sqlalchemy.orm import Session, sessionmaker

from domain.ratings.common import Match, RatingHistoryEntry, chronological
from domain.ratings.elo.calculator import EloParameters, LedgerEloCalculator, MatchEloEvent
from domain.ratings.elo.config import EloSystemConfig
from repositories.ledger import fetch_matches, replace_history, store_session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RebuildSummary:
    """Outcome of one rebuild."""

    system_name: str
    processed_matches: int
    skipped_ignored: int
    inserted_entries: int
    tracked_players: int
    dry_run: bool


def replay_matches(
    matches: Sequence[Match],
    params: EloParameters,
    *,
    include_ignored: bool = False,
) -> tuple[list[MatchEloEvent], LedgerEloCalculator]:
    """Replay matches oldest first from the baseline; returns events and the final calculator."""
    calculator = LedgerEloCalculator(params)
    events: list[MatchEloEvent] = []
    for match in chronological(list(matches)):
        if match.ignored and not include_ignored:
            continue
        events.extend(calculator.process_match(match))
    return events, calculator


def events_to_history(events: Sequence[MatchEloEvent]) -> list[RatingHistoryEntry]:
    return [
        RatingHistoryEntry(
            date=event.date,
            player=event.player,
            rating=event.rounded_post_elo,
            game_type=event.game_type,
            match_type=event.match_type,
            opponent=event.opponent,
        )
        for event in events
    ]


def compute_rating_history(
    matches: Sequence[Match],
    params: EloParameters,
    *,
    include_ignored: bool = False,
) -> list[RatingHistoryEntry]:
    """Deterministic history for a ledger: two entries per replayed match."""
    events, _ = replay_matches(matches, params, include_ignored=include_ignored)
    return events_to_history(events)


def rebuild_in_session(session: Session, system_config: EloSystemConfig) -> RebuildSummary:
    """Read the ledger and replace the rating history inside an open session."""
    include_ignored = system_config.ledger.include_ignored_in_rebuild
    matches = fetch_matches(session)
    events, calculator = replay_matches(
        matches,
        system_config.parameters,
        include_ignored=include_ignored,
    )
    entries = events_to_history(events)
    replace_history(session, entries)

    skipped = 0 if include_ignored else sum(1 for match in matches if match.ignored)
    return RebuildSummary(
        system_name=system_config.name,
        processed_matches=len(events) // 2,
        skipped_ignored=skipped,
        inserted_entries=len(entries),
        tracked_players=calculator.tracked_entity_count(),
        dry_run=False,
    )


def rebuild_rating_history(
    *,
    session_factory: sessionmaker[Session],
    system_config: EloSystemConfig,
    dry_run: bool = False,
    echo: Callable[[str], None] | None = None,
) -> RebuildSummary:
    """Recompute every player's trajectory from the baseline and replace the stored history."""
    if dry_run:
        with store_session(session_factory) as session:
            matches = fetch_matches(session)
        include_ignored = system_config.ledger.include_ignored_in_rebuild
        events, calculator = replay_matches(
            matches,
            system_config.parameters,
            include_ignored=include_ignored,
        )
        summary = RebuildSummary(
            system_name=system_config.name,
            processed_matches=len(events) // 2,
            skipped_ignored=0 if include_ignored else sum(1 for match in matches if match.ignored),
            inserted_entries=0,
            tracked_players=calculator.tracked_entity_count(),
            dry_run=True,
        )
        if echo is not None:
            echo(
                f"[dry-run] system={summary.system_name} "
                f"processed_matches={summary.processed_matches} "
                f"skipped_ignored={summary.skipped_ignored} "
                f"tracked_players={summary.tracked_players}"
            )
        return summary

    with store_session(session_factory) as session:
        summary = rebuild_in_session(session, system_config)

    logger.info(
        "rebuilt rating history: system=%s matches=%d entries=%d players=%d",
        summary.system_name,
        summary.processed_matches,
        summary.inserted_entries,
        summary.tracked_players,
    )
    if echo is not None:
        echo(
            "completed "
            f"system={summary.system_name} "
            f"processed_matches={summary.processed_matches} "
            f"skipped_ignored={summary.skipped_ignored} "
            f"inserted_entries={summary.inserted_entries} "
            f"tracked_players={summary.tracked_players}"
        )
    return summary


__all__ = [
    "RebuildSummary",
    "compute_rating_history",
    "events_to_history",
    "rebuild_in_session",
    "rebuild_rating_history",
    "replay_matches",
]
