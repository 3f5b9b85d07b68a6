"""Rating-history table access."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy.orm import Session

from domain.ratings.common import RatingHistoryEntry
from domain.ratings.elo.calculator import round_rating
from models import RatingHistoryRow
from repositories.ledger.base import SheetTableRepository, clean_cell, parse_float_cell

logger = logging.getLogger(__name__)

HISTORY_REPOSITORY = SheetTableRepository[RatingHistoryRow](
    model=RatingHistoryRow,
    columns=("date", "player", "rating", "game_type", "match_type", "opponent"),
    label="ELO History",
)


def _entry_to_row(entry: RatingHistoryEntry) -> dict[str, object]:
    return {
        "date": entry.date,
        "player": entry.player,
        "rating": entry.rating,
        "game_type": entry.game_type,
        "match_type": entry.match_type,
        "opponent": entry.opponent,
    }


def fetch_history(session: Session) -> list[RatingHistoryEntry]:
    """Read history rows in table order, skipping rows without date, player or rating."""
    entries: list[RatingHistoryEntry] = []
    for row in HISTORY_REPOSITORY.fetch_rows(session):
        date = clean_cell(row.date)
        player = clean_cell(row.player)
        rating = parse_float_cell(row.rating)
        if date is None or player is None or rating is None:
            continue
        entries.append(
            RatingHistoryEntry(
                date=date,
                player=player,
                rating=round_rating(rating),
                game_type=clean_cell(row.game_type),
                match_type=clean_cell(row.match_type),
                opponent=clean_cell(row.opponent),
            )
        )
    return entries


def append_history(session: Session, entries: Sequence[RatingHistoryEntry]) -> None:
    HISTORY_REPOSITORY.append_rows(session, [_entry_to_row(entry) for entry in entries])


def replace_history(session: Session, entries: Sequence[RatingHistoryEntry]) -> None:
    """Swap the whole history for a freshly rebuilt one; empty input just clears it."""
    if not entries:
        HISTORY_REPOSITORY.clear(session)
        logger.info("cleared rating history")
        return
    HISTORY_REPOSITORY.replace_rows(session, [_entry_to_row(entry) for entry in entries])
    logger.info("replaced rating history with %d entries", len(entries))
