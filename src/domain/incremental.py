"""Fast-path rating update applied when a single match is recorded."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from sqlalchemy.orm import Session

from domain.ratings.common import Match, RatingHistoryEntry, player_key
from domain.ratings.elo.calculator import EloParameters, iterative_margin_update, round_rating
from domain.ratings.match_adapter import validate_match
from repositories.ledger import append_history, require_players, write_ratings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IncrementalUpdate:
    winner: str
    loser: str
    winner_pre_elo: int
    loser_pre_elo: int
    winner_post_elo: int
    loser_post_elo: int
    margin: int

    def history_entries(self, match: Match) -> list[RatingHistoryEntry]:
        game_type = match.game_type or "unknown"
        return [
            RatingHistoryEntry(
                date=match.date,
                player=self.winner,
                rating=self.winner_post_elo,
                game_type=game_type,
                match_type=match.source.value,
                opponent=self.loser,
            ),
            RatingHistoryEntry(
                date=match.date,
                player=self.loser,
                rating=self.loser_post_elo,
                game_type=game_type,
                match_type=match.source.value,
                opponent=self.winner,
            ),
        ]


def incremental_ratings(
    rating_map: Mapping[str, int],
    match: Match,
    params: EloParameters,
) -> IncrementalUpdate:
    """Apply the iterative policy to the cached ratings of both participants."""
    validate_match(match)
    baseline = round_rating(params.initial_elo)
    winner = match.winner
    loser = match.loser
    winner_pre = rating_map.get(player_key(winner), baseline)
    loser_pre = rating_map.get(player_key(loser), baseline)
    winner_post, loser_post = iterative_margin_update(
        winner_pre,
        loser_pre,
        match.margin,
        k_factor=params.incremental_k_factor,
        scale_factor=params.scale_factor,
    )
    return IncrementalUpdate(
        winner=winner,
        loser=loser,
        winner_pre_elo=winner_pre,
        loser_pre_elo=loser_pre,
        winner_post_elo=winner_post,
        loser_post_elo=loser_post,
        margin=match.margin,
    )


def apply_incremental_update(
    session: Session,
    match: Match,
    params: EloParameters,
) -> IncrementalUpdate:
    """Update cached roster ratings and append two history rows; no replay."""
    rating_map = require_players(session, match.player_a, match.player_b)
    update = incremental_ratings(rating_map, match, params)
    write_ratings(
        session,
        {
            player_key(update.winner): update.winner_post_elo,
            player_key(update.loser): update.loser_post_elo,
        },
    )
    append_history(session, update.history_entries(match))
    logger.info(
        "incremental update %s: %s %d->%d, %s %d->%d (margin=%d)",
        match.match_id,
        update.winner,
        update.winner_pre_elo,
        update.winner_post_elo,
        update.loser,
        update.loser_pre_elo,
        update.loser_post_elo,
        update.margin,
    )
    return update


__all__ = ["IncrementalUpdate", "apply_incremental_update", "incremental_ratings"]
