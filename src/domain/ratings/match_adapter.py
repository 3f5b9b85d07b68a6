"""Shared validation for matches fed to rating calculators."""

from __future__ import annotations

from domain.errors import ValidationError
from domain.ratings.common import Match, player_key


def validate_match(match: Match) -> None:
    """Both players named and distinct, and the winner is one of them."""
    player_a = player_key(match.player_a)
    player_b = player_key(match.player_b)
    if not player_a or not player_b:
        raise ValidationError(f"{match.match_id} is missing a player name")
    if player_a == player_b:
        raise ValidationError(f"{match.match_id} has identical players ({match.player_a})")
    if player_key(match.winner) not in (player_a, player_b):
        raise ValidationError(
            f"winner={match.winner!r} does not belong to match players "
            f"{match.player_a}/{match.player_b} for {match.match_id}"
        )


class MatchAdapterMixin:
    """Mixin providing the participant checks every calculator needs."""

    def _validate_match(self, match: Match) -> None:
        validate_match(match)
