"""Elo rating function for 1v1 games and race matches.

Two margin policies exist and are intentionally kept apart:

* iterative: the incremental path applies ``margin`` single-victory updates in
  sequence, recomputing the expected score after each one.
* weighted: the rebuild path applies one update with ``K * weight`` where
  ``weight = min(1 + margin / step, max_weight)`` for race matches and 1 for 1v1.

They agree for a single-frame win at weight 1 under the same K and diverge
for larger margins.
"""

from __future__ import annotations

from dataclasses import dataclass

from domain.errors import ValidationError
from domain.ratings.common import Match, MatchSource, player_key
from domain.ratings.match_adapter import MatchAdapterMixin


@dataclass(frozen=True)
class EloParameters:
    initial_elo: float = 1200.0
    scale_factor: float = 400.0
    one_v_one_k_factor: float = 16.0
    race_k_factor: float = 32.0
    incremental_k_factor: float = 32.0
    margin_weight_step: float = 10.0
    max_margin_weight: float = 2.0


@dataclass(frozen=True)
class MatchEloEvent:
    """Rating change for one participant of one replayed match."""

    player: str
    opponent: str
    match_id: str
    date: str
    game_type: str | None
    match_type: str
    won: bool
    expected_score: float
    pre_elo: float
    elo_delta: float
    post_elo: float
    k_factor: float
    margin_weight: float

    @property
    def rounded_post_elo(self) -> int:
        return round_rating(self.post_elo)


def round_rating(value: float) -> int:
    """Round half away from zero."""
    if value >= 0:
        return int(value + 0.5)
    return -int(-value + 0.5)


def calculate_expected_score(rating: float, opponent_rating: float, scale_factor: float = 400.0) -> float:
    """Compute the Elo expected score for one side."""
    return 1.0 / (1.0 + 10.0 ** ((opponent_rating - rating) / scale_factor))


def iterative_margin_update(
    winner_elo: float,
    loser_elo: float,
    margin: int,
    k_factor: float = 32.0,
    scale_factor: float = 400.0,
) -> tuple[int, int]:
    """Apply ``margin`` single-victory updates in sequence and round the result.

    A margin of 0 leaves both ratings unchanged.
    """
    if margin < 0:
        raise ValidationError(f"margin must be >= 0, got {margin}")

    new_winner = float(winner_elo)
    new_loser = float(loser_elo)
    for _ in range(margin):
        expected_win = calculate_expected_score(new_winner, new_loser, scale_factor)
        delta = k_factor * (1.0 - expected_win)
        new_winner += delta
        new_loser -= delta
    return round_rating(new_winner), round_rating(new_loser)


def margin_weight(match_source: MatchSource, margin: int, params: EloParameters) -> float:
    if match_source is not MatchSource.RACE:
        return 1.0
    if margin < 0:
        raise ValidationError(f"margin must be >= 0, got {margin}")
    return min(1.0 + margin / params.margin_weight_step, params.max_margin_weight)


def k_factor_for(match_source: MatchSource, params: EloParameters) -> float:
    if match_source is MatchSource.RACE:
        return params.race_k_factor
    return params.one_v_one_k_factor


def weighted_update(
    winner_elo: float,
    loser_elo: float,
    *,
    k_factor: float,
    weight: float = 1.0,
    scale_factor: float = 400.0,
) -> tuple[float, float]:
    """Single update with an effective K of ``k_factor * weight``; unrounded."""
    expected_win = calculate_expected_score(winner_elo, loser_elo, scale_factor)
    delta = k_factor * weight * (1.0 - expected_win)
    return winner_elo + delta, loser_elo - delta


class LedgerEloCalculator(MatchAdapterMixin):
    """Stateful chronological replay using the weighted-single-step policy.

    Working ratings stay unrounded between matches; only emitted events are
    rounded when they become history rows.
    """

    def __init__(self, params: EloParameters) -> None:
        self.params = params
        self._ratings: dict[str, float] = {}

    def get_rating(self, player: str) -> float:
        return self._ratings.get(player_key(player), self.params.initial_elo)

    def tracked_entity_count(self) -> int:
        return len(self._ratings)

    def ratings(self) -> dict[str, float]:
        """Return a snapshot of working ratings keyed by normalized name."""
        return dict(self._ratings)

    def process_match(self, match: Match) -> tuple[MatchEloEvent, MatchEloEvent]:
        self._validate_match(match)

        player_a_pre = self.get_rating(match.player_a)
        player_b_pre = self.get_rating(match.player_b)
        a_won = player_key(match.winner) == player_key(match.player_a)

        k_factor = k_factor_for(match.source, self.params)
        weight = margin_weight(match.source, match.margin, self.params)

        player_a_expected = calculate_expected_score(
            player_a_pre, player_b_pre, self.params.scale_factor
        )
        player_b_expected = 1.0 - player_a_expected
        if a_won:
            player_a_post, player_b_post = weighted_update(
                player_a_pre,
                player_b_pre,
                k_factor=k_factor,
                weight=weight,
                scale_factor=self.params.scale_factor,
            )
        else:
            player_b_post, player_a_post = weighted_update(
                player_b_pre,
                player_a_pre,
                k_factor=k_factor,
                weight=weight,
                scale_factor=self.params.scale_factor,
            )

        self._ratings[player_key(match.player_a)] = player_a_post
        self._ratings[player_key(match.player_b)] = player_b_post

        player_a_event = MatchEloEvent(
            player=match.player_a,
            opponent=match.player_b,
            match_id=match.match_id,
            date=match.date,
            game_type=match.game_type,
            match_type=match.source.value,
            won=a_won,
            expected_score=player_a_expected,
            pre_elo=player_a_pre,
            elo_delta=player_a_post - player_a_pre,
            post_elo=player_a_post,
            k_factor=k_factor,
            margin_weight=weight,
        )
        player_b_event = MatchEloEvent(
            player=match.player_b,
            opponent=match.player_a,
            match_id=match.match_id,
            date=match.date,
            game_type=match.game_type,
            match_type=match.source.value,
            won=not a_won,
            expected_score=player_b_expected,
            pre_elo=player_b_pre,
            elo_delta=player_b_post - player_b_pre,
            post_elo=player_b_post,
            k_factor=k_factor,
            margin_weight=weight,
        )
        return player_a_event, player_b_event
