"""Rating-system domain modules."""

from domain.ratings.common import (
    Match,
    MatchSource,
    OneVOneMatch,
    RaceMatch,
    RatingHistoryEntry,
    player_key,
)

__all__ = [
    "Match",
    "MatchSource",
    "OneVOneMatch",
    "RaceMatch",
    "RatingHistoryEntry",
    "player_key",
]
