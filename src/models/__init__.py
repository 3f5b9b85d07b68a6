"""ORM models."""

from models.base import Base
from models.ledger import OneVOneGame, Player, RaceMatch, RatingHistoryRow

__all__ = [
    "Base",
    "OneVOneGame",
    "Player",
    "RaceMatch",
    "RatingHistoryRow",
]
