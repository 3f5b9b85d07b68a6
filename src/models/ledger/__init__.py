"""Ledger, roster and rating-history ORM models."""

from models.ledger.matches import OneVOneGame, RaceMatch
from models.ledger.player import Player
from models.ledger.rating_history import RatingHistoryRow

__all__ = ["OneVOneGame", "Player", "RaceMatch", "RatingHistoryRow"]
