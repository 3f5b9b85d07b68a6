"""Rating, ledger and analytics domain modules."""

from domain.errors import (
    CueRatingsError,
    NoMatchesError,
    StoreIOError,
    UnknownPlayerError,
    ValidationError,
)

__all__ = [
    "CueRatingsError",
    "NoMatchesError",
    "StoreIOError",
    "UnknownPlayerError",
    "ValidationError",
]
