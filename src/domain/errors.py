"""Typed failures raised by ledger and rating operations."""

from __future__ import annotations


class CueRatingsError(Exception):
    """Base class for all engine failures."""


class ValidationError(CueRatingsError, ValueError):
    """Malformed or missing input; raised before any write happens."""


class UnknownPlayerError(CueRatingsError, LookupError):
    """A referenced player is not on the roster."""

    def __init__(self, player: str) -> None:
        super().__init__(f"Unknown player: {player!r}")
        self.player = player


class NoMatchesError(CueRatingsError):
    """The ledger holds no matches to operate on."""


class StoreIOError(CueRatingsError):
    """Communication with the backing store failed."""


__all__ = [
    "CueRatingsError",
    "NoMatchesError",
    "StoreIOError",
    "UnknownPlayerError",
    "ValidationError",
]
