"""Shared types for the match ledger and rating history."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from domain.errors import ValidationError

_DATE_FORMATS = ("%m/%d/%Y", "%m/%d/%Y %H:%M:%S", "%d %b %Y")


class MatchSource(str, Enum):
    """Which ledger table a match lives in."""

    ONE_V_ONE = "1v1"
    RACE = "Race"

    @classmethod
    def parse(cls, value: object) -> MatchSource:
        text = str(value or "").strip().lower()
        for source in cls:
            if source.value.lower() == text:
                return source
        raise ValidationError(f"Invalid source type: {value!r} (expected '1v1' or 'Race')")


def player_key(name: str | None) -> str:
    """Identity key for a display name: trimmed, inner whitespace collapsed, case-folded."""
    if name is None:
        return ""
    return " ".join(name.split()).casefold()


def parse_event_time(value: str | None) -> datetime | None:
    """Parse a stored date cell. Returns None when the cell is blank or unreadable."""
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
        for date_format in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, date_format)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    # Offset-qualified dates compare as UTC instants; naive ones as written.
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.replace(tzinfo=None)


@dataclass(frozen=True)
class OneVOneMatch:
    """Single game between two players."""

    row_index: int
    date: str
    event_time: datetime
    player_a: str
    player_b: str
    winner: str
    game_type: str | None = None
    session_id: str | None = None
    notes: str | None = None
    ignored: bool = False

    @property
    def source(self) -> MatchSource:
        return MatchSource.ONE_V_ONE

    @property
    def match_id(self) -> str:
        return f"1v1-{self.row_index}"

    @property
    def margin(self) -> int:
        return 1

    @property
    def loser(self) -> str:
        return self.player_b if player_key(self.winner) == player_key(self.player_a) else self.player_a


@dataclass(frozen=True)
class RaceMatch:
    """Race-to-N match; margin is the absolute score difference."""

    row_index: int
    date: str
    event_time: datetime
    player_a: str
    player_b: str
    winner: str
    race_to: int | None = None
    score_a: int | None = None
    score_b: int | None = None
    game_type: str | None = None
    notes: str | None = None
    ignored: bool = False

    @property
    def source(self) -> MatchSource:
        return MatchSource.RACE

    @property
    def match_id(self) -> str:
        return f"race-{self.row_index}"

    @property
    def margin(self) -> int:
        if self.score_a is None or self.score_b is None:
            return 1
        return abs(self.score_a - self.score_b)

    @property
    def loser(self) -> str:
        return self.player_b if player_key(self.winner) == player_key(self.player_a) else self.player_a


Match = OneVOneMatch | RaceMatch


@dataclass(frozen=True)
class RatingHistoryEntry:
    """A player's rating right after one match."""

    date: str
    player: str
    rating: int
    game_type: str | None = None
    match_type: str | None = None
    opponent: str | None = None


def involves(match: Match, name: str) -> bool:
    key = player_key(name)
    return key in (player_key(match.player_a), player_key(match.player_b))


def chronological(matches: list[Match]) -> list[Match]:
    """Oldest first; equal timestamps keep 1v1 rows before race rows, each in table order."""
    ordered = sorted(
        matches,
        key=lambda match: (0 if match.source is MatchSource.ONE_V_ONE else 1, match.row_index),
    )
    return sorted(ordered, key=lambda match: match.event_time)


def most_recent_first(matches: list[Match]) -> list[Match]:
    """Exact reverse of `chronological`."""
    return list(reversed(chronological(matches)))
