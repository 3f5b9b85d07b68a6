"""Head-to-head, per-player and rating-history queries over the match ledger.

All queries are pure functions over already-loaded matches or history entries.
Ignored matches are dropped before any counting. "Most recent first" is the
exact reverse of the chronological replay order, so same-day matches resolve
the same way in streaks as they do in rebuilds.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from domain.ratings.common import (
    Match,
    RatingHistoryEntry,
    chronological,
    involves,
    most_recent_first,
    parse_event_time,
    player_key,
)


@dataclass(frozen=True)
class StreakSummary:
    player: str
    count: int


@dataclass(frozen=True)
class MatchDetail:
    match_id: str
    source: str
    date: str
    player_a: str
    player_b: str
    winner: str
    game_type: str | None


@dataclass(frozen=True)
class HeadToHeadSummary:
    player_a: str
    player_b: str
    total_games: int
    wins_a: int
    wins_b: int
    last_match_date: str | None
    last_winner: str | None
    game_types: list[str | None]
    current_streak: StreakSummary | None
    longest_streaks: dict[str, int]
    match_details: list[MatchDetail]


@dataclass(frozen=True)
class OpponentRecord:
    opponent: str
    wins: int = 0
    losses: int = 0


@dataclass(frozen=True)
class RecentMatch:
    match_id: str
    source: str
    date: str
    opponent: str
    winner: str
    won: bool
    game_type: str | None


@dataclass(frozen=True)
class PlayerStats:
    player: str
    total_games: int
    wins: int
    losses: int
    win_rate: int
    current_streak: int
    longest_streak: int
    most_wins_against: str | None
    most_losses_against: str | None
    opponents: list[OpponentRecord] = field(default_factory=list)
    recent_matches: list[RecentMatch] = field(default_factory=list)
    profile: object | None = None


@dataclass(frozen=True)
class RatingPoint:
    date: str
    rating: int


@dataclass(frozen=True)
class MatchHistoryItem:
    match_id: str
    source: str
    row_index: int
    date: str
    player_a: str
    player_b: str
    winner: str
    game_type: str | None
    notes: str | None
    ignored: bool
    session_id: str | None = None
    race_to: int | None = None
    score_a: int | None = None
    score_b: int | None = None


def _active(matches: Sequence[Match]) -> list[Match]:
    return [match for match in matches if not match.ignored]


def _detail(match: Match) -> MatchDetail:
    return MatchDetail(
        match_id=match.match_id,
        source=match.source.value,
        date=match.date,
        player_a=match.player_a,
        player_b=match.player_b,
        winner=match.winner,
        game_type=match.game_type,
    )


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def head_to_head(matches: Sequence[Match], player_a: str, player_b: str) -> HeadToHeadSummary:
    """Summarize every non-ignored match between two players."""
    key_a = player_key(player_a)
    key_b = player_key(player_b)
    shared = [
        match
        for match in _active(matches)
        if involves(match, player_a) and involves(match, player_b) and key_a != key_b
    ]
    ascending = chronological(shared)
    descending = list(reversed(ascending))

    wins = {key_a: 0, key_b: 0}
    running = {key_a: 0, key_b: 0}
    longest = {key_a: 0, key_b: 0}
    for match in ascending:
        winner = player_key(match.winner)
        other = key_b if winner == key_a else key_a
        wins[winner] += 1
        running[winner] += 1
        longest[winner] = max(longest[winner], running[winner])
        running[other] = 0

    current_streak: StreakSummary | None = None
    if descending:
        leader = descending[0].winner
        count = 0
        for match in descending:
            if player_key(match.winner) != player_key(leader):
                break
            count += 1
        current_streak = StreakSummary(player=leader, count=count)

    game_types: list[str | None] = []
    for match in descending:
        if match.game_type not in game_types:
            game_types.append(match.game_type)

    last_match = descending[0] if descending else None
    return HeadToHeadSummary(
        player_a=player_a,
        player_b=player_b,
        total_games=len(descending),
        wins_a=wins[key_a],
        wins_b=wins[key_b],
        last_match_date=last_match.date if last_match else None,
        last_winner=last_match.winner if last_match else None,
        game_types=game_types,
        current_streak=current_streak,
        longest_streaks={player_a: longest[key_a], player_b: longest[key_b]},
        match_details=[_detail(match) for match in descending],
    )


def _top_opponent(records: list[OpponentRecord], attribute: str) -> str | None:
    # Records are ordered by most recent meeting; max() keeps the first of equals.
    if not records:
        return None
    best = max(records, key=lambda record: getattr(record, attribute))
    if getattr(best, attribute) == 0:
        return None
    return best.opponent


def player_stats(
    matches: Sequence[Match],
    player: str,
    *,
    profile: object | None = None,
    recent_limit: int = 10,
) -> PlayerStats:
    """Win/loss, streaks and opponent breakdown for one player."""
    key = player_key(player)
    played = most_recent_first([match for match in _active(matches) if involves(match, player)])

    wins = 0
    losses = 0
    running = 0
    longest = 0
    current = 0
    current_open = True
    tallies: dict[str, list[int]] = {}
    names: dict[str, str] = {}
    recent: list[RecentMatch] = []

    for match in played:
        won = player_key(match.winner) == key
        opponent = match.player_b if player_key(match.player_a) == key else match.player_a
        opponent_key = player_key(opponent)
        names.setdefault(opponent_key, opponent)
        tally = tallies.setdefault(opponent_key, [0, 0])

        if won:
            wins += 1
            running += 1
            tally[0] += 1
            if current_open:
                current += 1
        else:
            losses += 1
            running = 0
            tally[1] += 1
            current_open = False
        longest = max(longest, running)

        if len(recent) < recent_limit:
            recent.append(
                RecentMatch(
                    match_id=match.match_id,
                    source=match.source.value,
                    date=match.date,
                    opponent=opponent,
                    winner=match.winner,
                    won=won,
                    game_type=match.game_type,
                )
            )

    records = [
        OpponentRecord(opponent=names[opponent_key], wins=tally[0], losses=tally[1])
        for opponent_key, tally in tallies.items()
    ]
    total = wins + losses
    return PlayerStats(
        player=player,
        total_games=total,
        wins=wins,
        losses=losses,
        win_rate=_round_half_up(wins / total * 100) if total else 0,
        current_streak=current,
        longest_streak=longest,
        most_wins_against=_top_opponent(records, "wins"),
        most_losses_against=_top_opponent(records, "losses"),
        opponents=records,
        recent_matches=recent,
        profile=profile,
    )


def rating_history_by_player(entries: Sequence[RatingHistoryEntry]) -> dict[str, list[RatingPoint]]:
    """Per-player rating points, oldest first; unreadable dates are dropped.

    Spellings of one name are merged under the first one seen.
    """
    names: dict[str, str] = {}
    timed: dict[str, list[tuple[object, int, RatingPoint]]] = {}
    for position, entry in enumerate(entries):
        event_time = parse_event_time(entry.date)
        if event_time is None:
            continue
        key = player_key(entry.player)
        names.setdefault(key, entry.player)
        timed.setdefault(key, []).append(
            (event_time, position, RatingPoint(date=entry.date, rating=entry.rating))
        )
    return {
        names[key]: [point for _, _, point in sorted(points, key=lambda item: (item[0], item[1]))]
        for key, points in timed.items()
    }


def latest_ratings(entries: Sequence[RatingHistoryEntry]) -> dict[str, int]:
    """Latest rating per normalized player name; later rows win on equal dates."""
    latest: dict[str, tuple[object, int]] = {}
    for entry in entries:
        event_time = parse_event_time(entry.date)
        if event_time is None:
            continue
        key = player_key(entry.player)
        previous = latest.get(key)
        if previous is None or event_time >= previous[0]:
            latest[key] = (event_time, entry.rating)
    return {key: rating for key, (_, rating) in latest.items()}


def match_history(matches: Sequence[Match]) -> list[MatchHistoryItem]:
    """Every readable match, ignored ones included, most recent first."""
    items: list[MatchHistoryItem] = []
    for match in most_recent_first(list(matches)):
        items.append(
            MatchHistoryItem(
                match_id=match.match_id,
                source=match.source.value,
                row_index=match.row_index,
                date=match.date,
                player_a=match.player_a,
                player_b=match.player_b,
                winner=match.winner,
                game_type=match.game_type,
                notes=match.notes,
                ignored=match.ignored,
                session_id=getattr(match, "session_id", None),
                race_to=getattr(match, "race_to", None),
                score_a=getattr(match, "score_a", None),
                score_b=getattr(match, "score_b", None),
            )
        )
    return items


__all__ = [
    "HeadToHeadSummary",
    "MatchDetail",
    "MatchHistoryItem",
    "OpponentRecord",
    "PlayerStats",
    "RatingPoint",
    "RecentMatch",
    "StreakSummary",
    "head_to_head",
    "latest_ratings",
    "match_history",
    "player_stats",
    "rating_history_by_player",
]
