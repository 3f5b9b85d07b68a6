"""Persistence for the match ledger, roster and rating history."""

from repositories.ledger.base import ensure_ledger_schema, store_session
from repositories.ledger.history import append_history, fetch_history, replace_history
from repositories.ledger.matches import (
    RemovedMatch,
    append_match,
    fetch_matches,
    remove_most_recent,
    set_ignored,
)
from repositories.ledger.roster import (
    PlayerProfile,
    add_player,
    fetch_players,
    fetch_rating_map,
    find_player,
    require_players,
    write_ratings,
)

__all__ = [
    "PlayerProfile",
    "RemovedMatch",
    "add_player",
    "append_history",
    "append_match",
    "ensure_ledger_schema",
    "fetch_history",
    "fetch_matches",
    "fetch_players",
    "fetch_rating_map",
    "find_player",
    "remove_most_recent",
    "replace_history",
    "require_players",
    "set_ignored",
    "store_session",
    "write_ratings",
]
