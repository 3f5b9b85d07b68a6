"""Roster access: the players table and its cached rating column."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass

from sqlalchemy.orm import Session

from domain.errors import UnknownPlayerError, ValidationError
from domain.ratings.common import player_key
from domain.ratings.elo.calculator import round_rating
from models import Player
from repositories.ledger.base import SheetTableRepository, clean_cell, parse_float_cell

logger = logging.getLogger(__name__)

DEFAULT_RATING = 1200

PLAYER_REPOSITORY = SheetTableRepository[Player](
    model=Player,
    columns=("player_id", "name", "nickname", "photo", "cue", "favorite_game", "elo"),
    label="Players",
)


@dataclass(frozen=True)
class PlayerProfile:
    player_id: str
    name: str
    nickname: str | None = None
    photo: str | None = None
    cue: str | None = None
    favorite_game: str | None = None
    elo: int = DEFAULT_RATING


def parse_rating_cell(value: str | None, default: int = DEFAULT_RATING) -> int:
    """Ratings fall back to the baseline when the cell is blank, zero or unreadable."""
    number = parse_float_cell(value)
    if not number:
        return default
    return round_rating(number)


def fetch_players(session: Session, *, default_rating: int = DEFAULT_RATING) -> list[PlayerProfile]:
    profiles: list[PlayerProfile] = []
    for row in PLAYER_REPOSITORY.fetch_rows(session):
        name = clean_cell(row.name)
        if name is None:
            continue
        profiles.append(
            PlayerProfile(
                player_id=row.player_id,
                name=name,
                nickname=clean_cell(row.nickname),
                photo=clean_cell(row.photo),
                cue=clean_cell(row.cue),
                favorite_game=clean_cell(row.favorite_game),
                elo=parse_rating_cell(row.elo, default_rating),
            )
        )
    return profiles


def find_player(session: Session, name: str) -> PlayerProfile | None:
    key = player_key(name)
    for profile in fetch_players(session):
        if player_key(profile.name) == key:
            return profile
    return None


def fetch_rating_map(session: Session, *, default_rating: int = DEFAULT_RATING) -> dict[str, int]:
    """Current cached ratings keyed by normalized player name."""
    return {
        player_key(profile.name): profile.elo
        for profile in fetch_players(session, default_rating=default_rating)
    }


def require_players(session: Session, *names: str) -> dict[str, int]:
    """Return the rating map, raising UnknownPlayerError for any name not on the roster."""
    rating_map = fetch_rating_map(session)
    for name in names:
        if player_key(name) not in rating_map:
            raise UnknownPlayerError(name)
    return rating_map


def write_ratings(session: Session, ratings: Mapping[str, int]) -> int:
    """Write ratings (keyed by normalized name) into matching roster rows."""
    updated = 0
    for row in PLAYER_REPOSITORY.fetch_rows(session):
        key = player_key(row.name)
        if key in ratings:
            row.elo = str(ratings[key])
            updated += 1
    session.flush()
    return updated


def add_player(
    session: Session,
    name: str,
    *,
    nickname: str | None = None,
    photo: str | None = None,
    cue: str | None = None,
    favorite_game: str | None = None,
    elo: int = DEFAULT_RATING,
) -> str:
    """Add a roster row and return its generated player id."""
    clean_name = (name or "").strip()
    if not clean_name:
        raise ValidationError("Name is required")
    if find_player(session, clean_name) is not None:
        raise ValidationError(f"Player {clean_name!r} already exists")

    player_id = str(uuid.uuid4())
    PLAYER_REPOSITORY.append_rows(
        session,
        [
            {
                "player_id": player_id,
                "name": clean_name,
                "nickname": nickname or "",
                "photo": photo or "",
                "cue": cue or "",
                "favorite_game": favorite_game or "",
                "elo": elo,
            }
        ],
    )
    logger.info("added player %s (%s)", clean_name, player_id)
    return player_id
