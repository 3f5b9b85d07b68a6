"""players table model."""

from __future__ import annotations

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base
from models.ledger.mixins import SheetRowMixin


class Player(SheetRowMixin, Base):
    """Roster row. `elo` holds the incremental-path rating as text."""

    __tablename__ = "players"
    __table_args__ = (Index("idx_players_name", "name"),)

    player_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    nickname: Mapped[str | None] = mapped_column(String(128), nullable=True)
    photo: Mapped[str | None] = mapped_column(String(512), nullable=True)
    cue: Mapped[str | None] = mapped_column(String(128), nullable=True)
    favorite_game: Mapped[str | None] = mapped_column(String(64), nullable=True)
    elo: Mapped[str | None] = mapped_column(String(16), nullable=True)
