"""rating_history table model."""

from __future__ import annotations

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base
from models.ledger.mixins import SheetRowMixin


class RatingHistoryRow(SheetRowMixin, Base):
    """One player's rating after one match (two rows per match)."""

    __tablename__ = "rating_history"
    __table_args__ = (Index("idx_rating_history_player", "player"),)

    date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    player: Mapped[str | None] = mapped_column(String(128), nullable=True)
    rating: Mapped[str | None] = mapped_column(String(16), nullable=True)
    game_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    match_type: Mapped[str | None] = mapped_column(String(16), nullable=True)
    opponent: Mapped[str | None] = mapped_column(String(128), nullable=True)
