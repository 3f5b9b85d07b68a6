"""SQLAlchemy mixins for sheet-style tables with string-typed cells."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column


class SheetRowMixin:
    """Insertion-ordered row; `id` order defines the zero-based row index."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )


class MatchRowMixin(SheetRowMixin):
    """Cells shared by both match tables."""

    date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    player_a: Mapped[str | None] = mapped_column(String(128), nullable=True)
    player_b: Mapped[str | None] = mapped_column(String(128), nullable=True)
    winner: Mapped[str | None] = mapped_column(String(128), nullable=True)
    game_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    ignore: Mapped[str | None] = mapped_column(String(16), nullable=True)
