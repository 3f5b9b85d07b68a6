"""one_v_one_games and race_matches table models."""

from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base
from models.ledger.mixins import MatchRowMixin


class OneVOneGame(MatchRowMixin, Base):
    """Single games; the winner cell names one of the two players."""

    __tablename__ = "one_v_one_games"

    session_id: Mapped[str | None] = mapped_column(String(64), nullable=True)


class RaceMatch(MatchRowMixin, Base):
    """Race-to-N matches with both final scores."""

    __tablename__ = "race_matches"

    race_to: Mapped[str | None] = mapped_column(String(16), nullable=True)
    score_a: Mapped[str | None] = mapped_column(String(16), nullable=True)
    score_b: Mapped[str | None] = mapped_column(String(16), nullable=True)
