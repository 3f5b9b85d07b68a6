"""Sheet-style table access: ordered rows, append, cell update, row delete, replace."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from math import isfinite
from typing import Any, Generic, TypeVar

from sqlalchemy import delete, func, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from domain.errors import StoreIOError, ValidationError
from models.base import Base

logger = logging.getLogger(__name__)

RowModelT = TypeVar("RowModelT")


def ensure_ledger_schema(engine: Engine) -> None:
    """Create roster, match and rating-history tables if they do not exist."""
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as exc:
        raise StoreIOError(f"Failed to create schema: {exc}") from exc


@contextmanager
def store_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    """Open a session, commit on success, and surface store failures as StoreIOError."""
    with session_factory() as session:
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("store operation failed: %s", exc)
            raise StoreIOError(str(exc)) from exc
        except Exception:
            session.rollback()
            raise


class SheetTableRepository(Generic[RowModelT]):
    """Row-oriented access to one table, addressed by zero-based position in `id` order."""

    def __init__(
        self,
        *,
        model: type[RowModelT],
        columns: Sequence[str],
        label: str,
    ) -> None:
        self.model = model
        self.columns = tuple(columns)
        self.label = label

    def fetch_rows(self, session: Session) -> list[RowModelT]:
        """Return every row in insertion order."""
        id_column = getattr(self.model, "id")
        return list(session.execute(select(self.model).order_by(id_column)).scalars().all())

    def count_rows(self, session: Session) -> int:
        result = session.scalar(select(func.count()).select_from(self.model))
        return int(result or 0)

    def row_at(self, session: Session, row_index: int) -> RowModelT:
        if row_index < 0:
            raise ValidationError(f"{self.label} row index must be >= 0, got {row_index}")
        id_column = getattr(self.model, "id")
        row = session.execute(
            select(self.model).order_by(id_column).offset(row_index).limit(1)
        ).scalar_one_or_none()
        if row is None:
            raise ValidationError(f"{self.label} has no row at index {row_index}")
        return row

    def last_row(self, session: Session) -> RowModelT | None:
        id_column = getattr(self.model, "id")
        return session.execute(
            select(self.model).order_by(id_column.desc()).limit(1)
        ).scalar_one_or_none()

    def append_rows(self, session: Session, rows: Sequence[dict[str, Any]]) -> None:
        """Append rows; every value is stored as text."""
        if not rows:
            return
        payload = [self._to_cells(row) for row in rows]
        session.execute(insert(self.model), payload)

    def update_cell(self, session: Session, row_index: int, column: str, value: str | None) -> None:
        row = self.row_at(session, row_index)
        setattr(row, column, value)
        session.flush()

    def delete_row(self, session: Session, row: RowModelT) -> None:
        id_column = getattr(self.model, "id")
        session.execute(delete(self.model).where(id_column == getattr(row, "id")))

    def clear(self, session: Session) -> None:
        session.execute(delete(self.model))

    def replace_rows(self, session: Session, rows: Sequence[dict[str, Any]]) -> None:
        """Replace the whole table contents."""
        self.clear(session)
        self.append_rows(session, rows)

    def _to_cells(self, row: dict[str, Any]) -> dict[str, str | None]:
        unknown = [key for key in row if key not in self.columns]
        if unknown:
            raise ValueError(f"{self.label} rows do not have columns: {unknown}")
        return {
            column: (None if row.get(column) is None else str(row[column]))
            for column in self.columns
        }


def parse_float_cell(value: str | None) -> float | None:
    """Parse a numeric cell; None when blank or not a finite number."""
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if not isfinite(number):
        return None
    return number


def parse_int_cell(value: str | None) -> int | None:
    number = parse_float_cell(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def parse_ignore_cell(value: str | None) -> bool:
    return (value or "").strip().lower() == "yes"


def format_ignore_cell(ignored: bool) -> str:
    return "yes" if ignored else ""


def clean_cell(value: str | None) -> str | None:
    if value is None:
        return None
    text = value.strip()
    return text or None
