"""Shared plumbing for the ledger CLI scripts."""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any

import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from db import create_db_engine, create_session_factory
from domain.errors import CueRatingsError, StoreIOError
from domain.ratings.elo.config import (
    DEFAULT_CONFIG_DIR,
    EloSystemConfig,
    default_elo_system_config,
    load_elo_system_configs,
)
from repositories.ledger import ensure_ledger_schema


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def open_store(db_url: str):
    engine = create_db_engine(db_url)
    ensure_ledger_schema(engine)
    return create_session_factory(engine)


def resolve_config(config_dir: Path | None, config_name: str | None) -> EloSystemConfig:
    """Pick one config from the directory, or the built-in defaults when it has none."""
    target_dir = config_dir or DEFAULT_CONFIG_DIR
    if config_dir is None and not target_dir.exists():
        return default_elo_system_config()

    configs = load_elo_system_configs(target_dir)
    if config_name is None:
        return configs[0]
    for config in configs:
        if config.file_path.name == config_name or config.name == config_name:
            return config
    raise typer.BadParameter(
        f"No config named '{config_name}' found in {target_dir}",
        param_hint="--config-name",
    )


def _jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    return str(value)


def echo_json(payload: Any) -> None:
    if is_dataclass(payload) and not isinstance(payload, type):
        payload = asdict(payload)
    elif isinstance(payload, list):
        payload = [asdict(item) if is_dataclass(item) else item for item in payload]
    typer.echo(json.dumps(payload, indent=2, default=_jsonable))


def fail(exc: CueRatingsError) -> typer.Exit:
    """Report a typed failure and return the exit to raise."""
    label = "store error" if isinstance(exc, StoreIOError) else type(exc).__name__
    typer.echo(f"{label}: {exc}", err=True)
    return typer.Exit(code=1)
