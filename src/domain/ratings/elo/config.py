"""Load Elo system definitions from TOML files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from domain.config_base import BaseSystemConfig, load_system_config, load_system_configs
from domain.ratings.elo.calculator import EloParameters

ROOT_DIR = Path(__file__).resolve().parents[4]
DEFAULT_CONFIG_DIR = ROOT_DIR / "configs" / "ratings" / "elo"


@dataclass(frozen=True)
class LedgerPolicy:
    """Which matches feed the rebuild and how much analytics returns."""

    include_ignored_in_rebuild: bool = False
    rebuild_on_ignore: bool = True
    recent_match_limit: int = 10


@dataclass(frozen=True)
class EloSystemConfig(BaseSystemConfig):
    """Configuration for rating rebuilds and incremental updates."""

    parameters: EloParameters
    ledger: LedgerPolicy = LedgerPolicy()

    def as_config_json(self) -> dict[str, Any]:
        return {
            "initial_elo": self.parameters.initial_elo,
            "scale_factor": self.parameters.scale_factor,
            "one_v_one_k_factor": self.parameters.one_v_one_k_factor,
            "race_k_factor": self.parameters.race_k_factor,
            "incremental_k_factor": self.parameters.incremental_k_factor,
            "margin_weight_step": self.parameters.margin_weight_step,
            "max_margin_weight": self.parameters.max_margin_weight,
            "include_ignored_in_rebuild": self.ledger.include_ignored_in_rebuild,
            "rebuild_on_ignore": self.ledger.rebuild_on_ignore,
            "recent_match_limit": self.ledger.recent_match_limit,
        }


def default_elo_system_config() -> EloSystemConfig:
    """Built-in defaults, used when no config file is given."""
    return EloSystemConfig(
        name="default",
        description="Built-in defaults",
        file_path=DEFAULT_CONFIG_DIR / "default.toml",
        parameters=EloParameters(),
    )


def load_elo_system_configs(config_dir: Path) -> list[EloSystemConfig]:
    """Load and validate all Elo system TOML config files in a directory."""
    return load_system_configs(
        config_dir,
        _parse_elo_system_config,
        duplicate_name_label="elo",
    )


def load_elo_system_config(file_path: Path) -> EloSystemConfig:
    """Load and validate a single Elo system TOML file."""
    return load_system_config(file_path, _parse_elo_system_config)


def _parse_elo_system_config(raw: dict[str, Any], file_path: Path) -> EloSystemConfig:
    system_raw = raw.get("system", {})
    elo_raw = raw.get("elo", {})
    ledger_raw = raw.get("ledger", {})

    name = str(system_raw.get("name", "")).strip()
    if not name:
        raise ValueError(f"{file_path}: [system].name is required")

    description_value = system_raw.get("description")
    description = None if description_value is None else str(description_value)

    parameters = EloParameters(
        initial_elo=float(elo_raw.get("initial_elo", 1200.0)),
        scale_factor=float(elo_raw.get("scale_factor", 400.0)),
        one_v_one_k_factor=float(elo_raw.get("one_v_one_k_factor", 16.0)),
        race_k_factor=float(elo_raw.get("race_k_factor", 32.0)),
        incremental_k_factor=float(elo_raw.get("incremental_k_factor", 32.0)),
        margin_weight_step=float(elo_raw.get("margin_weight_step", 10.0)),
        max_margin_weight=float(elo_raw.get("max_margin_weight", 2.0)),
    )
    _validate_parameters(file_path=file_path, parameters=parameters)

    ledger = LedgerPolicy(
        include_ignored_in_rebuild=bool(ledger_raw.get("include_ignored_in_rebuild", False)),
        rebuild_on_ignore=bool(ledger_raw.get("rebuild_on_ignore", True)),
        recent_match_limit=int(ledger_raw.get("recent_match_limit", 10)),
    )
    if ledger.recent_match_limit < 0:
        raise ValueError(f"{file_path}: [ledger].recent_match_limit must be >= 0")

    return EloSystemConfig(
        name=name,
        description=description,
        file_path=file_path,
        parameters=parameters,
        ledger=ledger,
    )


def _validate_parameters(*, file_path: Path, parameters: EloParameters) -> None:
    if parameters.initial_elo <= 0.0:
        raise ValueError(f"{file_path}: [elo].initial_elo must be > 0")
    if parameters.scale_factor <= 0.0:
        raise ValueError(f"{file_path}: [elo].scale_factor must be > 0")
    if parameters.one_v_one_k_factor <= 0.0:
        raise ValueError(f"{file_path}: [elo].one_v_one_k_factor must be > 0")
    if parameters.race_k_factor <= 0.0:
        raise ValueError(f"{file_path}: [elo].race_k_factor must be > 0")
    if parameters.incremental_k_factor <= 0.0:
        raise ValueError(f"{file_path}: [elo].incremental_k_factor must be > 0")
    if parameters.margin_weight_step <= 0.0:
        raise ValueError(f"{file_path}: [elo].margin_weight_step must be > 0")
    if parameters.max_margin_weight < 1.0:
        raise ValueError(f"{file_path}: [elo].max_margin_weight must be >= 1")
