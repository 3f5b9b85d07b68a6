"""Elo rating modules."""

from domain.ratings.elo.calculator import (
    EloParameters,
    LedgerEloCalculator,
    MatchEloEvent,
    calculate_expected_score,
    iterative_margin_update,
    margin_weight,
    weighted_update,
)
from domain.ratings.elo.config import (
    EloSystemConfig,
    LedgerPolicy,
    default_elo_system_config,
    load_elo_system_config,
    load_elo_system_configs,
)

__all__ = [
    "EloParameters",
    "EloSystemConfig",
    "LedgerEloCalculator",
    "LedgerPolicy",
    "MatchEloEvent",
    "calculate_expected_score",
    "default_elo_system_config",
    "iterative_margin_update",
    "load_elo_system_config",
    "load_elo_system_configs",
    "margin_weight",
    "weighted_update",
]
