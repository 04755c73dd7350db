"""Process-wide solver defaults."""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass


@dataclass
class SolverConfig:
    """Defaults used when a caller does not pass an explicit value."""

    step: float = 1e-4
    default_guess: float = 1.0
    default_min: float = -math.inf
    default_max: float = math.inf
    default_margin: float = 1e-4
    default_limit: int = 100


_SOLVER_CONFIG = SolverConfig()


def get_solver_config() -> SolverConfig:
    return copy.deepcopy(_SOLVER_CONFIG)


def set_solver_config(config: SolverConfig) -> None:
    global _SOLVER_CONFIG
    _SOLVER_CONFIG = copy.deepcopy(config)
