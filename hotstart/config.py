"""
Solver configuration.

SolverConfig collects the knobs that PulpSolver and the fixer read. It can be
built in code or loaded from a JSON file:

    {
      "msg": false,
      "time_limit": 30,
      "threads": null,
      "incremental": true,
      "zero_tolerance": 1e-7
    }

Missing keys fall back to the defaults below. Unknown keys are rejected so
that typos do not silently change behaviour.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Any, Dict, Optional


# Values with absolute value at or below this are treated as zero
DEFAULT_ZERO_TOLERANCE = 1e-7


@dataclass
class SolverConfig:
    """
    Configuration for PulpSolver.

    Attributes:
        msg: Let CBC print its log to stdout
        time_limit: Optional wall-clock limit in seconds passed to CBC
        threads: Optional number of CBC threads
        incremental: Advertise incremental modification (patch the synced
                     problem instead of re-submitting it)
        zero_tolerance: Threshold used to decide whether a value is nonzero
    """
    msg: bool = False
    time_limit: Optional[float] = None
    threads: Optional[int] = None
    incremental: bool = True
    zero_tolerance: float = DEFAULT_ZERO_TOLERANCE

    def __post_init__(self):
        if self.zero_tolerance < 0:
            raise ValueError(
                f"zero_tolerance must be non-negative, got {self.zero_tolerance}"
            )
        if self.time_limit is not None and self.time_limit <= 0:
            raise ValueError(f"time_limit must be positive, got {self.time_limit}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def solver_config_from_dict(data: Dict[str, Any]) -> SolverConfig:
    """
    Build a SolverConfig from a plain dict.

    Raises:
        ValueError: If the dict contains keys SolverConfig does not know
    """
    known = {f.name for f in fields(SolverConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown solver config keys: {unknown}")
    return SolverConfig(**data)


def load_solver_config(path: Optional[Path]) -> SolverConfig:
    """
    Load a SolverConfig from a JSON file.

    Args:
        path: Path to the JSON file, or None

    Returns:
        SolverConfig with values from the file; defaults when path is None
        or the file does not exist

    Raises:
        ValueError: If the file is not a JSON object or has unknown keys
    """
    if path is None or not path.exists():
        return SolverConfig()

    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Solver config in {path} must be a JSON object")

    return solver_config_from_dict(data)
