"""
Solver boundary: capabilities, solution record and the Solver protocol.

The re-solve controller only talks to a solver through this protocol. A
solver translates a Model into its own problem object (full re-submission),
optionally patches that object with journaled changes (incremental
modification) and runs it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol, Sequence


if TYPE_CHECKING:
    from hotstart.model.changes import ModelChange
    from hotstart.model.store import Model


@dataclass(frozen=True)
class SolverCapabilities:
    """
    What a solver can do beyond a cold solve.

    Attributes:
        supports_incremental_modification: Can patch a previously synced
            problem instead of rebuilding it
        supports_warm_start: Can start from a previous solution
    """
    supports_incremental_modification: bool = False
    supports_warm_start: bool = False


@dataclass
class Solution:
    """
    Result of a successful solve.

    Attributes:
        status: Raw status string from the solver (e.g. "Optimal")
        objective_value: Objective value at the solution
        values: Variable name -> value
        duals: Constraint name -> dual value (shadow price), when available
        reduced_costs: Variable name -> reduced cost, when available
    """
    status: str
    objective_value: Optional[float] = None
    values: Dict[str, float] = field(default_factory=dict)
    duals: Dict[str, float] = field(default_factory=dict)
    reduced_costs: Dict[str, float] = field(default_factory=dict)

    def value(self, name: str) -> float:
        return self.values[name]

    def dual(self, name: str) -> Optional[float]:
        return self.duals.get(name)

    def copy(self) -> "Solution":
        return Solution(
            status=self.status,
            objective_value=self.objective_value,
            values=dict(self.values),
            duals=dict(self.duals),
            reduced_costs=dict(self.reduced_costs),
        )


class Solver(Protocol):
    """Protocol implemented by solver backends (see PulpSolver)."""

    def capabilities(self) -> SolverCapabilities:
        ...

    def supports_incremental_modification(self, model: "Model", problem: Any) -> bool:
        """True when problem can be brought up to date with model's pending changes."""
        ...

    def translate(self, model: "Model") -> Any:
        """Build a fresh solver-side problem from the current model state."""
        ...

    def apply_changes(self, problem: Any, changes: Sequence["ModelChange"]) -> None:
        """Replay journaled changes on a previously translated problem."""
        ...

    def run(self, problem: Any, model: "Model", warm_start: bool = False) -> Solution:
        """Solve a translated problem. Raises SolveError on failure."""
        ...

    def solve(self, model: "Model") -> Solution:
        """Cold solve: translate and run."""
        ...
