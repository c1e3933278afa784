"""
Re-solve controller.

Owns the solve lifecycle of one Model:

    UNSOLVED --solve()--> SOLVED          cold solve, full translation
    SOLVED   --mutate --> DIRTY           any Model mutation
    DIRTY    --solve()--> SOLVED          incremental patch or full re-submission

The state is derived from the model itself (recorded solution and dirty
flag), so edits made directly on the Model are always seen.

Hot start (passing the previous solution to the solver) is used only when
the solver supports warm start and the model is a pure LP. Integer
re-solves after a mutation do not reuse earlier search state. PulpSolver
runs CBC from the command line and reports no warm-start support, so its
re-solves always start from scratch.

Mutation and solve calls on one model are expected to be serialized by the
caller; there is no internal locking.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from hotstart.model.store import Model
from hotstart.resolve.strategies import FullResubmission, select_strategy
from hotstart.solver.base import Solution, Solver


logger = logging.getLogger(__name__)


class SolveState(str, Enum):
    UNSOLVED = "unsolved"
    SOLVED = "solved"
    DIRTY = "dirty"


@dataclass
class SolveRecord:
    """
    One completed solve.

    Attributes:
        mode: "cold", "resubmit" or "incremental"
        warm_start: Whether the previous solution was passed to the solver
        status: Solver status string
        revision: Model revision that was solved
        objective_value: Objective value of the solution
    """
    mode: str
    warm_start: bool
    status: str
    revision: int
    objective_value: Optional[float] = None


class ReSolveController:
    """
    Decides how each solve of a model is issued and records the outcome.

    Example:
        >>> controller = ReSolveController(model, PulpSolver())
        >>> controller.solve()                      # cold
        >>> model.set_bounds("x", 0, 2)
        >>> controller.state
        <SolveState.DIRTY: 'dirty'>
        >>> controller.solve()                      # incremental patch
        >>> controller.history[-1].mode
        'incremental'
    """

    def __init__(self, model: Model, solver: Optional[Solver] = None):
        if solver is None:
            from hotstart.solver.pulp_backend import PulpSolver
            solver = PulpSolver()
        self.model = model
        self.solver = solver
        self.history: List[SolveRecord] = []
        self._problem: Optional[Any] = None

    @property
    def state(self) -> SolveState:
        if self.model.solution is None:
            return SolveState.UNSOLVED
        if self.model.dirty:
            return SolveState.DIRTY
        return SolveState.SOLVED

    @property
    def synced_problem(self) -> Optional[Any]:
        """Solver-side problem from the last successful solve, if any."""
        return self._problem

    def hot_start_applies(self) -> bool:
        """True when the next solve will pass the previous solution to the solver."""
        return (
            self.model.solution is not None
            and self.solver.capabilities().supports_warm_start
            and self.model.is_continuous()
        )

    def solve(self) -> Solution:
        """
        Solve the model and record the solution on it.

        Returns:
            The Solution (also stored on the model)

        Raises:
            SolveError: If the solver fails. The model keeps its state and
                        the next solve re-submits the full problem.
        """
        state = self.state
        if state == SolveState.UNSOLVED:
            strategy = FullResubmission()
            mode = "cold"
        else:
            strategy = select_strategy(self.solver, self.model, self._problem)
            mode = strategy.mode

        warm_start = self.hot_start_applies()
        revision = self.model.revision
        logger.debug(
            "Solving %s from state %s (mode=%s, warm_start=%s)",
            self.model.name, state.value, mode, warm_start,
        )

        try:
            problem = strategy.prepare(self.solver, self.model, self._problem)
            solution = self.solver.run(problem, self.model, warm_start=warm_start)
        except Exception as e:
            # A half-patched problem must not be reused
            self._problem = None
            logger.warning("Solve of %s failed: %s", self.model.name, e)
            raise

        self._problem = problem
        self.model.record_solution(solution)
        self.history.append(SolveRecord(
            mode=mode,
            warm_start=warm_start,
            status=solution.status,
            revision=revision,
            objective_value=solution.objective_value,
        ))
        logger.info(
            "Solved %s: %s, objective=%s (mode=%s, warm_start=%s)",
            self.model.name, solution.status, solution.objective_value, mode, warm_start,
        )
        return solution
