"""
Strategies for bringing the solver-side problem up to date.

Two concrete strategies, selected by querying solver capabilities:

  - FullResubmission: translate the whole model again. Its result does not
    depend on solve history, so it is always a correct fallback.
  - IncrementalPatch: replay the model's pending changes on the problem
    synced at the previous solve.

Both return a problem equivalent to a cold translation of the current model.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from hotstart.model.store import Model
from hotstart.solver.base import Solver


logger = logging.getLogger(__name__)


class FullResubmission:
    """Rebuild the problem from scratch."""

    mode = "resubmit"

    def prepare(self, solver: Solver, model: Model, previous: Optional[Any]) -> Any:
        problem = solver.translate(model)
        logger.debug("%s: full re-submission at revision %d", model.name, model.revision)
        return problem


class IncrementalPatch:
    """Patch the previously synced problem with the pending changes."""

    mode = "incremental"

    def prepare(self, solver: Solver, model: Model, previous: Optional[Any]) -> Any:
        if previous is None:
            raise ValueError("Incremental patch needs a previously synced problem")
        if getattr(previous, "revision", None) != model.journal_base:
            raise ValueError(
                f"Synced problem is at revision {getattr(previous, 'revision', None)} "
                f"but the change journal starts at revision {model.journal_base}"
            )
        changes = model.pending_changes()
        solver.apply_changes(previous, changes)
        previous.revision = model.revision
        logger.debug(
            "%s: patched %d change(s) up to revision %d",
            model.name, len(changes), model.revision,
        )
        return previous


def select_strategy(solver: Solver, model: Model, previous: Optional[Any]):
    """
    Pick the strategy for the next solve.

    Incremental patching is used only when the synced problem is at the
    revision where the pending change journal starts, and the solver
    advertises it and reports that it can apply every pending change.
    Everything else falls back to a full re-submission.

    Args:
        solver: Solver collaborator
        model: Model about to be solved
        previous: Problem synced at the last successful solve, or None

    Returns:
        FullResubmission or IncrementalPatch instance
    """
    if (
        previous is not None
        and getattr(previous, "revision", None) == model.journal_base
        and solver.capabilities().supports_incremental_modification
        and solver.supports_incremental_modification(model, previous)
    ):
        return IncrementalPatch()
    return FullResubmission()
