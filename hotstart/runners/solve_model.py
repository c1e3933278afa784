"""
Solve a JSON model, optionally edit and re-solve it, and report duals of
the fixed model.

Usage:
    # Cold solve only
    python -m hotstart.runners.solve_model models/demo.json

    # Solve, apply an edit script, re-solve incrementally
    python -m hotstart.runners.solve_model models/demo.json --edits edits/demo.json

    # Also derive the fixed LP of the final MILP solution and solve it
    python -m hotstart.runners.solve_model models/sos.json --fixed \
        --config config/solver.json --output reports/sos.json

Output:
    - Logs each solve (mode, warm start, objective)
    - Writes a JSON report when --output is given
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from hotstart.config import SolverConfig, load_solver_config
from hotstart.core.model_io import (
    apply_edit,
    load_edits,
    load_model,
    save_model,
    solution_to_dict,
)
from hotstart.fixing.sos_fixer import derive_fixed_model
from hotstart.resolve.controller import ReSolveController
from hotstart.solver.pulp_backend import PulpSolver


# Logger for this module
logger = logging.getLogger(__name__)


def run_model(
    model_path: Path,
    edits_path: Optional[Path] = None,
    fixed: bool = False,
    config: Optional[SolverConfig] = None,
    save_model_path: Optional[Path] = None,
) -> Dict[str, Any]:
    """
    Run the solve / edit / re-solve / fix pipeline on one model file.

    Args:
        model_path: JSON model description
        edits_path: Optional JSON edit script, applied after the first solve
        fixed: Derive and solve the fixed LP of the last solution
        config: Solver configuration (defaults when None)
        save_model_path: Optional path to write the edited model to

    Returns:
        Report dict with one entry per solve and, if requested, the fixed
        model's solution (values, duals, reduced costs)

    Raises:
        SolveError: If any solve fails
        ModelError, ValueError: If the model or an edit is invalid
    """
    config = config or SolverConfig()
    solver = PulpSolver(config)

    logger.info("Loading model from %s", model_path)
    model = load_model(model_path)
    logger.info("Model %s: %s", model.name, model.summary())

    controller = ReSolveController(model, solver)
    solutions = [controller.solve()]

    if edits_path is not None:
        edits = load_edits(edits_path)
        logger.info("Applying %d edit(s) from %s", len(edits), edits_path)
        for edit in edits:
            apply_edit(model, edit)
        solutions.append(controller.solve())

    if save_model_path is not None:
        save_model(model, save_model_path)
        logger.info("Saved model to %s", save_model_path)

    report: Dict[str, Any] = {
        "model": model.name,
        "solves": [
            dict(
                mode=record.mode,
                warm_start=record.warm_start,
                revision=record.revision,
                solution=solution_to_dict(solution),
            )
            for record, solution in zip(controller.history, solutions)
        ],
    }

    if fixed:
        fixed_model = derive_fixed_model(model, solver=solver, tolerance=config.zero_tolerance)
        fixed_solution = fixed_model.solve()
        report["fixed"] = {
            "name": fixed_model.name,
            "fixed_variables": list(fixed_model.fixed),
            "freed": {k: list(v) for k, v in fixed_model.freed.items()},
            "solution": solution_to_dict(fixed_solution),
        }
        logger.info(
            "Fixed model %s: objective=%s, %d dual(s)",
            fixed_model.name, fixed_solution.objective_value, len(fixed_solution.duals),
        )

    return report


def main():
    """CLI entrypoint for solving a model file."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Solve a JSON model, re-solve after edits, and report fixed-model duals."
    )
    parser.add_argument(
        "model",
        type=Path,
        help="Path to the JSON model description.",
    )
    parser.add_argument(
        "--edits",
        type=Path,
        default=None,
        help="Optional JSON edit script applied after the first solve.",
    )
    parser.add_argument(
        "--fixed",
        action="store_true",
        help="If set, derive the fixed LP of the final solution and solve it for duals.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional solver configuration JSON.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Optional path of the JSON report.",
    )
    parser.add_argument(
        "--save-model",
        type=Path,
        default=None,
        help="Optional path to write the edited model to.",
    )

    args = parser.parse_args()

    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format="%(levelname)s: %(message)s"
    )

    report = run_model(
        model_path=args.model,
        edits_path=args.edits,
        fixed=args.fixed,
        config=load_solver_config(args.config),
        save_model_path=args.save_model,
    )

    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        with args.output.open("w", encoding="utf-8") as f:
            json.dump(report, f, indent=2)
        logger.info("Wrote report to %s", args.output)


if __name__ == "__main__":
    main()
