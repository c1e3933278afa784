"""
JSON IO for models, edit scripts and solutions.

Used by the command-line runner. The core model never serializes itself;
these helpers only translate between JSON documents and Model calls.

Model file:
{
  "name": "demo",
  "objective": {"sense": "max", "terms": {"x": 5, "y": 1}},
  "variables": [
    {"name": "x", "lb": 0, "ub": null, "kind": "continuous"},
    ...
  ],
  "constraints": [
    {"name": "con", "sense": "<=", "rhs": 1, "terms": {"x": 1, "y": 1}},
    ...
  ],
  "sos": [
    {"name": "s", "type": 2, "members": ["a", "b", "c"], "weights": [1, 2, 3]}
  ]
}

Edit script (applied in order):
[
  {"op": "set_bounds", "var": "x", "lb": 0, "ub": 2},
  {"op": "remove_variable", "var": "y"},
  {"op": "add_variable", "name": "z", "obj_coef": 10,
   "constraints": ["con"], "coefficients": [1]},
  {"op": "set_objective", "sense": "max", "terms": {"x": 1}},
  {"op": "add_constraint", "name": "cap", "sense": "<=", "rhs": 3, "terms": {"x": 1}},
  {"op": "set_rhs", "constraint": "con", "rhs": 2}
]
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from hotstart.model.store import Model
from hotstart.model.types import ConstraintSense, ObjectiveSense, VarKind
from hotstart.solver.base import Solution


def model_from_dict(data: Dict[str, Any]) -> Model:
    """
    Build a Model from its JSON description.

    Raises:
        ValueError: If a required key is missing or a value is malformed
    """
    try:
        objective = data.get("objective", {})
        model = Model(
            name=data.get("name", "model"),
            sense=ObjectiveSense(objective.get("sense", "min")),
        )

        for v in data.get("variables", []):
            model.add_variable(
                lb=v.get("lb", 0.0),
                ub=v.get("ub"),
                kind=VarKind(v.get("kind", "continuous")),
                name=v["name"],
            )

        for c in data.get("constraints", []):
            model.add_constraint(
                sense=ConstraintSense(c["sense"]),
                terms=c.get("terms", {}),
                rhs=c["rhs"],
                name=c.get("name"),
            )

        model.set_objective(model.objective.sense, objective.get("terms", {}))

        for s in data.get("sos", []):
            model.add_sos(
                sos_type=int(s["type"]),
                variables=s["members"],
                weights=s.get("weights"),
                name=s.get("name"),
            )
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Malformed model description: {e!r}") from e

    return model


def model_to_dict(model: Model) -> Dict[str, Any]:
    """JSON-ready description of model; model_from_dict reverses it."""
    return {
        "name": model.name,
        "objective": {
            "sense": model.objective.sense.value,
            "terms": {v.name: c for v, c in model.objective.terms},
        },
        "variables": [
            {"name": v.name, "lb": v.lb, "ub": v.ub, "kind": v.kind.value}
            for v in model.variables
        ],
        "constraints": [
            {
                "name": c.name,
                "sense": c.sense.value,
                "rhs": c.rhs,
                "terms": {v.name: coef for v, coef in c.terms},
            }
            for c in model.constraints
        ],
        "sos": [
            {
                "name": g.name,
                "type": g.sos_type,
                "members": [v.name for v in g.members],
                "weights": list(g.weights),
            }
            for g in model.sos_groups
        ],
    }


def apply_edit(model: Model, edit: Dict[str, Any]) -> None:
    """
    Apply one edit-script entry to model.

    Raises:
        ValueError: For an unknown op or a malformed entry
        ModelError: Whatever the underlying Model operation raises
    """
    op = edit.get("op")
    try:
        if op == "set_bounds":
            model.set_bounds(edit["var"], edit.get("lb"), edit.get("ub"))
        elif op == "remove_variable":
            model.remove_variable(edit["var"])
        elif op == "add_variable":
            model.add_variable(
                lb=edit.get("lb", 0.0),
                ub=edit.get("ub"),
                kind=VarKind(edit.get("kind", "continuous")),
                obj_coef=edit.get("obj_coef", 0.0),
                constraints=edit.get("constraints", []),
                coefficients=edit.get("coefficients", []),
                name=edit.get("name"),
            )
        elif op == "set_objective":
            model.set_objective(ObjectiveSense(edit["sense"]), edit.get("terms", {}))
        elif op == "add_constraint":
            model.add_constraint(
                sense=ConstraintSense(edit["sense"]),
                terms=edit.get("terms", {}),
                rhs=edit["rhs"],
                name=edit.get("name"),
            )
        elif op == "set_rhs":
            model.set_constraint_rhs(edit["constraint"], edit["rhs"])
        else:
            raise ValueError(f"Unknown edit op: {op!r}")
    except KeyError as e:
        raise ValueError(f"Edit {op!r} is missing key {e}") from e


def load_model(path: Path) -> Model:
    with path.open("r", encoding="utf-8") as f:
        return model_from_dict(json.load(f))


def save_model(model: Model, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(model_to_dict(model), f, indent=2)


def load_edits(path: Path) -> List[Dict[str, Any]]:
    """
    Load an edit script.

    Raises:
        ValueError: If the file does not hold a JSON list
    """
    with path.open("r", encoding="utf-8") as f:
        edits = json.load(f)
    if not isinstance(edits, list):
        raise ValueError(f"Edit script {path} must be a JSON list")
    return edits


def solution_to_dict(solution: Solution) -> Dict[str, Any]:
    return {
        "status": solution.status,
        "objective_value": solution.objective_value,
        "values": dict(solution.values),
        "duals": dict(solution.duals),
        "reduced_costs": dict(solution.reduced_costs),
    }
