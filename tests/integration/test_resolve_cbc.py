"""
Integration tests: model edits and re-solves against CBC (via PuLP).

These tests validate the full path from Model mutation to solver result:
  - Bound changes and tombstones reach the solver at the next solve
  - Column injection into an existing constraint (z enters at 1)
  - RHS edits on an LP re-solved incrementally (CBC starts from scratch)
  - A problem left stale by another controller is re-submitted in full
  - Incrementally patched problems match a cold translation exactly
  - Integer re-solves after a mutation, and solver failures
"""

import pytest

from hotstart.config import SolverConfig
from hotstart.errors import SolveError, UnsupportedMutation
from hotstart.model.store import Model
from hotstart.model.types import ConstraintSense, ObjectiveSense, VarKind
from hotstart.resolve.controller import ReSolveController, SolveState
from hotstart.solver.pulp_backend import PulpSolver


APPROX = dict(abs=1e-6)


def build_column_model() -> Model:
    """
    max 5x + y
    s.t. con: x + y <= 1
         x, y >= 0
    """
    m = Model(name="column generation")
    x = m.add_variable(lb=0, name="x")
    y = m.add_variable(lb=0, name="y")
    m.add_constraint(ConstraintSense.LE, [(x, 1.0), (y, 1.0)], 1.0, name="con")
    m.set_objective(ObjectiveSense.MAXIMIZE, [(x, 5.0), (y, 1.0)])
    return m


def test_cold_solve():
    print("\n" + "=" * 70)
    print("TEST: cold solve of max 5x + y, x + y <= 1")
    print("=" * 70)

    model = build_column_model()
    controller = ReSolveController(model, PulpSolver())

    solution = controller.solve()

    print(f"  Status: {solution.status}, objective: {solution.objective_value}")
    assert solution.status == "Optimal"
    assert solution.objective_value == pytest.approx(5.0, **APPROX)
    assert model.value("x") == pytest.approx(1.0, **APPROX)
    assert controller.state == SolveState.SOLVED

    print("  ✓ test_cold_solve: PASSED")


def test_new_bounds_reach_the_solver():
    model = build_column_model()
    controller = ReSolveController(model, PulpSolver())
    controller.solve()

    model.set_bounds("x", 0, 0.25)
    solution = controller.solve()

    assert controller.history[-1].mode == "incremental"
    assert solution.value("x") == pytest.approx(0.25, **APPROX)
    assert solution.value("y") == pytest.approx(0.75, **APPROX)
    assert solution.objective_value == pytest.approx(2.0, **APPROX)

    # Loosening again must not leave the old bound behind
    model.set_bounds("x", 0, None)
    solution = controller.solve()
    assert solution.value("x") == pytest.approx(1.0, **APPROX)


def test_removed_variable_is_zero_but_present():
    model = build_column_model()
    controller = ReSolveController(model, PulpSolver())
    controller.solve()

    model.remove_variable("x")
    solution = controller.solve()

    assert solution.value("x") == pytest.approx(0.0, **APPROX)
    assert solution.value("y") == pytest.approx(1.0, **APPROX)
    assert solution.objective_value == pytest.approx(1.0, **APPROX)
    assert model.constraint("con").coefficient(model.variable("x")) == 1.0
    assert model.objective.coefficient(model.variable("x")) == 5.0
    assert "x" in controller.synced_problem.variables


def test_column_injection_enters_at_one():
    print("\n" + "=" * 70)
    print("TEST: add z (obj 10) into con, re-solve")
    print("=" * 70)

    model = build_column_model()
    controller = ReSolveController(model, PulpSolver())
    controller.solve()

    model.add_variable(lb=0, obj_coef=10.0, constraints=["con"], coefficients=[1.0], name="z")

    assert [(v.name, c) for v, c in model.objective.terms] == [("x", 5.0), ("y", 1.0), ("z", 10.0)]
    assert [(v.name, c) for v, c in model.constraint("con").terms] == [("x", 1.0), ("y", 1.0), ("z", 1.0)]

    solution = controller.solve()

    print(f"  Values: {solution.values}")
    assert controller.history[-1].mode == "incremental"
    assert solution.value("z") == pytest.approx(1.0, **APPROX)
    assert solution.value("x") == pytest.approx(0.0, **APPROX)
    assert solution.objective_value == pytest.approx(10.0, **APPROX)

    print("  ✓ test_column_injection_enters_at_one: PASSED")


def test_rhs_change_on_lp_resolves_from_scratch():
    model = build_column_model()
    eq = model.add_constraint(ConstraintSense.EQ, [("y", 1.0)], 0.0, name="no_y")
    solver = PulpSolver()
    controller = ReSolveController(model, solver)
    controller.solve()

    with pytest.raises(UnsupportedMutation):
        model.set_constraint_rhs(eq, 0.5)
    assert controller.state == SolveState.SOLVED

    model.set_constraint_rhs("con", 2.0)
    assert controller.hot_start_applies() is False
    solution = controller.solve()

    record = controller.history[-1]
    assert record.mode == "incremental"
    assert record.warm_start is False
    assert solution.value("x") == pytest.approx(2.0, **APPROX)
    assert solution.objective_value == pytest.approx(10.0, **APPROX)
    assert abs(solution.dual("con")) == pytest.approx(5.0, **APPROX)

    cold = PulpSolver().solve(model.copy())
    assert solution.values == pytest.approx(cold.values, **APPROX)


def test_warm_start_request_is_rejected():
    model = build_column_model()
    solver = PulpSolver()
    problem = solver.translate(model)

    with pytest.raises(ValueError):
        solver.run(problem, model, warm_start=True)
    assert model.solution is None


def test_stale_problem_of_other_controller_is_resubmitted():
    print("\n" + "=" * 70)
    print("TEST: second controller clears the journal, first re-syncs in full")
    print("=" * 70)

    model = build_column_model()
    first = ReSolveController(model, PulpSolver())
    second = ReSolveController(model, PulpSolver())

    first.solve()
    model.set_bounds("x", 0, 2)
    second.solve()
    model.set_constraint_rhs("con", 9.0)

    solution = first.solve()

    print(f"  Values: {solution.values}")
    assert first.history[-1].mode == "resubmit"
    assert model.variable("x").ub == 2.0
    assert solution.value("x") == pytest.approx(2.0, **APPROX)
    assert solution.value("y") == pytest.approx(7.0, **APPROX)
    assert solution.objective_value == pytest.approx(17.0, **APPROX)

    print("  ✓ test_stale_problem_of_other_controller_is_resubmitted: PASSED")


def test_incremental_patch_matches_cold_translation():
    print("\n" + "=" * 70)
    print("TEST: patched problem signature == cold translation signature")
    print("=" * 70)

    model = build_column_model()
    solver = PulpSolver()
    controller = ReSolveController(model, solver)
    controller.solve()

    model.add_variable(lb=0, ub=3, obj_coef=2.0, constraints=["con"], coefficients=[0.5], name="z")
    model.add_constraint(ConstraintSense.GE, {"x": 1.0, "z": 1.0}, 0.5, name="floor")
    model.set_bounds("y", 0, 0.1)
    model.set_objective(ObjectiveSense.MAXIMIZE, {"x": 1.0, "y": 4.0, "z": 3.0})
    model.add_variable(lb=0, ub=1, obj_coef=1.0, constraints=["con", "floor"], coefficients=[1.0, 1.0], name="w")
    model.set_constraint_rhs("floor", 0.25)
    model.remove_variable("x")

    patched = controller.solve()
    assert controller.history[-1].mode == "incremental"

    cold_problem = PulpSolver().translate(model)
    assert controller.synced_problem.signature() == cold_problem.signature()

    cold = PulpSolver().solve(model.copy())
    assert patched.objective_value == pytest.approx(cold.objective_value, **APPROX)

    print("  ✓ test_incremental_patch_matches_cold_translation: PASSED")


def test_resubmission_matches_incremental():
    incremental_model = build_column_model()
    resubmit_model = build_column_model()
    incremental = ReSolveController(incremental_model, PulpSolver(SolverConfig(incremental=True)))
    resubmit = ReSolveController(resubmit_model, PulpSolver(SolverConfig(incremental=False)))

    for model, controller in ((incremental_model, incremental), (resubmit_model, resubmit)):
        controller.solve()
        model.add_variable(obj_coef=10.0, constraints=["con"], coefficients=[1.0], name="z")
        model.set_constraint_rhs("con", 3.0)
        model.set_bounds("z", 0, 2)
        controller.solve()

    assert incremental.history[-1].mode == "incremental"
    assert resubmit.history[-1].mode == "resubmit"
    assert incremental.synced_problem.signature() == resubmit.synced_problem.signature()
    assert incremental_model.solution.values == pytest.approx(resubmit_model.solution.values, **APPROX)


def test_integer_resolve_without_hot_start():
    """
    max 3n + x
    s.t. 2n + x <= 5, n integer in [0, 10], x in [0, 0.5]
    """
    model = Model(name="milp")
    n = model.add_variable(lb=0, ub=10, kind=VarKind.INTEGER, name="n")
    x = model.add_variable(lb=0, ub=0.5, name="x")
    model.add_constraint(ConstraintSense.LE, [(n, 2.0), (x, 1.0)], 5.0, name="budget")
    model.set_objective(ObjectiveSense.MAXIMIZE, [(n, 3.0), (x, 1.0)])
    controller = ReSolveController(model, PulpSolver())

    solution = controller.solve()
    assert solution.value("n") == pytest.approx(2.0, **APPROX)
    assert solution.objective_value == pytest.approx(6.5, **APPROX)

    model.set_bounds(n, 0, 1)
    solution = controller.solve()

    assert controller.history[-1].warm_start is False
    assert solution.value("n") == pytest.approx(1.0, **APPROX)
    assert solution.objective_value == pytest.approx(3.5, **APPROX)


def test_infeasible_edit_raises_and_recovers():
    model = build_column_model()
    controller = ReSolveController(model, PulpSolver())
    controller.solve()

    too_much = model.add_constraint(ConstraintSense.GE, {"x": 1.0, "y": 1.0}, 3.0, name="too_much")
    try:
        controller.solve()
        raise AssertionError("Expected SolveError, but solver succeeded!")
    except SolveError as e:
        print(f"  ✓ Caught expected error: {e}")
        assert e.status == "Infeasible"

    assert controller.state == SolveState.DIRTY
    assert controller.synced_problem is None

    model.set_constraint_rhs(too_much, 0.5)
    solution = controller.solve()
    assert controller.history[-1].mode == "resubmit"
    assert solution.objective_value == pytest.approx(5.0, **APPROX)


if __name__ == "__main__":
    print("\n" + "=" * 70)
    print("CBC RE-SOLVE INTEGRATION SUITE")
    print("=" * 70)

    test_cold_solve()
    test_column_injection_enters_at_one()
    test_incremental_patch_matches_cold_translation()
    test_stale_problem_of_other_controller_is_resubmitted()

    print("\n" + "=" * 70)
    print("✓ ALL TESTS PASSED")
    print("=" * 70)
