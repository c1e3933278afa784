"""
Unit tests for ConstraintRegistry.
"""

import pytest

from hotstart.errors import DuplicateName, UnknownConstraint
from hotstart.model.registry import ConstraintRegistry
from hotstart.model.types import Constraint, ConstraintSense


def test_register_assigns_indices_in_order():
    registry = ConstraintRegistry()
    first = Constraint(registry.next_name(), ConstraintSense.LE, 1.0)
    registry.register(first)
    second = Constraint(registry.next_name(), ConstraintSense.GE, 0.0)
    registry.register(second)

    assert (first.name, first.index) == ("c0", 0)
    assert (second.name, second.index) == ("c1", 1)
    assert list(registry) == [first, second]
    assert len(registry) == 2


def test_next_name_skips_taken_names():
    registry = ConstraintRegistry()
    registry.register(Constraint("c1", ConstraintSense.LE, 1.0))
    # one constraint registered, but c1 is taken
    assert registry.next_name() == "c2"


def test_duplicate_name_rejected():
    registry = ConstraintRegistry()
    registry.register(Constraint("budget", ConstraintSense.LE, 10.0))
    with pytest.raises(DuplicateName):
        registry.register(Constraint("budget", ConstraintSense.LE, 5.0))


def test_resolve_by_name_and_object():
    registry = ConstraintRegistry()
    con = Constraint("budget", ConstraintSense.LE, 10.0)
    registry.register(con)

    assert registry.resolve("budget") is con
    assert registry.resolve(con) is con
    assert "budget" in registry
    assert con in registry

    # Same name, different object: not ours
    impostor = Constraint("budget", ConstraintSense.LE, 10.0)
    assert impostor not in registry
    with pytest.raises(UnknownConstraint):
        registry.resolve(impostor)
    with pytest.raises(UnknownConstraint):
        registry.resolve("missing")
    with pytest.raises(UnknownConstraint):
        registry.resolve(None)


def test_resolve_all_fails_on_any_unknown():
    registry = ConstraintRegistry()
    registry.register(Constraint("a", ConstraintSense.LE, 1.0))
    registry.register(Constraint("b", ConstraintSense.LE, 1.0))

    assert [c.name for c in registry.resolve_all(["b", "a"])] == ["b", "a"]
    with pytest.raises(UnknownConstraint):
        registry.resolve_all(["a", "zzz"])
