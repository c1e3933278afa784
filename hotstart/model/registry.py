"""
Constraint registry.

Gives every constraint a stable identity (its name) for the lifetime of the
model, so later operations such as Model.add_variable can inject
coefficients into constraints created earlier (column generation).
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Union

from hotstart.errors import DuplicateName, UnknownConstraint
from hotstart.model.types import Constraint


ConstraintRef = Union[Constraint, str]


class ConstraintRegistry:
    """
    Ordered mapping from constraint name to Constraint.

    Example:
        >>> from hotstart.model.types import ConstraintSense
        >>> registry = ConstraintRegistry()
        >>> con = Constraint(registry.next_name(), ConstraintSense.LE, 1.0)
        >>> registry.register(con)
        >>> registry.resolve("c0") is con
        True
    """

    def __init__(self):
        self._by_name: Dict[str, Constraint] = {}

    def next_name(self) -> str:
        """First unused name of the form c<N>."""
        n = len(self._by_name)
        while f"c{n}" in self._by_name:
            n += 1
        return f"c{n}"

    def register(self, constraint: Constraint) -> None:
        """
        Add a constraint and assign its index.

        Raises:
            DuplicateName: If a constraint with the same name exists
        """
        if constraint.name in self._by_name:
            raise DuplicateName(f"Constraint name already in use: {constraint.name}")
        constraint.index = len(self._by_name)
        self._by_name[constraint.name] = constraint

    def resolve(self, ref: ConstraintRef) -> Constraint:
        """
        Turn a name or Constraint into the registered Constraint.

        A Constraint object that belongs to another model is rejected even
        if a constraint with the same name exists here.

        Raises:
            UnknownConstraint: If the reference is not registered
        """
        if isinstance(ref, Constraint):
            registered = self._by_name.get(ref.name)
            if registered is not ref:
                raise UnknownConstraint(f"Constraint not in this model: {ref.name}")
            return ref

        try:
            return self._by_name[ref]
        except (KeyError, TypeError):
            raise UnknownConstraint(f"Unknown constraint: {ref!r}") from None

    def resolve_all(self, refs: Iterable[ConstraintRef]) -> List[Constraint]:
        """Resolve every reference, failing before returning anything."""
        return [self.resolve(ref) for ref in refs]

    def __contains__(self, ref) -> bool:
        try:
            self.resolve(ref)
        except UnknownConstraint:
            return False
        return True

    def __iter__(self) -> Iterator[Constraint]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)
