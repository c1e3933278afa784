"""
Model store for incremental optimization models.

Key components:
  - types.py: Variable, Constraint, Objective, SOSGroup and the sense/kind enums
  - registry.py: ConstraintRegistry giving constraints stable names
  - changes.py: ModelChange records journaled by every mutation
  - store.py: Model, the mutable owner of all of the above
"""

from hotstart.model.types import (
    Constraint,
    ConstraintSense,
    Objective,
    ObjectiveSense,
    SOSGroup,
    VarKind,
    Variable,
)
from hotstart.model.registry import ConstraintRegistry
from hotstart.model.changes import ChangeKind, ModelChange
from hotstart.model.store import Model
