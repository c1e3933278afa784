"""
hotstart: incremental LP/MILP modification with hot-start re-solves.

  - hotstart.model: in-memory model, constraint registry and change journal
  - hotstart.solver: solver protocol and the PuLP/CBC backend
  - hotstart.resolve: re-solve controller and patch/re-submit strategies
  - hotstart.fixing: fixed-model derivation for SOS1/SOS2 dual recovery
"""
