"""
Solver module for incremental re-solves.

This module provides the Solver protocol and a PuLP/CBC backend that
translates Models into pulp problems and patches them in place.
"""
