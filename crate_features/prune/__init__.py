"""Automated feature minimization."""

from .engine import DependencyReport, PruneEngine, PruneReport, commit
from .oracle import CargoOracle, Oracle
from .runner import prune

__all__ = [
    "CargoOracle",
    "DependencyReport",
    "Oracle",
    "PruneEngine",
    "PruneReport",
    "commit",
    "prune",
]
