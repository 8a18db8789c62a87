"""In-memory model of a project's dependencies and their features."""

from .dependency import Dependency, DependencyKind
from .document import Document
from .feature import EnabledState, FeatureRecord, SubFeature, SubFeatureKind
from .graph import FeatureGraph
from .package import Package

__all__ = [
    "Dependency",
    "DependencyKind",
    "Document",
    "EnabledState",
    "FeatureGraph",
    "FeatureRecord",
    "Package",
    "SubFeature",
    "SubFeatureKind",
]
