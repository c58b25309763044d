"""Comparison engine: path mapping, artifact loading, diffing and reporting."""

from packs_parity.comparison.artifact_loader import ArtifactLoader
from packs_parity.comparison.comparator import Comparator
from packs_parity.comparison.diff_engine import DiffEngine
from packs_parity.comparison.diff_reporter import DiffReporter, RunSummary
from packs_parity.comparison.path_mapper import ArtifactPaths, PathMapper

__all__ = [
    "ArtifactLoader",
    "ArtifactPaths",
    "Comparator",
    "DiffEngine",
    "DiffReporter",
    "PathMapper",
    "RunSummary",
]
