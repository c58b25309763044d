"""Domain models - references, normalized artifacts and comparison outcomes."""

from .reference import NormalizedArtifact, Reference, SourceLocation
from .result import (
    Added,
    Changed,
    ComparisonError,
    ComparisonResult,
    DiffEntry,
    DiffKind,
    OutcomeStatus,
    Removed,
    SkippedComparison,
)

__all__ = [
    "Added",
    "Changed",
    "ComparisonError",
    "ComparisonResult",
    "DiffEntry",
    "DiffKind",
    "NormalizedArtifact",
    "OutcomeStatus",
    "Reference",
    "Removed",
    "SkippedComparison",
    "SourceLocation",
]
