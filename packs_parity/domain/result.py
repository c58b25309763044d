"""
Comparison outcome models.

Every input file yields exactly one outcome: a ComparisonResult when both
artifacts could be loaded, a ComparisonError when a per-file fatal error
stopped the comparison, or a SkippedComparison under fail-fast.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

from packs_parity.domain.reference import NormalizedArtifact

PathSegment = Union[int, str]


class OutcomeStatus(Enum):
    """Per-file outcome status codes."""

    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"
    SKIPPED = "skipped"


class DiffKind(Enum):
    """Diff entry kinds, valued with the Hashdiff symbols."""

    ADDED = "+"
    REMOVED = "-"
    CHANGED = "~"


def format_path(path: Tuple[PathSegment, ...]) -> str:
    """
    Render a diff path.

    Example:
        >>> format_path((0, "source_location", "column"))
        "[0].source_location.column"
    """
    parts: List[str] = []
    for segment in path:
        if isinstance(segment, int):
            parts.append(f"[{segment}]")
        elif parts:
            parts.append(f".{segment}")
        else:
            parts.append(str(segment))
    return "".join(parts)


@dataclass(frozen=True)
class DiffEntry(ABC):
    """One structural divergence between baseline and experimental."""

    kind: ClassVar[DiffKind]

    path: Tuple[PathSegment, ...]

    @property
    def path_str(self) -> str:
        return format_path(self.path)

    @abstractmethod
    def to_list(self) -> List[Any]:
        """Hashdiff-style rendering: symbol, path, then the value(s)."""

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.name.lower(), "path": self.path_str}


@dataclass(frozen=True)
class Added(DiffEntry):
    """Value present only on the experimental side."""

    kind: ClassVar[DiffKind] = DiffKind.ADDED

    new_value: Any = None

    def to_list(self) -> List[Any]:
        return [self.kind.value, self.path_str, self.new_value]

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["new_value"] = self.new_value
        return data


@dataclass(frozen=True)
class Removed(DiffEntry):
    """Value present only on the baseline side."""

    kind: ClassVar[DiffKind] = DiffKind.REMOVED

    old_value: Any = None

    def to_list(self) -> List[Any]:
        return [self.kind.value, self.path_str, self.old_value]

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["old_value"] = self.old_value
        return data


@dataclass(frozen=True)
class Changed(DiffEntry):
    """Value present on both sides but different."""

    kind: ClassVar[DiffKind] = DiffKind.CHANGED

    old_value: Any = None
    new_value: Any = None

    def to_list(self) -> List[Any]:
        return [self.kind.value, self.path_str, self.old_value, self.new_value]

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["old_value"] = self.old_value
        data["new_value"] = self.new_value
        return data


@dataclass(frozen=True)
class ComparisonResult:
    """
    Outcome of comparing one input file's two artifacts.

    Attributes:
        file_id: Digest of the input path (cache basename)
        baseline: Normalized baseline artifact
        experimental: Normalized experimental artifact
        diffs: Ordered diff entries, empty when the artifacts match
        input_path: Input path the digest was derived from, if known
    """

    file_id: str
    baseline: NormalizedArtifact
    experimental: NormalizedArtifact
    diffs: Tuple[DiffEntry, ...] = ()
    input_path: Optional[str] = None

    @property
    def success(self) -> bool:
        return len(self.diffs) == 0

    @property
    def status(self) -> OutcomeStatus:
        return OutcomeStatus.SUCCESS if self.success else OutcomeStatus.FAILURE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_id": self.file_id,
            "input_path": self.input_path,
            "status": self.status.value,
            "baseline": {
                "path": str(self.baseline.source_path),
                "exists": self.baseline.exists,
                "reference_count": self.baseline.reference_count,
            },
            "experimental": {
                "path": str(self.experimental.source_path),
                "exists": self.experimental.exists,
                "reference_count": self.experimental.reference_count,
            },
            "diff_count": len(self.diffs),
            "diffs": [entry.to_dict() for entry in self.diffs],
        }


@dataclass(frozen=True)
class ComparisonError:
    """
    Per-file fatal error marker.

    Kept apart from ComparisonResult so reports can tell a corrupt artifact
    from a genuine structural difference.
    """

    file_id: str
    category: str
    message: str
    input_path: Optional[str] = None
    artifact_path: Optional[Path] = None

    success: ClassVar[bool] = False
    status: ClassVar[OutcomeStatus] = OutcomeStatus.ERROR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_id": self.file_id,
            "input_path": self.input_path,
            "status": self.status.value,
            "category": self.category,
            "message": self.message,
            "artifact_path": str(self.artifact_path) if self.artifact_path else None,
        }


@dataclass(frozen=True)
class SkippedComparison:
    """File not compared because fail-fast had already tripped."""

    file_id: str
    input_path: Optional[str] = None
    reason: str = field(default="fail_fast")

    status: ClassVar[OutcomeStatus] = OutcomeStatus.SKIPPED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_id": self.file_id,
            "input_path": self.input_path,
            "status": self.status.value,
            "reason": self.reason,
        }


Outcome = Union[ComparisonResult, ComparisonError, SkippedComparison]
