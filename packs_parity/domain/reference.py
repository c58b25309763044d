"""
Reference domain model.

Represents one unresolved constant reference recorded in a cache artifact,
and the canonical (sorted) form of a whole artifact.
Unknown keys are kept in ``extra_fields`` so they still participate in diffs.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Tuple

CORE_FIELDS = ("constant_name", "source_location")
LOCATION_FIELDS = ("line", "column")


@dataclass(frozen=True)
class SourceLocation:
    """
    Line/column position of a reference within its source file.

    Keys other than ``line`` and ``column`` are kept in ``extra_fields`` and
    written back after them.
    """

    line: int
    column: int
    extra_fields: Dict[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SourceLocation":
        return cls(
            line=data["line"],
            column=data["column"],
            extra_fields={k: v for k, v in data.items() if k not in LOCATION_FIELDS},
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"line": self.line, "column": self.column}
        data.update(self.extra_fields)
        return data


@dataclass(frozen=True)
class Reference:
    """
    One unresolved-symbol record from an artifact.

    Attributes:
        constant_name: Constant the resolver could not map to a definition
        source_location: Where the constant appears
        extra_fields: Any other keys of the raw record, in original key order

    Design Note:
        ``extra_fields`` is deliberately untyped. Producers add keys over
        time (namespace path, relative path, ...) and the checker must report
        them without knowing their schema.
    """

    constant_name: str
    source_location: SourceLocation
    extra_fields: Dict[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Reference":
        """
        Create Reference from a raw artifact record.

        Args:
            data: Dictionary with at least ``constant_name`` and ``source_location``

        Returns:
            Reference instance
        """
        extra_data = {k: v for k, v in data.items() if k not in CORE_FIELDS}

        return cls(
            constant_name=data["constant_name"],
            source_location=SourceLocation.from_dict(data["source_location"]),
            extra_fields=extra_data,
        )

    def sort_key(self) -> Tuple[str, int, int]:
        """Canonical ordering key: constant name, then line, then column."""
        return (
            self.constant_name,
            self.source_location.line,
            self.source_location.column,
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Render back to the artifact wire shape.

        Core keys come first, extra fields follow in their original order.
        """
        data: Dict[str, Any] = {
            "constant_name": self.constant_name,
            "source_location": self.source_location.to_dict(),
        }
        data.update(self.extra_fields)
        return data


@dataclass(frozen=True)
class NormalizedArtifact:
    """
    Canonical form of one file's artifact.

    Attributes:
        source_path: Artifact location on disk (reporting only)
        references: References sorted stably by ``Reference.sort_key``
        exists: Whether the artifact file was present when loaded
    """

    source_path: Path
    references: Tuple[Reference, ...] = ()
    exists: bool = False

    @classmethod
    def empty(cls, source_path: Path) -> "NormalizedArtifact":
        """Artifact for a file the producer never wrote."""
        return cls(source_path=Path(source_path), references=(), exists=False)

    @property
    def reference_count(self) -> int:
        return len(self.references)

    def to_list(self):
        return [reference.to_dict() for reference in self.references]
