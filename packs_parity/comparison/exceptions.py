"""
Exception hierarchy for the parity checker.

Per-file errors (ArtifactError) are isolated to one comparison and reported
as error outcomes. Run-level errors (EnumerationError, GeneratorError) stop
the run before or during scheduling.
"""

from pathlib import Path
from typing import Optional


class ParityError(Exception):
    """
    Base exception for all parity-checker errors.
    """

    pass


class ArtifactError(ParityError):
    """
    Raised when a cache artifact exists but cannot be turned into references.

    Carries the artifact path and a stable category string used in reports.
    """

    category = "artifact_error"

    def __init__(self, message: str, artifact_path: Optional[Path] = None):
        super().__init__(message)
        self.artifact_path = artifact_path


class MalformedArtifactError(ArtifactError):
    """
    Raised when an artifact is not valid JSON or does not match the
    unresolved-references shape.

    Indicates a producer bug; never retried.
    """

    category = "malformed_artifact"


class ArtifactReadError(ArtifactError):
    """
    Raised when an existing artifact cannot be read (permissions, directory
    in place of a file, decoding failure).
    """

    category = "unreadable_artifact"


class EnumerationError(ParityError):
    """
    Raised when the list of input files cannot be produced.

    Fatal for the whole run.
    """

    pass


class GeneratorError(ParityError):
    """
    Raised when building or running an artifact producer fails.
    """

    pass
