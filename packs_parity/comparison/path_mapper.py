"""
Path Mapper - Derive cache identifiers and artifact locations for input files.

The identifier is the MD5 hex digest of the input path string, which is how
packwerk names its per-file cache entries. The experimental producer writes
next to it with an ``-experimental`` suffix.
"""

import hashlib
from dataclasses import dataclass
from pathlib import Path

EXPERIMENTAL_SUFFIX = "-experimental"
DEFAULT_CACHE_DIR = Path("tmp/cache/packwerk")


@dataclass(frozen=True)
class ArtifactPaths:
    """Identifier and the two artifact locations to compare."""

    file_id: str
    baseline: Path
    experimental: Path


class PathMapper:
    """Map input paths to cache identifiers and artifact locations. No I/O."""

    def __init__(self, cache_dir: Path = DEFAULT_CACHE_DIR):
        self.cache_dir = Path(cache_dir)

    @staticmethod
    def file_id(input_path: str) -> str:
        """
        Digest an input path string.

        The path is hashed exactly as given: ``app/a.rb`` and ``./app/a.rb``
        produce different identifiers, as they do for the producers.

        Args:
            input_path: Input file path string

        Returns:
            32-character lowercase hex digest
        """
        # Cache naming only, not a security boundary.
        return hashlib.md5(str(input_path).encode("utf-8")).hexdigest()  # nosec B324

    def locate(self, input_path: str) -> ArtifactPaths:
        """Resolve both artifact locations for an input path."""
        return self.locate_digest(self.file_id(input_path))

    def locate_digest(self, file_id: str) -> ArtifactPaths:
        """Resolve both artifact locations for a known identifier."""
        return ArtifactPaths(
            file_id=file_id,
            baseline=self.cache_dir / file_id,
            experimental=self.cache_dir / f"{file_id}{EXPERIMENTAL_SUFFIX}",
        )
