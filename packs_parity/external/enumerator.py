"""
Input enumeration and cache inventory.

Lists the source files whose artifacts are compared, counts what the
producers wrote into the cache directory, and writes the path → digest map
used to find a file's cache entries by hand.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import yaml

from packs_parity.comparison.exceptions import EnumerationError
from packs_parity.comparison.path_mapper import EXPERIMENTAL_SUFFIX, PathMapper

logger = logging.getLogger(__name__)


class SourceFileEnumerator:
    """
    Enumerate source files under the configured roots.

    Paths are returned relative to ``base_dir`` in POSIX form, since that
    exact string is what the producers digest.
    """

    def __init__(
        self,
        base_dir: Path = Path("."),
        roots: Sequence[str] = ("app",),
        extensions: Sequence[str] = ("rb", "rake", "erb"),
    ):
        self.base_dir = Path(base_dir)
        self.roots = list(roots)
        self.extensions = [ext.lstrip(".") for ext in extensions]

    def __call__(self) -> List[str]:
        return self.list_files()

    def list_files(self) -> List[str]:
        """
        List matching files, sorted.

        Raises:
            EnumerationError: If a root is missing or cannot be walked
        """
        found = set()
        for root in self.roots:
            root_path = self.base_dir / root
            if not root_path.is_dir():
                raise EnumerationError(f"Source root not found: {root_path}")
            try:
                for ext in self.extensions:
                    for path in root_path.rglob(f"*.{ext}"):
                        if path.is_file():
                            found.add(path.relative_to(self.base_dir).as_posix())
            except OSError as e:
                raise EnumerationError(f"Could not list files under {root_path}: {e}") from e

        files = sorted(found)
        logger.info(f"Found {len(files)} source files under {', '.join(self.roots)}")
        return files


@dataclass(frozen=True)
class CacheInventory:
    """Number of baseline and experimental artifacts in a cache directory."""

    cache_dir: Path
    baseline_count: int
    experimental_count: int

    @classmethod
    def scan(cls, cache_dir: Path) -> "CacheInventory":
        cache_dir = Path(cache_dir)
        if not cache_dir.is_dir():
            return cls(cache_dir=cache_dir, baseline_count=0, experimental_count=0)

        baseline = 0
        experimental = 0
        for entry in cache_dir.iterdir():
            if not entry.is_file():
                continue
            if entry.name.endswith(EXPERIMENTAL_SUFFIX):
                experimental += 1
            else:
                baseline += 1
        return cls(cache_dir=cache_dir, baseline_count=baseline, experimental_count=experimental)

    def describe(self) -> List[str]:
        return [
            f"There are {self.baseline_count} files in {self.cache_dir}",
            f"There are {self.experimental_count} experimental files in {self.cache_dir}",
        ]


def build_digest_map(files: Iterable[str], path_mapper: PathMapper) -> Dict[str, str]:
    return {input_path: path_mapper.file_id(input_path) for input_path in files}


def write_digest_map(
    files: Iterable[str], path_mapper: PathMapper, output_path: Optional[Path]
) -> Optional[Path]:
    """
    Write the input path → cache digest map as YAML.

    Returns:
        Path written, or None when ``output_path`` is None
    """
    if output_path is None:
        return None

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    digest_map = build_digest_map(files, path_mapper)

    with output_path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(digest_map, f, sort_keys=True, allow_unicode=True)

    logger.info(f"Wrote digest map for {len(digest_map)} files to {output_path}")
    return output_path
