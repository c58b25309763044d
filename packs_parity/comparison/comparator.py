"""
Comparator - Produce one ComparisonResult for one input file.

Artifact errors are not caught here; the scheduler turns them into a
per-file error outcome.
"""

from typing import Optional

from packs_parity.comparison.artifact_loader import ArtifactLoader
from packs_parity.comparison.diff_engine import DiffEngine
from packs_parity.comparison.path_mapper import ArtifactPaths, PathMapper
from packs_parity.domain.result import ComparisonResult
from packs_parity.utils.logger import get_logger, log_operation, short_digest

logger = get_logger(__name__)


class Comparator:
    """
    Compare the baseline and experimental artifacts of a single file.

    Responsibilities:
    - Resolve both artifact locations
    - Load and normalize both artifacts
    - Diff them and package the result
    """

    def __init__(
        self,
        path_mapper: PathMapper,
        loader: Optional[ArtifactLoader] = None,
        diff_engine: Optional[DiffEngine] = None,
    ):
        self.path_mapper = path_mapper
        self.loader = loader if loader is not None else ArtifactLoader()
        self.diff_engine = diff_engine if diff_engine is not None else DiffEngine()

    def compare(self, input_path: str) -> ComparisonResult:
        """
        Compare the artifacts produced for an input file.

        Args:
            input_path: Input file path string, hashed as given

        Returns:
            ComparisonResult for the file

        Raises:
            ArtifactError: If either artifact exists but cannot be loaded
        """
        return self._compare_paths(self.path_mapper.locate(input_path), input_path)

    @log_operation("compare_digest")
    def compare_digest(self, file_id: str) -> ComparisonResult:
        """Compare the artifacts for a known cache identifier."""
        return self._compare_paths(self.path_mapper.locate_digest(file_id), None)

    def _compare_paths(
        self, paths: ArtifactPaths, input_path: Optional[str]
    ) -> ComparisonResult:
        baseline = self.loader.load(paths.baseline)
        experimental = self.loader.load(paths.experimental)
        diffs = self.diff_engine.diff(baseline, experimental)

        logger.debug(
            "Compared artifacts",
            operation="compare_file",
            context={
                "file_id": short_digest(paths.file_id),
                "input_path": input_path,
                "baseline": paths.baseline,
                "experimental": paths.experimental,
                "reference_counts": [baseline.reference_count, experimental.reference_count],
                "diff_count": len(diffs),
            },
        )

        return ComparisonResult(
            file_id=paths.file_id,
            baseline=baseline,
            experimental=experimental,
            diffs=diffs,
            input_path=input_path,
        )
