"""
Parity checker entry point.

Compares the packwerk cache (baseline) with the cache written by packs
(experimental) for every source file and prints the first file whose
unresolved references differ, much like ``rspec --next-failure``.

Usage:
    python -m packs_parity.main
    PACKS_DIR=packs-rs FAIL_FAST=1 python -m packs_parity.main --skip-generate

Exit codes:
    0 - run completed (any failures are reported, not enforced, unless --strict)
    1 - --strict and at least one file differs or could not be compared
    2 - configuration, generation or enumeration error
"""

import argparse
import logging
import sys
import uuid
from pathlib import Path
from typing import List, Optional

from packs_parity.comparison.artifact_loader import ArtifactLoader
from packs_parity.comparison.comparator import Comparator
from packs_parity.comparison.diff_reporter import DiffReporter
from packs_parity.comparison.exceptions import ArtifactError, GeneratorError
from packs_parity.comparison.path_mapper import PathMapper
from packs_parity.config.settings import ConfigurationError, Settings
from packs_parity.domain.result import ComparisonError
from packs_parity.external.enumerator import (
    CacheInventory,
    SourceFileEnumerator,
    write_digest_map,
)
from packs_parity.external.generator import (
    ArtifactGenerator,
    CargoArtifactGenerator,
    NoopArtifactGenerator,
)
from packs_parity.monitoring.metrics import ParityMetricsPublisher
from packs_parity.scheduling.scheduler import Scheduler

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PARITY_FAILURE = 1
EXIT_RUN_ERROR = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compare packwerk and packs cache artifacts file by file",
        prog="python -m packs_parity.main",
    )
    parser.add_argument("--config", help="YAML configuration file (or PARITY_CONFIG_FILE)")
    parser.add_argument("--base-dir", default=".", help="Project root containing the source roots")
    parser.add_argument("--cache-dir", help="Cache root (or PACKWERK_CACHE_DIR)")
    parser.add_argument("--packs-dir", help="Sibling packs checkout name (or PACKS_DIR)")
    parser.add_argument("--workers", type=int, help="Worker pool size (or PARITY_WORKERS)")
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        default=None,
        help="Stop starting new comparisons after the first failure (or FAIL_FAST)",
    )
    parser.add_argument(
        "--shuffle",
        action="store_true",
        default=None,
        help="Shuffle input order before dispatch (or SHUFFLE)",
    )
    parser.add_argument("--seed", type=int, help="Seed for --shuffle")
    parser.add_argument(
        "--skip-generate",
        action="store_true",
        help="Compare the cache as it is, without rebuilding or running packs",
    )
    parser.add_argument("--digest", help="Compare a single cache digest and exit")
    parser.add_argument("--report-dir", help="Also write summary.json and SUMMARY.md here")
    parser.add_argument(
        "--no-digest-map", action="store_true", help="Do not write the path to digest YAML map"
    )
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    parser.add_argument(
        "--publish-metrics",
        action="store_true",
        default=None,
        help="Publish run totals to CloudWatch (or PARITY_PUBLISH_METRICS)",
    )
    parser.add_argument(
        "--strict", action="store_true", help="Exit 1 when any file differs or errors"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    settings = Settings(config_file=args.config)
    return settings.apply_overrides(
        cache_dir=args.cache_dir,
        packs_dir=args.packs_dir,
        workers=args.workers,
        fail_fast=args.fail_fast,
        shuffle=args.shuffle,
        publish_metrics=args.publish_metrics,
    )


def compare_single_digest(comparator: Comparator, reporter: DiffReporter, file_id: str) -> int:
    try:
        result = comparator.compare_digest(file_id)
    except ArtifactError as e:
        error = ComparisonError(
            file_id=file_id,
            category=e.category,
            message=str(e),
            artifact_path=e.artifact_path,
        )
        print(reporter.render_error(error))
        return EXIT_PARITY_FAILURE

    print(reporter.render_failure(result))
    return EXIT_OK if result.success else EXIT_PARITY_FAILURE


def run(
    args: argparse.Namespace,
    generator: Optional[ArtifactGenerator] = None,
) -> int:
    """
    Execute a parity run.

    Args:
        args: Parsed command-line arguments
        generator: Artifact generator override (defaults from --skip-generate)

    Returns:
        Process exit code
    """
    try:
        settings = build_settings(args)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_RUN_ERROR

    base_dir = Path(args.base_dir)
    cache_dir = settings.cache_dir
    if not cache_dir.is_absolute():
        cache_dir = base_dir / cache_dir

    if generator is None:
        generator = (
            NoopArtifactGenerator() if args.skip_generate else CargoArtifactGenerator(base_dir)
        )
    try:
        generator.ensure_artifacts(settings)
    except GeneratorError as e:
        print(f"Artifact generation failed: {e}", file=sys.stderr)
        return EXIT_RUN_ERROR

    path_mapper = PathMapper(cache_dir)
    comparator = Comparator(path_mapper, ArtifactLoader())
    reporter = DiffReporter()

    if args.digest:
        return compare_single_digest(comparator, reporter, args.digest)

    for line in CacheInventory.scan(cache_dir).describe():
        print(line)

    enumerator = SourceFileEnumerator(
        base_dir=base_dir, roots=settings.source_roots, extensions=settings.extensions
    )
    scheduler = Scheduler(
        comparator,
        workers=settings.workers,
        fail_fast=settings.is_fail_fast_enabled(),
        progress=not args.no_progress,
        shuffle=settings.is_shuffle_enabled(),
        seed=args.seed,
    )
    report = scheduler.run(enumerator)

    if report.aborted:
        print(f"Run aborted: {report.error}", file=sys.stderr)
        return EXIT_RUN_ERROR

    if settings.digest_map_path and not args.no_digest_map:
        digest_map_path = Path(settings.digest_map_path)
        if not digest_map_path.is_absolute():
            digest_map_path = base_dir / digest_map_path
        write_digest_map(
            [outcome.input_path for outcome in report.outcomes], path_mapper, digest_map_path
        )

    print(reporter.render_text(report.outcomes))

    if args.report_dir:
        reporter.write_reports(report.outcomes, Path(args.report_dir))

    summary = reporter.summarize(report.outcomes)

    if settings.is_metrics_publishing_enabled():
        ParityMetricsPublisher(region_name=settings.aws_region).publish_run_summary(
            run_id=str(uuid.uuid4()),
            summary=summary,
            duration_ms=report.duration_seconds * 1000,
        )

    if args.strict and not summary.passed:
        return EXIT_PARITY_FAILURE
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
