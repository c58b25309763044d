"""Diff Reporter - Aggregate comparison outcomes into text, JSON and markdown reports."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from pprint import pformat
from typing import Any, Dict, List, Optional, Sequence

from packs_parity.domain.result import (
    ComparisonError,
    ComparisonResult,
    Outcome,
    OutcomeStatus,
)

logger = logging.getLogger(__name__)

REPORT_VERSION = "1.0"


@dataclass(frozen=True)
class RunSummary:
    """Outcome counts grouped by status. Skips are excluded from ``total``."""

    total: int
    successes: int
    failures: int
    errors: int
    skipped: int

    @property
    def success_percentage(self) -> float:
        if self.total == 0:
            return 0.0
        return round(self.successes / self.total * 100, 2)

    @property
    def passed(self) -> bool:
        return self.failures == 0 and self.errors == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "successes": self.successes,
            "failures": self.failures,
            "errors": self.errors,
            "skipped": self.skipped,
            "success_percentage": self.success_percentage,
            "parity_status": "PASS" if self.passed else "FAIL",
        }


def _pretty(value: Any) -> str:
    return "\n" + pformat(value, width=100, sort_dicts=False)


class DiffReporter:
    """
    Aggregate outcomes and render reports.

    The text report is a debugging aid: it shows the full detail of the first
    failing file rather than a short line for every failure.
    """

    def summarize(self, outcomes: Sequence[Outcome]) -> RunSummary:
        counts = {status: 0 for status in OutcomeStatus}
        for outcome in outcomes:
            counts[outcome.status] += 1

        return RunSummary(
            total=len(outcomes) - counts[OutcomeStatus.SKIPPED],
            successes=counts[OutcomeStatus.SUCCESS],
            failures=counts[OutcomeStatus.FAILURE],
            errors=counts[OutcomeStatus.ERROR],
            skipped=counts[OutcomeStatus.SKIPPED],
        )

    @staticmethod
    def first_failure(outcomes: Sequence[Outcome]) -> Optional[ComparisonResult]:
        for outcome in outcomes:
            if outcome.status == OutcomeStatus.FAILURE:
                return outcome
        return None

    @staticmethod
    def first_error(outcomes: Sequence[Outcome]) -> Optional[ComparisonError]:
        for outcome in outcomes:
            if outcome.status == OutcomeStatus.ERROR:
                return outcome
        return None

    def render_failure(self, result: ComparisonResult) -> str:
        """Detailed block for one structural diff failure."""
        if result.success:
            return "- No difference"

        lines = [
            "====================================",
            f"Results for file: {result.file_id}",
        ]
        if result.input_path:
            lines.append(f"input file is {result.input_path}")
        if not result.baseline.exists:
            lines.append("No original cache")
        if not result.experimental.exists:
            lines.append("No experimental cache")
        lines.extend(
            [
                f"original cache at {result.baseline.source_path} has "
                f"{result.baseline.reference_count} unresolved references",
                f"experimental cache at {result.experimental.source_path} has "
                f"{result.experimental.reference_count} unresolved references",
                f"diff count is {len(result.diffs)}",
                f"original cache content: {_pretty(result.baseline.to_list())}",
                f"experimental cache content: {_pretty(result.experimental.to_list())}",
                f"diff is {_pretty([entry.to_list() for entry in result.diffs])}",
            ]
        )
        return "- " + "\n- ".join(lines)

    def render_error(self, error: ComparisonError) -> str:
        """Block for a per-file error; worded apart from diff failures."""
        lines = [
            "====================================",
            f"ERROR ({error.category}) for file: {error.file_id}",
        ]
        if error.input_path:
            lines.append(f"input file is {error.input_path}")
        if error.artifact_path:
            lines.append(f"artifact at {error.artifact_path}")
        lines.append(f"message: {error.message}")
        return "- " + "\n- ".join(lines)

    def render_text(self, outcomes: Sequence[Outcome]) -> str:
        """
        Render the human-readable run report.

        Args:
            outcomes: All outcomes of a run, in dispatch order

        Returns:
            Report text for stdout
        """
        summary = self.summarize(outcomes)
        lines: List[str] = []

        lines.append(f"There are {summary.successes} successes out of {summary.total} total")
        lines.append(
            f"That's {summary.success_percentage}% of files with a cache generated by packs!"
        )
        if summary.skipped:
            lines.append(f"{summary.skipped} files were skipped after the first failure")
        if summary.failures:
            lines.append(f"{summary.failures} files have differences")
        if summary.errors:
            lines.append(f"{summary.errors} files could not be compared")

        failure = self.first_failure(outcomes)
        if failure is not None:
            lines.append(self.render_failure(failure))

        error = self.first_error(outcomes)
        if error is not None:
            lines.append(self.render_error(error))

        return "\n".join(lines)

    def generate_json_report(self, outcomes: Sequence[Outcome]) -> str:
        """
        Generate the machine-readable report.

        Successes and skips are listed by id only; failures and errors carry
        their full detail.
        """
        summary = self.summarize(outcomes)
        report = {
            "metadata": {
                "generated_at": datetime.now().isoformat(),
                "version": REPORT_VERSION,
            },
            "statistics": summary.to_dict(),
            "files": [
                outcome.to_dict()
                if outcome.status in (OutcomeStatus.FAILURE, OutcomeStatus.ERROR)
                else {
                    "file_id": outcome.file_id,
                    "input_path": outcome.input_path,
                    "status": outcome.status.value,
                }
                for outcome in outcomes
            ],
        }

        return json.dumps(report, indent=2, default=str)

    def generate_markdown_summary(self, outcomes: Sequence[Outcome]) -> str:
        summary = self.summarize(outcomes)

        md_lines = [
            "# Parity Check - Summary",
            f"**Generated:** {datetime.now().isoformat()}",
            "",
            "## Overall Results",
            f"- **Parity Status:** {'PASS' if summary.passed else 'FAIL'}",
            f"- **Files Compared:** {summary.total}",
            f"- **Identical:** {summary.successes}",
            f"- **Different:** {summary.failures}",
            f"- **Errors:** {summary.errors}",
            f"- **Skipped:** {summary.skipped}",
            f"- **Success Rate:** {summary.success_percentage}%",
            "",
        ]

        failing = [o for o in outcomes if o.status == OutcomeStatus.FAILURE]
        if failing:
            md_lines.extend(["## Differences", ""])
            for result in failing:
                md_lines.append(
                    f"- `{result.file_id}` {result.input_path or ''} "
                    f"({result.baseline.reference_count} vs "
                    f"{result.experimental.reference_count} references, "
                    f"{len(result.diffs)} diffs)"
                )
            md_lines.append("")

        errors = [o for o in outcomes if o.status == OutcomeStatus.ERROR]
        if errors:
            md_lines.extend(["## Errors", ""])
            for error in errors:
                md_lines.append(
                    f"- `{error.file_id}` {error.input_path or ''} "
                    f"[{error.category}] {error.message}"
                )
            md_lines.append("")

        return "\n".join(md_lines)

    def write_reports(self, outcomes: Sequence[Outcome], output_dir: Path) -> Dict[str, Path]:
        """
        Write ``summary.json`` and ``SUMMARY.md`` to ``output_dir``.

        Returns:
            Dict with "json" and "markdown" paths
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        json_path = output_dir / "summary.json"
        md_path = output_dir / "SUMMARY.md"

        with json_path.open("w", encoding="utf-8") as f:
            f.write(self.generate_json_report(outcomes))

        with md_path.open("w", encoding="utf-8") as f:
            f.write(self.generate_markdown_summary(outcomes))

        logger.info(f"Wrote parity reports to {output_dir}")
        logger.info(f"  JSON: {json_path}")
        logger.info(f"  Markdown: {md_path}")

        return {"json": json_path, "markdown": md_path}
