"""
Unit tests for the concurrent scheduler (packs_parity/scheduling/scheduler.py)

Tests covering:
- Run lifecycle states and abort on enumeration failure
- Counter invariants under concurrency
- Per-file error isolation
- Best-effort fail-fast
- Shuffling
"""

import random
import threading
import time
from pathlib import Path

import pytest

from packs_parity.comparison.exceptions import EnumerationError, MalformedArtifactError
from packs_parity.comparison.path_mapper import PathMapper
from packs_parity.domain.reference import NormalizedArtifact
from packs_parity.domain.result import (
    ComparisonError,
    ComparisonResult,
    OutcomeStatus,
    Removed,
    SkippedComparison,
)
from packs_parity.scheduling.scheduler import RunCounters, RunState, Scheduler


class StubComparator:
    """Comparator double: outcome decided by the input path name."""

    def __init__(self):
        self.path_mapper = PathMapper(Path("cache"))
        self.calls = []
        self._lock = threading.Lock()
        self.scheduler = None

    def compare(self, input_path):
        with self._lock:
            self.calls.append(input_path)

        if input_path.startswith("slow"):
            deadline = time.time() + 5
            while not self.scheduler.counters.failure_seen and time.time() < deadline:
                time.sleep(0.01)
        if input_path.startswith("corrupt"):
            raise MalformedArtifactError("bad json", Path("cache") / input_path)
        if input_path.startswith("crash"):
            raise KeyError("boom")

        diffs = ()
        if input_path.startswith("bad"):
            diffs = (Removed(path=(0,), old_value={"constant_name": "Foo"}),)

        return ComparisonResult(
            file_id=self.path_mapper.file_id(input_path),
            baseline=NormalizedArtifact.empty(Path("cache/a")),
            experimental=NormalizedArtifact.empty(Path("cache/b")),
            diffs=diffs,
            input_path=input_path,
        )


@pytest.fixture
def comparator():
    return StubComparator()


def make_scheduler(comparator, **kwargs):
    kwargs.setdefault("progress", False)
    scheduler = Scheduler(comparator, **kwargs)
    comparator.scheduler = scheduler
    return scheduler


class TestRunLifecycle:
    """Tests for run states."""

    def test_initial_state_pending(self, comparator):
        """Test a new scheduler is pending."""
        assert make_scheduler(comparator).state == RunState.PENDING

    def test_completed_run(self, comparator):
        """Test a normal run completes with one outcome per file."""
        scheduler = make_scheduler(comparator)
        files = ["ok1.rb", "bad1.rb", "ok2.rb"]

        report = scheduler.run(files)

        assert report.state == RunState.COMPLETED
        assert scheduler.state == RunState.COMPLETED
        assert [o.input_path for o in report.outcomes] == files
        assert report.counters.successes == 2
        assert report.counters.failures == 1

    def test_completed_regardless_of_failures(self, comparator):
        """Test failing comparisons do not abort the run."""
        report = make_scheduler(comparator).run(["bad1.rb", "bad2.rb"])

        assert report.state == RunState.COMPLETED
        assert report.counters.failures == 2

    def test_enumeration_failure_aborts(self, comparator):
        """Test run-level enumeration errors abort before any comparison."""

        def failing_source():
            raise EnumerationError("Source root not found: app")

        report = make_scheduler(comparator).run(failing_source)

        assert report.state == RunState.ABORTED
        assert report.aborted is True
        assert "Source root not found" in report.error
        assert report.outcomes == ()
        assert comparator.calls == []

    def test_callable_source(self, comparator):
        """Test a callable file source is invoked."""
        report = make_scheduler(comparator).run(lambda: ["ok.rb"])
        assert report.counters.successes == 1

    def test_empty_file_list(self, comparator):
        """Test an empty run completes with zero counts."""
        report = make_scheduler(comparator).run([])

        assert report.state == RunState.COMPLETED
        assert report.counters.dispatched == 0

    def test_scheduler_is_single_use(self, comparator):
        """Test a scheduler cannot be run twice."""
        scheduler = make_scheduler(comparator)
        scheduler.run([])

        with pytest.raises(RuntimeError):
            scheduler.run([])

    def test_invalid_worker_count(self, comparator):
        """Test pool size must be positive."""
        with pytest.raises(ValueError):
            Scheduler(comparator, workers=0)


class TestCounters:
    """Tests for shared counters."""

    def test_counts_add_up_under_concurrency(self, comparator):
        """Test successes + failures + skipped == dispatched with 8 workers."""
        files = [f"ok{i}.rb" for i in range(150)] + [f"bad{i}.rb" for i in range(50)]
        random.Random(7).shuffle(files)

        report = make_scheduler(comparator, workers=8).run(files)
        counters = report.counters

        assert counters.dispatched == 200
        assert counters.completed == 200
        assert counters.successes == 150
        assert counters.failures == 50
        assert counters.successes + counters.failures + counters.skipped == counters.dispatched

    def test_concurrent_record_has_no_lost_updates(self):
        """Test RunCounters under many threads."""
        counters = RunCounters()
        outcome = SkippedComparison(file_id="x")

        def work():
            for _ in range(500):
                counters.mark_dispatched()
                counters.record(outcome)

        threads = [threading.Thread(target=work) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        snapshot = counters.snapshot()
        assert snapshot.dispatched == 4000
        assert snapshot.skipped == 4000
        assert snapshot.failure_seen is False

    def test_success_ratio(self):
        """Test ratio excludes skipped files."""
        counters = RunCounters()
        counters.record(SkippedComparison(file_id="s"))
        counters.record(
            ComparisonError(file_id="e", category="malformed_artifact", message="x")
        )

        snapshot = counters.snapshot()
        assert snapshot.success_ratio == 0.0
        assert snapshot.errors == 1
        assert snapshot.failures == 1
        assert snapshot.failure_seen is True


class TestErrorIsolation:
    """Per-file errors stay with their file."""

    def test_artifact_error_becomes_error_outcome(self, comparator):
        """Test a malformed artifact yields a ComparisonError."""
        report = make_scheduler(comparator).run(["ok.rb", "corrupt.rb", "ok2.rb"])

        error = report.outcomes[1]
        assert isinstance(error, ComparisonError)
        assert error.status == OutcomeStatus.ERROR
        assert error.category == "malformed_artifact"
        assert error.input_path == "corrupt.rb"
        assert error.artifact_path == Path("cache") / "corrupt.rb"
        assert error.file_id == PathMapper.file_id("corrupt.rb")
        assert report.state == RunState.COMPLETED
        assert report.counters.successes == 2
        assert report.counters.errors == 1
        assert report.counters.failures == 1

    def test_unexpected_exception_is_isolated(self, comparator):
        """Test an unexpected exception is reported as internal_error."""
        report = make_scheduler(comparator).run(["crash.rb", "ok.rb"])

        assert report.outcomes[0].category == "internal_error"
        assert "KeyError" in report.outcomes[0].message
        assert report.outcomes[1].success is True

    def test_results_excludes_skips(self, comparator):
        """Test RunReport.results drops skipped outcomes."""
        report = make_scheduler(comparator, workers=1, fail_fast=True).run(
            ["bad.rb", "ok.rb"]
        )

        assert len(report.outcomes) == 2
        assert len(report.results) == 1


class TestFailFast:
    """Best-effort fail-fast."""

    def test_fail_fast_skips_after_failure(self, comparator):
        """Test with one worker every file after the first failure is skipped."""
        files = ["ok1.rb", "bad1.rb", "ok2.rb", "ok3.rb", "bad2.rb"]

        report = make_scheduler(comparator, workers=1, fail_fast=True).run(files)
        statuses = [o.status for o in report.outcomes]

        assert statuses == [
            OutcomeStatus.SUCCESS,
            OutcomeStatus.FAILURE,
            OutcomeStatus.SKIPPED,
            OutcomeStatus.SKIPPED,
            OutcomeStatus.SKIPPED,
        ]
        assert comparator.calls == ["ok1.rb", "bad1.rb"]
        assert report.counters.skipped == 3
        assert report.counters.dispatched == 5

    def test_errors_trip_fail_fast(self, comparator):
        """Test per-file errors count as failures for fail-fast."""
        report = make_scheduler(comparator, workers=1, fail_fast=True).run(
            ["corrupt.rb", "ok.rb"]
        )

        assert report.outcomes[1].status == OutcomeStatus.SKIPPED

    def test_in_flight_comparison_completes(self, comparator):
        """Test a comparison already running when the flag is set still finishes."""
        files = ["slow.rb", "bad.rb", "later1.rb", "later2.rb"]

        report = make_scheduler(comparator, workers=2, fail_fast=True).run(files)
        by_path = {o.input_path: o.status for o in report.outcomes}

        assert by_path["slow.rb"] == OutcomeStatus.SUCCESS
        assert by_path["bad.rb"] == OutcomeStatus.FAILURE
        assert by_path["later1.rb"] == OutcomeStatus.SKIPPED
        assert by_path["later2.rb"] == OutcomeStatus.SKIPPED
        assert "later1.rb" not in comparator.calls

    def test_without_fail_fast_everything_runs(self, comparator):
        """Test failures do not suppress dispatch when fail-fast is off."""
        files = ["bad1.rb", "ok1.rb", "ok2.rb"]

        report = make_scheduler(comparator, workers=1).run(files)

        assert report.counters.skipped == 0
        assert sorted(comparator.calls) == sorted(files)

    def test_skipped_outcome_identifies_file(self, comparator):
        """Test skipped outcomes carry the file identifier."""
        report = make_scheduler(comparator, workers=1, fail_fast=True).run(
            ["bad.rb", "ok.rb"]
        )

        skipped = report.outcomes[1]
        assert isinstance(skipped, SkippedComparison)
        assert skipped.file_id == PathMapper.file_id("ok.rb")
        assert skipped.reason == "fail_fast"


class TestShuffle:
    """Input order shuffling."""

    def test_shuffle_with_seed(self, comparator):
        """Test shuffled dispatch order is reproducible with a seed."""
        files = [f"ok{i}.rb" for i in range(20)]
        expected = list(files)
        random.Random(42).shuffle(expected)

        report = make_scheduler(comparator, shuffle=True, seed=42).run(files)

        assert [o.input_path for o in report.outcomes] == expected
        assert report.counters.successes == 20

    def test_shuffle_does_not_mutate_input(self, comparator):
        """Test the caller's list is left alone."""
        files = [f"ok{i}.rb" for i in range(10)]
        original = list(files)

        make_scheduler(comparator, shuffle=True, seed=1).run(files)

        assert files == original


class TestProgress:
    """Progress output."""

    def test_progress_lines_written(self, comparator, capsys):
        """Test per-file lines report the running success ratio."""
        make_scheduler(comparator, workers=1, progress=True).run(["ok.rb", "bad.rb"])

        out = capsys.readouterr().out
        assert "Success! Success ratio is now: 100.0 (ok.rb was successful)!" in out
        assert "Failure! Success ratio is now: 50.0 (bad.rb failed)!" in out
