"""
Scheduler - Run the comparator over many input files on a bounded thread pool

Responsibilities:
- Enumerate (or accept) the input files, optionally shuffled
- Dispatch one comparison per file to a fixed-size worker pool
- Keep lock-protected running counts and the fail-fast flag
- Drive the progress bar as outcomes complete
- Isolate per-file errors; abort only on run-level errors
"""

import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple, Union

from tqdm import tqdm

from packs_parity.comparison.comparator import Comparator
from packs_parity.comparison.exceptions import ArtifactError, ParityError
from packs_parity.domain.result import (
    ComparisonError,
    ComparisonResult,
    Outcome,
    OutcomeStatus,
    SkippedComparison,
)
from packs_parity.utils.logger import get_logger, short_digest

logger = get_logger(__name__)

DEFAULT_WORKERS = 8

FileSource = Union[Sequence[str], Callable[[], Sequence[str]]]


class RunState(Enum):
    """Run lifecycle states."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class CounterSnapshot:
    """Point-in-time copy of the run counters."""

    dispatched: int = 0
    completed: int = 0
    successes: int = 0
    failures: int = 0
    errors: int = 0
    skipped: int = 0
    failure_seen: bool = False

    @property
    def success_ratio(self) -> float:
        """Successes as a percentage of compared (non-skipped) files."""
        compared = self.successes + self.failures
        if compared == 0:
            return 0.0
        return round(self.successes / compared * 100, 2)


class RunCounters:
    """
    Counters shared by all workers.

    Every update happens under one lock. ``failure_seen`` is read without the
    lock by workers deciding whether to skip; a stale read only means one more
    comparison runs.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._dispatched = 0
        self._completed = 0
        self._successes = 0
        self._failures = 0
        self._errors = 0
        self._skipped = 0
        self.failure_seen = False

    def mark_dispatched(self) -> None:
        with self._lock:
            self._dispatched += 1

    def record(self, outcome: Outcome) -> CounterSnapshot:
        """Count a finished outcome and return the counters after it."""
        with self._lock:
            self._completed += 1
            if outcome.status == OutcomeStatus.SKIPPED:
                self._skipped += 1
            elif outcome.status == OutcomeStatus.SUCCESS:
                self._successes += 1
            else:
                self._failures += 1
                if outcome.status == OutcomeStatus.ERROR:
                    self._errors += 1
                self.failure_seen = True
            return self._snapshot()

    def snapshot(self) -> CounterSnapshot:
        with self._lock:
            return self._snapshot()

    def _snapshot(self) -> CounterSnapshot:
        return CounterSnapshot(
            dispatched=self._dispatched,
            completed=self._completed,
            successes=self._successes,
            failures=self._failures,
            errors=self._errors,
            skipped=self._skipped,
            failure_seen=self.failure_seen,
        )


@dataclass(frozen=True)
class RunReport:
    """
    Result of one scheduler run.

    Attributes:
        state: COMPLETED or ABORTED
        outcomes: One outcome per input file, in dispatch order
        counters: Final counter values
        error: Run-level error message when aborted
        duration_seconds: Wall-clock time of the run
    """

    state: RunState
    outcomes: Tuple[Outcome, ...] = ()
    counters: CounterSnapshot = field(default_factory=CounterSnapshot)
    error: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def aborted(self) -> bool:
        return self.state == RunState.ABORTED

    @property
    def results(self) -> List[Union[ComparisonResult, ComparisonError]]:
        """Outcomes that were actually compared (skips excluded)."""
        return [o for o in self.outcomes if o.status != OutcomeStatus.SKIPPED]


class Scheduler:
    """
    Compare many files concurrently with optional fail-fast.

    Fail-fast is best-effort: a worker checks the flag only when it starts an
    item, and comparisons already running are never interrupted.
    """

    def __init__(
        self,
        comparator: Comparator,
        workers: int = DEFAULT_WORKERS,
        fail_fast: bool = False,
        progress: bool = True,
        shuffle: bool = False,
        seed: Optional[int] = None,
    ):
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")

        self.comparator = comparator
        self.workers = workers
        self.fail_fast = fail_fast
        self.progress = progress
        self.shuffle = shuffle
        self.rng = random.Random(seed)
        self.state = RunState.PENDING
        self.counters = RunCounters()

    def run(self, file_source: FileSource) -> RunReport:
        """
        Compare every input file.

        Args:
            file_source: Input paths, or a zero-argument callable producing them

        Returns:
            RunReport; ABORTED only when the input files cannot be listed
        """
        if self.state != RunState.PENDING:
            raise RuntimeError(f"Scheduler already used (state={self.state.value})")

        start_time = time.time()
        self.state = RunState.RUNNING

        try:
            files = list(file_source() if callable(file_source) else file_source)
        except (ParityError, OSError) as e:
            self.state = RunState.ABORTED
            logger.error(
                "Could not enumerate input files", operation="enumerate", error=str(e)
            )
            return RunReport(
                state=self.state,
                counters=self.counters.snapshot(),
                error=str(e),
                duration_seconds=time.time() - start_time,
            )

        if self.shuffle:
            self.rng.shuffle(files)

        logger.info(
            f"Comparing {len(files)} files",
            operation="schedule",
            context={
                "workers": self.workers,
                "fail_fast": self.fail_fast,
                "shuffle": self.shuffle,
            },
        )

        outcomes: List[Optional[Outcome]] = [None] * len(files)

        with tqdm(
            total=len(files),
            desc="Comparing",
            unit="files",
            disable=not self.progress,
            dynamic_ncols=True,
            mininterval=1.0,
            bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}, {rate_fmt}]",
        ) as pbar:
            with ThreadPoolExecutor(max_workers=self.workers) as ex:
                fut_to_idx = {
                    ex.submit(self._process, input_path): i
                    for i, input_path in enumerate(files)
                }
                for fut in as_completed(fut_to_idx):
                    i = fut_to_idx[fut]
                    outcome, snapshot = fut.result()
                    outcomes[i] = outcome
                    pbar.update(1)
                    self._log_outcome(pbar, files[i], outcome, snapshot)

        self.state = RunState.COMPLETED
        counters = self.counters.snapshot()
        duration_seconds = time.time() - start_time
        logger.info(
            "Run completed",
            operation="schedule",
            context={
                "successes": counters.successes,
                "failures": counters.failures,
                "errors": counters.errors,
                "skipped": counters.skipped,
            },
            duration_ms=duration_seconds * 1000,
        )

        return RunReport(
            state=self.state,
            outcomes=tuple(outcomes),
            counters=counters,
            duration_seconds=duration_seconds,
        )

    def _process(self, input_path: str) -> Tuple[Outcome, CounterSnapshot]:
        """Worker body: compare one file, or skip it once a failure was seen."""
        self.counters.mark_dispatched()
        file_id = self.comparator.path_mapper.file_id(input_path)
        file_logger = logger.bind(file_id=short_digest(file_id), input_path=input_path)

        if self.fail_fast and self.counters.failure_seen:
            file_logger.debug("Skipped after an earlier failure", operation="compare_file")
            outcome: Outcome = SkippedComparison(file_id=file_id, input_path=input_path)
            return outcome, self.counters.record(outcome)

        try:
            outcome = self.comparator.compare(input_path)
        except ArtifactError as e:
            file_logger.warning(
                "Artifact could not be compared",
                operation="compare_file",
                context={"category": e.category, "artifact_path": e.artifact_path},
                error=str(e),
            )
            outcome = ComparisonError(
                file_id=file_id,
                category=e.category,
                message=str(e),
                input_path=input_path,
                artifact_path=e.artifact_path,
            )
        except Exception as e:  # noqa: BLE001
            file_logger.exception(
                "Unexpected error comparing file",
                operation="compare_file",
                context={"category": "internal_error"},
            )
            outcome = ComparisonError(
                file_id=file_id,
                category="internal_error",
                message=f"{type(e).__name__}: {e}",
                input_path=input_path,
            )

        return outcome, self.counters.record(outcome)

    @staticmethod
    def _log_outcome(
        pbar: tqdm, input_path: str, outcome: Outcome, snapshot: CounterSnapshot
    ) -> None:
        if outcome.status == OutcomeStatus.SKIPPED:
            return
        if outcome.status == OutcomeStatus.SUCCESS:
            message = (
                f"Success! Success ratio is now: {snapshot.success_ratio} "
                f"({input_path} was successful)!"
            )
        elif outcome.status == OutcomeStatus.ERROR:
            message = (
                f"Error! Success ratio is now: {snapshot.success_ratio} "
                f"({input_path} could not be compared: {outcome.category})!"
            )
        else:
            message = (
                f"Failure! Success ratio is now: {snapshot.success_ratio} "
                f"({input_path} failed)!"
            )

        if pbar.disable:
            logger.debug(message)
        else:
            pbar.write(message)
