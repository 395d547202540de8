"""Accumulator engine: ordered batch retrieval with bounded retry and cumulative histograms."""

import threading
import time
from typing import Callable, List, Optional

from densitygraph.fetcher.base import BatchFetcher
from densitygraph.fetcher.retry_handler import RetryHandler
from densitygraph.models.data_models import (
    EngineEvent,
    FetchOutcome,
    GridDescriptor,
    Histogram,
    RunResult,
    RunStats,
)
from densitygraph.monitoring.logger import StructuredLogger
from densitygraph.processor.histogram import merge_cumulative

EngineListener = Callable[[EngineEvent, "AccumulatorEngine"], None]


class AccumulatorEngine:
    """
    Drives retrieval of every batch index and accumulates cumulative histograms.

    Responsibilities:
    - Fetch indices 0..batch_count-1 strictly in order, one at a time
    - Retry each index up to the retry handler's attempt cap
    - Append one cumulative histogram per non-empty batch
    - Record indices that failed on every attempt
    - Notify the listener after each processed index

    An engine runs once. To start over, build a new engine.
    """

    def __init__(
        self,
        fetcher: BatchFetcher,
        listener: Optional[EngineListener] = None,
        retry_handler: Optional[RetryHandler] = None,
        logger: Optional[StructuredLogger] = None
    ):
        """
        Initialize engine and read the grid descriptor.

        Args:
            fetcher: Source of the grid descriptor and batches
            listener: Called with (event, engine) after each processed index
            retry_handler: Retry policy, defaults to 4 immediate attempts
            logger: Optional structured logger for telemetry
        """
        self.fetcher = fetcher
        self.listener = listener
        self.retry_handler = retry_handler or RetryHandler()
        self.logger = logger
        self.grid: GridDescriptor = fetcher.get_grid_descriptor()
        self.stats = RunStats()

        self._histograms: List[Histogram] = []
        self._failed_indices: List[int] = []
        self._empty_indices: List[int] = []
        self._cancel_event = threading.Event()
        self._started = False
        self._elapsed = 0.0

    # State access

    @property
    def histograms(self) -> List[Histogram]:
        """Cumulative histograms in processing order."""
        return self._histograms.copy()

    @property
    def failed_indices(self) -> List[int]:
        """Indices that failed on every allowed attempt."""
        return self._failed_indices.copy()

    @property
    def empty_indices(self) -> List[int]:
        """Indices whose batch came back empty or absent."""
        return self._empty_indices.copy()

    @property
    def latest(self) -> Optional[Histogram]:
        return self._histograms[-1] if self._histograms else None

    @property
    def processed_count(self) -> int:
        return len(self._histograms) + len(self._failed_indices) + len(self._empty_indices)

    @property
    def is_complete(self) -> bool:
        return self.processed_count == self.grid.batch_count

    @property
    def progress(self) -> int:
        """Percentage of indices processed, rounded down to an integer in [0, 100]."""
        if self.grid.batch_count == 0:
            return 100
        fraction = max(0.0, min(1.0, self.processed_count / self.grid.batch_count))
        return int(100 * fraction)

    # Operations

    def fetch_with_retry(self, index: int, max_attempts: Optional[int] = None) -> FetchOutcome:
        """
        Fetch a single batch index, retrying failed attempts.

        Args:
            index: Batch index to fetch
            max_attempts: Attempt cap for this call, defaults to the handler's

        Returns:
            Successful outcome with the batch, or an exhausted outcome

        Raises:
            ValueError: If max_attempts is less than 1
        """
        def on_failure(attempt: int, error: Exception) -> None:
            if self.logger:
                self.logger.fetch_attempt_failed(index=index, attempt=attempt, error=str(error))

        outcome = self.retry_handler.execute(
            lambda: self.fetcher.get_batch(index),
            max_attempts=max_attempts,
            on_failure=on_failure
        )
        self.stats.fetch_attempts += outcome.attempts
        self.stats.retries += outcome.attempts - 1
        return outcome

    def run(self) -> RunResult:
        """
        Process every batch index in ascending order.

        Fetch failures never propagate; exhausted indices are logged in
        `failed_indices`. The listener receives COMPLETED once all indices
        are processed and UPDATED otherwise.

        Returns:
            RunResult snapshot of the final state

        Raises:
            RuntimeError: If the engine has already run
        """
        if self._started:
            raise RuntimeError("Engine has already run. Create a new engine to start over.")
        self._started = True

        start_time = time.monotonic()
        if self.logger:
            self.logger.run_start(
                batch_count=self.grid.batch_count,
                columns=self.grid.columns,
                rows=self.grid.rows
            )

        if self.grid.batch_count == 0:
            self._notify(EngineEvent.COMPLETED)

        for index in range(self.grid.batch_count):
            if self._cancel_event.is_set():
                if self.logger:
                    self.logger.run_cancelled(next_index=index, progress=self.progress)
                break

            self._process_index(index)
            self._notify(EngineEvent.COMPLETED if self.is_complete else EngineEvent.UPDATED)

        self._elapsed = time.monotonic() - start_time
        if self.logger and self.is_complete:
            self.logger.run_complete(
                histograms=len(self._histograms),
                failed=len(self._failed_indices),
                empty=len(self._empty_indices),
                progress=self.progress,
                elapsed_ms=round(self._elapsed * 1000, 2)
            )

        return self.result()

    def cancel(self) -> None:
        """Stop the run before the next index. Safe to call from another thread."""
        self._cancel_event.set()

    def result(self) -> RunResult:
        """Snapshot of the current engine state."""
        return RunResult(
            grid=self.grid,
            histograms=self.histograms,
            failed_indices=self.failed_indices,
            empty_indices=self.empty_indices,
            progress=self.progress,
            completed=self.is_complete,
            elapsed_seconds=self._elapsed,
            stats=RunStats(**vars(self.stats)),
        )

    # Helpers

    def _process_index(self, index: int) -> None:
        outcome = self.fetch_with_retry(index)

        if not outcome.success:
            self._failed_indices.append(index)
            if self.logger:
                self.logger.index_failed(index=index, attempts=outcome.attempts)
            return

        if not outcome.batch:
            # Neither a histogram nor a failure, but still counted as processed
            self._empty_indices.append(index)
            if self.logger:
                self.logger.batch_empty(index=index)
            return

        histogram = merge_cumulative(self.latest, outcome.batch)
        self._histograms.append(histogram)
        self.stats.points_received += len(outcome.batch)
        if self.logger:
            self.logger.batch_accumulated(
                index=index,
                points=len(outcome.batch),
                unique=len(histogram)
            )

    def _notify(self, event: EngineEvent) -> None:
        if self.listener is not None:
            self.listener(event, self)
