"""Core data models for the density histogram engine."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional


class EngineEvent(Enum):
    """Notifications raised by the engine after each processed index."""
    UPDATED = "updated"
    COMPLETED = "completed"


@dataclass(frozen=True)
class GridDescriptor:
    """Grid dimensions and the number of batches to process."""
    columns: int
    rows: int
    batch_count: int


@dataclass(frozen=True)
class DataPoint:
    """A single grid coordinate. Hashable by (x, y)."""
    x: int
    y: int


class Histogram(Mapping):
    """
    Read-only mapping of DataPoint to occurrence count.

    Snapshots are never mutated after construction; merging counts
    always produces a new Histogram.
    """

    __slots__ = ("_counts",)

    def __init__(self, counts: Optional[Mapping] = None):
        self._counts: Dict[DataPoint, int] = dict(counts or {})

    def __getitem__(self, point: DataPoint) -> int:
        return self._counts[point]

    def __iter__(self) -> Iterator[DataPoint]:
        return iter(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    def __repr__(self) -> str:
        return f"Histogram({self._counts!r})"

    @property
    def largest_multiple(self) -> int:
        """Largest count held by any point, 0 for an empty histogram."""
        return max(self._counts.values(), default=0)

    def merged(self, counts: Mapping) -> "Histogram":
        """
        Return a new histogram with `counts` added onto a copy of this one.

        Args:
            counts: Per-point counts to add

        Returns:
            New cumulative Histogram
        """
        combined = dict(self._counts)
        for point, count in counts.items():
            combined[point] = combined.get(point, 0) + count
        return Histogram(combined)


@dataclass(frozen=True)
class FetchOutcome:
    """Result of fetching one batch index with retries."""
    success: bool
    batch: Optional[List[DataPoint]] = None
    attempts: int = 0

    @classmethod
    def ok(cls, batch: Optional[List[DataPoint]], attempts: int) -> "FetchOutcome":
        return cls(success=True, batch=batch, attempts=attempts)

    @classmethod
    def exhausted(cls, attempts: int) -> "FetchOutcome":
        return cls(success=False, batch=None, attempts=attempts)


@dataclass
class RunStats:
    """Counters collected while the engine runs."""
    fetch_attempts: int = 0
    retries: int = 0
    points_received: int = 0


@dataclass
class RunResult:
    """Complete engine run result."""
    grid: GridDescriptor
    histograms: List[Histogram]
    failed_indices: List[int]
    empty_indices: List[int]
    progress: int  # Range 0-100
    completed: bool
    elapsed_seconds: float = 0.0
    stats: Optional[RunStats] = None

    @property
    def latest(self) -> Optional[Histogram]:
        return self.histograms[-1] if self.histograms else None
