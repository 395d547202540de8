"""Seeded in-process batch source with simulated transient failures."""

import random
from typing import List, Optional

from densitygraph.fetcher.base import BatchFetchError
from densitygraph.models.data_models import DataPoint, GridDescriptor


class SimulatedBatchFetcher:
    """
    Generates random batches over a fixed grid.

    Batch contents depend only on (seed, index), so the same seed always
    yields the same data regardless of how many attempts failed before.
    Failures are drawn from a separate stream.
    """

    def __init__(
        self,
        columns: int = 10,
        rows: int = 10,
        batch_count: int = 20,
        points_per_batch: int = 25,
        error_rate: float = 0.0,
        empty_rate: float = 0.0,
        random_seed: Optional[int] = None
    ):
        self.grid = GridDescriptor(columns=columns, rows=rows, batch_count=batch_count)
        self.points_per_batch = points_per_batch
        self.error_rate = error_rate
        self.empty_rate = empty_rate
        self.seed = random_seed if random_seed is not None else random.randrange(2 ** 32)
        self._error_rng = random.Random(self.seed + 1)
        self.calls = 0

    def get_grid_descriptor(self) -> GridDescriptor:
        return self.grid

    def get_batch(self, index: int) -> Optional[List[DataPoint]]:
        """
        Return the batch for `index`, or raise BatchFetchError at `error_rate`.

        Raises:
            BatchFetchError: Simulated transient failure
            IndexError: If index is outside the grid's batch range
        """
        self.calls += 1
        if not 0 <= index < self.grid.batch_count:
            raise IndexError(f"batch index out of range: {index}")

        if self.error_rate and self._error_rng.random() < self.error_rate:
            raise BatchFetchError(f"simulated failure for index {index}")

        return self.generate_batch(index)

    def generate_batch(self, index: int) -> List[DataPoint]:
        """Deterministic batch contents for an index."""
        rng = random.Random(f"{self.seed}:{index}")
        if self.empty_rate and rng.random() < self.empty_rate:
            return []
        if self.points_per_batch <= 0 or self.grid.columns <= 0 or self.grid.rows <= 0:
            return []

        count = rng.randint(1, self.points_per_batch)
        return [
            DataPoint(x=rng.randrange(self.grid.columns), y=rng.randrange(self.grid.rows))
            for _ in range(count)
        ]
