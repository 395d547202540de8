"""Batch fetcher contract shared by all data sources."""

from typing import List, Optional, Protocol

from densitygraph.models.data_models import DataPoint, GridDescriptor


class BatchFetchError(Exception):
    """A batch could not be retrieved. Carries no payload beyond the message."""


class BatchFetcher(Protocol):
    """
    Source of the grid descriptor and per-index batches.

    `get_grid_descriptor` is called once before any batch retrieval and
    is not retried. `get_batch` may raise on transient failure and may
    return None or an empty list when an index has no data.
    """

    def get_grid_descriptor(self) -> GridDescriptor:
        ...

    def get_batch(self, index: int) -> Optional[List[DataPoint]]:
        ...
