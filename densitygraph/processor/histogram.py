"""Per-batch counting and cumulative histogram merging."""

from collections import Counter
from typing import Iterable, Optional

from densitygraph.models.data_models import DataPoint, Histogram


def count_batch(points: Iterable[DataPoint]) -> Counter:
    """Group a batch by coordinate, counting repeats."""
    return Counter(points)


def merge_cumulative(previous: Optional[Histogram], points: Iterable[DataPoint]) -> Histogram:
    """
    Build the next cumulative histogram.

    The new histogram is a copy of `previous` (or an empty histogram when
    there is none) with the batch's per-point counts added on. `previous`
    is left untouched.

    Args:
        previous: Last cumulative histogram, or None for the first batch
        points: Data points of the current batch

    Returns:
        New cumulative Histogram
    """
    base = previous if previous is not None else Histogram()
    return base.merged(count_batch(points))
