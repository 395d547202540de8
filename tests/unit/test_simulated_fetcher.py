"""Unit tests for the simulated batch source."""

import pytest

from densitygraph.fetcher.base import BatchFetchError
from densitygraph.fetcher.simulated import SimulatedBatchFetcher
from densitygraph.models.data_models import GridDescriptor


def test_grid_descriptor():
    fetcher = SimulatedBatchFetcher(columns=6, rows=4, batch_count=12)

    assert fetcher.get_grid_descriptor() == GridDescriptor(columns=6, rows=4, batch_count=12)


def test_points_within_grid(deterministic_seed):
    fetcher = SimulatedBatchFetcher(columns=6, rows=4, batch_count=12, points_per_batch=30,
                                    random_seed=deterministic_seed)

    for index in range(12):
        batch = fetcher.get_batch(index)
        assert 1 <= len(batch) <= 30
        assert all(0 <= p.x < 6 and 0 <= p.y < 4 for p in batch)


def test_same_seed_same_batches():
    first = SimulatedBatchFetcher(random_seed=7)
    second = SimulatedBatchFetcher(random_seed=7)

    assert [first.get_batch(i) for i in range(5)] == [second.get_batch(i) for i in range(5)]


def test_batch_contents_ignore_failed_attempts():
    flaky = SimulatedBatchFetcher(random_seed=7, error_rate=0.5)

    assert flaky.generate_batch(3) == SimulatedBatchFetcher(random_seed=7).generate_batch(3)


def test_error_rate_one_always_raises():
    fetcher = SimulatedBatchFetcher(batch_count=2, error_rate=1.0, random_seed=1)

    for _ in range(5):
        with pytest.raises(BatchFetchError):
            fetcher.get_batch(0)
    assert fetcher.calls == 5


def test_empty_rate_one_returns_empty():
    fetcher = SimulatedBatchFetcher(batch_count=2, empty_rate=1.0, random_seed=1)

    assert fetcher.get_batch(0) == []


def test_zero_sized_grid_returns_empty():
    fetcher = SimulatedBatchFetcher(columns=0, rows=0, batch_count=2, random_seed=1)

    assert fetcher.get_batch(1) == []


def test_out_of_range_index():
    fetcher = SimulatedBatchFetcher(batch_count=2)

    with pytest.raises(IndexError):
        fetcher.get_batch(2)
