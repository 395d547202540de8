"""Pytest configuration and shared fixtures."""

import random

import pytest

from tests.fixtures.sample_data import ScriptedBatchFetcher


@pytest.fixture(scope="session")
def deterministic_seed():
    """Set a fixed random seed for deterministic test results."""
    random.seed(42)
    return 42


@pytest.fixture
def sample_config():
    """Provide a sample configuration for testing."""
    from densitygraph.models.config import EngineConfig

    return EngineConfig(
        max_attempts=4,
        source="simulated",
        grid_columns=5,
        grid_rows=4,
        batch_count=10,
        points_per_batch=8,
        error_rate=0.2,
        random_seed=42,
        log_level="WARNING",
    )


@pytest.fixture
def scripted_fetcher():
    """Fetcher serving the default 3-batch data set."""
    return ScriptedBatchFetcher()


@pytest.fixture
def recorder():
    """Listener that records (event, progress) pairs."""
    events = []

    def listener(event, engine):
        events.append((event, engine.progress))

    listener.events = events
    return listener
