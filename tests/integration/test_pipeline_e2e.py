"""End-to-end tests: engine -> HTTP fetcher -> mock batch server.

The mock server runs in-process through FastAPI's TestClient, which is
an httpx.Client and can be handed straight to HTTPBatchFetcher.
"""

import pytest
from fastapi.testclient import TestClient

from densitygraph.fetcher.http_client import HTTPBatchFetcher
from densitygraph.fetcher.simulated import SimulatedBatchFetcher
from densitygraph.mock_servers import create_mock_app
from densitygraph.models.config import EngineConfig
from densitygraph.models.data_models import EngineEvent
from densitygraph.pipeline.orchestrator import PipelineOrchestrator
from densitygraph.processor.engine import AccumulatorEngine
from densitygraph.processor.histogram import merge_cumulative


def http_fetcher(**app_kwargs) -> HTTPBatchFetcher:
    client = TestClient(create_mock_app(**app_kwargs))
    return HTTPBatchFetcher("http://testserver", client=client)


@pytest.mark.integration
def test_reliable_server_produces_one_histogram_per_batch():
    fetcher = http_fetcher(columns=5, rows=5, batch_count=8, random_seed=3, error_rate=0.0)
    events = []

    engine = AccumulatorEngine(fetcher, listener=lambda event, e: events.append(event))
    result = engine.run()

    assert result.completed is True
    assert len(result.histograms) == 8
    assert result.failed_indices == []
    assert events.count(EngineEvent.COMPLETED) == 1
    assert events[-1] is EngineEvent.COMPLETED


@pytest.mark.integration
def test_histograms_match_server_data():
    fetcher = http_fetcher(columns=4, rows=4, batch_count=5, random_seed=9, error_rate=0.0)
    reference = SimulatedBatchFetcher(columns=4, rows=4, batch_count=5, random_seed=9)

    result = AccumulatorEngine(fetcher).run()

    expected = None
    for index in range(5):
        expected = merge_cumulative(expected, reference.generate_batch(index))
        assert result.histograms[index] == expected


@pytest.mark.integration
def test_flaky_server_recovers_or_logs_failures():
    fetcher = http_fetcher(columns=5, rows=5, batch_count=20, random_seed=5, error_rate=0.4)

    result = AccumulatorEngine(fetcher).run()

    assert result.completed is True
    assert len(result.histograms) + len(result.failed_indices) == 20
    assert len(set(result.failed_indices)) == len(result.failed_indices)
    assert result.failed_indices == sorted(result.failed_indices)
    assert result.stats.retries > 0


@pytest.mark.integration
def test_unavailable_server_fails_every_index():
    fetcher = http_fetcher(batch_count=4, random_seed=1, error_rate=1.0)

    result = AccumulatorEngine(fetcher).run()

    assert result.failed_indices == [0, 1, 2, 3]
    assert result.histograms == []
    assert result.stats.fetch_attempts == 16


@pytest.mark.integration
def test_empty_batches_still_complete():
    fetcher = http_fetcher(batch_count=3, random_seed=2, error_rate=0.0, empty_rate=1.0)

    result = AccumulatorEngine(fetcher).run()

    assert result.completed is True
    assert result.empty_indices == [0, 1, 2]
    assert result.progress == 100


@pytest.mark.integration
def test_orchestrator_with_http_source():
    config = EngineConfig(source="http", log_level="ERROR")
    fetcher = http_fetcher(batch_count=6, random_seed=4, error_rate=0.0)

    result = PipelineOrchestrator(config, fetcher=fetcher).run()

    assert result.completed is True
    assert len(result.histograms) == 6
