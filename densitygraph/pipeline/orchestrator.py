"""Pipeline orchestrator wiring configuration, fetcher and engine."""

from contextlib import ExitStack
from typing import Optional

from densitygraph.fetcher.base import BatchFetcher
from densitygraph.fetcher.http_client import HTTPBatchFetcher
from densitygraph.fetcher.retry_handler import RetryHandler
from densitygraph.fetcher.simulated import SimulatedBatchFetcher
from densitygraph.models.config import EngineConfig
from densitygraph.models.data_models import RunResult
from densitygraph.monitoring.logger import StructuredLogger
from densitygraph.processor.engine import AccumulatorEngine, EngineListener


class PipelineOrchestrator:
    """Builds the configured batch source and runs one engine over it."""

    def __init__(self, config: EngineConfig, fetcher: Optional[BatchFetcher] = None):
        """
        Initialize orchestrator with configuration.

        Args:
            config: Engine configuration object
            fetcher: Batch source to use instead of the configured one
        """
        self.config = config
        self.fetcher = fetcher
        self.logger = StructuredLogger(
            level=config.log_level,
            structured=config.structured_logging
        )

    def build_fetcher(self) -> BatchFetcher:
        """Create the batch source named by `config.source`."""
        if self.config.source == "http":
            return HTTPBatchFetcher(
                self.config.server_url,
                connect_timeout=self.config.connect_timeout,
                read_timeout=self.config.read_timeout
            )
        return SimulatedBatchFetcher(
            columns=self.config.grid_columns,
            rows=self.config.grid_rows,
            batch_count=self.config.batch_count,
            points_per_batch=self.config.points_per_batch,
            error_rate=self.config.error_rate,
            empty_rate=self.config.empty_rate,
            random_seed=self.config.random_seed
        )

    def build_retry_handler(self) -> RetryHandler:
        return RetryHandler(
            max_attempts=self.config.max_attempts,
            base_delay=self.config.retry_base_delay,
            max_delay=self.config.retry_max_delay,
            jitter_max=self.config.retry_jitter_max
        )

    def run(self, listener: Optional[EngineListener] = None) -> RunResult:
        """
        Run the engine to completion: fetch -> count -> accumulate.

        Args:
            listener: Receives engine notifications

        Returns:
            RunResult with histograms, failed and empty indices
        """
        fetcher = self.fetcher or self.build_fetcher()

        with ExitStack() as stack:
            if isinstance(fetcher, HTTPBatchFetcher):
                stack.enter_context(fetcher)

            engine = AccumulatorEngine(
                fetcher,
                listener=listener,
                retry_handler=self.build_retry_handler(),
                logger=self.logger
            )
            return engine.run()
