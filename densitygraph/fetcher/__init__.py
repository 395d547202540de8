"""Batch fetching module with bounded retry."""

from .base import BatchFetcher, BatchFetchError
from .http_client import HTTPBatchFetcher
from .retry_handler import RetryHandler
from .simulated import SimulatedBatchFetcher

__all__ = ["BatchFetcher", "BatchFetchError", "HTTPBatchFetcher", "RetryHandler", "SimulatedBatchFetcher"]
