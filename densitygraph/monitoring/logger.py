"""Structured logging for engine monitoring."""

import json
import logging
from typing import Optional


class StructuredLogger:
    """Structured logger with uniform schema."""

    def __init__(self, name: str = "densitygraph", level: str = "INFO", structured: bool = True):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.structured = structured

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(handler)

    def log(self, event: str, level: int = logging.INFO, **kwargs) -> None:
        """
        Log structured event.

        Standard keys: event, index, attempt, error, points, unique,
                      histograms, failed, empty, progress
        """
        if self.structured:
            message = json.dumps({"event": event, **kwargs})
        else:
            details = " ".join(f"{key}={value}" for key, value in kwargs.items())
            message = f"{event} {details}".rstrip()
        self.logger.log(level, message)

    def run_start(self, batch_count: int, columns: int, rows: int) -> None:
        self.log("run_start", batch_count=batch_count, columns=columns, rows=rows)

    def fetch_attempt_failed(self, index: int, attempt: int, error: str) -> None:
        self.log("fetch_attempt_failed", level=logging.DEBUG, index=index, attempt=attempt, error=error)

    def batch_accumulated(self, index: int, points: int, unique: int) -> None:
        self.log("batch_accumulated", level=logging.DEBUG, index=index, points=points, unique=unique)

    def batch_empty(self, index: int) -> None:
        self.log("batch_empty", level=logging.WARNING, index=index)

    def index_failed(self, index: int, attempts: int) -> None:
        self.log("index_failed", level=logging.WARNING, index=index, attempts=attempts)

    def run_complete(self, histograms: int, failed: int, empty: int, progress: int,
                     elapsed_ms: Optional[float] = None) -> None:
        self.log("run_complete", histograms=histograms, failed=failed, empty=empty,
                 progress=progress, elapsed_ms=elapsed_ms)

    def run_cancelled(self, next_index: int, progress: int) -> None:
        self.log("run_cancelled", level=logging.WARNING, next_index=next_index, progress=progress)
