"""Histogram accumulation module."""

from .engine import AccumulatorEngine
from .histogram import count_batch, merge_cumulative

__all__ = ["AccumulatorEngine", "count_batch", "merge_cumulative"]
