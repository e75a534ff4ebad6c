"""Batch orchestration over a bounded worker pool."""

from officepdf.batch.orchestrator import BatchConverter

__all__ = ["BatchConverter"]
