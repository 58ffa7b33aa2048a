"""Sink base classes and shared formatting helpers.

Defines the MetricSink ABC and the FilePathSink base for sinks that
write to a file (CSV, JSONL).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any


# --- Formatting helpers used by multiple sinks ---

def _flatten_for_csv(value: Any) -> str:
    """Flatten a non-scalar value to a CSV-safe string using semicolons.

    Dicts become ``key:value;key:value``, lists become ``val;val;val``,
    and scalars pass through as-is.
    """
    if isinstance(value, dict):
        return ';'.join(f'{k}:{v}' for k, v in value.items())
    if isinstance(value, (list, tuple)):
        return ';'.join(str(v) for v in value)
    return value


def _format_number(value: float) -> str:
    """Format a numeric value with appropriate precision."""
    if value != 0 and (abs(value) < 0.001 or abs(value) > 10000):
        return f"{value:.4e}"
    return f"{value:.6f}"


def _format_metric_value(value: Any) -> str:
    if hasattr(value, 'item'):
        value = value.item()
    if isinstance(value, float):
        return _format_number(value)
    return str(value)


def _json_default(obj):
    """JSON serializer fallback for torch/numpy scalars and arrays."""
    if hasattr(obj, 'item'):
        return obj.item()
    if hasattr(obj, 'tolist'):
        return obj.tolist()
    return str(obj)


# --- Base classes ---

class MetricSink(ABC):
    """Base class for metric output destinations."""

    @abstractmethod
    def emit(self, metrics: dict[str, Any], step: int, tag: str | None = None):
        """Receive a set of metric values.

        Args:
            metrics: Metric name -> value.
            step: Global step the values belong to.
            tag: Optional label of the producer (e.g. the evaluation name).
        """
        ...

    def flush(self):
        """Flush any buffered output."""
        pass


class FilePathSink(MetricSink):
    """Base for sinks that append to a single file, opened lazily."""

    def __init__(self, filepath: str | Path):
        self._filepath = Path(filepath)
        self._file = None

    @property
    def filepath(self) -> Path:
        return self._filepath

    def _close_file(self):
        """Flush and close the current file handle if open."""
        if self._file is not None:
            self._file.flush()
            self._file.close()
            self._file = None

    def flush(self):
        self._close_file()
