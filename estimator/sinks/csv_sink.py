"""CSV sink for appending metrics to a CSV file."""

from __future__ import annotations

import csv
from typing import Any

from .base import FilePathSink, _flatten_for_csv, _format_metric_value


class CSVSink(FilePathSink):
    """Append metrics to a CSV file.

    Writes incrementally on each emit. If a new column appears (e.g. an
    evaluation with an extra metric), the file is rewritten with the
    expanded header.
    """

    def __init__(self, filepath):
        super().__init__(filepath)
        self._fieldnames: list[str] = []
        self._rows: list[dict] = []
        self._writer = None

    def _open(self):
        """Open the CSV file and write the header."""
        self._filepath.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self._filepath, 'w', newline='')
        self._writer = csv.DictWriter(
            self._file, fieldnames=self._fieldnames, restval='',
        )
        self._writer.writeheader()

    def _rewrite(self):
        """Rewrite the entire file with the current fieldnames and rows."""
        if self._file is not None:
            self._file.close()
        self._open()
        for row in self._rows:
            self._writer.writerow(self._flatten_row(row))
        self._file.flush()

    @staticmethod
    def _flatten_row(row: dict) -> dict:
        """Flatten non-scalar values so every cell is CSV-safe."""
        return {
            k: _format_metric_value(v) if hasattr(v, 'item') else _flatten_for_csv(v)
            for k, v in row.items()
        }

    def emit(self, metrics: dict[str, Any], step: int, tag: str | None = None):
        if not metrics:
            return

        row = {"step": step}
        if tag is not None:
            row["tag"] = tag
        row.update(metrics)
        self._rows.append(row)

        new_keys = [k for k in row if k not in self._fieldnames]
        if new_keys:
            self._fieldnames.extend(new_keys)
            self._rewrite()
        else:
            if self._writer is None:
                self._open()
            self._writer.writerow(self._flatten_row(row))
            self._file.flush()

    def flush(self):
        """Flush and close, also clearing the CSV writer."""
        super().flush()
        self._writer = None
