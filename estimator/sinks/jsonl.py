"""JSONL sink for appending metrics as JSON Lines."""

from __future__ import annotations

import json
from typing import Any

from .base import FilePathSink, _json_default


class JSONLSink(FilePathSink):
    """Append metrics as JSON Lines (one JSON object per emit).

    Each record holds the step, the tag (when given) and the metric values;
    tensors and numpy scalars are converted to plain JSON types.
    """

    def _ensure_open(self):
        if self._file is None:
            self._filepath.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self._filepath, 'a', newline='')

    def emit(self, metrics: dict[str, Any], step: int, tag: str | None = None):
        if not metrics:
            return

        self._ensure_open()
        record = {"step": step}
        if tag is not None:
            record["tag"] = tag
        record.update(metrics)
        self._file.write(json.dumps(record, default=_json_default) + '\n')
        self._file.flush()
