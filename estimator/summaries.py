"""Evaluation summary writer."""

from __future__ import annotations

import os
from typing import Any, Iterable

from console import EstimatorConsole

from .metrics import Metric
from .sinks import CSVSink, JSONLSink, MetricSink


class EvaluationSummaryWriter:
    """Persists evaluation results under the working directory.

    Results of an unnamed evaluation go to ``<working_dir>/eval/``, named
    ones to ``<working_dir>/eval_<name>/``, each as ``metrics.jsonl`` and
    ``metrics.csv``. Extra sinks (console table, W&B) receive every result
    tagged with the evaluation name.
    """

    def __init__(self, working_dir: str, extra_sinks: Iterable[MetricSink] = ()):
        self.working_dir = working_dir
        self._extra_sinks = list(extra_sinks)
        self._file_sinks: dict[str | None, list[MetricSink]] = {}

    def directory(self, name: str | None = None) -> str:
        return os.path.join(self.working_dir, f"eval_{name}" if name else "eval")

    def _sinks_for(self, name: str | None) -> list[MetricSink]:
        if name not in self._file_sinks:
            directory = self.directory(name)
            self._file_sinks[name] = [
                JSONLSink(os.path.join(directory, "metrics.jsonl")),
                CSVSink(os.path.join(directory, "metrics.csv")),
            ]
        return self._file_sinks[name]

    def save(
        self,
        step: int,
        metrics: list[Metric],
        values: dict[str, Any],
        name: str | None = None,
    ):
        """Write ``values`` of ``metrics`` for ``step``."""
        record = {m.name: values[m.name] for m in metrics if m.name in values}
        if not record:
            return
        for sink in self._sinks_for(name) + self._extra_sinks:
            sink.emit(record, step, tag=name)
        EstimatorConsole().print_debug(
            f"Saved evaluation summaries to [path]{self.directory(name)}[/path]"
        )

    def flush(self):
        for sinks in self._file_sinks.values():
            for sink in sinks:
                sink.flush()
        for sink in self._extra_sinks:
            sink.flush()
