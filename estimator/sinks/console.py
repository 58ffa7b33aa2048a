"""Console sink for Rich-based metric display."""

from __future__ import annotations

from typing import Any

from rich import box
from rich.table import Table

from console import EstimatorConsole
from .base import MetricSink, _format_metric_value


class ConsoleSink(MetricSink):
    """Display metrics in a Rich table via EstimatorConsole."""

    def __init__(self, title: str = "Evaluation"):
        self._console = EstimatorConsole()
        self._title = title

    def emit(self, metrics: dict[str, Any], step: int, tag: str | None = None):
        if not metrics:
            return

        title = f"{self._title} ({tag})" if tag else self._title
        table = Table(
            box=box.SIMPLE,
            show_header=True,
            header_style="table.header",
            title=f"{title} @ step {step}",
            title_style="detail",
            padding=(0, 1),
        )
        table.add_column("Metric", style="metric.label")
        table.add_column("Value", justify="right", style="metric.value")
        for key in sorted(metrics):
            table.add_row(key, _format_metric_value(metrics[key]))

        self._console.print(table)
