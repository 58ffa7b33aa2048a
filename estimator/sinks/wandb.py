"""Weights & Biases sink for logging metrics to W&B."""

from __future__ import annotations

from typing import Any

from .base import MetricSink


class WandbSink(MetricSink):
    """Log metrics to Weights & Biases.

    The run is started lazily on the first emit. Metrics are logged as
    ``<tag>/<metric>`` (or ``<metric>`` without a tag) with the global step
    as the x-axis.

    Requires ``wandb`` to be installed.
    """

    def __init__(
        self,
        project: str | None = None,
        name: str | None = None,
        config: dict | None = None,
    ):
        """
        Args:
            project: W&B project name.
            name: Run name.
            config: Config dict logged with the run.
        """
        try:
            import wandb
        except ImportError:
            raise ImportError(
                "WandbSink requires the 'wandb' package. "
                "Install it with: pip install wandb"
            )
        self._wandb = wandb
        self._project = project
        self._name = name
        self._config = config or {}

    def _ensure_run(self):
        if self._wandb.run is None:
            self._wandb.init(
                project=self._project,
                name=self._name,
                config=self._config,
                settings=self._wandb.Settings(console="off"),
            )

    def emit(self, metrics: dict[str, Any], step: int, tag: str | None = None):
        if not metrics:
            return
        self._ensure_run()

        logged = {}
        for key, value in metrics.items():
            if isinstance(value, (int, float, bool)) or hasattr(value, 'item'):
                full_key = f"{tag}/{key}" if tag else key
                logged[full_key] = self._to_scalar(value)
        if logged:
            self._wandb.log(logged, step=step)

    @staticmethod
    def _to_scalar(value: Any):
        """Coerce to a Python scalar for W&B logging."""
        if hasattr(value, 'item'):
            return value.item()
        return value

    def flush(self):
        if self._wandb.run is not None:
            self._wandb.finish()
