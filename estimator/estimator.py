"""Estimator base class: configuration, saver and summary plumbing."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Any, Iterable

from console import EstimatorConsole

from .checkpoints import Saver
from .config import Configuration
from .engine import Graph, GraphKeys
from .errors import InvalidConfigurationError
from .hooks import Hook, HookRegistry
from .metrics import Metric
from .model import Model
from .monitored_session import MonitoredSession, SessionScaffold
from .sinks import MetricSink
from .stop_criteria import StopCriteria
from .summaries import EvaluationSummaryWriter


class Estimator(ABC):
    """Common state of every estimator.

    Subclasses implement ``train``, ``infer`` and ``evaluate``.

    Args:
        model: The model to build ops from.
        configuration: Runtime configuration; defaults to ``Configuration()``.
        stop_criteria: Default training stop criteria.
        summary_sinks: Extra sinks that receive evaluation results (console
            table, W&B...). JSONL/CSV files are always written when a working
            directory is configured.
    """

    def __init__(
        self,
        model: Model,
        configuration: Configuration | None = None,
        stop_criteria: StopCriteria | None = None,
        summary_sinks: Iterable[MetricSink] = (),
    ):
        self.model = model
        self.configuration = configuration if configuration is not None else Configuration()
        self.stop_criteria = stop_criteria if stop_criteria is not None else StopCriteria()
        self.graph = Graph()
        self._summary_sinks = list(summary_sinks)
        self._summary_writer: EvaluationSummaryWriter | None = None

    @property
    def working_dir(self) -> str | None:
        return self.configuration.working_dir

    def get_or_create_saver(self) -> Saver | None:
        """The graph's saver (registered under ``GraphKeys.SAVERS``).

        Returns None when no working directory is configured.
        """
        if self.working_dir is None:
            return None
        savers = self.graph.get_collection(GraphKeys.SAVERS)
        if savers:
            return savers[0]
        saver = Saver(
            os.path.join(self.working_dir, 'checkpoints'),
            self.model,
            self.graph,
            keep_max=self.configuration.keep_checkpoint_max,
        )
        self.graph.add_to_collection(GraphKeys.SAVERS, saver)
        return saver

    def save_evaluation_summaries(
        self,
        step: int,
        metrics: list[Metric],
        values: dict[str, Any],
        name: str | None = None,
    ):
        """Persist evaluation results under the working directory.

        Raises:
            InvalidConfigurationError: If no working directory is configured.
        """
        if self.working_dir is None:
            raise InvalidConfigurationError(
                "A working directory is required to save evaluation summaries"
            )
        if self._summary_writer is None:
            self._summary_writer = EvaluationSummaryWriter(self.working_dir, self._summary_sinks)
        self._summary_writer.save(step, metrics, values, name)

    def monitored_training_session(
        self,
        hooks: Iterable[Hook] = (),
        chief_only_hooks: Iterable[Hook] = (),
        scaffold: SessionScaffold | None = None,
    ) -> MonitoredSession:
        """Create the monitored session for this estimator's graph.

        Chief-only hooks are only installed on the chief. When a working
        directory and ``save_checkpoint_steps`` are configured, the chief also
        gets a checkpoint-saving hook.
        """
        cfg = self.configuration
        all_hooks = list(hooks)
        if cfg.is_chief:
            all_hooks.extend(chief_only_hooks)
            saver = scaffold.saver if scaffold is not None else None
            if saver is not None and cfg.save_checkpoint_steps is not None:
                checkpoint_saver = HookRegistry.get('checkpoint_saver')
                all_hooks.append(checkpoint_saver(saver, save_steps=cfg.save_checkpoint_steps))
        EstimatorConsole().print_debug(
            f"Creating monitored session with [value.count]{len(all_hooks)}[/value.count] hooks"
        )
        return MonitoredSession(self.graph, hooks=all_hooks, scaffold=scaffold)

    def close(self):
        """Flush evaluation summaries."""
        if self._summary_writer is not None:
            self._summary_writer.flush()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @abstractmethod
    def train(self, data, stop_criteria: StopCriteria | None = None):
        ...

    @abstractmethod
    def infer(self, input_fn):
        ...

    @abstractmethod
    def evaluate(
        self,
        data,
        metrics: list[Metric] | None = None,
        max_steps: int | None = None,
        save_summaries: bool = True,
        name: str | None = None,
    ):
        ...
