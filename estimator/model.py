"""Models and the per-mode bundles of graph handles they build.

A ``Model`` builds three sub-graphs: training, inference and evaluation.
Each build returns a ``ModelInstance``, the immutable bundle of handles
(input iterator, input, output, loss, gradients, train op...) that the
estimator drives and that model-dependent hooks are bound to.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, TYPE_CHECKING

import torch
import torch.nn as nn

from .engine import CounterKey, DatasetIterator, Graph, GraphKeys, Op
from .metrics import Metric

if TYPE_CHECKING:
    from .config import Configuration


@dataclass(frozen=True)
class EvalMetricOps:
    """Per-metric update, value and reset ops, keyed by metric name."""
    updates: dict[str, Op] = field(default_factory=dict)
    values: dict[str, Op] = field(default_factory=dict)
    resets: dict[str, Op] = field(default_factory=dict)


@dataclass(frozen=True)
class ModelInstance:
    """Graph handles for one mode. Handles a mode does not build are None."""
    model: 'Model'
    configuration: 'Configuration | None' = None
    input_iterator: DatasetIterator | None = None
    input: Op | None = None
    output: Op | None = None
    train_output: Op | None = None
    loss: Op | None = None
    gradients: Op | None = None
    train_op: Op | None = None
    metrics: EvalMetricOps | None = None


class Model(ABC):
    """A model that can build its training, inference and evaluation ops."""

    @abstractmethod
    def build_train_ops(self, graph: Graph) -> ModelInstance:
        ...

    @abstractmethod
    def build_infer_ops(self, graph: Graph) -> ModelInstance:
        ...

    @abstractmethod
    def build_eval_ops(self, graph: Graph, metrics: list[Metric]) -> ModelInstance:
        ...

    def state_dict(self) -> dict:
        return {}

    def load_state_dict(self, state: dict):
        pass


def _split_batch(batch: Any) -> tuple[Any, Any]:
    """Split a dataset element into (features, labels)."""
    if isinstance(batch, (tuple, list)) and len(batch) == 2:
        return batch[0], batch[1]
    raise ValueError(
        "Training and evaluation elements must be (features, labels) pairs, "
        f"got {type(batch).__name__}"
    )


def _features_only(batch: Any) -> Any:
    if isinstance(batch, (tuple, list)):
        return batch[0]
    return batch


class SupervisedModel(Model):
    """A ``torch.nn.Module`` trained by gradient descent on (features, labels).

    Args:
        module: The network.
        loss_fn: ``loss_fn(output, labels) -> scalar tensor``.
        optimizer_fn: Builds the optimizer from the module parameters,
            e.g. ``lambda params: torch.optim.SGD(params, lr=0.1)``.
        device: Device the module is moved to (inputs follow op placement).
    """

    def __init__(
        self,
        module: nn.Module,
        loss_fn: Callable[[torch.Tensor, torch.Tensor], torch.Tensor],
        optimizer_fn: Callable[[Any], torch.optim.Optimizer],
        device: str | torch.device | None = None,
    ):
        self.module = module if device is None else module.to(device)
        self.loss_fn = loss_fn
        self.optimizer = optimizer_fn(self.module.parameters())
        self.device = device

    def _to_device(self, value):
        if self.device is None or not isinstance(value, torch.Tensor):
            return value
        return value.to(self.device)

    # --- Op bodies ---

    def _train_forward(self, features):
        self.module.train()
        return self.module(self._to_device(features))

    def _eval_forward(self, features):
        self.module.eval()
        with torch.no_grad():
            return self.module(self._to_device(features))

    def _loss(self, output, labels):
        return self.loss_fn(output, self._to_device(labels))

    def _gradients(self, loss):
        self.optimizer.zero_grad()
        loss.backward()
        return [p.grad for p in self.module.parameters() if p.grad is not None]

    def _apply_gradients(self, gradients):
        self.optimizer.step()

    # --- Builders ---

    def build_train_ops(self, graph: Graph) -> ModelInstance:
        iterator = DatasetIterator(graph, "train_input")
        batch = iterator.next_element
        features = graph.create_op("features", lambda b: _split_batch(b)[0], [batch])
        labels = graph.create_op("labels", lambda b: _split_batch(b)[1], [batch])
        output = graph.create_op("output", self._train_forward, [features])
        loss = graph.create_op("loss", self._loss, [output, labels])
        gradients = graph.create_op("gradients", self._gradients, [loss])
        apply = graph.create_op("apply_gradients", self._apply_gradients, [gradients])
        global_step = graph.counter(CounterKey.GLOBAL_STEP)
        train_op = graph.group("train_op", [apply, global_step.increment])
        return ModelInstance(
            model=self,
            input_iterator=iterator,
            input=batch,
            output=output,
            train_output=output,
            loss=loss,
            gradients=gradients,
            train_op=train_op,
        )

    def build_infer_ops(self, graph: Graph) -> ModelInstance:
        iterator = DatasetIterator(graph, "infer_input")
        batch = iterator.next_element
        features = graph.create_op("features", _features_only, [batch])
        output = graph.create_op("output", self._eval_forward, [features])
        return ModelInstance(model=self, input_iterator=iterator, input=features, output=output)

    def build_eval_ops(self, graph: Graph, metrics: list[Metric]) -> ModelInstance:
        iterator = DatasetIterator(graph, "eval_input")
        batch = iterator.next_element
        features = graph.create_op("features", lambda b: _split_batch(b)[0], [batch])
        labels = graph.create_op("labels", lambda b: _split_batch(b)[1], [batch])
        output = graph.create_op("output", self._eval_forward, [features])
        updates, values, resets = {}, {}, {}
        for metric in metrics:
            updates[metric.name] = graph.create_op(
                f"{metric.name}/update",
                lambda out, y, m=metric: m.update(out, self._to_device(y)),
                [output, labels],
            )
            values[metric.name] = graph.create_op(f"{metric.name}/value", metric.value)
            resets[metric.name] = graph.create_op(f"{metric.name}/reset", metric.reset)
            graph.add_to_collection(GraphKeys.METRIC_RESETS, resets[metric.name])
        return ModelInstance(
            model=self,
            input_iterator=iterator,
            input=batch,
            output=output,
            metrics=EvalMetricOps(updates, values, resets),
        )

    # --- Persistence ---

    def state_dict(self) -> dict:
        return {
            'module': self.module.state_dict(),
            'optimizer': self.optimizer.state_dict(),
        }

    def load_state_dict(self, state: dict):
        self.module.load_state_dict(state['module'])
        self.optimizer.load_state_dict(state['optimizer'])
