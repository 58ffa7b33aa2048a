"""Streaming evaluation metrics.

A metric accumulates state over ``update`` calls (one per evaluation step)
and reports the aggregate through ``value``. The estimator resets every
metric at the start of each evaluation.
"""

from abc import ABC, abstractmethod
from typing import Callable

import torch


class Metric(ABC):
    """Base class for streaming metrics."""

    name: str = "metric"

    @abstractmethod
    def update(self, output: torch.Tensor, labels: torch.Tensor):
        """Accumulate one batch."""
        ...

    @abstractmethod
    def value(self) -> float:
        """Aggregate over every batch since the last reset."""
        ...

    @abstractmethod
    def reset(self):
        ...

    def __repr__(self):
        return f"{self.__class__.__name__}(name={self.name!r})"


class Accuracy(Metric):
    """Fraction of correctly classified samples.

    ``output`` holds per-class scores (predictions are the argmax of the
    last dimension). ``labels`` are class indices, or one-hot rows of the
    same shape as ``output``.
    """

    def __init__(self, name: str = "accuracy"):
        self.name = name
        self.reset()

    def update(self, output: torch.Tensor, labels: torch.Tensor):
        with torch.no_grad():
            predictions = output.argmax(dim=-1)
            if labels.shape == output.shape:
                labels = labels.argmax(dim=-1)
            self._correct += (predictions == labels).sum().item()
            self._total += labels.numel()

    def value(self) -> float:
        return self._correct / self._total if self._total else 0.0

    def reset(self):
        self._correct = 0
        self._total = 0


class Mean(Metric):
    """Sample-weighted mean of a per-batch value, e.g. the evaluation loss.

    Example::

        Mean("loss", lambda out, y: F.cross_entropy(out, y))
    """

    def __init__(self, name: str, fn: Callable[[torch.Tensor, torch.Tensor], torch.Tensor]):
        self.name = name
        self._fn = fn
        self.reset()

    def update(self, output: torch.Tensor, labels: torch.Tensor):
        with torch.no_grad():
            batch_value = float(self._fn(output, labels))
        n = labels.shape[0] if labels.dim() > 0 else 1
        self._sum += batch_value * n
        self._count += n

    def value(self) -> float:
        return self._sum / self._count if self._count else 0.0

    def reset(self):
        self._sum = 0.0
        self._count = 0
