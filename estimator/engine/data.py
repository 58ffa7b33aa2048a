"""Re-initializable dataset iterators."""

from __future__ import annotations

from typing import Iterable

from ..errors import EstimatorError, OutOfRangeError
from .graph import Graph, Op


class DatasetIterator:
    """Graph-level iterator over a Python iterable.

    ``next_element`` is created once; ``create_initializer(dataset)`` creates
    a fresh op that (re)binds the iterator to ``dataset`` when run. Any
    iterable works: lists, generators, ``torch.utils.data.DataLoader``.
    Pulling past the end raises ``OutOfRangeError``.
    """

    def __init__(self, graph: Graph, name: str = "input"):
        self.graph = graph
        self.name = name
        self._iterator = None
        self.next_element = graph.create_op(f"{name}/next_element", self._next)

    def _next(self):
        if self._iterator is None:
            raise EstimatorError(
                f"Iterator '{self.name}' has not been initialized; "
                "run an initializer created by create_initializer() first"
            )
        try:
            return next(self._iterator)
        except StopIteration:
            raise OutOfRangeError(f"End of sequence for iterator '{self.name}'") from None

    def create_initializer(self, dataset: Iterable) -> Op:
        """Create an op that binds this iterator to ``dataset``.

        Adds a node to the graph, so the graph must not be frozen.
        """
        def _initialize():
            self._iterator = iter(dataset)
        return self.graph.create_op(f"{self.name}/initializer", _initialize)

    @property
    def initialized(self) -> bool:
        return self._iterator is not None
