"""Raw execution session: evaluates ops of a ``Graph``."""

from __future__ import annotations

from typing import Any

import torch

from ..errors import SessionClosedError
from .graph import Graph, Op


def flatten_ops(structure) -> list[Op]:
    """Flatten a fetch/target structure into the list of ops it contains."""
    if structure is None:
        return []
    if isinstance(structure, Op):
        return [structure]
    if isinstance(structure, dict):
        return [op for v in structure.values() for op in flatten_ops(v)]
    if isinstance(structure, (list, tuple, set, frozenset)):
        return [op for v in structure for op in flatten_ops(v)]
    raise TypeError(f"Cannot fetch object of type {type(structure).__name__}")


def map_structure(fn, structure):
    """Apply ``fn`` to every op in a fetch structure, preserving its shape."""
    if structure is None:
        return None
    if isinstance(structure, Op):
        return fn(structure)
    if isinstance(structure, dict):
        return {k: map_structure(fn, v) for k, v in structure.items()}
    if isinstance(structure, tuple):
        return tuple(map_structure(fn, v) for v in structure)
    if isinstance(structure, list):
        return [map_structure(fn, v) for v in structure]
    raise TypeError(f"Cannot fetch object of type {type(structure).__name__}")


def _place(value, device: str | None):
    if device is None:
        return value
    if isinstance(value, torch.Tensor):
        return value.to(device)
    if isinstance(value, tuple):
        return tuple(_place(v, device) for v in value)
    if isinstance(value, list):
        return [_place(v, device) for v in value]
    return value


class Session:
    """Evaluates ops of one graph.

    Each ``run`` evaluates every op at most once: values are memoized for
    the duration of the run, so an op shared by several fetches (or by a
    target and a fetch) runs a single time. Targets are evaluated before
    fetches, in the order given.
    """

    def __init__(self, graph: Graph):
        self.graph = graph
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def run(self, fetches=None, targets=None, feeds: dict[Op, Any] | None = None):
        """Run ``targets`` for their side effects and return ``fetches``.

        Args:
            fetches: An op, or a (nested) tuple/list/dict of ops. The return
                value has the same structure with op values in place of ops.
            targets: An op or a sequence of ops to evaluate for their effects.
            feeds: Pre-set values for ops; a fed op is not evaluated.

        Raises:
            SessionClosedError: If the session was closed.
        """
        if self._closed:
            raise SessionClosedError("Attempted to run a closed session")
        cache: dict[Op, Any] = dict(feeds or {})
        for target in flatten_ops(targets):
            self._evaluate(target, cache)
        return map_structure(lambda op: self._evaluate(op, cache), fetches)

    def _evaluate(self, op: Op, cache: dict[Op, Any]):
        if op in cache:
            return cache[op]
        values = [self._evaluate(i, cache) for i in op.inputs]
        value = _place(op.fn(*values), op.device)
        cache[op] = value
        return value

    def close(self):
        self._closed = True

    def __repr__(self):
        state = "closed" if self._closed else "open"
        return f"Session({self.graph!r}, {state})"
