"""Lazily evaluated op graph.

A ``Graph`` is a registry of named ``Op`` nodes. An op wraps a Python
callable together with the ops whose values it consumes; nothing runs until
a ``Session`` evaluates it. The graph also owns enum-keyed counters (global
step, global epoch, evaluation step) and named collections, and can be
frozen so that no further ops can be added.
"""

from __future__ import annotations

import random
from collections import defaultdict
from contextlib import contextmanager
from enum import Enum
from typing import Any, Callable, Iterable

import numpy as np
import torch

from ..errors import GraphFrozenError


class GraphKeys(Enum):
    """Well-known graph collections."""
    LOSSES = "losses"
    SAVERS = "savers"
    METRIC_RESETS = "metric_resets"


class CounterKey(Enum):
    """Well-known counters, created on demand by ``Graph.counter``."""
    GLOBAL_STEP = "global_step"
    GLOBAL_EPOCH = "global_epoch"
    EVAL_STEP = "eval_step"


class Op:
    """A named node in a ``Graph``.

    ``fn`` is called with the evaluated values of ``inputs`` (in order) and
    its return value is the op's value for the current run. Ops whose value
    is only wanted for its side effect return None.
    """

    def __init__(
        self,
        graph: Graph,
        name: str,
        fn: Callable[..., Any],
        inputs: Iterable[Op] = (),
        device: str | None = None,
    ):
        self.graph = graph
        self.name = name
        self.fn = fn
        self.inputs = tuple(inputs)
        self.device = device

    def __repr__(self):
        device = f", device={self.device!r}" if self.device else ""
        return f"Op({self.name!r}{device})"


class Counter:
    """An integer variable stored in the graph.

    The ``read``, ``increment`` and ``reset`` ops are created together with
    the counter, so they exist before the graph is frozen.
    """

    def __init__(self, graph: Graph, key: CounterKey, local: bool = False):
        self.graph = graph
        self.key = key
        self.local = local
        self.value = 0
        self.read = graph.create_op(f"{key.value}/read", lambda: self.value)
        self.increment = self.assign_add(1)
        self.reset = self.assign(0)

    def assign_add(self, delta: int = 1) -> Op:
        def _add():
            self.value += delta
            return self.value
        return self.graph.create_op(f"{self.key.value}/assign_add", _add)

    def assign(self, value: int) -> Op:
        def _assign():
            self.value = value
            return self.value
        return self.graph.create_op(f"{self.key.value}/assign", _assign)

    def __repr__(self):
        scope = "local" if self.local else "global"
        return f"Counter({self.key.value}={self.value}, {scope})"


class Graph:
    """Container of ops, counters and collections with a freeze latch."""

    def __init__(self):
        self._ops: dict[str, Op] = {}
        self._name_counts: dict[str, int] = defaultdict(int)
        self._collections: dict[GraphKeys, list] = defaultdict(list)
        self._counters: dict[CounterKey, Counter] = {}
        self._frozen = False
        self._scope_stack: list[str] = []
        self._device_fn_stack: list[Callable[[str], str | None]] = []
        self.seed: int | None = None

    # --- Ops ---

    def _unique_name(self, name: str) -> str:
        full = "/".join(self._scope_stack + [name])
        count = self._name_counts[full]
        self._name_counts[full] += 1
        return full if count == 0 else f"{full}_{count}"

    def create_op(
        self,
        name: str,
        fn: Callable[..., Any],
        inputs: Iterable[Op] = (),
    ) -> Op:
        """Add a new op to the graph.

        The op name is prefixed with the active name scope and made unique.
        Its device comes from the innermost active device function.

        Raises:
            GraphFrozenError: If the graph is frozen.
        """
        if self._frozen:
            raise GraphFrozenError(
                f"Cannot add op '{name}': the graph is frozen"
            )
        unique = self._unique_name(name)
        device = self._device_fn_stack[-1](unique) if self._device_fn_stack else None
        op = Op(self, unique, fn, inputs, device)
        self._ops[unique] = op
        return op

    def group(self, name: str, ops: Iterable[Op]) -> Op:
        """An op that runs ``ops`` in order and produces no value."""
        return self.create_op(name, lambda *_: None, ops)

    def get_op(self, name: str) -> Op:
        return self._ops[name]

    @property
    def ops(self) -> list[Op]:
        return list(self._ops.values())

    # --- Freeze latch ---

    def freeze(self):
        self._frozen = True

    def unfreeze(self):
        self._frozen = False

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    # --- Collections ---

    def add_to_collection(self, key: GraphKeys, value: Any):
        self._collections[key].append(value)

    def get_collection(self, key: GraphKeys) -> list:
        return list(self._collections[key])

    # --- Counters ---

    def counter(self, key: CounterKey, local: bool = False) -> Counter:
        """Get the counter for ``key``, creating it if needed."""
        if key not in self._counters:
            self._counters[key] = Counter(self, key, local=local)
        return self._counters[key]

    def get_counter(self, key: CounterKey) -> Counter | None:
        return self._counters.get(key)

    def counter_state(self) -> dict[str, int]:
        """Values of all global (non-local) counters, keyed by name."""
        return {
            key.value: c.value for key, c in self._counters.items() if not c.local
        }

    def load_counter_state(self, state: dict[str, int]):
        for key, c in self._counters.items():
            if not c.local and key.value in state:
                c.value = int(state[key.value])

    # --- Reproducibility ---

    def set_random_seed(self, seed: int):
        """Seed python, numpy and torch RNGs for ops run on this graph."""
        self.seed = seed
        random.seed(seed)
        np.random.seed(seed)
        torch.manual_seed(seed)

    def __repr__(self):
        state = "frozen" if self._frozen else "unfrozen"
        return f"Graph({len(self._ops)} ops, {state})"


@contextmanager
def op_scope(
    graph: Graph,
    name_scope: str | None = None,
    device_fn: Callable[[str], str | None] | None = None,
):
    """Open a name scope and/or device placement function on ``graph`` for
    the duration of the block."""
    if name_scope:
        graph._scope_stack.append(name_scope)
    if device_fn is not None:
        graph._device_fn_stack.append(device_fn)
    try:
        yield graph
    finally:
        if device_fn is not None:
            graph._device_fn_stack.pop()
        if name_scope:
            graph._scope_stack.pop()
