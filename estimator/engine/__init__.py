"""Minimal execution engine: op graph, raw session and dataset iterators."""

from .graph import (
    Counter, CounterKey, Graph, GraphKeys, Op, op_scope,
)
from .session import Session, flatten_ops, map_structure
from .data import DatasetIterator

__all__ = [
    "Counter",
    "CounterKey",
    "Graph",
    "GraphKeys",
    "Op",
    "op_scope",
    "Session",
    "flatten_ops",
    "map_structure",
    "DatasetIterator",
]
