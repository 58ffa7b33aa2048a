"""Graph freeze guard."""

from contextlib import contextmanager

from .engine import Graph


@contextmanager
def unfrozen(graph: Graph):
    """Temporarily unfreeze ``graph`` so new ops can be added.

    A frozen graph is unfrozen for the block and refrozen afterwards, also
    when the block raises. An unfrozen graph is left untouched.
    """
    if not graph.is_frozen:
        yield graph
        return
    graph.unfreeze()
    try:
        yield graph
    finally:
        graph.freeze()
