"""Exception hierarchy for the estimator and its execution engine.

Three failure classes matter to the mode loops:

- ``OutOfRangeError``: the input source is exhausted. Never escapes a loop;
  it ends the loop normally.
- ``RecoverableError`` (``AbortedError``, ``UnavailableError``): the session
  was asked to stop mid-run without corrupting state. Evaluation reports an
  empty result; train and infer propagate it but keep the session alive.
- Everything else is fatal: the session is closed abruptly and the error
  re-raised.
"""


class EstimatorError(Exception):
    """Base class for all estimator errors."""


class OutOfRangeError(EstimatorError):
    """Raised by a dataset iterator when its input source is exhausted."""


class RecoverableError(EstimatorError):
    """Base class for errors after which the session is still consistent."""


class AbortedError(RecoverableError):
    """The current run was aborted (e.g. a concurrent stop request)."""


class UnavailableError(RecoverableError):
    """A resource the run needed was temporarily unavailable."""


class InvalidConfigurationError(EstimatorError, ValueError):
    """The estimator configuration cannot satisfy the requested operation."""


class DeadSessionError(EstimatorError):
    """The session was torn down after a fatal error and cannot be used."""


class SessionClosedError(EstimatorError):
    """A raw session was used after it was closed."""


class GraphFrozenError(EstimatorError):
    """An op was added to a graph while the graph was frozen."""


class NaNLossError(EstimatorError):
    """The training loss became NaN."""

    def __init__(self, step: int | None = None):
        self.step = step
        where = f" at step {step}" if step is not None else ""
        super().__init__(f"Model diverged with loss = NaN{where}.")


RECOVERABLE_ERRORS = (RecoverableError,)
