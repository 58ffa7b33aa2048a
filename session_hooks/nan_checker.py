"""NaN loss detection hook."""

import math

from console import EstimatorConsole
from estimator.engine import CounterKey, GraphKeys
from estimator.errors import NaNLossError
from estimator.hooks import Hook, HookPoint, HookRegistry, SessionRunArgs, StepContext


@HookRegistry.register
class NaNChecker(Hook):
    """Watch the graph's losses and fail (or stop) when one becomes NaN.

    Fetches every op in the ``LOSSES`` collection on each run. With
    ``fail_on_nan`` a NaN raises ``NaNLossError``; otherwise a warning is
    printed and the loop is asked to stop.
    """

    name = "nan_checker"
    description = "Fails or stops training when a loss becomes NaN"
    hook_points = frozenset({HookPoint.SESSION_START, HookPoint.BEFORE_RUN, HookPoint.AFTER_RUN})

    def __init__(self, fail_on_nan: bool = True):
        self.fail_on_nan = fail_on_nan
        self._losses = []
        self._step = None

    def after_session_creation(self, session):
        self._losses = session.graph.get_collection(GraphKeys.LOSSES)
        self._step = session.graph.get_counter(CounterKey.GLOBAL_STEP)

    def before_run(self, ctx: StepContext):
        if not self._losses:
            return None
        return SessionRunArgs(fetches=list(self._losses))

    def after_run(self, ctx: StepContext, values):
        if not values:
            return
        if not any(math.isnan(float(v)) for v in values):
            return
        step = self._step.value if self._step is not None else None
        if self.fail_on_nan:
            raise NaNLossError(step)
        EstimatorConsole().print_warning(
            f"Loss is NaN at step [value.count]{step}[/value.count]; stopping training"
        )
        ctx.request_stop()
