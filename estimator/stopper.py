"""The stop hook: evaluates ``StopCriteria`` after every run."""

from __future__ import annotations

import math
import time
from typing import Any

from .engine import CounterKey, GraphKeys
from .hooks import Hook, HookPoint, SessionRunArgs, StepContext
from .stop_criteria import StopCriteria


class Stopper(Hook):
    """Requests a stop once the current ``StopCriteria`` are met.

    The stopper watches one step counter (``CounterKey.GLOBAL_STEP`` while
    training, ``CounterKey.EVAL_STEP`` while evaluating) plus the global
    epoch counter and the wall clock. ``reset`` re-reads the start values;
    with ``restart_counting`` the limits count from there.

    Loss criteria only apply while watching the global step: the loss is
    taken from the graph's ``LOSSES`` collection.

    Each estimator owns exactly one stopper; user-supplied stoppers are
    ignored.
    """

    name = "stopper"
    description = "Stops the loop when step, epoch, time or loss criteria are met"
    hook_points = frozenset({HookPoint.SESSION_START, HookPoint.BEFORE_RUN, HookPoint.AFTER_RUN})

    def __init__(
        self,
        criteria: StopCriteria | None = None,
        counter: CounterKey = CounterKey.GLOBAL_STEP,
    ):
        self._criteria = criteria if criteria is not None else StopCriteria()
        self._counter_key = counter
        self._graph = None
        self._start_step = 0
        self._start_epoch = 0
        self._start_time = time.time()
        self._last_loss: float | None = None
        self._steps_below_tol = 0

    @property
    def criteria(self) -> StopCriteria:
        return self._criteria

    @property
    def counter_key(self) -> CounterKey:
        return self._counter_key

    def update_criteria(self, criteria: StopCriteria):
        self._criteria = criteria

    def reset(self, session, counter: CounterKey | None = None):
        """Re-synchronize start values against ``session``'s counters.

        Args:
            session: Anything with ``graph`` and ``run`` (raw or monitored).
            counter: Step counter to watch from now on; unchanged if None.
        """
        if counter is not None:
            self._counter_key = counter
        self._graph = session.graph
        fetches = self._counter_fetches()
        values = session.run(fetches) if fetches else {}
        self._start_step = values.get('step', 0)
        self._start_epoch = values.get('epoch', 0)
        self._start_time = time.time()
        self._last_loss = None
        self._steps_below_tol = 0

    def _counter_fetches(self) -> dict:
        fetches = {}
        step = self._graph.get_counter(self._counter_key)
        if step is not None:
            fetches['step'] = step.read
        epoch = self._graph.get_counter(CounterKey.GLOBAL_EPOCH)
        if epoch is not None:
            fetches['epoch'] = epoch.read
        return fetches

    def after_session_creation(self, session):
        self.reset(session)

    def before_run(self, ctx: StepContext) -> SessionRunArgs | None:
        if self._criteria.is_unlimited or self._graph is None:
            return None
        fetches = self._counter_fetches()
        if self._criteria.watches_loss and self._counter_key == CounterKey.GLOBAL_STEP:
            losses = self._graph.get_collection(GraphKeys.LOSSES)
            if losses:
                fetches['losses'] = list(losses)
        return SessionRunArgs(fetches=fetches)

    def after_run(self, ctx: StepContext, values: Any):
        if not values:
            return
        if self._should_stop(values):
            ctx.request_stop()

    def _should_stop(self, values: dict) -> bool:
        c = self._criteria
        step = values.get('step', 0)
        epoch = values.get('epoch', 0)
        if c.restart_counting:
            step -= self._start_step
            epoch -= self._start_epoch

        if c.max_steps is not None and step >= c.max_steps:
            return True
        if c.max_epochs is not None and epoch >= c.max_epochs:
            return True
        if c.max_seconds is not None and time.time() - self._start_time >= c.max_seconds:
            return True
        if 'losses' in values:
            return self._loss_converged(sum(float(v) for v in values['losses']))
        return False

    def _loss_converged(self, loss: float) -> bool:
        c = self._criteria
        last, self._last_loss = self._last_loss, loss
        if last is None:
            return False
        abs_change = abs(loss - last)
        rel_change = abs_change / abs(last) if last != 0 else math.inf
        below = (
            (c.abs_loss_change_tol is not None and abs_change < c.abs_loss_change_tol)
            or (c.rel_loss_change_tol is not None and rel_change < c.rel_loss_change_tol)
        )
        self._steps_below_tol = self._steps_below_tol + 1 if below else 0
        return self._steps_below_tol >= c.max_step_below_tol
