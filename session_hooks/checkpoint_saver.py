"""Periodic checkpoint saving hook."""

from console import EstimatorConsole
from estimator.checkpoints import Saver
from estimator.engine import CounterKey
from estimator.hooks import Hook, HookPoint, HookRegistry, SessionRunArgs, StepContext


@HookRegistry.register
class CheckpointSaver(Hook):
    """Save a checkpoint every ``save_steps`` global steps and at session end.

    A step is saved at most once, so runs that do not advance the global
    step (inference, evaluation) never produce duplicate checkpoints.
    """

    name = "checkpoint_saver"
    description = "Saves checkpoints periodically and when the session ends"
    hook_points = frozenset({
        HookPoint.SESSION_START, HookPoint.BEFORE_RUN, HookPoint.AFTER_RUN, HookPoint.SESSION_END,
    })

    def __init__(self, saver: Saver, save_steps: int = 1000):
        if save_steps <= 0:
            raise ValueError(f"save_steps must be > 0, got {save_steps}")
        self.saver = saver
        self.save_steps = save_steps
        self._step_read = None
        self._last_saved: int | None = None

    def after_session_creation(self, session):
        counter = session.graph.get_counter(CounterKey.GLOBAL_STEP)
        self._step_read = counter.read if counter is not None else None

    def before_run(self, ctx: StepContext):
        if self._step_read is None:
            return None
        return SessionRunArgs(fetches=self._step_read)

    def after_run(self, ctx: StepContext, values):
        if values is None or values == 0:
            return
        if values % self.save_steps == 0 and values != self._last_saved:
            self._save(values)

    def end(self, session):
        if self._step_read is None:
            return
        step = session.run(self._step_read)
        if step != self._last_saved:
            self._save(step)

    def _save(self, step: int):
        path = self.saver.save(step)
        self._last_saved = step
        EstimatorConsole().print_debug(f"Saved checkpoint [path]{path}[/path]")
