"""Periodic training loss logging."""

from console import EstimatorConsole
from estimator.hooks import HookPoint, HookRegistry, ModelDependentHook, SessionRunArgs, StepContext


@HookRegistry.register
class LossLogger(ModelDependentHook):
    """Print the training loss every ``every_n_steps`` runs.

    Reads the loss op from the bound model instance. Every logged value is
    also kept in ``history`` as ``(run_index, loss)`` pairs.
    """

    name = "loss_logger"
    description = "Logs the training loss periodically"
    hook_points = frozenset({HookPoint.BEFORE_RUN, HookPoint.AFTER_RUN})

    def __init__(self, every_n_steps: int = 100):
        super().__init__()
        if every_n_steps <= 0:
            raise ValueError(f"every_n_steps must be > 0, got {every_n_steps}")
        self.every_n_steps = every_n_steps
        self.history: list[tuple[int, float]] = []
        self._runs = 0

    def begin(self):
        self._runs = 0

    def before_run(self, ctx: StepContext):
        self._runs += 1
        if self._runs % self.every_n_steps != 0:
            return None
        return SessionRunArgs(fetches=self.model_instance.loss)

    def after_run(self, ctx: StepContext, values):
        if values is None:
            return
        loss = float(values)
        self.history.append((self._runs, loss))
        EstimatorConsole().print(
            f"[metric.label]step[/metric.label] [value.count]{self._runs}[/value.count]  "
            f"[metric.label]loss[/metric.label] [metric.value]{loss:.6f}[/metric.value]"
        )
