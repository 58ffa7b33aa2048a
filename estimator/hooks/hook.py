"""Hook base classes.

A hook declares the lifecycle points it implements in ``hook_points``; the
session only calls the callbacks for those points. ``begin`` is always
called once, when the hook joins a session.
"""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

from .hook_point import HookPoint, SessionRunArgs, StepContext

if TYPE_CHECKING:
    from ..engine import Session
    from ..model import ModelInstance


class Hook:
    """Base class for session hooks.

    Subclasses set ``name``, ``hook_points`` and override the callbacks that
    match those points. All callbacks default to no-ops.
    """

    name: str = "base_hook"
    description: str = ""
    hook_points: frozenset[HookPoint] = frozenset()

    def begin(self):
        """Called once when the hook is added to a session."""
        pass

    def after_session_creation(self, session: 'Session'):
        """Called every time the raw session is (re-)created."""
        pass

    def before_run(self, ctx: StepContext) -> SessionRunArgs | None:
        """Called before each run; may request extra fetches and targets."""
        return None

    def after_run(self, ctx: StepContext, values: Any):
        """Called after each run with the values of this hook's fetches."""
        pass

    def end(self, session: 'Session'):
        """Called when the session is closed gracefully."""
        pass

    def implements(self, point: HookPoint) -> bool:
        return point in self.hook_points

    def __repr__(self):
        return f"{self.__class__.__name__}(name={self.name!r})"


class ModelDependentHook(Hook):
    """A hook that needs the model instance of the mode it runs in.

    Construction is two-phase: build the hook, build the model instance,
    then ``bind(instance)``. Accessing ``model_instance`` before binding
    raises.
    """

    def __init__(self):
        self._model_instance: 'ModelInstance | None' = None

    def bind(self, instance: 'ModelInstance'):
        self._model_instance = instance

    @property
    def is_bound(self) -> bool:
        return self._model_instance is not None

    @property
    def model_instance(self) -> 'ModelInstance':
        if self._model_instance is None:
            raise RuntimeError(
                f"Hook '{self.name}' used before bind(model_instance) was called"
            )
        return self._model_instance
