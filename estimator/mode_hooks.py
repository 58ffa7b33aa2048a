"""Partition of an estimator's hooks by mode."""

from __future__ import annotations

from typing import Iterable

from console import EstimatorConsole

from .hooks import Hook, ModelDependentHook
from .model import ModelInstance
from .stopper import Stopper


def _without_stoppers(hooks: Iterable[Hook], label: str) -> list[Hook]:
    kept = []
    for hook in hooks:
        if isinstance(hook, Stopper):
            EstimatorConsole().print_warning(
                f"The provided {label} hooks contain a [hook.name]Stopper[/hook.name]; it will be "
                "ignored. Use the estimator's stop_criteria instead."
            )
            continue
        kept.append(hook)
    return kept


class ModeHooks:
    """The always / chief-only / per-mode hook sets plus the single stopper.

    User-supplied ``Stopper`` hooks are dropped with a warning: the
    estimator's own stopper is the only one allowed.
    """

    def __init__(
        self,
        stopper: Stopper,
        train: Iterable[Hook] = (),
        train_chief_only: Iterable[Hook] = (),
        infer: Iterable[Hook] = (),
        evaluate: Iterable[Hook] = (),
    ):
        self.stopper = stopper
        self.train = _without_stoppers(train, "train")
        self.train_chief_only = _without_stoppers(train_chief_only, "chief-only train")
        self.infer = _without_stoppers(infer, "infer")
        self.evaluate = _without_stoppers(evaluate, "evaluate")

    def add_train(self, hook: Hook, chief_only: bool = False):
        (self.train_chief_only if chief_only else self.train).append(hook)

    def current_train(self, is_chief: bool) -> list[Hook]:
        """Train hooks for this process (chief-only ones on the chief), minus the stopper."""
        hooks = self.train + (self.train_chief_only if is_chief else [])
        return [h for h in hooks if h is not self.stopper]

    def bind(self, train: ModelInstance, infer: ModelInstance, evaluate: ModelInstance):
        """Bind each model-dependent hook to the instance of its mode."""
        for hooks, instance in (
            (self.train + self.train_chief_only, train),
            (self.infer, infer),
            (self.evaluate, evaluate),
        ):
            for hook in hooks:
                if isinstance(hook, ModelDependentHook):
                    hook.bind(instance)
