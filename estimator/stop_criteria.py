"""Stop criteria for the iterative mode loops."""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class StopCriteria:
    """When a loop driven by a ``Stopper`` should halt.

    Any limit set to None is disabled. With ``restart_counting`` the step and
    epoch limits count from the point the stopper was last reset; otherwise
    they are compared against the absolute counter values.

    The loss criteria stop once the absolute change of the loss is below
    ``abs_loss_change_tol`` or its relative change is below
    ``rel_loss_change_tol`` for ``max_step_below_tol`` consecutive steps.

    Instances are immutable; switch criteria with ``Stopper.update_criteria``.
    """
    max_epochs: int | None = 100
    max_steps: int | None = 10000
    max_seconds: float | None = None
    restart_counting: bool = True
    abs_loss_change_tol: float | None = 1e-3
    rel_loss_change_tol: float | None = 1e-3
    max_step_below_tol: int = 10

    def __post_init__(self):
        if self.max_epochs is not None and self.max_epochs < 0:
            raise ValueError(f"max_epochs must be >= 0, got {self.max_epochs}")
        if self.max_steps is not None and self.max_steps < 0:
            raise ValueError(f"max_steps must be >= 0, got {self.max_steps}")
        if self.max_seconds is not None and self.max_seconds < 0:
            raise ValueError(f"max_seconds must be >= 0, got {self.max_seconds}")
        if self.max_step_below_tol <= 0:
            raise ValueError(f"max_step_below_tol must be > 0, got {self.max_step_below_tol}")

    @classmethod
    def none(cls) -> "StopCriteria":
        """Criteria that never stop the loop (only exhaustion ends it)."""
        return cls(
            max_epochs=None,
            max_steps=None,
            max_seconds=None,
            abs_loss_change_tol=None,
            rel_loss_change_tol=None,
        )

    @classmethod
    def steps(cls, n: int) -> "StopCriteria":
        """Criteria that stop after exactly ``n`` steps from the reset point."""
        return replace(cls.none(), max_steps=n, restart_counting=True)

    @property
    def watches_loss(self) -> bool:
        return self.abs_loss_change_tol is not None or self.rel_loss_change_tol is not None

    @property
    def is_unlimited(self) -> bool:
        return (
            self.max_epochs is None
            and self.max_steps is None
            and self.max_seconds is None
            and not self.watches_loss
        )
