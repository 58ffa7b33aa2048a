"""Result types returned by the estimator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class EvaluationResult:
    """Metric values at the global step the evaluation ran at.

    An evaluation interrupted by a recoverable error reports ``empty()``:
    step -1 and no values.
    """
    step: int
    values: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> EvaluationResult:
        return cls(step=-1)

    @property
    def is_empty(self) -> bool:
        return self.step == -1 and not self.values

    def __getitem__(self, name: str) -> Any:
        return self.values[name]

    def __bool__(self) -> bool:
        return not self.is_empty
