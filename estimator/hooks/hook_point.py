"""Hook lifecycle points and the per-run argument/context types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, TYPE_CHECKING

if TYPE_CHECKING:
    from ..engine import Session


class HookPoint(Enum):
    """Lifecycle points a hook can declare interest in."""
    SESSION_START = auto()   # after_session_creation
    BEFORE_RUN = auto()      # before_run
    AFTER_RUN = auto()       # after_run
    SESSION_END = auto()     # end



@dataclass(frozen=True)
class SessionRunArgs:
    """Extra fetches and targets a hook adds to the upcoming run.

    ``fetches`` may be any fetch structure; its values are handed back to the
    same hook's ``after_run``.
    """
    fetches: Any = None
    targets: tuple = ()


@dataclass
class StepContext:
    """What a hook sees around a single ``run``.

    ``session`` is the raw session, usable for out-of-band runs (with hooks
    bypassed). ``request_stop`` asks the loop to stop after this run.
    """
    session: 'Session'
    fetches: Any = None
    targets: tuple = ()
    _request_stop: Callable[[], None] = field(default=lambda: None, repr=False)
    stop_requested: bool = False

    def request_stop(self):
        self.stop_requested = True
        self._request_stop()
