"""
MonitoredSession: a long-lived session wrapper that drives hooks.

Owns the raw ``Session`` of one graph together with the active hook set
and the should-stop flag. The raw session is created lazily (and
re-created after a graceful close); a session closed abruptly after a
fatal error is dead for good.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Iterable, TYPE_CHECKING

from .engine import Graph, Op, Session, flatten_ops
from .errors import DeadSessionError, OutOfRangeError
from .hooks import Hook, HookManager, HookPoint, StepContext

if TYPE_CHECKING:
    from .checkpoints import Saver


class StepOutcome(Enum):
    CONTINUE = auto()
    EXHAUSTED = auto()
    FATAL = auto()


@dataclass(frozen=True)
class StepResult:
    """Outcome of a single ``try_run``.

    ``values`` is set for CONTINUE, ``error`` for FATAL.
    """
    outcome: StepOutcome
    values: Any = None
    error: BaseException | None = None

    @classmethod
    def ok(cls, values: Any = None) -> StepResult:
        return cls(StepOutcome.CONTINUE, values=values)

    @classmethod
    def exhausted(cls) -> StepResult:
        return cls(StepOutcome.EXHAUSTED)

    @classmethod
    def fatal(cls, error: BaseException) -> StepResult:
        return cls(StepOutcome.FATAL, error=error)


class SessionState(Enum):
    PENDING = auto()   # raw session not created yet
    ACTIVE = auto()
    CLOSED = auto()    # closed gracefully; next run re-creates the raw session
    DEAD = auto()      # closed abruptly; unusable


@dataclass
class SessionScaffold:
    """How to initialize a freshly created raw session.

    ``init_fn`` runs only the first time a raw session is created; after it
    the latest checkpoint is restored (when a saver is configured), then
    ``local_init_fn`` and the additional local init ops run on every
    creation.
    """
    init_fn: Callable[[Session], None] | None = None
    local_init_fn: Callable[[Session], None] | None = None
    saver: 'Saver | None' = None
    restore_latest: bool = True
    local_init_ops: tuple[Op, ...] = field(default_factory=tuple)

    def set_local_init_ops(self, ops: Iterable[Op]):
        """Replace (never merge) the additional local init ops."""
        self.local_init_ops = tuple(ops)


class MonitoredSession:
    """Session wrapper that calls hooks around every ``run``.

    Hooks declare the lifecycle points they implement (``hook_points``);
    ``begin`` is called once per hook, the first time it joins the session.
    """

    def __init__(
        self,
        graph: Graph,
        hooks: Iterable[Hook] = (),
        scaffold: SessionScaffold | None = None,
        create: bool = True,
    ):
        self.graph = graph
        self.scaffold = scaffold or SessionScaffold()
        self._hooks = HookManager()
        self._begun: set[Hook] = set()
        self._raw: Session | None = None
        self._state = SessionState.PENDING
        self._initialized = False
        self._should_stop = False
        self.add_hooks(hooks)
        if create:
            self._create_session()

    # --- Lifecycle ---

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_dead(self) -> bool:
        return self._state == SessionState.DEAD

    @property
    def raw_session(self) -> Session | None:
        return self._raw

    def _check_alive(self):
        if self._state == SessionState.DEAD:
            raise DeadSessionError(
                "The session was closed after a fatal error and cannot be used"
            )

    def _create_session(self):
        raw = Session(self.graph)
        if not self._initialized:
            if self.scaffold.init_fn is not None:
                self.scaffold.init_fn(raw)
            if self.scaffold.saver is not None and self.scaffold.restore_latest:
                self.scaffold.saver.restore()
            self._initialized = True
        if self.scaffold.local_init_fn is not None:
            self.scaffold.local_init_fn(raw)
        if self.scaffold.local_init_ops:
            raw.run(targets=self.scaffold.local_init_ops)
        self._raw = raw
        self._state = SessionState.ACTIVE
        for hook in self._hooks.members:
            if hook.implements(HookPoint.SESSION_START):
                hook.after_session_creation(raw)

    def close(self):
        """Close gracefully: call ``end`` on member hooks, then the raw session.

        The next ``run`` re-creates the raw session.
        """
        if self._state != SessionState.ACTIVE:
            return
        try:
            for hook in self._hooks.members:
                if hook.implements(HookPoint.SESSION_END):
                    hook.end(self._raw)
        finally:
            self._raw.close()
            self._state = SessionState.CLOSED

    def close_without_hook_end(self):
        """Close abruptly, skipping hook ``end`` callbacks. The session is dead."""
        if self._raw is not None:
            self._raw.close()
        self._state = SessionState.DEAD

    # --- Hooks ---

    def add_hooks(self, hooks: Iterable[Hook]):
        for hook in self._hooks.add(hooks):
            if hook not in self._begun:
                self._begun.add(hook)
                hook.begin()

    def remove_hooks(self, hooks: Iterable[Hook]):
        self._hooks.remove(hooks)

    def disable_hooks(self):
        self._hooks.disable()

    def enable_hooks(self):
        self._hooks.enable()

    @contextmanager
    def hooks_disabled(self):
        self.disable_hooks()
        try:
            yield self
        finally:
            self.enable_hooks()

    @property
    def hooks(self) -> list[Hook]:
        return self._hooks.members

    @property
    def hooks_enabled(self) -> bool:
        return self._hooks.enabled

    # --- Stop flag ---

    @property
    def should_stop(self) -> bool:
        return self._should_stop

    def set_should_stop(self, flag: bool):
        self._should_stop = flag

    def reset_should_stop(self):
        self._should_stop = False

    # --- Running ---

    def run(self, fetches=None, targets=None, feeds: dict[Op, Any] | None = None):
        """Run one step with hooks.

        Before-run hooks may add fetches and targets; their values are passed
        to the same hooks' ``after_run``. A hook calling
        ``ctx.request_stop()`` sets ``should_stop``.

        Raises:
            DeadSessionError: If the session was closed abruptly.
        """
        self._check_alive()
        if self._state != SessionState.ACTIVE:
            self._create_session()

        ctx = StepContext(
            session=self._raw,
            fetches=fetches,
            targets=tuple(flatten_ops(targets)),
            _request_stop=lambda: self.set_should_stop(True),
        )
        hook_fetches: dict[Hook, Any] = {}
        hook_targets: list[Op] = []
        for hook in self._hooks.hooks_at(HookPoint.BEFORE_RUN):
            args = hook.before_run(ctx)
            if args is None:
                continue
            if args.fetches is not None:
                hook_fetches[hook] = args.fetches
            hook_targets.extend(flatten_ops(args.targets))

        values = self._raw.run(
            fetches={'fetches': fetches, 'hooks': hook_fetches},
            targets=[*ctx.targets, *hook_targets],
            feeds=feeds,
        )

        hook_values = values['hooks']
        for hook in self._hooks.hooks_at(HookPoint.AFTER_RUN):
            hook.after_run(ctx, hook_values.get(hook))
        return values['fetches']

    def try_run(self, fetches=None, targets=None, feeds: dict[Op, Any] | None = None) -> StepResult:
        """Like ``run``, but report exhaustion and failures as a ``StepResult``.

        ``KeyboardInterrupt`` and other non-``Exception`` errors propagate.
        """
        try:
            return StepResult.ok(self.run(fetches=fetches, targets=targets, feeds=feeds))
        except OutOfRangeError:
            return StepResult.exhausted()
        except Exception as e:
            return StepResult.fatal(e)

    def __repr__(self):
        return f"MonitoredSession({self._state.name}, hooks={len(self._hooks)})"
