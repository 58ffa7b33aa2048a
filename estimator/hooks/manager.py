"""
HookManager: the active hook set of a monitored session.

Tracks membership (insertion-ordered, idempotent add/remove), indexes
members by the lifecycle points they declare, and implements the nested
disable switch.
"""

from typing import Iterable

from .hook import Hook
from .hook_point import HookPoint


class HookManager:
    """Ordered set of active hooks with a nested on/off switch.

    ``disable()`` / ``enable()`` nest: hooks are dispatched only when every
    ``disable`` has been matched by an ``enable``. Membership is unaffected
    by the switch.
    """

    def __init__(self, hooks: Iterable[Hook] = ()):
        self._hooks: dict[Hook, None] = {}
        self._hooks_by_point: dict[HookPoint, list[Hook]] = {}
        self._disable_depth = 0
        self.add(hooks)

    def _build_hook_index(self):
        self._hooks_by_point = {hp: [] for hp in HookPoint}
        for hook in self._hooks:
            for hp in hook.hook_points:
                self._hooks_by_point[hp].append(hook)

    # --- Membership ---

    def add(self, hooks: Iterable[Hook]) -> list[Hook]:
        """Add hooks not already present. Returns the newly added ones."""
        added = []
        for hook in hooks:
            if hook not in self._hooks:
                self._hooks[hook] = None
                added.append(hook)
        self._build_hook_index()
        return added

    def remove(self, hooks: Iterable[Hook]) -> list[Hook]:
        """Remove hooks that are present. Returns the removed ones."""
        removed = []
        for hook in hooks:
            if hook in self._hooks:
                del self._hooks[hook]
                removed.append(hook)
        self._build_hook_index()
        return removed

    @property
    def members(self) -> list[Hook]:
        return list(self._hooks)

    def __contains__(self, hook: Hook) -> bool:
        return hook in self._hooks

    def __len__(self) -> int:
        return len(self._hooks)

    # --- Nested switch ---

    def disable(self):
        self._disable_depth += 1

    def enable(self):
        if self._disable_depth > 0:
            self._disable_depth -= 1

    @property
    def enabled(self) -> bool:
        return self._disable_depth == 0

    # --- Dispatch ---

    def hooks_at(self, hook_point: HookPoint) -> list[Hook]:
        """Hooks to call at ``hook_point`` (none while disabled)."""
        if not self.enabled:
            return []
        return list(self._hooks_by_point.get(hook_point, []))
