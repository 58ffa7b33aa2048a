"""Hook system infrastructure: base types, registry, and manager.

Provides the hook lifecycle abstractions, the registry used to build hooks
by name, and the HookManager that holds a session's active hook set.
"""

from .hook_point import HookPoint, SessionRunArgs, StepContext
from .hook import Hook, ModelDependentHook
from .registry import HookRegistry
from .manager import HookManager

__all__ = [
    'HookPoint',
    'SessionRunArgs',
    'StepContext',
    'Hook',
    'ModelDependentHook',
    'HookRegistry',
    'HookManager',
]

# Import session_hooks to trigger @HookRegistry.register on all hook modules.
# This must come after the exports above since hook modules import from here.
import session_hooks  # noqa: E402, F401
