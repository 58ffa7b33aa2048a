"""Hook registry for building hooks from configuration."""

from typing import Any

from ..registry import Registry
from .hook import Hook, ModelDependentHook


class HookRegistry(Registry):
    """Registry of available session hooks.

    Hooks register via the @HookRegistry.register decorator. The registry
    stores classes (not instances) since hooks have mutable state and each
    estimator should get fresh instances.
    """

    _items = {}
    _registry_label = "hook"

    @classmethod
    def build(
        cls,
        names: list[str],
        hook_config: dict[str, dict[str, Any]] | None = None,
    ) -> list[Hook]:
        """Instantiate hooks by name, passing per-hook config as kwargs.

        Example::

            HookRegistry.build(
                ['loss_logger', 'nan_checker'],
                {'loss_logger': {'every_n_steps': 10}},
            )
        """
        hook_config = hook_config or {}
        return [cls.get(name)(**dict(hook_config.get(name, {}))) for name in names]

    @classmethod
    def get_all_info(cls) -> list[dict]:
        """Get metadata for all registered hooks (without instantiating them)."""
        return [
            {
                'name': name,
                'description': hook_cls.description,
                'hook_points': {hp.name for hp in hook_cls.hook_points},
                'model_dependent': issubclass(hook_cls, ModelDependentHook),
            }
            for name, hook_cls in sorted(cls._items.items())
        ]
