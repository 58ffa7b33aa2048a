"""Generic name -> class registry.

Subclasses (e.g. ``HookRegistry``) keep their own ``_items`` so that
registries never share state.
"""


class Registry:
    """Generic registry base class.

    Subclasses MUST define their own ``_items = {}`` and should set
    ``_registry_label`` for descriptive error messages.

    The ``register()`` decorator supports two calling conventions:

    1. ``@MyRegistry.register("name")`` -- name passed as argument.
    2. ``@MyRegistry.register`` -- name read from the class's ``name``
       attribute (the class is not instantiated).
    """

    _items: dict[str, type] = {}
    _registry_label: str = "item"

    @classmethod
    def register(cls, item_or_name=None):
        """Decorator to register a class.

        Usage:
            @MyRegistry.register("my_name")
            class Foo: ...

            @MyRegistry.register
            class Bar:
                name = "bar"
        """
        if isinstance(item_or_name, str):
            name = item_or_name
            def decorator(registered_cls):
                cls._items[name] = registered_cls
                return registered_cls
            return decorator

        if isinstance(item_or_name, type):
            cls._items[cls._name_of(item_or_name)] = item_or_name
            return item_or_name

        if item_or_name is None:
            def decorator(registered_cls):
                cls._items[cls._name_of(registered_cls)] = registered_cls
                return registered_cls
            return decorator

        raise TypeError(
            f"{cls.__name__}.register() expects a string name, "
            f"a class, or no arguments. Got: {type(item_or_name)}"
        )

    @classmethod
    def _name_of(cls, registered_cls: type) -> str:
        name = getattr(registered_cls, 'name', None)
        if not isinstance(name, str) or not name:
            raise TypeError(
                f"{registered_cls.__name__} has no 'name' attribute; "
                f"use @{cls.__name__}.register('name') instead"
            )
        return name

    @classmethod
    def get(cls, name: str):
        """Get a registered class by name."""
        if name not in cls._items:
            available = ', '.join(sorted(cls._items.keys()))
            raise ValueError(
                f"Unknown {cls._registry_label}: '{name}'. "
                f"Available: {available}"
            )
        return cls._items[name]

    @classmethod
    def list_all(cls) -> list[str]:
        """List all registered names (sorted)."""
        return sorted(cls._items.keys())
