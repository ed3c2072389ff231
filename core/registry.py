from typing import Any, Callable, Dict, List, Type, TypeVar

T = TypeVar("T")


class Registry:
    """A registry mapping string tags to component classes."""

    def __init__(self, name: str):
        """
        Initializes the registry.

        Args:
            name: The name of the registry (e.g., "backend", "strategy").
        """
        self._name = name
        self._components: Dict[str, Type[Any]] = {}

    @property
    def name(self) -> str:
        return self._name

    def register(self, tag: str) -> Callable[[Type[T]], Type[T]]:
        """
        A decorator to register a class under a tag.

        Raises:
            ValueError: If the tag is already registered.
        """
        def decorator(cls: Type[T]) -> Type[T]:
            if tag in self._components:
                raise ValueError(f"Component '{tag}' already registered in '{self._name}' registry.")
            self._components[tag] = cls
            return cls
        return decorator

    def get(self, tag: str) -> Type[Any]:
        """
        Retrieves a class by its tag.

        Raises:
            KeyError: If the tag is not registered.
        """
        if tag not in self._components:
            raise KeyError(f"Component '{tag}' not found in '{self._name}' registry.")
        return self._components[tag]

    def create(self, tag: str, *args: Any, **kwargs: Any) -> Any:
        """Instantiates the component registered under `tag`."""
        return self.get(tag)(*args, **kwargs)

    def available(self) -> List[str]:
        """Registered tags, sorted."""
        return sorted(self._components)

    def __contains__(self, tag: str) -> bool:
        return tag in self._components

    def __iter__(self):
        return iter(self._components)

    def keys(self):
        return self._components.keys()


backend_registry = Registry("backend")
strategy_registry = Registry("strategy")
