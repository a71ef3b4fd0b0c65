"""Component registry mapping configuration tags to implementations.

Flight control channels are assembled from configuration elements whose
tag names select the component kind. The registry keeps that mapping in
one place so the loader never switches on strings.

Typical usage example:
    from flightlaw.core.registry import ComponentRegistry

    registry = ComponentRegistry()
    registry.register("pure_gain", Gain)
    component = registry.create("pure_gain", fcs, element)
"""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class RegistryError(Exception):
    """Raised when registry operations fail."""


class ComponentRegistry:
    """Registry for tag-addressed component factories.

    A factory is any callable (usually a component class). Several tags may
    share one factory, e.g. every filter kind maps to the Filter class.

    Examples:
        >>> registry = ComponentRegistry()
        >>> registry.register("summer", Summer)
        >>> registry.is_registered("summer")
        True
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._factories: dict[str, Any] = {}

    def register(self, tag: str, factory: Any) -> None:
        """Register a factory for a tag.

        Args:
            tag: Configuration tag (e.g., "lag_filter").
            factory: Callable that builds the component.

        Raises:
            RegistryError: If the tag is already registered.
        """
        if tag in self._factories:
            raise RegistryError(f"Component already registered: {tag}")

        self._factories[tag] = factory

        factory_name = getattr(factory, "__name__", type(factory).__name__)
        logger.debug("Registered component: %s -> %s", tag, factory_name)

    def unregister(self, tag: str) -> None:
        """Remove a tag from the registry.

        Raises:
            RegistryError: If the tag is not registered.
        """
        if tag not in self._factories:
            raise RegistryError(f"Component not registered: {tag}")

        del self._factories[tag]
        logger.debug("Unregistered component: %s", tag)

    def create(self, tag: str, *args: Any, **kwargs: Any) -> Any:
        """Build a component for a tag.

        Exceptions raised by the factory propagate unchanged so callers can
        tell configuration defects apart from an unknown tag.

        Args:
            tag: Configuration tag.
            *args: Positional arguments passed to the factory.
            **kwargs: Keyword arguments passed to the factory.

        Returns:
            The new component.

        Raises:
            RegistryError: If the tag is not registered.
        """
        if tag not in self._factories:
            raise RegistryError(f"Component not registered: {tag}")

        return self._factories[tag](*args, **kwargs)

    def get(self, tag: str) -> Any:
        """Get the factory registered for a tag.

        Raises:
            RegistryError: If the tag is not registered.
        """
        if tag not in self._factories:
            raise RegistryError(f"Component not registered: {tag}")

        return self._factories[tag]

    def is_registered(self, tag: str) -> bool:
        return tag in self._factories

    def list_components(self) -> list[str]:
        """Get list of all registered tags, in registration order."""
        return list(self._factories.keys())

    def clear(self) -> None:
        """Remove all registered factories."""
        self._factories.clear()
