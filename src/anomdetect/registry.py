"""
Detector registry: the single dispatch point from a detector type key to the
factory building that variant.

The registry is populated by explicit register() calls at startup and frozen
afterwards; once frozen it is read-only and safe to share between threads.
"""

from typing import Callable

import structlog

from src.core.errors import RegistryFrozenError, UnknownDetectorTypeError

from .methods import DEFAULT_WARM_UP_PERIOD, Detector, FittedModel, default_factories

logger = structlog.get_logger(__name__)

DetectorFactory = Callable[[FittedModel], Detector]


class DetectorRegistry:
    """Maps detector type keys to detector factories"""

    def __init__(self):
        self._factories: dict[str, DetectorFactory] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, type_key: str, factory: DetectorFactory) -> None:
        """Register a factory for a detector type

        Raises:
            RegistryFrozenError: If the registry was already frozen
            ValueError: If the type key is empty or already registered
        """
        if self._frozen:
            raise RegistryFrozenError(f"Cannot register '{type_key}': registry is frozen")
        if not type_key:
            raise ValueError("Detector type key must not be empty")
        if type_key in self._factories:
            raise ValueError(f"Detector type '{type_key}' is already registered")
        if not callable(factory):
            raise ValueError(f"Factory for '{type_key}' is not callable")

        self._factories[type_key] = factory
        logger.debug("Detector type registered", detector_type=type_key)

    def freeze(self) -> "DetectorRegistry":
        """End the initialization phase. Further registration is rejected."""
        self._frozen = True
        logger.info("Detector registry frozen", detector_types=self.list_types())
        return self

    def resolve(self, type_key: str) -> DetectorFactory:
        """Return the factory for a detector type

        Raises:
            UnknownDetectorTypeError: If the type is not registered
        """
        try:
            return self._factories[type_key]
        except KeyError:
            raise UnknownDetectorTypeError(type_key, self.list_types()) from None

    def list_types(self) -> list[str]:
        """List all registered detector types"""
        return sorted(self._factories)

    def __contains__(self, type_key: str) -> bool:
        return type_key in self._factories

    def __len__(self) -> int:
        return len(self._factories)


def build_default_registry(warm_up_period: int = DEFAULT_WARM_UP_PERIOD) -> DetectorRegistry:
    """Registry holding the built-in variants, already frozen"""
    registry = DetectorRegistry()
    for type_key, factory in default_factories(warm_up_period).items():
        registry.register(type_key, factory)
    return registry.freeze()
