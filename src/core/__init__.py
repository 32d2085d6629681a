"""
Core utilities shared by the detector mapper and detector manager services.
"""

from .database import PostgresConnection
from .errors import (
    AnomalyDetectionError,
    CatalogUnavailableError,
    InvalidArgumentError,
    InvalidMetricError,
    InvalidModelError,
    InvalidObservationError,
    RegistryFrozenError,
    UnknownDetectorTypeError,
)
from .logger import setup_logging

__all__ = [
    "PostgresConnection",
    "setup_logging",
    "AnomalyDetectionError",
    "CatalogUnavailableError",
    "InvalidArgumentError",
    "InvalidMetricError",
    "InvalidModelError",
    "InvalidObservationError",
    "RegistryFrozenError",
    "UnknownDetectorTypeError",
]
