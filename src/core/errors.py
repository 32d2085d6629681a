"""
Exception hierarchy shared by the detection pipeline.

"Model not found" is not an error: it is reported through ``Resolution``
(see ``src.anomdetect.resolver``).
"""


class AnomalyDetectionError(Exception):
    """Base class for all pipeline errors"""


class InvalidArgumentError(AnomalyDetectionError, ValueError):
    """A required argument was missing or malformed"""


class InvalidMetricError(AnomalyDetectionError, ValueError):
    """Metric descriptor cannot be turned into a metric key"""


class UnknownDetectorTypeError(AnomalyDetectionError, LookupError):
    """Detector type is not registered"""

    def __init__(self, detector_type: str, available: list[str] | None = None):
        self.detector_type = detector_type
        self.available = available or []
        message = f"Unknown detector type '{detector_type}'"
        if self.available:
            message += f". Available types: {', '.join(self.available)}"
        super().__init__(message)


class InvalidModelError(AnomalyDetectionError, ValueError):
    """Fitted model parameters cannot initialize the detector"""


class InvalidObservationError(AnomalyDetectionError, ValueError):
    """Observation value cannot be classified (NaN or infinite)"""


class CatalogUnavailableError(AnomalyDetectionError):
    """The model catalog could not be reached or answered with a server error"""


class RegistryFrozenError(AnomalyDetectionError, RuntimeError):
    """Registration attempted after the registry initialization phase ended"""
