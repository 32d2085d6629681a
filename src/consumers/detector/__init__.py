"""
Detector manager service (routed records -> classification results).
"""

from .consumer import KafkaDetectorManager
from .models import DetectorManagerConfig

__all__ = ["KafkaDetectorManager", "DetectorManagerConfig"]
