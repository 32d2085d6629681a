"""
Detector mapper service (metrics -> routed records keyed by detector id).
"""

from .consumer import KafkaDetectorMapper
from .models import MapperConfig

__all__ = ["KafkaDetectorMapper", "MapperConfig"]
