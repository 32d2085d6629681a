"""
Kafka services of the anomaly detection pipeline.
"""

# Detector mapper (metrics -> mapped-metrics)
from .mapper import KafkaDetectorMapper, MapperConfig

# Detector manager (mapped-metrics -> anomalies)
from .detector import DetectorManagerConfig, KafkaDetectorManager

__all__ = ["KafkaDetectorMapper", "MapperConfig", "KafkaDetectorManager", "DetectorManagerConfig"]
