"""
Configuration for the detector manager service.
"""

from dataclasses import dataclass, field

from src.anomdetect.methods import DEFAULT_WARM_UP_PERIOD
from src.catalog import CatalogConfig


@dataclass
class DetectorManagerConfig:
    """Configuration for the detector manager"""

    # Kafka settings
    kafka_bootstrap_servers: str = "localhost:9092"
    inbound_topic: str = "mapped-metrics"
    outbound_topic: str = "anomalies"
    kafka_group_id: str = "ad-manager"
    kafka_auto_offset_reset: str = "latest"

    # Consumer behavior
    max_poll_records: int = 500
    enable_auto_commit: bool = False
    commit_interval_seconds: float = 5.0
    stats_interval_seconds: float = 30.0

    # Detection
    warm_up_period: int = DEFAULT_WARM_UP_PERIOD
    emit_normal: bool = False  # Also publish NORMAL results, not only WEAK/STRONG
    detector_idle_seconds: float = 3600.0  # Drop detectors whose metric went quiet this long

    catalog: CatalogConfig = field(default_factory=CatalogConfig)
