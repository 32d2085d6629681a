"""
Configuration for the detector mapper service.
"""

from dataclasses import dataclass, field

from src.catalog import CatalogConfig


@dataclass
class MapperConfig:
    """Configuration for the detector mapper"""

    # Kafka settings
    kafka_bootstrap_servers: str = "localhost:9092"
    inbound_topic: str = "metrics"
    outbound_topic: str = "mapped-metrics"
    kafka_group_id: str = "ad-mapper"
    kafka_auto_offset_reset: str = "latest"

    # Consumer behavior
    max_poll_records: int = 500
    enable_auto_commit: bool = False
    commit_interval_seconds: float = 5.0
    stats_interval_seconds: float = 30.0

    catalog: CatalogConfig = field(default_factory=CatalogConfig)
