"""
Kafka adapter for the detector manager.

Consumes routed records, classifies them with per-(detector, metric) detectors
and publishes the anomalous results.
"""

import json
import time

import structlog
from kafka import KafkaConsumer, KafkaProducer

from src.anomdetect import (
    AnomalyLevel,
    DetectionRecord,
    DetectorManager,
    DetectorResolver,
    RoutedRecord,
    build_default_registry,
)
from src.catalog import build_catalog
from src.core.errors import CatalogUnavailableError

from ..common import decode_message
from .models import DetectorManagerConfig

logger = structlog.get_logger(__name__)


class KafkaDetectorManager:
    """Real-time classification of routed metric observations"""

    def __init__(self, config: DetectorManagerConfig, manager: DetectorManager | None = None):
        self.config = config
        logger.info("Initializing detector manager", config=config)

        if manager is None:
            resolver = DetectorResolver(
                build_catalog(config.catalog), build_default_registry(config.warm_up_period)
            )
            manager = DetectorManager(resolver)
        self.manager = manager

        try:
            self.consumer = KafkaConsumer(
                config.inbound_topic,
                bootstrap_servers=config.kafka_bootstrap_servers,
                group_id=config.kafka_group_id,
                auto_offset_reset=config.kafka_auto_offset_reset,
                enable_auto_commit=config.enable_auto_commit,
                max_poll_records=config.max_poll_records,
            )
            self.producer = KafkaProducer(
                bootstrap_servers=config.kafka_bootstrap_servers,
                key_serializer=lambda k: k.encode("utf-8"),
                value_serializer=lambda v: json.dumps(v).encode("utf-8"),
            )
            logger.info(
                "Kafka clients initialized",
                bootstrap_servers=config.kafka_bootstrap_servers,
                inbound_topic=config.inbound_topic,
                outbound_topic=config.outbound_topic,
            )
        except Exception as e:
            logger.error("Failed to initialize Kafka clients", error=str(e))
            raise

        self.last_commit_time = time.time()
        self.stats = {
            "total_consumed": 0,
            "total_classified": 0,
            "anomalies_detected": 0,
            "skipped": 0,
            "parse_errors": 0,
            "catalog_errors": 0,
            "detectors_evicted": 0,
        }

    def _process_message(self, raw: bytes) -> DetectionRecord | None:
        """Classify one routed record and publish it when it should be emitted"""
        try:
            record = RoutedRecord.from_dict(decode_message(raw))
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            logger.error("Failed to parse message", error=str(e), message=raw)
            self.stats["parse_errors"] += 1
            return None

        try:
            detection = self.manager.classify(record)
        except CatalogUnavailableError as e:
            logger.error(
                "Catalog unavailable, dropping record",
                detector_id=record.routing_key,
                error=str(e),
            )
            self.stats["catalog_errors"] += 1
            return None

        if detection is None:
            self.stats["skipped"] += 1
            return None

        self.stats["total_classified"] += 1
        if detection.result.is_anomaly:
            self.stats["anomalies_detected"] += 1
            logger.info(
                "Anomaly detected",
                detector_id=record.routing_key,
                metric=record.metric.name,
                level=detection.result.level.value,
                value=round(detection.result.value, 3),
            )

        if self._should_emit(detection):
            self.producer.send(
                self.config.outbound_topic, key=record.routing_key, value=detection.to_dict()
            )
        return detection

    def _should_emit(self, detection: DetectionRecord) -> bool:
        level = detection.result.level
        if level is AnomalyLevel.NORMAL:
            return self.config.emit_normal
        return level is not AnomalyLevel.UNKNOWN

    def _should_commit(self) -> bool:
        return time.time() - self.last_commit_time >= self.config.commit_interval_seconds

    def _commit(self):
        self.producer.flush()
        if not self.config.enable_auto_commit:
            self.consumer.commit()
        self.last_commit_time = time.time()

    def _evict_idle_detectors(self):
        self.stats["detectors_evicted"] += self.manager.evict_idle(
            self.config.detector_idle_seconds
        )

    def run(self, duration_seconds: int = None):
        """Run the manager

        Args:
            duration_seconds: Optional duration in seconds. If None, runs indefinitely.
        """
        logger.info(
            "Starting detector manager",
            topic=self.config.inbound_topic,
            duration=duration_seconds if duration_seconds else "indefinite",
        )

        start_time = time.time()
        last_log_time = start_time

        try:
            for message in self.consumer:
                self.stats["total_consumed"] += 1

                self._process_message(message.value)

                if self._should_commit():
                    self._commit()
                    self._evict_idle_detectors()

                elapsed = time.time() - start_time
                if time.time() - last_log_time >= self.config.stats_interval_seconds:
                    detection_rate = (
                        self.stats["anomalies_detected"] / self.stats["total_classified"] * 100
                        if self.stats["total_classified"] > 0
                        else 0
                    )
                    logger.info(
                        "Detector manager stats",
                        **self.stats,
                        detectors=len(self.manager),
                        detection_rate_percent=round(detection_rate, 2),
                        elapsed_sec=round(elapsed, 1),
                    )
                    last_log_time = time.time()

                if duration_seconds and elapsed >= duration_seconds:
                    logger.info("Duration limit reached", duration_seconds=duration_seconds)
                    break

        except KeyboardInterrupt:
            logger.info("Received interrupt signal, stopping detector manager")

        except Exception as e:
            logger.error("Detector manager error", error=str(e), exc_info=True)
            raise

        finally:
            self._commit()
            self.consumer.close()
            self.producer.close()
            self.manager.resolver.catalog.close()

            elapsed = time.time() - start_time
            logger.info(
                "Detector manager stopped",
                **self.stats,
                elapsed_sec=round(elapsed, 1),
            )
