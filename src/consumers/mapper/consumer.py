"""
Kafka adapter for the stream mapper.

Consumes metric observations, fans each one out to its detectors and produces
the routed records keyed by detector id, so every observation for a detector
lands on the same partition downstream.
"""

import json
import time

import structlog
from kafka import KafkaConsumer, KafkaProducer

from src.anomdetect import (
    DetectorResolver,
    MetricDescriptor,
    Observation,
    StreamMapper,
    build_default_registry,
)
from src.catalog import build_catalog
from src.core.errors import CatalogUnavailableError, InvalidMetricError

from ..common import decode_message
from .models import MapperConfig

logger = structlog.get_logger(__name__)


class KafkaDetectorMapper:
    """Routes inbound metrics to the detectors configured for them"""

    def __init__(self, config: MapperConfig, mapper: StreamMapper | None = None):
        self.config = config
        logger.info("Initializing detector mapper", config=config)

        if mapper is None:
            resolver = DetectorResolver(build_catalog(config.catalog), build_default_registry())
            mapper = StreamMapper(resolver)
        self.mapper = mapper

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
            "total_routed": 0,
            "no_detectors": 0,
            "parse_errors": 0,
            "invalid_metrics": 0,
            "catalog_errors": 0,
        }

    def _process_message(self, raw: bytes) -> int:
        """Map one inbound message value and produce its routed records

        Returns:
            Number of routed records produced
        """
        try:
            message = decode_message(raw)
            metric = MetricDescriptor.from_dict(message["metric"])
            observation = Observation.from_dict(message)
            org_id = int(message.get("org_id", self.config.catalog.org_id))
        except InvalidMetricError as e:
            logger.warning("Invalid metric, dropping message", error=str(e), message=raw)
            self.stats["invalid_metrics"] += 1
            return 0
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            logger.error("Failed to parse message", error=str(e), message=raw)
            self.stats["parse_errors"] += 1
            return 0

        try:
            records = self.mapper.map(metric, observation, org_id=org_id)
        except InvalidMetricError as e:
            logger.warning("Invalid metric, dropping message", metric=metric.name, error=str(e))
            self.stats["invalid_metrics"] += 1
            return 0
        except CatalogUnavailableError as e:
            logger.error("Catalog unavailable, dropping message", metric=metric.name, error=str(e))
            self.stats["catalog_errors"] += 1
            return 0

        if not records:
            self.stats["no_detectors"] += 1
            return 0

        for record in records:
            self.producer.send(
                self.config.outbound_topic, key=record.routing_key, value=record.to_dict()
            )

        self.stats["total_routed"] += len(records)
        return len(records)

    def _should_commit(self) -> bool:
        return time.time() - self.last_commit_time >= self.config.commit_interval_seconds

    def _commit(self):
        self.producer.flush()
        if not self.config.enable_auto_commit:
            self.consumer.commit()
        self.last_commit_time = time.time()

    def run(self, duration_seconds: int = None):
        """Run the mapper continuously or for a specified duration

        Args:
            duration_seconds: Optional duration in seconds. If None, runs indefinitely.
        """
        logger.info(
            "Starting detector mapper",
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

                elapsed = time.time() - start_time
                if time.time() - last_log_time >= self.config.stats_interval_seconds:
                    rate = self.stats["total_consumed"] / elapsed if elapsed > 0 else 0
                    logger.info(
                        "Mapper stats",
                        **self.stats,
                        rate_per_sec=round(rate, 1),
                        elapsed_sec=round(elapsed, 1),
                    )
                    last_log_time = time.time()

                if duration_seconds and elapsed >= duration_seconds:
                    logger.info("Duration limit reached", duration_seconds=duration_seconds)
                    break

        except KeyboardInterrupt:
            logger.info("Received interrupt signal, stopping mapper")

        except Exception as e:
            logger.error("Mapper error", error=str(e), exc_info=True)
            raise

        finally:
            self._commit()
            self.consumer.close()
            self.producer.close()
            self.mapper.resolver.catalog.close()

            elapsed = time.time() - start_time
            logger.info(
                "Mapper stopped",
                **self.stats,
                elapsed_sec=round(elapsed, 1),
            )
