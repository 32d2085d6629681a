"""
CLI for the detector mapper.

Usage:
    python -m src.consumers.mapper.map [options]
"""

import argparse
import logging
import os
import sys

import structlog

from src.core.logger import setup_logging

from ..common import (
    add_catalog_arguments,
    add_kafka_arguments,
    add_logging_arguments,
    build_catalog_config,
)
from .consumer import KafkaDetectorMapper
from .models import MapperConfig

logger = structlog.get_logger(__name__)


def parse_arguments(argv=None):
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(
        description="Route metric observations to their anomaly detectors",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
        Examples:
        # Basic usage
        python -m src.consumers.mapper.map

        # Model service on another host, with a Redis cache
        python -m src.consumers.mapper.map \\
            --model-service-url http://model-service:8008 \\
            --cache --redis-host redis

        # Test run for 5 minutes
        python -m src.consumers.mapper.map --duration 300
        """,
    )

    add_kafka_arguments(parser, group_id="ad-mapper")
    parser.add_argument(
        "--inbound-topic",
        default=os.getenv("INBOUND_TOPIC", "metrics"),
        help="Topic with metric observations (default: metrics)",
    )
    parser.add_argument(
        "--outbound-topic",
        default=os.getenv("OUTBOUND_TOPIC", "mapped-metrics"),
        help="Topic for routed records (default: mapped-metrics)",
    )
    add_catalog_arguments(parser)
    add_logging_arguments(parser)

    return parser.parse_args(argv)


def build_config(args) -> MapperConfig:
    """Build configuration from arguments"""
    return MapperConfig(
        kafka_bootstrap_servers=args.kafka_servers,
        inbound_topic=args.inbound_topic,
        outbound_topic=args.outbound_topic,
        kafka_group_id=args.group_id,
        kafka_auto_offset_reset=args.offset_reset,
        catalog=build_catalog_config(args),
    )


def main(argv=None):
    """Main entry point"""
    args = parse_arguments(argv)

    setup_logging(level=getattr(logging, args.log_level))

    logger.info("Starting detector mapper")

    try:
        config = build_config(args)

        mapper = KafkaDetectorMapper(config)
        mapper.run(duration_seconds=args.duration)

        logger.info("Mapper completed successfully")
        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0

    except Exception as e:
        logger.error("Mapper failed", error=str(e), exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
