"""
CLI for the real-time detector manager.

Usage:
    python -m src.consumers.detector.detect [options]
"""

import argparse
import logging
import os
import sys

import structlog

from src.anomdetect.methods import DEFAULT_WARM_UP_PERIOD
from src.core.logger import setup_logging

from ..common import (
    add_catalog_arguments,
    add_kafka_arguments,
    add_logging_arguments,
    build_catalog_config,
)
from .consumer import KafkaDetectorManager
from .models import DetectorManagerConfig

logger = structlog.get_logger(__name__)


def parse_arguments(argv=None):
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(
        description="Real-time anomaly classification of routed metrics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
        Examples:
        # Basic usage
        python -m src.consumers.detector.detect

        # Shorter warm-up, publish every classified point
        python -m src.consumers.detector.detect \\
            --warm-up-period 10 \\
            --emit-normal

        # Test run for 5 minutes
        python -m src.consumers.detector.detect --duration 300
        """,
    )

    add_kafka_arguments(parser, group_id="ad-manager")
    parser.add_argument(
        "--inbound-topic",
        default=os.getenv("INBOUND_TOPIC", "mapped-metrics"),
        help="Topic with routed records (default: mapped-metrics)",
    )
    parser.add_argument(
        "--outbound-topic",
        default=os.getenv("OUTBOUND_TOPIC", "anomalies"),
        help="Topic for classification results (default: anomalies)",
    )

    # Detection settings
    parser.add_argument(
        "--warm-up-period",
        type=int,
        default=int(os.getenv("WARM_UP_PERIOD", str(DEFAULT_WARM_UP_PERIOD))),
        help=f"Control chart warm-up period (default: {DEFAULT_WARM_UP_PERIOD})",
    )
    parser.add_argument(
        "--emit-normal",
        action="store_true",
        help="Publish NORMAL results too, not only WEAK and STRONG",
    )
    parser.add_argument(
        "--detector-idle-seconds",
        type=float,
        default=float(os.getenv("DETECTOR_IDLE_SECONDS", "3600")),
        help="Drop detectors whose metric has been silent this long (default: 3600)",
    )

    add_catalog_arguments(parser)
    add_logging_arguments(parser)

    return parser.parse_args(argv)


def build_config(args) -> DetectorManagerConfig:
    """Build configuration from arguments"""
    return DetectorManagerConfig(
        kafka_bootstrap_servers=args.kafka_servers,
        inbound_topic=args.inbound_topic,
        outbound_topic=args.outbound_topic,
        kafka_group_id=args.group_id,
        kafka_auto_offset_reset=args.offset_reset,
        warm_up_period=args.warm_up_period,
        emit_normal=args.emit_normal,
        detector_idle_seconds=args.detector_idle_seconds,
        catalog=build_catalog_config(args),
    )


def main(argv=None):
    """Main entry point"""
    args = parse_arguments(argv)

    setup_logging(level=getattr(logging, args.log_level))

    logger.info("Starting detector manager")

    try:
        config = build_config(args)

        manager = KafkaDetectorManager(config)
        manager.run(duration_seconds=args.duration)

        logger.info("Detector manager completed successfully")
        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0

    except Exception as e:
        logger.error("Detector manager failed", error=str(e), exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
