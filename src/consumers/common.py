"""
Command-line options and message decoding shared by the mapper and detector services.
"""

import argparse
import json
import os
from typing import Any

from src.catalog import BACKENDS, CatalogConfig


def add_kafka_arguments(parser: argparse.ArgumentParser, group_id: str) -> None:
    parser.add_argument(
        "--kafka-servers",
        default=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
        help="Kafka bootstrap servers (default: localhost:9092)",
    )
    parser.add_argument(
        "--group-id",
        default=os.getenv("KAFKA_GROUP_ID", group_id),
        help=f"Kafka consumer group ID (default: {group_id})",
    )
    parser.add_argument(
        "--offset-reset",
        choices=["earliest", "latest"],
        default="latest",
        help="Auto offset reset (default: latest - only new messages)",
    )


def add_catalog_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--catalog-backend",
        choices=list(BACKENDS),
        default=os.getenv("CATALOG_BACKEND", "http"),
        help="Model catalog backend (default: http)",
    )
    parser.add_argument(
        "--model-service-url",
        default=os.getenv("MODEL_SERVICE_URL", "http://localhost:8008"),
        help="Model service base URL (default: http://localhost:8008)",
    )
    parser.add_argument(
        "--request-timeout",
        type=float,
        default=float(os.getenv("MODEL_SERVICE_TIMEOUT", "5.0")),
        help="Model service request timeout in seconds (default: 5.0)",
    )
    parser.add_argument(
        "--org-id",
        type=int,
        default=int(os.getenv("ORG_ID", "1")),
        help="Organization ID used in metric keys (default: 1)",
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        default=3,
        help="Catalog attempts before giving up on a lookup (default: 3)",
    )

    # PostgreSQL settings
    parser.add_argument("--postgres-host", default=os.getenv("POSTGRES_HOST", "localhost"))
    parser.add_argument(
        "--postgres-port", type=int, default=int(os.getenv("POSTGRES_PORT", "5432"))
    )
    parser.add_argument("--postgres-db", default=os.getenv("POSTGRES_DB", "anomdetect_db"))
    parser.add_argument("--postgres-user", default=os.getenv("POSTGRES_USER", "anomdetect"))
    parser.add_argument(
        "--postgres-password", default=os.getenv("POSTGRES_PASSWORD", "anomdetect_password")
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create the catalog tables on startup (postgres backend)",
    )

    # Redis cache
    parser.add_argument(
        "--cache",
        action="store_true",
        default=os.getenv("CATALOG_CACHE", "").lower() in ("1", "true", "yes"),
        help="Cache catalog lookups in Redis",
    )
    parser.add_argument(
        "--cache-ttl",
        type=int,
        default=300,
        help="Catalog cache TTL in seconds (default: 300)",
    )
    parser.add_argument(
        "--redis-host",
        default=os.getenv("REDIS_HOST", "localhost"),
        help="Redis host (default: localhost or REDIS_HOST env var)",
    )


def add_logging_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--duration",
        type=int,
        help="Run for N seconds then stop (default: infinite)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (default: INFO)",
    )


def build_catalog_config(args) -> CatalogConfig:
    """Build catalog configuration from arguments"""
    return CatalogConfig(
        backend=args.catalog_backend,
        org_id=args.org_id,
        model_service_url=args.model_service_url,
        request_timeout_seconds=args.request_timeout,
        postgres_host=args.postgres_host,
        postgres_port=args.postgres_port,
        postgres_database=args.postgres_db,
        postgres_user=args.postgres_user,
        postgres_password=args.postgres_password,
        postgres_create_tables=args.create_tables,
        max_retries=args.max_retries,
        cache_enabled=args.cache,
        cache_ttl_seconds=args.cache_ttl,
        redis_host=args.redis_host,
    )


def decode_message(raw: bytes) -> dict[str, Any]:
    """Decode a Kafka message value into a JSON object

    Raises:
        ValueError: If the value is not UTF-8 JSON or not a JSON object
    """
    if not isinstance(raw, (bytes, bytearray)):
        raise ValueError(f"Expected message bytes, got {type(raw).__name__}")
    message = json.loads(raw.decode("utf-8"))
    if not isinstance(message, dict):
        raise ValueError(f"Expected a JSON object, got {type(message).__name__}")
    return message
