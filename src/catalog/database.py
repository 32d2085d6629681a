"""
Model catalog stored in PostgreSQL.

Tables:
- detectors: one row per detector, bound to a metric key
- detector_models: fitted models, the latest one per detector wins
"""

import json
from uuid import UUID

import psycopg2
import structlog

from src.anomdetect.catalog import ModelCatalogClient
from src.anomdetect.identity import metric_id
from src.anomdetect.methods.base import DetectorDescriptor, FittedModel
from src.anomdetect.models import MetricDescriptor
from src.core.database import PostgresConnection
from src.core.errors import CatalogUnavailableError, InvalidModelError

from .models import CatalogConfig

logger = structlog.get_logger(__name__)


class PostgresModelCatalog(PostgresConnection, ModelCatalogClient):
    """Detector and model lookups against PostgreSQL"""

    def __init__(self, config: CatalogConfig):
        super().__init__(
            host=config.postgres_host,
            port=config.postgres_port,
            database=config.postgres_database,
            user=config.postgres_user,
            password=config.postgres_password,
        )
        self.config = config
        self.org_id = config.org_id

        if not self.check_health():
            self.close()
            raise RuntimeError("Database health check failed")
        if config.postgres_create_tables and not self.ensure_tables_exist():
            self.close()
            raise RuntimeError("Failed to create catalog tables")

    def find_applicable_detectors(self, metric: MetricDescriptor) -> list[DetectorDescriptor]:
        query = """
            SELECT uuid, detector_type
            FROM detectors
            WHERE metric_key = %(metric_key)s
              AND enabled
            ORDER BY uuid
        """
        key = metric_id(self.org_id, metric)
        try:
            rows = self.fetch_all(query, {"metric_key": key})
        except psycopg2.Error as e:
            logger.error("Failed to query detectors", metric_key=key, error=str(e))
            raise CatalogUnavailableError(f"Detector lookup failed: {e}") from e

        try:
            return [
                DetectorDescriptor(
                    detector_id=UUID(str(row["uuid"])), detector_type=row["detector_type"]
                )
                for row in rows
            ]
        except (KeyError, ValueError) as e:
            raise CatalogUnavailableError(f"Malformed detector row for {key}: {e}") from e

    def find_latest_model(self, detector_id: UUID) -> FittedModel | None:
        query = """
            SELECT params, fitted_at
            FROM detector_models
            WHERE detector_uuid = %(detector_uuid)s
            ORDER BY fitted_at DESC
            LIMIT 1
        """
        try:
            row = self.fetch_one(query, {"detector_uuid": str(detector_id)})
        except psycopg2.Error as e:
            logger.error("Failed to load model", detector_id=str(detector_id), error=str(e))
            raise CatalogUnavailableError(f"Model lookup failed: {e}") from e

        if row is None:
            return None

        params = row["params"]
        try:
            if isinstance(params, str):
                params = json.loads(params)
            if not isinstance(params, dict):
                raise TypeError(f"params must be an object, got {type(params).__name__}")
        except (TypeError, ValueError) as e:
            raise InvalidModelError(f"Malformed model for detector {detector_id}: {e}") from e

        return FittedModel(detector_id=detector_id, params=params, fitted_at=row["fitted_at"])

    def ensure_tables_exist(self) -> bool:
        """Create the catalog tables if they don't exist"""
        query = """
            CREATE TABLE IF NOT EXISTS detectors (
                uuid UUID PRIMARY KEY,
                detector_type VARCHAR(100) NOT NULL,
                metric_key VARCHAR(64) NOT NULL,
                enabled BOOLEAN NOT NULL DEFAULT TRUE,
                created_at TIMESTAMPTZ DEFAULT NOW()
            );

            CREATE INDEX IF NOT EXISTS idx_detectors_metric_key
            ON detectors(metric_key);

            CREATE TABLE IF NOT EXISTS detector_models (
                id SERIAL PRIMARY KEY,
                detector_uuid UUID NOT NULL REFERENCES detectors(uuid),
                params JSONB NOT NULL,
                fitted_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            );

            CREATE INDEX IF NOT EXISTS idx_detector_models_latest
            ON detector_models(detector_uuid, fitted_at DESC);
        """
        created = self.execute_query(query)
        if created:
            logger.info("Ensured catalog tables exist")
        return created
