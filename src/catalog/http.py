"""
Model catalog backed by the model service REST API.

Endpoints:
- GET /api/detectors/search/findByMetricKey?key=<metric id>
- GET /api/models/search/findLatestByDetectorUuid?uuid=<detector uuid>
"""

from datetime import datetime
from typing import Any
from uuid import UUID

import requests
import structlog

from src.anomdetect.catalog import ModelCatalogClient
from src.anomdetect.identity import metric_id
from src.anomdetect.methods.base import DetectorDescriptor, FittedModel
from src.anomdetect.models import MetricDescriptor
from src.core.errors import CatalogUnavailableError, InvalidModelError

logger = structlog.get_logger(__name__)

FIND_DETECTORS_PATH = "/api/detectors/search/findByMetricKey"
FIND_LATEST_MODEL_PATH = "/api/models/search/findLatestByDetectorUuid"


class HttpModelCatalog(ModelCatalogClient):
    """Reads detectors and fitted models from the model service"""

    def __init__(
        self,
        base_url: str,
        org_id: int = 1,
        timeout: float = 5.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.org_id = org_id
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("Accept", "application/json")

        logger.info("Model service catalog initialized", base_url=self.base_url)

    def find_applicable_detectors(self, metric: MetricDescriptor) -> list[DetectorDescriptor]:
        key = metric_id(self.org_id, metric)
        response = self._get(FIND_DETECTORS_PATH, {"key": key})
        if response is None:
            return []

        try:
            resources = (response.get("_embedded") or {}).get("detectors") or []
            descriptors = [
                DetectorDescriptor(
                    detector_id=UUID(resource["uuid"]),
                    detector_type=resource["type"]["key"],
                )
                for resource in resources
            ]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error("Malformed detector listing", metric_key=key, error=str(e))
            raise CatalogUnavailableError(
                f"Model service returned a malformed detector listing for {key}: {e}"
            ) from e

        logger.debug("Detectors found", metric_key=key, count=len(descriptors))
        return descriptors

    def find_latest_model(self, detector_id: UUID) -> FittedModel | None:
        response = self._get(FIND_LATEST_MODEL_PATH, {"uuid": str(detector_id)})
        if response is None:
            return None

        try:
            params = response.get("params") or {}
            if not isinstance(params, dict):
                raise TypeError(f"params must be an object, got {type(params).__name__}")
            return FittedModel(
                detector_id=detector_id,
                params=params,
                fitted_at=parse_timestamp(response.get("dateCreated")),
            )
        except (TypeError, ValueError) as e:
            raise InvalidModelError(f"Malformed model for detector {detector_id}: {e}") from e

    def close(self) -> None:
        self.session.close()

    def _get(self, path: str, params: dict[str, str]) -> dict[str, Any] | None:
        """GET a catalog resource. Returns None on 404.

        Raises:
            CatalogUnavailableError: On connection errors, timeouts, error responses
                and bodies that are not a JSON object
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Model service request failed", url=url, error=str(e))
            raise CatalogUnavailableError(f"Model service unreachable: {e}") from e

        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            logger.error("Model service error", url=url, status_code=response.status_code)
            raise CatalogUnavailableError(
                f"Model service returned {response.status_code} for {path}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise CatalogUnavailableError(f"Model service returned invalid JSON for {path}") from e

        if not isinstance(payload, dict):
            raise CatalogUnavailableError(
                f"Model service returned {type(payload).__name__} instead of an object for {path}"
            )
        return payload


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp as sent by the model service"""
    if not value:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Timestamp must be a string, got {value!r}")
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
