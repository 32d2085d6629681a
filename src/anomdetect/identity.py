"""
Metric identity: deterministic metric keys.

The digest layout is shared with other producers and consumers of the key
(metrictank-compatible ids), so it must stay byte-for-byte identical:

    md5(name \\0 unit \\0 mtype \\0 interval [\\0 tag]*)

with tags formatted as "key=value" and sorted by UTF-16 code unit.
"""

import hashlib
from typing import Mapping

from src.core.errors import InvalidMetricError

from .models import MetricDescriptor, MetricKey

FIELD_SEPARATOR = b"\x00"
ILLEGAL_KEY_CHARS = ("=", ";", "!")
ILLEGAL_VALUE_CHARS = (";",)


def format_tags(tags: Mapping[str, str]) -> list[str]:
    """Validate tags and return them as sorted "key=value" strings

    Sorted by UTF-16 code unit, the order other producers of the key use, which
    differs from code point order once astral characters are involved.

    Raises:
        InvalidMetricError: On a non-string, empty or illegal key or value
    """
    formatted = []
    for key, value in tags.items():
        if not isinstance(key, str) or not key or any(char in key for char in ILLEGAL_KEY_CHARS):
            raise InvalidMetricError(f"Unsupported tag key: {key!r}")
        if (
            not isinstance(value, str)
            or not value
            or any(char in value for char in ILLEGAL_VALUE_CHARS)
        ):
            raise InvalidMetricError(f"Unsupported value {value!r} for tag key {key!r}")
        formatted.append(f"{key}={value}")

    formatted.sort(key=utf16_sort_key)
    return formatted


def utf16_sort_key(text: str) -> bytes:
    return text.encode("utf-16-be", "surrogatepass")


def compute_key(org_id: int, metric: MetricDescriptor) -> MetricKey:
    """Derive the metric key of a descriptor

    Pure function: descriptors with the same canonical form (tag order
    irrelevant) always produce the same key.

    Raises:
        InvalidMetricError: If the descriptor is malformed
    """
    if metric is None:
        raise InvalidMetricError("Metric descriptor is required")
    for attr in ("name", "unit", "mtype"):
        if not isinstance(getattr(metric, attr), str):
            raise InvalidMetricError(f"Metric {attr} must be a string")
    if not metric.name:
        raise InvalidMetricError("Metric name must not be empty")
    if isinstance(metric.interval, bool) or not isinstance(metric.interval, int):
        raise InvalidMetricError(f"Metric interval must be an integer, got {metric.interval!r}")
    if metric.interval <= 0:
        raise InvalidMetricError(f"Metric interval must be positive, got {metric.interval}")

    tags = format_tags(metric.tags)
    fields = [metric.name, metric.unit, metric.mtype, str(metric.interval), *tags]

    try:
        encoded = [value.encode("utf-8") for value in fields]
    except UnicodeEncodeError as e:
        raise InvalidMetricError(f"Metric {metric.name!r} is not valid unicode: {e}") from e

    md5 = hashlib.md5()
    md5.update(FIELD_SEPARATOR.join(encoded))

    return MetricKey(org_id=org_id, digest=md5.digest())


def metric_id(org_id: int, metric: MetricDescriptor) -> str:
    """String form of the metric key, e.g. '1.0f3c...'"""
    return str(compute_key(org_id, metric))
