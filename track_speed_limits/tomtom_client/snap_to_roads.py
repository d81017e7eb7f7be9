"""TomTom Snap to Roads adapter.

Turns a batch of track indices into one POST request and maps the snapped
response back to per-index speed limits in km/h. Failures never escape
:meth:`SnapToRoadsClient.resolve_batch`; the affected indices are reported as
unresolved instead.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence

import requests

from ..config import (
    MPH_TO_KMH,
    REQUEST_TIMEOUT,
    TOMTOM_SNAP_FIELDS,
    TOMTOM_SNAP_TO_ROADS_URL,
    TOMTOM_VEHICLE_TYPE,
)
from ..errors import ProviderAPIError
from ..models import BatchResolution, TrackPoint
from ..utils import round_half_up
from .response_handling import decode_json, ensure_success
from .session import get_default_session

if TYPE_CHECKING:  # pragma: no cover
    from ..cache_store import SpeedLimitCache

LOGGER = logging.getLogger(__name__)

_CONTEXT = "TomTom snapToRoads"

__all__ = [
    "SnapToRoadsClient",
    "build_request_params",
    "build_request_payload",
    "convert_to_kmh",
    "parse_snap_response",
]


def build_request_payload(
    batch: Sequence[int], points: Sequence[TrackPoint]
) -> Dict[str, Any]:
    """GeoJSON point features in batch order (coordinates are ``[lng, lat]``)."""

    return {
        "points": [
            {
                "type": "Feature",
                "geometry": {
                    "type": "Point",
                    "coordinates": [points[idx].longitude, points[idx].latitude],
                },
                "properties": {},
            }
            for idx in batch
        ]
    }


def build_request_params(
    api_key: str, vehicle_type: str = TOMTOM_VEHICLE_TYPE
) -> Dict[str, str]:
    return {
        "fields": TOMTOM_SNAP_FIELDS,
        "vehicleType": vehicle_type,
        "key": api_key,
    }


def convert_to_kmh(value: float, unit: Optional[str]) -> int:
    """Normalise a provider speed limit to whole km/h."""

    if isinstance(unit, str) and unit.strip().upper() == "MPH":
        return round_half_up(value * MPH_TO_KMH)
    if float(value).is_integer():
        return int(value)
    return round_half_up(value)


def _properties(feature: Any) -> Mapping[str, Any]:
    if not isinstance(feature, Mapping):
        return {}
    props = feature.get("properties")
    return props if isinstance(props, Mapping) else {}


def _route_index(projected_point: Any) -> Optional[int]:
    raw = _properties(projected_point).get("routeIndex")
    if raw is None:
        return 0
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        return None
    return raw


def _segment_limit(segment: Any) -> Optional[int]:
    limits = _properties(segment).get("speedLimits")
    if not isinstance(limits, Mapping):
        return None
    value = limits.get("value")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    try:
        return convert_to_kmh(value, limits.get("unit"))
    except (OverflowError, ValueError):
        LOGGER.debug("Ignoring out-of-range speed limit %r", value)
        return None


def parse_snap_response(data: Any, batch: Sequence[int]) -> BatchResolution:
    """Map each projected point to the limit of the route segment it references.

    Projected point ``i`` belongs to ``batch[i]``; extra projected points are
    ignored. Indices without a usable limit end up in ``unresolved``.
    """

    resolved: Dict[int, int] = {}
    route = data.get("route") if isinstance(data, Mapping) else None
    projected = data.get("projectedPoints") if isinstance(data, Mapping) else None
    if not isinstance(route, list) or not isinstance(projected, list):
        LOGGER.warning(
            "%s response missing route/projectedPoints for batch of %d points",
            _CONTEXT,
            len(batch),
        )
        return BatchResolution(resolved={}, unresolved=list(batch))

    for position, projected_point in enumerate(projected[: len(batch)]):
        route_index = _route_index(projected_point)
        if route_index is None or route_index >= len(route):
            continue
        limit = _segment_limit(route[route_index])
        if limit is None:
            continue
        resolved[batch[position]] = limit

    unresolved: List[int] = [idx for idx in batch if idx not in resolved]
    return BatchResolution(resolved=resolved, unresolved=unresolved)


def _redact(text: str, api_key: str) -> str:
    return text.replace(api_key, "****") if api_key else text


class SnapToRoadsClient:
    """One-request-per-batch client with write-through caching."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        base_url: str = TOMTOM_SNAP_TO_ROADS_URL,
        vehicle_type: str = TOMTOM_VEHICLE_TYPE,
        timeout: float = REQUEST_TIMEOUT,
        cache: Optional["SpeedLimitCache"] = None,
    ) -> None:
        self._session = session
        self._base_url = base_url
        self._vehicle_type = vehicle_type
        self._timeout = timeout
        self.cache = cache

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = get_default_session()
        return self._session

    def _post(self, payload: Dict[str, Any], api_key: str) -> Any:
        response = self.session.post(
            self._base_url,
            params=build_request_params(api_key, self._vehicle_type),
            json=payload,
            timeout=self._timeout,
        )
        ensure_success(response, _CONTEXT)
        return decode_json(response, _CONTEXT)

    def resolve_batch(
        self,
        batch: Sequence[int],
        points: Sequence[TrackPoint],
        api_key: str,
    ) -> BatchResolution:
        """Resolve one batch; transport and parse failures leave it unresolved."""

        if not batch:
            return BatchResolution()
        try:
            data = self._post(build_request_payload(batch, points), api_key)
        except ProviderAPIError as exc:
            LOGGER.error(
                "%s; skipping batch of %d points",
                _redact(str(exc), api_key),
                len(batch),
            )
            return BatchResolution(resolved={}, unresolved=list(batch))
        except requests.RequestException as exc:
            LOGGER.error(
                "%s request failed for batch of %d points: %s",
                _CONTEXT,
                len(batch),
                _redact(str(exc), api_key),
            )
            return BatchResolution(resolved={}, unresolved=list(batch))

        resolution = parse_snap_response(data, batch)
        if self.cache is not None:
            for idx, limit in resolution.resolved.items():
                point = points[idx]
                self.cache.store(point.latitude, point.longitude, limit)
        LOGGER.debug(
            "%s resolved %d/%d points",
            _CONTEXT,
            len(resolution.resolved),
            len(batch),
        )
        return resolution
