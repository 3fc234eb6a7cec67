from typing import Any, Optional

import httpx
import structlog

from config.map_config import MapConfig
from core.infrastructure.http_client import get_http_client, http_request
from models.map_model import LatLng

logger = structlog.get_logger(__name__)


def to_lat_lng(value: Any) -> Optional[LatLng]:
    """Accept only a mapping with numeric ``lat`` and ``lng``."""
    if not isinstance(value, dict):
        return None
    lat, lng = value.get("lat"), value.get("lng")
    for coord in (lat, lng):
        if isinstance(coord, bool) or not isinstance(coord, (int, float)):
            return None
    return LatLng(lat=float(lat), lng=float(lng))


def extract_location(payload: Any) -> Optional[LatLng]:
    """Pull ``results[0].geometry.location`` out of a provider body, if present."""
    if not isinstance(payload, dict):
        return None
    results = payload.get("results")
    if not isinstance(results, list) or not results:
        return None
    first = results[0]
    if not isinstance(first, dict):
        return None
    geometry = first.get("geometry")
    if not isinstance(geometry, dict):
        return None
    return to_lat_lng(geometry.get("location"))


class GeocodingClient:
    """Free-text address to coordinates. Returns None on every failure mode."""

    RETRY_BASE_DELAY = 0.5

    def __init__(
        self,
        api_key: str,
        client: Optional[httpx.AsyncClient] = None,
        endpoint: str = MapConfig.GEOCODING_API_URL,
        timeout: float = MapConfig.GEOCODE_TIMEOUT_SECONDS,
        retries: int = MapConfig.GEOCODE_RETRIES,
    ):
        self._api_key = api_key
        self._client = client
        self._endpoint = endpoint
        self._timeout = timeout
        self._retries = max(0, retries)

    async def geocode(self, query: str) -> Optional[LatLng]:
        query = (query or "").strip()
        if not query:
            return None

        try:
            response = await http_request(
                "GET",
                self._endpoint,
                client=self._client or get_http_client(),
                max_attempts=self._retries + 1,
                base_delay=self.RETRY_BASE_DELAY,
                params={"address": query, "key": self._api_key},
                timeout=self._timeout,
            )
        except httpx.HTTPStatusError as e:
            logger.warning(
                "geocode_http_error", query=query, status=e.response.status_code
            )
            return None
        except Exception as e:
            logger.warning("geocode_request_failed", query=query, error=str(e))
            return None

        try:
            payload = response.json()
        except ValueError:
            logger.warning("geocode_malformed_body", query=query)
            return None

        location = extract_location(payload)
        if location is None:
            status = payload.get("status") if isinstance(payload, dict) else None
            logger.debug("geocode_no_result", query=query, status=status)
        return location
