"""
Google Maps Platform HTTP client.

Covers the endpoints the discovery pipeline uses: reverse geocoding,
Places nearby search and details, and the Roads API (snapToRoads,
nearestRoads).  Every call is recorded on the active rt_trace context.
"""

import logging
import time
from typing import Dict, List, Optional, Sequence, Tuple

import requests

from rt_trace import get_trace

logger = logging.getLogger(__name__)


class GoogleMapsError(Exception):
    """Raised when a Google Maps Platform call fails at HTTP or provider level."""

    pass


class ProviderNotConfiguredError(Exception):
    """Raised when a provider is used without the credentials it needs."""

    pass


class GoogleMapsClient:
    """Client for Google Maps APIs"""

    # Per-call timeout in seconds.  p99 for these endpoints is < 2 s.
    DEFAULT_TIMEOUT = 10
    MAX_RETRIES = 1
    RETRY_BACKOFF = [1]  # seconds

    def __init__(
        self,
        api_key: Optional[str],
        roads_api_key: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        self.api_key = api_key
        self.roads_api_key = roads_api_key or api_key
        self.base_url = "https://maps.googleapis.com/maps/api"
        self.roads_url = "https://roads.googleapis.com/v1"
        self.timeout = timeout or self.DEFAULT_TIMEOUT

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _traced_get(
        self,
        endpoint_name: str,
        url: str,
        params: dict,
        service: str = "google_maps",
    ) -> dict:
        """GET request with retry on transient failures and trace recording."""
        for attempt in range(1 + self.MAX_RETRIES):
            try:
                return self._do_get(endpoint_name, url, params, service)
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                if attempt < self.MAX_RETRIES:
                    sleep_time = self.RETRY_BACKOFF[attempt]
                    logger.info(
                        "%s %s transport error (attempt %d/%d), sleeping %ds before retry",
                        service, endpoint_name, attempt + 1, 1 + self.MAX_RETRIES, sleep_time,
                    )
                    time.sleep(sleep_time)
                    continue
                raise GoogleMapsError(f"{service} {endpoint_name} request failed: {e}") from e
            except requests.exceptions.RequestException as e:
                raise GoogleMapsError(f"{service} {endpoint_name} request failed: {e}") from e
        raise GoogleMapsError(f"{service} {endpoint_name} failed after all retries")

    def _do_get(self, endpoint_name: str, url: str, params: dict, service: str) -> dict:
        t0 = time.time()
        session = requests.Session()
        session.trust_env = False
        response = session.get(url, params=params, timeout=self.timeout)
        elapsed_ms = int((time.time() - t0) * 1000)

        try:
            data = response.json()
        except ValueError:
            data = None
        provider_status = data.get("status", "") if isinstance(data, dict) else ""

        trace = get_trace()
        if trace:
            trace.record_api_call(
                service=service,
                endpoint=endpoint_name,
                elapsed_ms=elapsed_ms,
                status_code=response.status_code,
                provider_status=provider_status,
            )

        label = "Google Roads API" if service == "google_roads" else "Google Maps API"
        if response.status_code == 403:
            raise GoogleMapsError(f"{label} access denied. Check API key and billing.")
        if response.status_code == 429:
            raise GoogleMapsError(f"{label} rate limit exceeded")
        if not 200 <= response.status_code < 300:
            raise GoogleMapsError(f"{label} error: HTTP {response.status_code}")
        if not isinstance(data, dict):
            raise GoogleMapsError(f"{label} returned a non-JSON response ({endpoint_name})")
        return data

    def _require_key(self, key: Optional[str], what: str) -> str:
        if not key:
            raise ProviderNotConfiguredError(f"{what} API key not configured")
        return key

    # ------------------------------------------------------------------
    # Geocoding / Places
    # ------------------------------------------------------------------

    def reverse_geocode(self, lat: float, lng: float) -> List[Dict]:
        """Return geocoder results (with address_components) for a point."""
        key = self._require_key(self.api_key, "Google Places")
        url = f"{self.base_url}/geocode/json"
        params = {"latlng": f"{lat},{lng}", "key": key}
        data = self._traced_get("reverse_geocode", url, params)

        if data.get("status") not in ["OK", "ZERO_RESULTS"]:
            raise GoogleMapsError(f"Geocoding failed: {data.get('status')}")

        return data.get("results", [])

    def places_nearby(
        self,
        lat: float,
        lng: float,
        place_type: str,
        radius_meters: int = 5000,
        keyword: Optional[str] = None,
    ) -> List[Dict]:
        """Search for places near a location"""
        key = self._require_key(self.api_key, "Google Places")
        url = f"{self.base_url}/place/nearbysearch/json"
        params = {
            "location": f"{lat},{lng}",
            "radius": radius_meters,
            "type": place_type,
            "key": key,
        }
        if keyword:
            params["keyword"] = keyword

        data = self._traced_get("places_nearby", url, params)

        if data.get("status") not in ["OK", "ZERO_RESULTS"]:
            raise GoogleMapsError(f"Places API failed: {data.get('status')}")

        return data.get("results", [])

    def place_details(self, place_id: str, fields: Optional[List[str]] = None) -> Dict:
        """Get detailed information about a place"""
        key = self._require_key(self.api_key or self.roads_api_key, "Google Places")
        url = f"{self.base_url}/place/details/json"
        default_fields = ["name", "formatted_address", "types"]
        params = {
            "place_id": place_id,
            "fields": ",".join(fields or default_fields),
            "key": key,
        }
        data = self._traced_get("place_details", url, params)

        if data.get("status") != "OK":
            raise GoogleMapsError(f"Place Details API failed: {data.get('status')}")

        return data.get("result", {})

    # ------------------------------------------------------------------
    # Roads
    # ------------------------------------------------------------------

    @staticmethod
    def _format_path(points: Sequence[Tuple[float, float]]) -> str:
        return "|".join(f"{lat},{lng}" for lat, lng in points)

    def snap_to_roads(
        self, path: Sequence[Tuple[float, float]], interpolate: bool = True
    ) -> List[Dict]:
        """Snap a GPS path to roads.  Returns the raw snappedPoints list."""
        key = self._require_key(self.roads_api_key, "Google Roads")
        url = f"{self.roads_url}/snapToRoads"
        params = {
            "path": self._format_path(path),
            "interpolate": "true" if interpolate else "false",
            "key": key,
        }
        data = self._traced_get("snap_to_roads", url, params, service="google_roads")
        return data.get("snappedPoints", []) or []

    def nearest_roads(self, points: Sequence[Tuple[float, float]]) -> List[Dict]:
        """Nearest road segments for each point.  Returns the raw snappedPoints list."""
        key = self._require_key(self.roads_api_key, "Google Roads")
        url = f"{self.roads_url}/nearestRoads"
        params = {"points": self._format_path(points), "key": key}
        data = self._traced_get("nearest_roads", url, params, service="google_roads")
        return data.get("snappedPoints", []) or []
