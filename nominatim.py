"""
OpenStreetMap Nominatim reverse geocoding.

Used as the fallback source of administrative context (city, county,
state) when Google Geocoding is unavailable or returns nothing.  The
Nominatim usage policy requires an identifying User-Agent; it comes from
Settings.nominatim_user_agent.
"""

import logging
import time
from typing import Any, Dict, Optional

import requests

from config import DEFAULT_NOMINATIM_URL, DEFAULT_USER_AGENT
from rt_trace import get_trace

logger = logging.getLogger(__name__)


class NominatimError(Exception):
    """Raised when a Nominatim request fails or returns an unusable body."""

    pass


class NominatimClient:
    DEFAULT_TIMEOUT = 10  # seconds

    def __init__(
        self,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        self.base_url = (base_url or DEFAULT_NOMINATIM_URL).rstrip("/")
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.timeout = timeout or self.DEFAULT_TIMEOUT

    def reverse(self, lat: float, lon: float) -> Dict[str, Any]:
        """Reverse geocode a point.  Returns the decoded JSON body."""
        params = {
            "lat": lat,
            "lon": lon,
            "format": "json",
            "addressdetails": 1,
        }
        headers = {"User-Agent": self.user_agent}

        t0 = time.time()
        trace = get_trace()
        try:
            session = requests.Session()
            session.trust_env = False
            resp = session.get(
                f"{self.base_url}/reverse",
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            elapsed_ms = int((time.time() - t0) * 1000)
            if trace:
                trace.record_api_call(
                    service="nominatim",
                    endpoint="reverse",
                    elapsed_ms=elapsed_ms,
                    status_code=0,
                    provider_status="exception",
                )
            raise NominatimError(f"Nominatim request failed: {e}") from e

        elapsed_ms = int((time.time() - t0) * 1000)
        if trace:
            trace.record_api_call(
                service="nominatim",
                endpoint="reverse",
                elapsed_ms=elapsed_ms,
                status_code=resp.status_code,
            )

        if resp.status_code >= 400:
            raise NominatimError(f"Nominatim HTTP {resp.status_code}")
        try:
            data = resp.json()
        except ValueError:
            raise NominatimError("Nominatim returned non-JSON response")
        if not isinstance(data, dict):
            raise NominatimError("Nominatim returned an unexpected body")
        if data.get("error"):
            raise NominatimError(f"Nominatim error: {data['error']}")
        return data
