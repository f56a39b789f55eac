"""
Runtime configuration for the POI discovery pipeline.

Reads provider credentials and endpoints from the environment (a local
.env file is loaded first via python-dotenv).  Values are captured once
into a frozen Settings object and passed to the clients that need them;
nothing below reads os.environ after construction.

Environment variables:
  GOOGLE_PLACES_API_KEY   Places / Geocoding key (falls back to GOOGLE_MAPS_API_KEY)
  GOOGLE_ROADS_API_KEY    Roads API key (falls back to the Places key)
  OVERPASS_BASE_URL       Overpass interpreter endpoint
  NOMINATIM_BASE_URL      Nominatim endpoint for reverse geocoding
  NOMINATIM_USER_AGENT    User-Agent sent to Nominatim (required by its usage policy)
  HTTP_TIMEOUT_SECONDS    Per-request timeout for all outbound HTTP calls
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()

DEFAULT_OVERPASS_URL = "https://overpass-api.de/api/interpreter"
DEFAULT_NOMINATIM_URL = "https://nominatim.openstreetmap.org"
DEFAULT_USER_AGENT = "RoadTripNarrator/1.0"
DEFAULT_HTTP_TIMEOUT = 30  # seconds


@dataclass(frozen=True)
class Settings:
    """Provider credentials and endpoints for one service instance."""
    google_places_api_key: Optional[str] = None
    google_roads_api_key: Optional[str] = None
    overpass_base_url: str = DEFAULT_OVERPASS_URL
    nominatim_base_url: str = DEFAULT_NOMINATIM_URL
    nominatim_user_agent: str = DEFAULT_USER_AGENT
    http_timeout: int = DEFAULT_HTTP_TIMEOUT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        places_key = (
            env.get("GOOGLE_PLACES_API_KEY")
            or env.get("GOOGLE_MAPS_API_KEY")
            or None
        )
        roads_key = env.get("GOOGLE_ROADS_API_KEY") or places_key

        timeout_raw = env.get("HTTP_TIMEOUT_SECONDS", "")
        try:
            timeout = int(timeout_raw) if timeout_raw else DEFAULT_HTTP_TIMEOUT
        except ValueError:
            logger.warning(
                "Ignoring non-integer HTTP_TIMEOUT_SECONDS=%r, using %ds",
                timeout_raw, DEFAULT_HTTP_TIMEOUT,
            )
            timeout = DEFAULT_HTTP_TIMEOUT
        if timeout <= 0:
            logger.warning(
                "Ignoring non-positive HTTP_TIMEOUT_SECONDS=%r, using %ds",
                timeout_raw, DEFAULT_HTTP_TIMEOUT,
            )
            timeout = DEFAULT_HTTP_TIMEOUT

        return cls(
            google_places_api_key=places_key,
            google_roads_api_key=roads_key,
            overpass_base_url=env.get("OVERPASS_BASE_URL") or DEFAULT_OVERPASS_URL,
            nominatim_base_url=env.get("NOMINATIM_BASE_URL") or DEFAULT_NOMINATIM_URL,
            nominatim_user_agent=env.get("NOMINATIM_USER_AGENT") or DEFAULT_USER_AGENT,
            http_timeout=timeout,
        )
