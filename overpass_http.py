"""
Overpass API HTTP layer.

Both Overpass consumers (the highway road-network search and the OSM POI
fallback) send their queries through OverpassHTTPClient.query().  Each
call opens its own requests.Session, so the client is safe to share
between the orchestrator's worker threads.

Failures are classified once, where the response is read:

    429 / "too many requests" remark      OverpassRateLimitError (retried)
    timeout, 5xx, runtime-error remark    OverpassQueryError, retryable
    other 4xx, non-JSON, transport error  OverpassQueryError, final

Retryable failures are retried MAX_RETRIES times with RETRY_BACKOFF
delays; every attempt is recorded on the active rt_trace context.
"""

import logging
import time
from typing import Any, Dict, Optional

import requests

from config import DEFAULT_OVERPASS_URL
from rt_trace import get_trace

logger = logging.getLogger(__name__)

# Remark fragments Overpass uses for server-side failures on a 200 response
_BODY_ERROR_MARKERS = ("runtime error", "timed out", "out of memory")


class OverpassQueryError(Exception):
    """Overpass could not answer the query."""

    def __init__(self, message: str, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


class OverpassRateLimitError(OverpassQueryError):
    """Overpass is throttling us (HTTP 429 or a rate-limit remark)."""

    def __init__(self, message: str):
        super().__init__(message, retryable=True)


class OverpassHTTPClient:
    DEFAULT_TIMEOUT = 30  # seconds
    MAX_RETRIES = 2
    RETRY_BACKOFF = [2, 4]  # seconds

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[int] = None):
        self.base_url = base_url or DEFAULT_OVERPASS_URL
        self.timeout = timeout or self.DEFAULT_TIMEOUT

    def query(
        self,
        overpass_ql: str,
        caller: str = "unknown",
        timeout: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Run an Overpass QL query and return the decoded JSON body.

        Args:
            overpass_ql: The Overpass QL query string.
            caller: Endpoint name recorded on the trace ("highways_r500",
                    "osm_pois", ...).
            timeout: HTTP timeout in seconds. Defaults to the client timeout.

        Raises:
            OverpassRateLimitError: still throttled after the last retry.
            OverpassQueryError: a final error, or a retryable one that
                outlasted the retries.
        """
        timeout = timeout or self.timeout
        attempts = 1 + self.MAX_RETRIES

        for attempt in range(attempts):
            try:
                return self._do_request(overpass_ql, caller, timeout)
            except OverpassQueryError as e:
                if attempt + 1 >= attempts or not self._is_retryable_error(e):
                    raise
                delay = self.RETRY_BACKOFF[attempt]
                logger.info(
                    "Overpass %s on attempt %d/%d, retrying in %ds [caller=%s]",
                    type(e).__name__, attempt + 1, attempts, delay, caller,
                )
                time.sleep(delay)

        # Unreachable: the last attempt either returns or raises
        raise OverpassQueryError(f"Overpass query gave up [caller={caller}]")

    @staticmethod
    def _is_retryable_error(e: OverpassQueryError) -> bool:
        return e.retryable

    # ------------------------------------------------------------------
    # Single attempt
    # ------------------------------------------------------------------

    def _do_request(self, overpass_ql: str, caller: str, timeout: int) -> Dict[str, Any]:
        start = time.monotonic()

        def record(status_code: int, provider_status: str = ""):
            trace = get_trace()
            if trace:
                trace.record_api_call(
                    service="overpass",
                    endpoint=caller,
                    elapsed_ms=int((time.monotonic() - start) * 1000),
                    status_code=status_code,
                    provider_status=provider_status,
                )

        session = requests.Session()
        session.trust_env = False
        try:
            resp = session.post(self.base_url, data={"data": overpass_ql}, timeout=timeout)
        except requests.exceptions.Timeout:
            record(0, "timeout")
            raise OverpassQueryError(
                f"Overpass request timeout after {timeout}s [caller={caller}]",
                retryable=True,
            )
        except requests.exceptions.RequestException as e:
            record(0, "exception")
            raise OverpassQueryError(f"Overpass request failed: {e} [caller={caller}]") from e

        status_code = resp.status_code
        if status_code >= 400:
            provider_status, error = self._status_error(status_code, caller)
            record(status_code, provider_status)
            raise error

        try:
            data = resp.json()
        except ValueError:
            record(status_code, "parse_error")
            raise OverpassQueryError(
                f"Overpass returned non-JSON response (HTTP {status_code}) [caller={caller}]"
            )

        remark = self._remark(data).lower()
        if "too many requests" in remark:
            record(status_code, "rate_limit")
            raise OverpassRateLimitError(f"Overpass rate limit in response body [caller={caller}]")
        if any(marker in remark for marker in _BODY_ERROR_MARKERS):
            record(status_code, "body_error")
            raise OverpassQueryError(
                f"Overpass server error in response body: {remark[:100]} [caller={caller}]",
                retryable=True,
            )

        record(status_code)
        return data

    @staticmethod
    def _status_error(status_code: int, caller: str):
        """(trace provider_status, exception) for an HTTP error status."""
        if status_code == 429:
            return "rate_limit", OverpassRateLimitError(
                f"Overpass 429 Too Many Requests [caller={caller}]"
            )
        if status_code == 504:
            return "timeout", OverpassQueryError(
                f"Overpass 504 Gateway Timeout [caller={caller}]", retryable=True,
            )
        return "http_error", OverpassQueryError(
            f"Overpass HTTP {status_code} [caller={caller}]",
            retryable=status_code >= 500,
        )

    @staticmethod
    def _remark(data: Any) -> str:
        """Overpass reports some failures in osm3s.remark or a top-level remark."""
        if not isinstance(data, dict):
            return ""
        osm3s = data.get("osm3s") or {}
        return str(osm3s.get("remark") or data.get("remark") or "")
