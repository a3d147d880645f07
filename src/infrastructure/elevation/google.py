"""Google-Elevation-style HTTP adapter for ElevationProvider.

Request:  GET {endpoint}?locations=lat,lng|lat,lng|...&key=API_KEY
          (coordinates fixed to 6 decimals so 500 points stay under the
          16,384-char URL limit once "|" and "," are percent-encoded)
Response: {"status": "OK", "results": [{"elevation": m, "location": {"lat", "lng"}}]}

Any non-"OK" status, HTTP error, transport error or malformed body is fatal
for the batch and surfaces as ElevationQueryFailedError. No retries.

requests is blocking, so each batch runs in a worker thread via
asyncio.to_thread; cancelling the awaiting task abandons the result.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

import requests
from pydantic import ValidationError

from domain.errors import ConfigurationError, ElevationQueryFailedError
from domain.geometry.value_objects import Vertex
from domain.terrain.value_objects import ElevationSample

# Module-level logger (reused across all calls)
logger = logging.getLogger(__name__)

GOOGLE_ELEVATION_ENDPOINT = "https://maps.googleapis.com/maps/api/elevation/json"
GOOGLE_MAX_BATCH_SIZE = 500  # Locations per request accepted by the API
GOOGLE_MAX_URL_LENGTH = 16_384  # Longest request URL accepted by the API
COORDINATE_DECIMALS = 6  # ~0.1 m; keeps a full batch well under the URL limit


class GoogleElevationProvider:
    """HTTP elevation provider.

    Parameters
    ----------
    api_key: str
        Elevation API key. Never logged.
    session: requests.Session | None
        Reused for connection pooling; a new one is created if omitted.
    timeout_s: float
        Per-request timeout in seconds.
    endpoint: str
        Elevation JSON endpoint (overridable for proxies and tests).
    """

    max_batch_size = GOOGLE_MAX_BATCH_SIZE

    def __init__(
        self,
        api_key: str,
        session: requests.Session | None = None,
        timeout_s: float = 10.0,
        endpoint: str = GOOGLE_ELEVATION_ENDPOINT,
    ) -> None:
        if not api_key:
            raise ConfigurationError("An elevation API key is required")
        if timeout_s <= 0:
            raise ConfigurationError("timeout_s must be positive")
        self._api_key = api_key
        self._session = session or requests.Session()
        self.timeout_s = timeout_s
        self.endpoint = endpoint

    async def sample(self, points: Sequence[Vertex]) -> list[ElevationSample]:
        if not points:
            return []
        if len(points) > self.max_batch_size:
            raise ValueError(
                f"Batch of {len(points)} exceeds provider cap {self.max_batch_size}"
            )
        return await asyncio.to_thread(self.fetch, list(points))

    def request_params(self, points: Sequence[Vertex]) -> dict[str, str]:
        """Query parameters for one batch, coordinates fixed to 6 decimals."""
        locations = "|".join(
            f"{p.lat:.{COORDINATE_DECIMALS}f},{p.lng:.{COORDINATE_DECIMALS}f}"
            for p in points
        )
        return {"locations": locations, "key": self._api_key}

    def fetch(self, points: Sequence[Vertex]) -> list[ElevationSample]:
        """Blocking request for one batch.

        Raises:
            ElevationQueryFailedError: If the request URL would exceed
                GOOGLE_MAX_URL_LENGTH, or the request or response fails
        """
        params = self.request_params(points)
        url = requests.Request("GET", self.endpoint, params=params).prepare().url or ""
        if len(url) > GOOGLE_MAX_URL_LENGTH:
            raise ElevationQueryFailedError(
                "INVALID_REQUEST",
                f"request URL of {len(url)} chars exceeds {GOOGLE_MAX_URL_LENGTH}",
            )
        logger.debug("Requesting elevation for %d points", len(points))

        try:
            response = self._session.get(
                self.endpoint,
                params=params,
                timeout=self.timeout_s,
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            status_code = getattr(e.response, "status_code", "unknown")
            raise ElevationQueryFailedError(f"HTTP_{status_code}") from e
        except requests.RequestException as e:
            # SEC: the exception text may contain the request URL with the key
            raise ElevationQueryFailedError("TRANSPORT_ERROR", type(e).__name__) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise ElevationQueryFailedError(
                "INVALID_RESPONSE", "body is not JSON"
            ) from e

        return _parse_results(payload, points)


def _parse_results(payload: Any, points: Sequence[Vertex]) -> list[ElevationSample]:
    if not isinstance(payload, dict):
        raise ElevationQueryFailedError("INVALID_RESPONSE", "body is not an object")

    status = payload.get("status")
    if status != "OK":
        raise ElevationQueryFailedError(
            str(status or "UNKNOWN"), payload.get("error_message")
        )

    results = payload.get("results")
    if not isinstance(results, list) or len(results) != len(points):
        count = len(results) if isinstance(results, list) else 0
        raise ElevationQueryFailedError(
            "INVALID_RESPONSE", f"expected {len(points)} results, got {count}"
        )

    samples: list[ElevationSample] = []
    try:
        for requested, result in zip(points, results):
            location = result.get("location")
            where = (
                Vertex(lat=location["lat"], lng=location["lng"])
                if location
                else requested
            )
            samples.append(
                ElevationSample(location=where, elevation_m=result["elevation"])
            )
    except (KeyError, TypeError, AttributeError, ValidationError) as e:
        raise ElevationQueryFailedError("INVALID_RESPONSE", str(e)) from e
    return samples
