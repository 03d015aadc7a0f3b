# trip_planner/agents/geocode.py
import logging
from typing import Optional

import httpx

from ..config import GEOCODE_TIMEOUT_SEC, HEADERS, NOMINATIM_URL
from ..errors import MalformedResponse, NotFound, UpstreamUnavailable
from ..models import Coordinate

logger = logging.getLogger(__name__)


async def _call_url(url: str, params: dict, headers: dict, timeout: float,
                    transport: Optional[httpx.AsyncBaseTransport] = None):
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        r = await client.get(url, params=params, headers=headers)
        r.raise_for_status()
        return r.json()


async def geocode(place: str,
                  transport: Optional[httpx.AsyncBaseTransport] = None,
                  timeout: float = GEOCODE_TIMEOUT_SEC) -> Coordinate:
    """
    Resolve free text to a coordinate with a single Nominatim lookup.

    No retry and no fallback provider: raises NotFound when Nominatim has no
    match, UpstreamUnavailable on transport errors or non-2xx answers, and
    MalformedResponse when the body can't be read as a coordinate.
    """
    params = {"q": place, "format": "json", "limit": 1, "addressdetails": 0}
    logger.info("Geocoding start place %r", place)
    try:
        data = await _call_url(NOMINATIM_URL, params, HEADERS, timeout, transport)
    except httpx.HTTPStatusError as e:
        raise UpstreamUnavailable(
            f"Client error {e.response.status_code} for url {e.request.url!s}"
        ) from e
    except httpx.HTTPError as e:
        raise UpstreamUnavailable(f"Network error: {e!s}") from e
    except ValueError as e:
        raise MalformedResponse(f"Nominatim returned invalid JSON: {e!s}") from e

    if not isinstance(data, list):
        raise MalformedResponse("Nominatim returned an unexpected payload")
    if not data:
        logger.warning("Geocode returned no results for %r", place)
        raise NotFound(f"No match for {place!r}")

    first = data[0]
    try:
        coords = Coordinate(lat=float(first["lat"]), lon=float(first["lon"]))
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedResponse(f"Nominatim result has no usable lat/lon: {e!s}") from e
    if not coords.is_valid():
        raise MalformedResponse(f"Nominatim returned out-of-range coordinates {coords.lat}, {coords.lon}")

    logger.info("Geocoded %r to %s, %s", place, coords.lat, coords.lon)
    return coords
