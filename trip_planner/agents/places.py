# trip_planner/agents/places.py
import logging
from typing import Any, List, Optional

import httpx

from ..cache import TTLCache
from ..config import (
    CACHE_TTL_SEC,
    HEADERS,
    OVERPASS_MIRROR_URL,
    OVERPASS_PRIMARY_URL,
    OVERPASS_TIMEOUT_SEC,
)
from ..errors import MalformedResponse, UpstreamUnavailable
from ..models import Coordinate, RawPlaceRecord, RawPoint
from .geocode import geocode

logger = logging.getLogger(__name__)

SEARCH_RADIUS_M = 300_000


def build_query(lat: float, lon: float, radius: int = SEARCH_RADIUS_M) -> str:
    """Overpass QL for tourism, historic sites, parks and viewpoints around a point."""
    return f"""[out:json][timeout:25];
(
  node["tourism"](around:{radius},{lat},{lon});
  way["tourism"](around:{radius},{lat},{lon});
  relation["tourism"](around:{radius},{lat},{lon});
  node["historic"](around:{radius},{lat},{lon});
  node["leisure"="park"](around:{radius},{lat},{lon});
  node["amenity"="viewpoint"](around:{radius},{lat},{lon});
);
out center;"""


def cache_key(origin: Coordinate) -> str:
    return f"op_{origin.lat:.4f}_{origin.lon:.4f}"


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_point(lat: Any, lon: Any) -> Optional[RawPoint]:
    if lat is None and lon is None:
        return None
    return RawPoint(lat=_to_float(lat), lon=_to_float(lon))


def parse_element(el: dict) -> RawPlaceRecord:
    tags = el.get("tags") or {}
    if not isinstance(tags, dict):
        tags = {}
    center = el.get("center")
    return RawPlaceRecord(
        tags={str(k): str(v) for k, v in tags.items() if v is not None},
        point=_to_point(el.get("lat"), el.get("lon")),
        center=_to_point(center.get("lat"), center.get("lon")) if isinstance(center, dict) else None,
    )


class PlaceSource:
    """
    Fetches raw points of interest from Overpass and resolves free-text
    start places through Nominatim.

    The cache is owned by the instance and passed in by whoever builds it,
    so tests can hand over a cache with a fake clock. `transport` is forwarded
    to every httpx client and lets tests swap the network for a MockTransport.
    """

    def __init__(self,
                 cache: Optional[TTLCache] = None,
                 primary_url: str = OVERPASS_PRIMARY_URL,
                 mirror_url: str = OVERPASS_MIRROR_URL,
                 timeout: float = OVERPASS_TIMEOUT_SEC,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.cache = cache if cache is not None else TTLCache(ttl=CACHE_TTL_SEC)
        self.primary_url = primary_url
        self.mirror_url = mirror_url
        self.timeout = timeout
        self._transport = transport

    async def _post_overpass(self, url: str, query: str) -> dict:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, data={"data": query}, headers=HEADERS)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamUnavailable(
                f"Overpass API error {e.response.status_code} for url {e.request.url}"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"Overpass request to {url} failed: {e!s}") from e
        except ValueError as e:
            raise MalformedResponse(f"Overpass returned invalid JSON: {e!s}") from e

        if not isinstance(data, dict):
            raise MalformedResponse("Overpass returned an unexpected payload")
        if data.get("error"):
            raise MalformedResponse(f"Overpass API error: {data['error']}")
        elements = data.get("elements", [])
        if not isinstance(elements, list):
            raise MalformedResponse("Overpass 'elements' is not a list")
        return data

    async def _call_overpass(self, query: str) -> dict:
        # primary first, then exactly one attempt against the mirror
        try:
            return await self._post_overpass(self.primary_url, query)
        except UpstreamUnavailable as primary_err:
            logger.warning("Primary Overpass failed: %s", primary_err)

        try:
            return await self._post_overpass(self.mirror_url, query)
        except UpstreamUnavailable as mirror_err:
            logger.error("Both Overpass endpoints failed: %s", mirror_err)
            raise

    async def fetch_nearby(self, origin: Coordinate) -> List[RawPlaceRecord]:
        key = cache_key(origin)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info("Using cached Overpass data, count = %d", len(cached))
            return list(cached)

        logger.info("Calling Overpass for %s, %s (may take a few seconds)", origin.lat, origin.lon)
        data = await self._call_overpass(build_query(origin.lat, origin.lon))
        records = [parse_element(el) for el in data.get("elements", []) if isinstance(el, dict)]
        logger.info("Overpass returned %d elements", len(records))
        if not records:
            logger.warning("Overpass returned empty result")

        self.cache.set(key, records)
        return list(records)

    async def resolve_by_name(self, text: str) -> Coordinate:
        return await geocode(text.strip(), transport=self._transport)
