# trip_planner/agents/trip.py
import logging
import math
import re
from datetime import date
from typing import Any, Dict, Optional, Tuple

from ..errors import InvalidRequest, NotFound, UpstreamUnavailable
from ..models import Coordinate, DistanceBand, ItineraryEntry, ItineraryPlan, PlanRequest
from .places import PlaceSource
from .planner import ItineraryPlanner

logger = logging.getLogger(__name__)

DEFAULT_DAYS = 3
FASTEST_ROUTE = "Land/ Road travel"
CURRENT_LOCATION = "Current Location"

# only the leading integer counts: "5 days" is 5, "1e3" is 1
LEADING_INT = re.compile(r"^\s*[+-]?\d+")


def _parse_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_days(value: Any) -> int:
    """Whole number of days; anything missing, unparseable or below 1 means 3."""
    if value is None or isinstance(value, bool):
        return DEFAULT_DAYS
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return DEFAULT_DAYS
        days = int(value)
    else:
        match = LEADING_INT.match(str(value))
        if match is None:
            return DEFAULT_DAYS
        days = int(match.group())
    return days if days >= 1 else DEFAULT_DAYS


def start_place_text(value: Any) -> str:
    if not value:
        return ""
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value).strip()
    return str(value).strip()


def parse_coordinates(lat: Any, lon: Any) -> Optional[Coordinate]:
    lat_f, lon_f = _parse_number(lat), _parse_number(lon)
    if not Coordinate.is_valid_pair(lat_f, lon_f):
        return None
    return Coordinate(lat=lat_f, lon=lon_f)


async def resolve_origin(req: PlanRequest, source: PlaceSource) -> Tuple[Coordinate, str]:
    """
    Coordinates win over a place name. Raises InvalidRequest when neither is
    usable, and lets NotFound / UpstreamUnavailable from geocoding through.
    """
    start_place = start_place_text(req.startPlace)
    coords = parse_coordinates(req.lat, req.lon)
    if coords is not None:
        return coords, start_place or CURRENT_LOCATION
    if start_place:
        return await source.resolve_by_name(start_place), start_place
    raise InvalidRequest("Provide startPlace or lat & lon")


def _format_date(d: date) -> str:
    return d.strftime("%a %b %d %Y")


def _entry_to_dict(entry: ItineraryEntry) -> Dict[str, Any]:
    place = entry.place
    return {
        "day": entry.day_number,
        "level": f"Level {entry.level}",
        "place": place.name,
        "name": place.name,
        "lat": place.coordinate.lat,
        "lon": place.coordinate.lon,
        "kinds": place.category,
        "info": f"{place.distance_km:.2f} km away",
        "distanceKm": round(place.distance_km, 2),
        "travelMode": entry.travel_mode,
        "weather": "N/A",
        "cost": entry.estimated_cost_units,
    }


def plan_to_response(plan: ItineraryPlan, start_place: str) -> Dict[str, Any]:
    levels = {}
    for band in DistanceBand:
        levels[f"level{int(band)}"] = [
            {
                "name": item.name,
                "lat": item.coordinate.lat,
                "lon": item.coordinate.lon,
                "dist": round(item.distance_km, 2),
            }
            for item in plan.band_summaries.get(band, [])
        ]

    return {
        "success": True,
        "startPlace": start_place,
        "startCoords": {"lat": plan.origin.lat, "lon": plan.origin.lon},
        "totalDays": len(plan.entries),
        "days": len(plan.entries),
        "totalCost": plan.total_cost_units,
        "startDate": _format_date(plan.start_date),
        "endDate": _format_date(plan.end_date),
        "fastestRoute": FASTEST_ROUTE,
        "levels": levels,
        "itinerary": [_entry_to_dict(e) for e in plan.entries],
    }


def failure(message: str) -> Dict[str, Any]:
    return {"success": False, "message": message}


async def handle_trip_plan(req: PlanRequest, source: PlaceSource,
                           planner: ItineraryPlanner) -> Dict[str, Any]:
    """
    Resolve the origin, fetch nearby places and build the plan.

    Every expected failure comes back as {"success": False, "message": ...};
    only unexpected exceptions propagate to the HTTP layer.
    """
    days = parse_days(req.days)

    try:
        origin, start_place = await resolve_origin(req, source)
    except InvalidRequest as e:
        return failure(str(e))
    except NotFound:
        return failure("Start place not found")
    except UpstreamUnavailable as e:
        logger.error("Geocoding error: %s", e)
        return failure(f"Geocoding failed: {e}")

    logger.info("Processing request for lat: %s, lon: %s, days: %d", origin.lat, origin.lon, days)

    try:
        records = await source.fetch_nearby(origin)
    except UpstreamUnavailable as e:
        logger.error("Overpass error: %s", e)
        return failure(f"Failed to fetch places from Overpass API: {e}")

    # zero surviving places is still a successful, empty plan
    plan = planner.plan(origin, days, records)
    return plan_to_response(plan, start_place)
