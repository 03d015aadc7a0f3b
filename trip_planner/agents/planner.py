# trip_planner/agents/planner.py
"""
Turns raw Overpass records into a day-by-day itinerary.

Pipeline: normalize -> classify notability -> bucket into distance bands ->
rank each band -> round-robin across bands to fill the requested days.
"""
import logging
import math
from datetime import date, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ..models import (
    BandSummaryItem,
    Coordinate,
    DistanceBand,
    ExternalIds,
    ItineraryEntry,
    ItineraryPlan,
    Place,
    RawPlaceRecord,
    RawPoint,
)

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0

CATEGORY_TAG_KEYS = ("tourism", "historic", "leisure", "amenity")
NOTABLE_KEYWORDS = ("museum", "temple", "monument", "heritage", "tourism")

# upper bound (inclusive) of each band, in rotation order
BAND_LIMITS_KM = (
    (DistanceBand.NEAR, 10.0),
    (DistanceBand.MID, 100.0),
    (DistanceBand.FAR, 300.0),
)
MAX_PLACES_PER_BAND = 4
MAX_ROTATION_STEPS = 500

BASE_COST_UNITS = 300
COST_UNITS_PER_KM = 10
TRAVEL_MODE = "Land"


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in km between two lat/lon points."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _finite_pair(point: Optional[RawPoint]) -> Optional[Coordinate]:
    if point is None or point.lat is None or point.lon is None:
        return None
    if not (math.isfinite(point.lat) and math.isfinite(point.lon)):
        return None
    return Coordinate(lat=point.lat, lon=point.lon)


def _usable(point: Optional[RawPoint]) -> Optional[Coordinate]:
    coord = _finite_pair(point)
    if coord is None:
        return None
    # a 0 component is what a missing value looks like upstream
    if coord.lat == 0 or coord.lon == 0:
        return None
    if not coord.is_valid():
        return None
    return coord


def _record_coordinate(record: RawPlaceRecord) -> Optional[Coordinate]:
    return _usable(record.point) or _usable(record.center)


def _category(tags: Dict[str, str]) -> str:
    for key in CATEGORY_TAG_KEYS:
        value = (tags.get(key) or "").strip()
        if value:
            return value
    return ""


def normalize_records(origin: Coordinate, records: Iterable[RawPlaceRecord]) -> List[Place]:
    """Drop records without a name or usable coordinate; sort the rest by distance."""
    places = []
    for record in records:
        name = (record.tags.get("name") or "").strip()
        if not name:
            continue
        coord = _record_coordinate(record)
        if coord is None:
            continue
        places.append(Place(
            name=name,
            category=_category(record.tags),
            coordinate=coord,
            external_ids=ExternalIds(
                knowledge_base_id=record.tags.get("wikidata") or None,
                encyclopedia_ref=record.tags.get("wikipedia") or None,
            ),
            distance_km=haversine_km(origin.lat, origin.lon, coord.lat, coord.lon),
        ))
    places.sort(key=lambda p: p.distance_km)
    return places


def is_notable(place: Place) -> bool:
    if place.external_ids.knowledge_base_id or place.external_ids.encyclopedia_ref:
        return True
    category = place.category.lower()
    return any(keyword in category for keyword in NOTABLE_KEYWORDS)


def band_for(distance_km: float) -> Optional[DistanceBand]:
    """Band whose (lower, upper] range holds the distance; NEAR also takes 0."""
    if distance_km < 0:
        return None
    for band, upper in BAND_LIMITS_KM:
        if distance_km <= upper:
            return band
    return None


def bucket_places(places: Iterable[Place]) -> Dict[DistanceBand, List[Place]]:
    buckets: Dict[DistanceBand, List[Place]] = {band: [] for band, _ in BAND_LIMITS_KM}
    for place in places:
        band = band_for(place.distance_km)
        if band is not None:
            buckets[band].append(place)
    return buckets


def rank_band(places: Sequence[Place], limit: int = MAX_PLACES_PER_BAND) -> List[Place]:
    """Notable places first, then nearest first; keep at most `limit`."""
    ranked = sorted(places, key=lambda p: (not is_notable(p), p.distance_km))
    return ranked[:limit]


def estimate_cost(distance_km: float) -> int:
    # round half up, not Python's banker's rounding
    return BASE_COST_UNITS + int(math.floor(distance_km * COST_UNITS_PER_KM + 0.5))


def _entry(day_number: int, level: int, place: Place) -> ItineraryEntry:
    return ItineraryEntry(
        day_number=day_number,
        level=level,
        band=DistanceBand(level) if level <= len(DistanceBand) else None,
        place=place,
        estimated_cost_units=estimate_cost(place.distance_km),
        travel_mode=TRAVEL_MODE,
    )


def fallback_entries(places: Sequence[Place], requested_days: int) -> List[ItineraryEntry]:
    """One place per day straight from the distance-sorted pool, level by position."""
    chosen = places[:min(requested_days, len(places))]
    return [_entry(idx + 1, idx // 3 + 1, place) for idx, place in enumerate(chosen)]


def round_robin_entries(ranked: Dict[DistanceBand, List[Place]],
                        requested_days: int,
                        max_steps: int = MAX_ROTATION_STEPS) -> List[ItineraryEntry]:
    """
    Visit the bands in order NEAR, MID, FAR, NEAR, ... taking the first place
    of each band whose name hasn't been used yet.

    A band with no unused place left is exhausted for good (the used set only
    grows), so the loop ends once every band is exhausted. `max_steps` is a
    safety net and is not reached on well-formed input.
    """
    order = [band for band, _ in BAND_LIMITS_KM]
    entries: List[ItineraryEntry] = []
    used = set()
    exhausted = set()

    for step in range(max_steps):
        if len(entries) >= requested_days or len(exhausted) == len(order):
            break
        band = order[step % len(order)]
        if band in exhausted:
            continue
        choice = next((p for p in ranked.get(band, []) if p.name not in used), None)
        if choice is None:
            exhausted.add(band)
            continue
        used.add(choice.name)
        entries.append(_entry(len(entries) + 1, int(band), choice))

    if len(entries) < requested_days and len(exhausted) < len(order):
        logger.warning("Round-robin stopped at the %d step safety cap", max_steps)

    return entries


class ItineraryPlanner:
    """Builds an ItineraryPlan from already-fetched raw records."""

    def __init__(self, today: Callable[[], date] = date.today):
        self._today = today

    def plan(self, origin: Coordinate, requested_days: int,
             records: Iterable[RawPlaceRecord]) -> ItineraryPlan:
        if requested_days < 1:
            raise ValueError("requested_days must be at least 1")

        places = normalize_records(origin, records)
        logger.info("After filtering, %d places with valid coordinates", len(places))

        buckets = bucket_places(places)
        ranked = {band: rank_band(band_places) for band, band_places in buckets.items()}
        logger.info(
            "Band sizes raw=%s ranked=%s",
            [len(buckets[b]) for b in DistanceBand],
            [len(ranked[b]) for b in DistanceBand],
        )

        if not any(ranked.values()):
            if places:
                logger.info("All bands empty, falling back to the full place list")
            entries = fallback_entries(places, requested_days)
        else:
            entries = round_robin_entries(ranked, requested_days)
            if not entries:
                logger.info("Round-robin produced nothing, using final fallback")
                entries = fallback_entries(places, requested_days)

        logger.info("Final itinerary length: %d", len(entries))

        start = self._today()
        return ItineraryPlan(
            origin=origin,
            requested_days=requested_days,
            entries=entries,
            total_cost_units=sum(e.estimated_cost_units for e in entries),
            band_summaries={
                band: [
                    BandSummaryItem(name=p.name, coordinate=p.coordinate, distance_km=p.distance_km)
                    for p in band_places
                ]
                for band, band_places in ranked.items()
            },
            start_date=start,
            end_date=start + timedelta(days=len(entries)),
        )
