"""Shared fixtures and builders for the trip planner tests."""

from datetime import date

import pytest

from trip_planner.agents.planner import ItineraryPlanner
from trip_planner.models import Coordinate, RawPlaceRecord, RawPoint

BANGALORE = Coordinate(lat=12.9716, lon=77.5946)
FIXED_TODAY = date(2026, 10, 19)

# one degree of latitude in km on a 6371 km sphere
KM_PER_DEG_LAT = 111.19492664455873


def record_at(name, km_north, origin=BANGALORE, **tags):
    """A raw node `km_north` km due north of `origin`."""
    all_tags = {"name": name} if name is not None else {}
    all_tags.update(tags)
    return RawPlaceRecord(
        tags=all_tags,
        point=RawPoint(lat=origin.lat + km_north / KM_PER_DEG_LAT, lon=origin.lon),
    )


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def planner():
    return ItineraryPlanner(today=lambda: FIXED_TODAY)


@pytest.fixture
def clock():
    return FakeClock()


class FakePlaceSource:
    """In-memory stand-in for PlaceSource that records its calls."""

    def __init__(self, records=None, fetch_error=None, geocode_result=None, geocode_error=None):
        self.records = records or []
        self.fetch_error = fetch_error
        self.geocode_result = geocode_result
        self.geocode_error = geocode_error
        self.fetch_calls = []
        self.resolve_calls = []

    async def fetch_nearby(self, origin):
        self.fetch_calls.append(origin)
        if self.fetch_error:
            raise self.fetch_error
        return list(self.records)

    async def resolve_by_name(self, text):
        self.resolve_calls.append(text)
        if self.geocode_error:
            raise self.geocode_error
        return self.geocode_result
