import math
from datetime import date
from enum import IntEnum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PlanRequest(BaseModel):
    # loosely typed: the form front end sends numbers, numeric strings or junk
    startPlace: Optional[Any] = None
    lat: Optional[Any] = None
    lon: Optional[Any] = None
    days: Optional[Any] = 3


class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float

    @staticmethod
    def is_valid_pair(lat: Optional[float], lon: Optional[float]) -> bool:
        if lat is None or lon is None:
            return False
        if not (math.isfinite(lat) and math.isfinite(lon)):
            return False
        return -90 <= lat <= 90 and -180 <= lon <= 180

    def is_valid(self) -> bool:
        return self.is_valid_pair(self.lat, self.lon)


class RawPoint(BaseModel):
    lat: Optional[float] = None
    lon: Optional[float] = None


class RawPlaceRecord(BaseModel):
    """One Overpass element as returned upstream, before normalization."""

    tags: Dict[str, str] = Field(default_factory=dict)
    point: Optional[RawPoint] = None
    center: Optional[RawPoint] = None


class ExternalIds(BaseModel):
    model_config = ConfigDict(frozen=True)

    knowledge_base_id: Optional[str] = None  # wikidata
    encyclopedia_ref: Optional[str] = None  # wikipedia


class Place(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    category: str = ""
    coordinate: Coordinate
    external_ids: ExternalIds = Field(default_factory=ExternalIds)
    distance_km: float = Field(ge=0)


class DistanceBand(IntEnum):
    NEAR = 1  # [0, 10] km
    MID = 2  # (10, 100] km
    FAR = 3  # (100, 300] km


class BandSummaryItem(BaseModel):
    name: str
    coordinate: Coordinate
    distance_km: float


class ItineraryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    day_number: int = Field(ge=1)
    level: int = Field(ge=1)
    band: Optional[DistanceBand] = None
    place: Place
    estimated_cost_units: int
    travel_mode: str = "Land"


class ItineraryPlan(BaseModel):
    origin: Coordinate
    requested_days: int
    entries: List[ItineraryEntry] = Field(default_factory=list)
    total_cost_units: int = 0
    band_summaries: Dict[DistanceBand, List[BandSummaryItem]] = Field(default_factory=dict)
    start_date: date
    end_date: date
