# trip_planner/config.py
import os
from dotenv import load_dotenv

load_dotenv()

USER_AGENT = os.getenv("USER_AGENT", "trip-planner/1.0 (overpass itinerary service)")
HEADERS = {"User-Agent": USER_AGENT, "Accept-Language": "en"}

OVERPASS_PRIMARY_URL = os.getenv("OVERPASS_PRIMARY_URL", "https://overpass-api.de/api/interpreter")
OVERPASS_MIRROR_URL = os.getenv("OVERPASS_MIRROR_URL", "https://overpass.kumi.systems/api/interpreter")
NOMINATIM_URL = os.getenv("NOMINATIM_URL", "https://nominatim.openstreetmap.org/search")

CACHE_TTL_SEC = int(os.getenv("CACHE_TTL_SEC", "3600"))
OVERPASS_TIMEOUT_SEC = float(os.getenv("OVERPASS_TIMEOUT_SEC", "30"))
GEOCODE_TIMEOUT_SEC = float(os.getenv("GEOCODE_TIMEOUT_SEC", "15"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", "3000"))
