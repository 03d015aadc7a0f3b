# trip_planner/errors.py
"""Error taxonomy shared by the place source agents and the trip handler."""


class TripPlannerError(Exception):
    pass


class PlaceSourceError(TripPlannerError):
    """Raised by the Overpass / Nominatim agents."""


class UpstreamUnavailable(PlaceSourceError):
    """Both Overpass endpoints failed, or geocoding hit a transport error."""


class MalformedResponse(UpstreamUnavailable):
    """Upstream answered 2xx with a body we can't use (bad JSON or an embedded error)."""


class NotFound(PlaceSourceError):
    """Geocoding returned zero matches."""


class InvalidRequest(TripPlannerError):
    """Neither usable coordinates nor a start place were supplied."""
