import logging
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .agents.places import PlaceSource
from .agents.planner import ItineraryPlanner
from .agents.trip import failure, handle_trip_plan
from .cache import TTLCache
from .config import CACHE_TTL_SEC, LOG_LEVEL, PORT
from .models import PlanRequest

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def get_place_source(request: Request) -> PlaceSource:
    return request.app.state.place_source


def get_planner(request: Request) -> ItineraryPlanner:
    return request.app.state.planner


def create_app(place_source: Optional[PlaceSource] = None,
               planner: Optional[ItineraryPlanner] = None) -> FastAPI:
    app = FastAPI(title="Overpass Trip Planner")

    # the place source owns the only cross-request state: its Overpass cache
    if place_source is None:
        logger.info("Cache TTL (sec): %s", CACHE_TTL_SEC)
        place_source = PlaceSource(cache=TTLCache(ttl=CACHE_TTL_SEC))
    app.state.place_source = place_source
    app.state.planner = planner or ItineraryPlanner()

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        # a body that is not a JSON object carries no usable start point
        logger.warning("Unreadable plan-trip body: %s", exc.errors())
        return JSONResponse(status_code=200, content=failure("Provide startPlace or lat & lon"))

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/ping")
    def ping():
        return {"ok": True}

    async def plan_trip(req: Optional[PlanRequest] = None,
                        source: PlaceSource = Depends(get_place_source),
                        trip_planner: ItineraryPlanner = Depends(get_planner)):
        req = req or PlanRequest()
        logger.info("=== plan-trip request === %s", req.model_dump())
        try:
            return await handle_trip_plan(req, source, trip_planner)
        except Exception as e:
            logger.exception("Realtime planner error")
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "message": "Realtime trip planner failed",
                    "error": str(e),
                },
            )

    app.add_api_route("/api/plan-trip", plan_trip, methods=["POST"])
    # older front ends still post here
    app.add_api_route("/api/plan", plan_trip, methods=["POST"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=PORT)
