import logging

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from google.genai import errors as genai_errors
from starlette.requests import Request

from ecotrip.llm.errors import (
    DispatchCancelledError,
    DispatchTimeoutError,
    GenerationError,
    KeysExhaustedError,
    NoApiKeysError,
)
from ecotrip.services.itinerary_service import ItineraryService
from ecotrip.services.map_service import MapPlannerService

logger = logging.getLogger(__name__)


def get_itinerary_service(request: Request) -> ItineraryService:
    service = getattr(request.app.state, "itinerary_service", None)
    if service is None:
        raise HTTPException(status_code=500, detail="Itinerary service not initialized")
    return service


def get_map_service(request: Request) -> MapPlannerService:
    service = getattr(request.app.state, "map_service", None)
    if service is None:
        raise HTTPException(status_code=500, detail="Map planner not initialized")
    return service


def status_for_generation_error(exc: Exception) -> int:
    if isinstance(exc, (NoApiKeysError, KeysExhaustedError, DispatchCancelledError)):
        return 503
    if isinstance(exc, DispatchTimeoutError):
        return 504
    # parse, validation and upstream API errors
    return 502


def register_error_handlers(app: FastAPI) -> None:
    async def _generation_error(request: Request, exc: Exception) -> JSONResponse:
        status = status_for_generation_error(exc)
        logger.error("%s %s failed with %s: %s", request.method, request.url.path, type(exc).__name__, exc)
        return JSONResponse(status_code=status, content={"detail": str(exc)})

    app.add_exception_handler(GenerationError, _generation_error)
    app.add_exception_handler(genai_errors.APIError, _generation_error)
