from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ecotrip.api import register_error_handlers, routes_health, routes_itinerary, routes_maps, routes_places
from ecotrip.core.config import Settings, settings as default_settings
from ecotrip.core.logging import configure_logging
from ecotrip.llm.dispatcher import RequestDispatcher
from ecotrip.llm.gemini_backend import GeminiContentBackend
from ecotrip.llm.keys import KeyPool
from ecotrip.services.itinerary_service import ItineraryService, build_content_backend
from ecotrip.services.map_service import MapPlannerService
from ecotrip.storage.repository import InMemoryRepository


def create_app(
    settings: Settings = default_settings,
    dispatcher: Optional[RequestDispatcher] = None,
    itinerary_service: Optional[ItineraryService] = None,
) -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(title=settings.app_name, version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    # One key pool per process; every request rotates the same cursor.
    dispatcher = dispatcher or RequestDispatcher.from_settings(settings, KeyPool.from_settings(settings))
    repository = InMemoryRepository()
    itinerary_service = itinerary_service or ItineraryService(
        repository=repository,
        backend=build_content_backend(settings, dispatcher),
        settings=settings,
    )
    map_service = MapPlannerService(GeminiContentBackend(dispatcher=dispatcher, model=settings.gemini_model))

    app.include_router(routes_health.router, tags=["health"])
    app.include_router(routes_itinerary.router, prefix="/itinerary", tags=["itinerary"])
    app.include_router(routes_places.router, prefix="/places", tags=["places"])
    app.include_router(routes_maps.router, prefix="/maps", tags=["maps"])

    app.state.settings = settings
    app.state.key_pool = dispatcher.key_pool
    app.state.itinerary_service = itinerary_service
    app.state.map_service = map_service
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
