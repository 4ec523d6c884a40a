import logging
from dataclasses import replace
from typing import List, Optional

from fastapi import HTTPException

from ecotrip.core.config import Settings, settings as default_settings
from ecotrip.llm.client import ContentBackend
from ecotrip.llm.dispatcher import RequestDispatcher
from ecotrip.llm.gemini_backend import GeminiContentBackend
from ecotrip.llm.mock_backend import MockContentBackend
from ecotrip.models.domain import DayPlan, Itinerary, Place, PlaceDetails, PlanRequest
from ecotrip.storage.repository import InMemoryRepository

logger = logging.getLogger(__name__)

DEFAULT_TIME_SLOT = "09:00"
DEFAULT_DURATION_MINUTES = 120


def build_content_backend(
    settings: Settings, dispatcher: Optional[RequestDispatcher] = None
) -> ContentBackend:
    if settings.llm_provider.lower() == "mock":
        return MockContentBackend()
    return GeminiContentBackend(
        dispatcher=dispatcher or RequestDispatcher.from_settings(settings),
        model=settings.gemini_model,
    )


class ItineraryService:
    """
    Generates and edits itineraries on top of a content backend.

    Whether a failed generation surfaces to the user or is replaced by mock
    data is decided here, never inside the Gemini request layer.
    """

    def __init__(
        self,
        repository: InMemoryRepository,
        backend: Optional[ContentBackend] = None,
        fallback_backend: Optional[ContentBackend] = None,
        fallback_to_mock: Optional[bool] = None,
        settings: Settings = default_settings,
    ):
        self.repository = repository
        self.backend = backend or build_content_backend(settings)
        if fallback_to_mock is None:
            fallback_to_mock = settings.fallback_to_mock
        if fallback_backend is None and fallback_to_mock and not isinstance(self.backend, MockContentBackend):
            fallback_backend = MockContentBackend()
        self.fallback_backend = fallback_backend if fallback_to_mock else None

    def _generate(self, operation: str, *args):
        try:
            return getattr(self.backend, operation)(*args)
        except Exception as exc:  # noqa: BLE001
            if self.fallback_backend is None:
                logger.error("%s failed: %s", operation, exc)
                raise
            logger.warning("%s failed, falling back to mock data: %s", operation, exc)
            return getattr(self.fallback_backend, operation)(*args)

    def plan_trip(self, request: PlanRequest) -> Itinerary:
        itinerary = self._generate("generate_itinerary", request)
        self.repository.save_itinerary(itinerary)
        logger.info(
            "Saved itinerary %s for %s (%d days, source=%s)",
            itinerary.trip_id,
            itinerary.city,
            len(itinerary.days),
            itinerary.source,
        )
        return itinerary

    def recommend_places(self, city: str, category: Optional[str] = None) -> List[Place]:
        return self._generate("recommend_places", city, category)

    def place_details(self, place_name: str, city: str) -> PlaceDetails:
        return self._generate("place_details", place_name, city)

    def get_itinerary(self, trip_id: str) -> Itinerary:
        itinerary = self.repository.get_itinerary(trip_id)
        if not itinerary:
            raise HTTPException(status_code=404, detail="Itinerary not found")
        return itinerary

    def list_itineraries(self) -> List[Itinerary]:
        return self.repository.list_itineraries()

    def delete_itinerary(self, trip_id: str) -> None:
        if not self.repository.delete_itinerary(trip_id):
            raise HTTPException(status_code=404, detail="Itinerary not found")

    def _day(self, itinerary: Itinerary, day_number: int) -> DayPlan:
        for day in itinerary.days:
            if day.day_number == day_number:
                return day
        raise HTTPException(status_code=404, detail=f"Day {day_number} not found")

    def add_place(self, trip_id: str, day_number: int, place: Place) -> Itinerary:
        itinerary = self.get_itinerary(trip_id)
        day = self._day(itinerary, day_number)
        time_slot = day.places[-1].time_slot if day.places else DEFAULT_TIME_SLOT
        place_id = place.id
        existing = {p.id for p in day.places}
        suffix = 1
        while place_id in existing:
            suffix += 1
            place_id = f"{place.id}-{suffix}"
        day.places.append(
            replace(place, id=place_id, time_slot=time_slot, duration=DEFAULT_DURATION_MINUTES)
        )
        return itinerary

    def reorder_places(self, trip_id: str, day_number: int, from_index: int, to_index: int) -> Itinerary:
        itinerary = self.get_itinerary(trip_id)
        day = self._day(itinerary, day_number)
        if not (0 <= from_index < len(day.places)) or not (0 <= to_index < len(day.places)):
            raise HTTPException(status_code=400, detail="Place index out of range")
        moved = day.places.pop(from_index)
        day.places.insert(to_index, moved)
        return itinerary

    def remove_place(self, trip_id: str, day_number: int, place_id: str) -> Itinerary:
        itinerary = self.get_itinerary(trip_id)
        day = self._day(itinerary, day_number)
        remaining = [p for p in day.places if p.id != place_id]
        if len(remaining) == len(day.places):
            raise HTTPException(status_code=404, detail="Place not found")
        day.places = remaining
        return itinerary
