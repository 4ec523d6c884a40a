from typing import List, Optional, Protocol

from ecotrip.models.domain import Itinerary, Place, PlaceDetails, PlanRequest


class ContentBackend(Protocol):
    """Source of itineraries, recommendations and place details."""

    name: str

    def generate_itinerary(self, request: PlanRequest) -> Itinerary:
        ...

    def recommend_places(self, city: str, category: Optional[str] = None) -> List[Place]:
        ...

    def place_details(self, place_name: str, city: str) -> PlaceDetails:
        ...
