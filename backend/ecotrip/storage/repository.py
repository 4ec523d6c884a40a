from __future__ import annotations

from typing import Dict, List, Optional

from ecotrip.models.domain import Itinerary


class InMemoryRepository:
    def __init__(self) -> None:
        self.itineraries: Dict[str, Itinerary] = {}

    def save_itinerary(self, itinerary: Itinerary) -> Itinerary:
        self.itineraries[itinerary.trip_id] = itinerary
        return itinerary

    def get_itinerary(self, trip_id: str) -> Optional[Itinerary]:
        return self.itineraries.get(trip_id)

    def list_itineraries(self) -> List[Itinerary]:
        return list(self.itineraries.values())

    def delete_itinerary(self, trip_id: str) -> bool:
        return self.itineraries.pop(trip_id, None) is not None
