from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import Dict, List, Optional
from uuid import uuid4

from ecotrip.models.domain import Coordinates, DayPlan, Itinerary, Place, PlaceDetails, PlanRequest

logger = logging.getLogger(__name__)

CITY_COORDINATES: Dict[str, Coordinates] = {
    "Bali": Coordinates(lat=-8.3405, lng=115.092),
    "Bandung": Coordinates(lat=-6.9175, lng=107.6191),
    "Yogyakarta": Coordinates(lat=-7.7956, lng=110.3695),
}
DEFAULT_CENTER = Coordinates(lat=-6.2088, lng=106.8456)  # Jakarta

PLACES_PER_DAY = {"Relaxed": 2, "Moderate": 3, "Fast-Paced": 5}

# (id, name, description, category, duration, lat offset, lng offset)
_MOCK_PLACES = [
    ("nature-1", "Taman Nasional", "Beautiful natural park with diverse flora and fauna", "Nature", 120, 0.01, 0.01),
    ("nature-2", "Air Terjun", "Scenic waterfall perfect for nature lovers", "Nature", 90, 0.02, -0.01),
    ("culinary-1", "Restoran Tradisional", "Authentic local cuisine experience", "Culinary", 60, -0.01, 0.01),
    ("culinary-2", "Warung Makan", "Local street food experience", "Culinary", 90, -0.02, -0.01),
    ("culture-1", "Museum Sejarah", "Historical museum showcasing local heritage", "Culture", 90, 0.015, 0.015),
    ("culture-2", "Candi Kuno", "Ancient temple with rich cultural significance", "Culture", 120, -0.015, 0.02),
    ("history-1", "Situs Bersejarah", "Historical site with important cultural value", "History", 90, 0.02, -0.015),
    ("hidden-1", "Tempat Tersembunyi", "Off the beaten path destination", "Hidden Gem", 120, -0.02, 0.02),
]

_ETIQUETTE: Dict[str, Dict[str, List[str]]] = {
    "Bali": {
        "dos": [
            "Cover shoulders and knees when visiting temples; sarongs show respect.",
            "Use your right hand when giving or receiving items.",
        ],
        "donts": [
            "Don't point with your index finger; use your thumb or whole hand.",
            "Don't step on the small daily offerings (canang sari) on the ground.",
        ],
        "warnings": [
            "Remove shoes before entering temples and keep voices low.",
        ],
    },
    "Bandung": {
        "dos": [
            "Respect prayer times; many shops close during Friday prayers.",
            "Greet locals with \"Assalamu'alaikum\".",
        ],
        "donts": [
            "Don't eat, drink or smoke in public during daylight in Ramadan.",
            "Don't wear revealing clothes at religious or traditional sites.",
        ],
        "warnings": [
            "Traffic is heavy and motorcycles are everywhere; use pedestrian crossings.",
        ],
    },
    "Yogyakarta": {
        "dos": [
            "Show respect for Javanese customs and royal traditions.",
            "Use \"Sugeng enjang\" (good morning) and \"Matur nuwun\" (thank you).",
        ],
        "donts": [
            "Don't point your feet at people or sacred objects.",
            "Don't touch anyone's head, even children's.",
        ],
        "warnings": [
            "At the Kraton Palace dress modestly, speak quietly and follow posted rules.",
        ],
    },
}

_DEFAULT_ETIQUETTE: Dict[str, List[str]] = {
    "dos": [
        "Learn about local customs and traditions before visiting.",
        "Research dress codes for religious sites; when in doubt dress conservatively.",
    ],
    "donts": [
        "Don't take photos of people without asking first.",
        "Don't bargain aggressively; start at 50-70% of the asking price and stay polite.",
    ],
    "warnings": [
        "Be patient, smile and show genuine interest in local culture.",
    ],
}


def city_center(city: str) -> Coordinates:
    return CITY_COORDINATES.get(city, DEFAULT_CENTER)


def _mock_places(center: Coordinates, category: Optional[str] = None) -> List[Place]:
    return [
        Place(
            id=pid,
            name=name,
            description=description,
            category=cat,
            coordinates=Coordinates(lat=center.lat + dlat, lng=center.lng + dlng),
            duration=duration,
        )
        for pid, name, description, cat, duration, dlat, dlng in _MOCK_PLACES
        if category is None or cat == category
    ]


def _format_time(hours: float) -> str:
    whole = int(hours)
    minutes = int(round((hours - whole) * 60))
    return f"{whole:02d}:{minutes:02d}"


class MockContentBackend:
    """
    Static stand-in used when Gemini is unavailable or returns garbage.

    Output is deterministic for a given city so repeated fallbacks agree.
    """

    name = "mock"

    def generate_itinerary(self, request: PlanRequest) -> Itinerary:
        center = city_center(request.city)
        interests = request.interest_names()
        selected = [p for interest in interests for p in _mock_places(center, interest)]
        per_day = PLACES_PER_DAY.get(request.pace.value, 3)
        rng = random.Random(f"{request.city}:{request.days}")

        days: List[DayPlan] = []
        for day_number in range(1, request.days + 1):
            current_time = 9.0
            places: List[Place] = []
            for i in range(min(per_day, len(selected))):
                base = selected[i]
                places.append(
                    replace(
                        base,
                        id=f"{base.id}-day{day_number}-{i}",
                        time_slot=_format_time(current_time),
                        coordinates=Coordinates(
                            lat=center.lat + rng.uniform(-0.025, 0.025),
                            lng=center.lng + rng.uniform(-0.025, 0.025),
                        ),
                    )
                )
                # 30 minutes of travel between stops
                current_time += base.duration / 60 + 0.5
                if 12 <= current_time < 13:
                    current_time = 13.0
            days.append(DayPlan(day_number=day_number, places=places))

        logger.info("Built mock itinerary for %s (%d days)", request.city, request.days)
        return Itinerary(
            trip_id=str(uuid4()),
            city=request.city,
            total_days=request.days,
            pace=request.pace.value,
            interests=interests,
            eco_focus=request.eco_focus,
            map_center=center,
            days=days,
            source=self.name,
        )

    def recommend_places(self, city: str, category: Optional[str] = None) -> List[Place]:
        return _mock_places(city_center(city), category)

    def place_details(self, place_name: str, city: str) -> PlaceDetails:
        etiquette = _ETIQUETTE.get(city, _DEFAULT_ETIQUETTE)
        return PlaceDetails(
            place_name=place_name,
            city=city,
            description=f"{place_name} is a popular stop for visitors to {city}.",
            dos=list(etiquette["dos"]),
            donts=list(etiquette["donts"]),
            warnings=list(etiquette["warnings"]),
        )
