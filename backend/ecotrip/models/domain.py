from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Pace(str, Enum):
    relaxed = "Relaxed"
    moderate = "Moderate"
    fast_paced = "Fast-Paced"


class Interest(str, Enum):
    nature = "Nature"
    culinary = "Culinary"
    culture = "Culture"
    history = "History"
    hidden_gem = "Hidden Gem"


@dataclass
class Coordinates:
    lat: float
    lng: float


@dataclass
class Place:
    id: str
    name: str
    description: str
    category: str
    coordinates: Coordinates
    time_slot: str = "09:00"
    duration: int = 120
    thumbnail: Optional[str] = None


@dataclass
class DayPlan:
    day_number: int
    places: List[Place] = field(default_factory=list)
    date: Optional[str] = None


@dataclass
class Itinerary:
    trip_id: str
    city: str
    total_days: int
    pace: str
    interests: List[str]
    eco_focus: bool
    map_center: Coordinates
    days: List[DayPlan]
    source: str = "gemini"


@dataclass
class PlaceDetails:
    place_name: str
    city: str
    description: str = ""
    dos: List[str] = field(default_factory=list)
    donts: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class MapLocation:
    name: str
    description: str
    lat: float
    lng: float
    time: Optional[str] = None
    duration: Optional[str] = None
    sequence: Optional[int] = None


@dataclass
class MapRoute:
    name: str
    start: Coordinates
    end: Coordinates
    transport: Optional[str] = None
    travel_time: Optional[str] = None


@dataclass
class PlanRequest:
    city: str
    days: int
    pace: Pace
    interests: List[Interest]
    eco_focus: bool = False

    def interest_names(self) -> List[str]:
        return [i.value for i in self.interests]
