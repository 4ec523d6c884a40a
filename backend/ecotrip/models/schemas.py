from typing import List, Optional

from pydantic import BaseModel, Field

from ecotrip.models.domain import (
    Coordinates,
    DayPlan,
    Interest,
    Itinerary,
    MapLocation,
    MapRoute,
    Pace,
    Place,
    PlaceDetails,
    PlanRequest,
)


class PlanInput(BaseModel):
    city: str = Field(..., min_length=1)
    days: int = Field(..., ge=1, le=10)
    pace: Pace
    interests: List[Interest] = Field(..., min_length=1)
    eco_focus: bool = False

    def to_domain(self) -> PlanRequest:
        return PlanRequest(
            city=self.city,
            days=self.days,
            pace=self.pace,
            interests=list(self.interests),
            eco_focus=self.eco_focus,
        )


class CoordinatesSchema(BaseModel):
    lat: float
    lng: float

    @classmethod
    def from_domain(cls, obj: Coordinates) -> "CoordinatesSchema":
        return cls(lat=obj.lat, lng=obj.lng)

    def to_domain(self) -> Coordinates:
        return Coordinates(lat=self.lat, lng=self.lng)


class PlaceSchema(BaseModel):
    id: str
    name: str
    description: str
    category: str
    coordinates: CoordinatesSchema
    time_slot: str = "09:00"
    duration: int = 120
    thumbnail: Optional[str] = None

    @classmethod
    def from_domain(cls, obj: Place) -> "PlaceSchema":
        return cls(
            id=obj.id,
            name=obj.name,
            description=obj.description,
            category=obj.category,
            coordinates=CoordinatesSchema.from_domain(obj.coordinates),
            time_slot=obj.time_slot,
            duration=obj.duration,
            thumbnail=obj.thumbnail,
        )

    def to_domain(self) -> Place:
        return Place(
            id=self.id,
            name=self.name,
            description=self.description,
            category=self.category,
            coordinates=self.coordinates.to_domain(),
            time_slot=self.time_slot,
            duration=self.duration,
            thumbnail=self.thumbnail,
        )


class DayPlanSchema(BaseModel):
    day_number: int
    date: Optional[str] = None
    places: List[PlaceSchema]

    @classmethod
    def from_domain(cls, obj: DayPlan) -> "DayPlanSchema":
        return cls(
            day_number=obj.day_number,
            date=obj.date,
            places=[PlaceSchema.from_domain(p) for p in obj.places],
        )


class ItinerarySchema(BaseModel):
    trip_id: str
    city: str
    total_days: int
    pace: str
    interests: List[str]
    eco_focus: bool
    map_center: CoordinatesSchema
    days: List[DayPlanSchema]
    source: str

    @classmethod
    def from_domain(cls, obj: Itinerary) -> "ItinerarySchema":
        return cls(
            trip_id=obj.trip_id,
            city=obj.city,
            total_days=obj.total_days,
            pace=obj.pace,
            interests=list(obj.interests),
            eco_focus=obj.eco_focus,
            map_center=CoordinatesSchema.from_domain(obj.map_center),
            days=[DayPlanSchema.from_domain(d) for d in obj.days],
            source=obj.source,
        )


class ItineraryListResponse(BaseModel):
    itineraries: List[ItinerarySchema]


class ReorderInput(BaseModel):
    from_index: int = Field(..., ge=0)
    to_index: int = Field(..., ge=0)


class RecommendationsResponse(BaseModel):
    city: str
    category: Optional[str] = None
    places: List[PlaceSchema]


class PlaceDetailsSchema(BaseModel):
    place_name: str
    city: str
    description: str
    dos: List[str]
    donts: List[str]
    warnings: List[str]

    @classmethod
    def from_domain(cls, obj: PlaceDetails) -> "PlaceDetailsSchema":
        return cls(
            place_name=obj.place_name,
            city=obj.city,
            description=obj.description,
            dos=list(obj.dos),
            donts=list(obj.donts),
            warnings=list(obj.warnings),
        )


class MapPlanInput(BaseModel):
    prompt: str = Field(..., min_length=1)
    planner_mode: bool = False


class MapLocationSchema(BaseModel):
    kind: str = "location"
    name: str
    description: str
    lat: float
    lng: float
    time: Optional[str] = None
    duration: Optional[str] = None
    sequence: Optional[int] = None

    @classmethod
    def from_domain(cls, obj: MapLocation) -> "MapLocationSchema":
        return cls(
            name=obj.name,
            description=obj.description,
            lat=obj.lat,
            lng=obj.lng,
            time=obj.time,
            duration=obj.duration,
            sequence=obj.sequence,
        )


class MapRouteSchema(BaseModel):
    kind: str = "line"
    name: str
    start: CoordinatesSchema
    end: CoordinatesSchema
    transport: Optional[str] = None
    travel_time: Optional[str] = None

    @classmethod
    def from_domain(cls, obj: MapRoute) -> "MapRouteSchema":
        return cls(
            name=obj.name,
            start=CoordinatesSchema.from_domain(obj.start),
            end=CoordinatesSchema.from_domain(obj.end),
            transport=obj.transport,
            travel_time=obj.travel_time,
        )
