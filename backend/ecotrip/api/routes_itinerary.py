from fastapi import APIRouter, Depends, Response

from ecotrip.api import get_itinerary_service
from ecotrip.models.schemas import (
    ItineraryListResponse,
    ItinerarySchema,
    PlaceSchema,
    PlanInput,
    ReorderInput,
)
from ecotrip.services.itinerary_service import ItineraryService

router = APIRouter()


@router.post("/", response_model=ItinerarySchema)
def create_itinerary(
    payload: PlanInput,
    service: ItineraryService = Depends(get_itinerary_service),
) -> ItinerarySchema:
    itinerary = service.plan_trip(payload.to_domain())
    return ItinerarySchema.from_domain(itinerary)


@router.get("/", response_model=ItineraryListResponse)
def list_itineraries(
    service: ItineraryService = Depends(get_itinerary_service),
) -> ItineraryListResponse:
    return ItineraryListResponse(
        itineraries=[ItinerarySchema.from_domain(i) for i in service.list_itineraries()]
    )


@router.get("/{trip_id}", response_model=ItinerarySchema)
def get_itinerary(
    trip_id: str, service: ItineraryService = Depends(get_itinerary_service)
) -> ItinerarySchema:
    return ItinerarySchema.from_domain(service.get_itinerary(trip_id))


@router.delete("/{trip_id}", status_code=204)
def delete_itinerary(
    trip_id: str, service: ItineraryService = Depends(get_itinerary_service)
) -> Response:
    service.delete_itinerary(trip_id)
    return Response(status_code=204)


@router.post("/{trip_id}/days/{day_number}/places", response_model=ItinerarySchema)
def add_place(
    trip_id: str,
    day_number: int,
    place: PlaceSchema,
    service: ItineraryService = Depends(get_itinerary_service),
) -> ItinerarySchema:
    itinerary = service.add_place(trip_id, day_number, place.to_domain())
    return ItinerarySchema.from_domain(itinerary)


@router.post("/{trip_id}/days/{day_number}/reorder", response_model=ItinerarySchema)
def reorder_places(
    trip_id: str,
    day_number: int,
    payload: ReorderInput,
    service: ItineraryService = Depends(get_itinerary_service),
) -> ItinerarySchema:
    itinerary = service.reorder_places(trip_id, day_number, payload.from_index, payload.to_index)
    return ItinerarySchema.from_domain(itinerary)


@router.delete("/{trip_id}/days/{day_number}/places/{place_id}", response_model=ItinerarySchema)
def remove_place(
    trip_id: str,
    day_number: int,
    place_id: str,
    service: ItineraryService = Depends(get_itinerary_service),
) -> ItinerarySchema:
    itinerary = service.remove_place(trip_id, day_number, place_id)
    return ItinerarySchema.from_domain(itinerary)
