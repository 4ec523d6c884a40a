from typing import Optional

from fastapi import APIRouter, Depends, Query

from ecotrip.api import get_itinerary_service
from ecotrip.models.domain import Interest
from ecotrip.models.schemas import PlaceDetailsSchema, PlaceSchema, RecommendationsResponse
from ecotrip.services.itinerary_service import ItineraryService

router = APIRouter()


@router.get("/recommendations", response_model=RecommendationsResponse)
def recommendations(
    city: str = Query(..., min_length=1),
    category: Optional[Interest] = None,
    service: ItineraryService = Depends(get_itinerary_service),
) -> RecommendationsResponse:
    category_name = category.value if category else None
    places = service.recommend_places(city, category_name)
    return RecommendationsResponse(
        city=city,
        category=category_name,
        places=[PlaceSchema.from_domain(p) for p in places],
    )


@router.get("/details", response_model=PlaceDetailsSchema)
def place_details(
    city: str = Query(..., min_length=1),
    place_name: str = Query(..., min_length=1),
    service: ItineraryService = Depends(get_itinerary_service),
) -> PlaceDetailsSchema:
    return PlaceDetailsSchema.from_domain(service.place_details(place_name, city))
