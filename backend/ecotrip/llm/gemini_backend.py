from __future__ import annotations

import logging
import threading
from typing import Any, Iterator, List, Optional, Union
from uuid import uuid4

from ecotrip.llm.dispatcher import RequestDispatcher
from ecotrip.llm.errors import InvalidResponseError
from ecotrip.llm.parser import parse_json
from ecotrip.llm.prompts import (
    LINE_DECLARATION,
    LOCATION_DECLARATION,
    build_details_prompt,
    build_itinerary_prompt,
    build_map_prompt,
    build_map_system_instruction,
    build_recommendations_prompt,
)
from ecotrip.llm.request import GenerationConfig, GenerationRequest
from ecotrip.llm.stream import FunctionInvocation, collect_text, iter_function_calls
from ecotrip.models.domain import (
    Coordinates,
    DayPlan,
    Itinerary,
    MapLocation,
    MapRoute,
    Place,
    PlaceDetails,
    PlanRequest,
)

logger = logging.getLogger(__name__)

MapFeature = Union[MapLocation, MapRoute]

ITINERARY_CONFIG = GenerationConfig(
    temperature=0.7, top_k=40, top_p=0.95, max_output_tokens=4096, json_output=True
)
RECOMMENDATIONS_CONFIG = GenerationConfig(temperature=0.7, max_output_tokens=2048, json_output=True)
DETAILS_CONFIG = GenerationConfig(temperature=0.4, max_output_tokens=1024, json_output=True)


def _coordinates(raw: Any, what: str) -> Coordinates:
    if not isinstance(raw, dict) or raw.get("lat") is None or raw.get("lng") is None:
        raise InvalidResponseError(f"Invalid response structure: missing {what} coordinates")
    try:
        return Coordinates(lat=float(raw["lat"]), lng=float(raw["lng"]))
    except (TypeError, ValueError) as exc:
        raise InvalidResponseError(f"Invalid {what} coordinates: {raw!r}") from exc


def _to_place(raw: Any, default_id: str, default_category: str) -> Place:
    if not isinstance(raw, dict) or not raw.get("name"):
        raise InvalidResponseError(f"Invalid place entry: {raw!r}")
    try:
        duration = int(raw.get("duration") or 120)
    except (TypeError, ValueError) as exc:
        raise InvalidResponseError(f"Invalid duration for {raw['name']}: {raw.get('duration')!r}") from exc
    return Place(
        id=str(raw.get("id") or default_id),
        name=str(raw["name"]),
        description=str(raw.get("description") or ""),
        category=str(raw.get("category") or default_category),
        coordinates=_coordinates(raw.get("coordinates"), f"place '{raw['name']}'"),
        time_slot=str(raw.get("timeSlot") or "09:00"),
        duration=duration,
        thumbnail=raw.get("thumbnail"),
    )


def _string_list(data: dict, key: str) -> List[str]:
    value = data.get(key)
    if not isinstance(value, list):
        raise InvalidResponseError(f"Invalid response structure: missing {key} array")
    return [str(item) for item in value]


class GeminiContentBackend:
    """
    Call sites for the Gemini request manager.

    Each batch call builds a JSON-only prompt, dispatches it, drains the stream
    into text, parses it strictly and validates the fields the UI relies on.
    """

    name = "gemini"

    def __init__(self, dispatcher: RequestDispatcher, model: str):
        self.dispatcher = dispatcher
        self.model = model

    def _generate_json(self, prompt: str, config: GenerationConfig) -> Any:
        stream = self.dispatcher.dispatch(self.model, GenerationRequest(prompt=prompt, config=config))
        return parse_json(collect_text(stream))

    def generate_itinerary(self, request: PlanRequest) -> Itinerary:
        data = self._generate_json(build_itinerary_prompt(request), ITINERARY_CONFIG)
        return self._to_itinerary(data, request)

    def recommend_places(self, city: str, category: Optional[str] = None) -> List[Place]:
        data = self._generate_json(build_recommendations_prompt(city, category), RECOMMENDATIONS_CONFIG)
        if not isinstance(data, list):
            raise InvalidResponseError("Invalid response structure: expected a JSON array of places")
        return [
            _to_place(raw, default_id=f"rec-{idx + 1}", default_category=category or "Hidden Gem")
            for idx, raw in enumerate(data)
        ]

    def place_details(self, place_name: str, city: str) -> PlaceDetails:
        data = self._generate_json(build_details_prompt(place_name, city), DETAILS_CONFIG)
        if not isinstance(data, dict):
            raise InvalidResponseError("Invalid response structure: expected a JSON object")
        return PlaceDetails(
            place_name=place_name,
            city=city,
            description=str(data.get("description") or ""),
            dos=_string_list(data, "dos"),
            donts=_string_list(data, "donts"),
            warnings=_string_list(data, "warnings"),
        )

    def plan_map(
        self,
        prompt: str,
        planner_mode: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[MapFeature]:
        """Dispatch now, then yield map features lazily as chunks arrive."""
        config = GenerationConfig(
            temperature=0.5,
            system_instruction=build_map_system_instruction(planner_mode),
            tools=(LOCATION_DECLARATION, LINE_DECLARATION),
            function_calling_mode="ANY",
        )
        stream = self.dispatcher.dispatch(
            self.model,
            GenerationRequest(prompt=build_map_prompt(prompt, planner_mode), config=config),
            cancel_event=cancel_event,
        )
        return self._map_features(iter_function_calls(stream))

    def _map_features(self, calls: Iterator[FunctionInvocation]) -> Iterator[MapFeature]:
        for call in calls:
            try:
                if call.name == "location":
                    yield self._to_location(call.args)
                elif call.name == "line":
                    yield self._to_route(call.args)
                else:
                    logger.warning("Ignoring unknown function call %s", call.name)
            except (InvalidResponseError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed %s call: %s", call.name, exc)

    @staticmethod
    def _to_location(args: dict) -> MapLocation:
        coords = _coordinates(args, f"location '{args.get('name')}'")
        sequence = args.get("sequence")
        return MapLocation(
            name=str(args.get("name") or ""),
            description=str(args.get("description") or ""),
            lat=coords.lat,
            lng=coords.lng,
            time=args.get("time"),
            duration=args.get("duration"),
            sequence=int(float(sequence)) if sequence not in (None, "") else None,
        )

    @staticmethod
    def _to_route(args: dict) -> MapRoute:
        return MapRoute(
            name=str(args.get("name") or ""),
            start=_coordinates(args.get("start"), "route start"),
            end=_coordinates(args.get("end"), "route end"),
            transport=args.get("transport"),
            travel_time=args.get("travelTime"),
        )

    def _to_itinerary(self, data: Any, request: PlanRequest) -> Itinerary:
        if not isinstance(data, dict):
            raise InvalidResponseError("Invalid response structure: expected a JSON object")
        raw_days = data.get("days")
        if not isinstance(raw_days, list):
            raise InvalidResponseError("Invalid response structure: missing days array")
        map_center = _coordinates(data.get("mapCenter"), "mapCenter")
        first_interest = request.interest_names()[0]

        days: List[DayPlan] = []
        for day_idx, raw_day in enumerate(raw_days):
            if not isinstance(raw_day, dict) or not isinstance(raw_day.get("places", []), list):
                raise InvalidResponseError(f"Invalid day entry at position {day_idx}")
            day_number = int(raw_day.get("dayNumber") or day_idx + 1)
            places = [
                _to_place(
                    raw,
                    default_id=f"{day_number}-place-{place_idx + 1}",
                    default_category=first_interest,
                )
                for place_idx, raw in enumerate(raw_day.get("places", []))
            ]
            days.append(DayPlan(day_number=day_number, places=places, date=raw_day.get("date")))

        return Itinerary(
            trip_id=str(uuid4()),
            city=request.city,
            total_days=len(days),
            pace=request.pace.value,
            interests=request.interest_names(),
            eco_focus=request.eco_focus,
            map_center=map_center,
            days=days,
            source=self.name,
        )
