import json
import textwrap

from google.genai import types

from ecotrip.models.domain import PlanRequest

PACE_PLACES_PER_DAY = {
    "Relaxed": "2-3",
    "Moderate": "3-4",
    "Fast-Paced": "4-6",
}

_ITINERARY_TEMPLATE = textwrap.dedent(
    """\
    You are an expert travel planner specializing in sustainable and eco-friendly tourism.
    Create a detailed {days}-day itinerary for {city}, Indonesia.

    Requirements:
    - Travel pace: {pace}
    - Interests: {interests}
    {eco_line}
    - Start each day at 09:00
    - Include lunch break (12:00-13:00)
    - Each place must have realistic coordinates (latitude and longitude) for {city}
    - Duration should be realistic (in minutes)
    - Time slots should be sequential and logical

    Return ONLY a valid JSON object with this exact structure (no markdown, no explanations):
    {{
      "city": "{city}",
      "totalDays": {days},
      "pace": "{pace}",
      "interests": {interests_json},
      "ecoFocus": {eco_json},
      "mapCenter": {{"lat": <latitude of {city}>, "lng": <longitude of {city}>}},
      "days": [
        {{
          "dayNumber": 1,
          "places": [
            {{
              "id": "unique-id-1",
              "name": "Place Name",
              "description": "Brief description of the place",
              "category": "{first_interest}",
              "timeSlot": "09:00",
              "duration": 120,
              "coordinates": {{"lat": <latitude>, "lng": <longitude>}}
            }}
          ]
        }}
      ]
    }}

    Important:
    - Use REAL place names that exist in {city}
    - All time slots must be in "HH:MM" format; duration is in minutes
    - Generate {days} days with {per_day} places per day
    - Return ONLY the JSON, no other text
    """
)

_RECOMMENDATIONS_TEMPLATE = textwrap.dedent(
    """\
    Recommend 6 real places to visit in {city}{category_clause}.
    Return ONLY a JSON array (no markdown) where every element looks like:
    {{
      "id": "unique-id",
      "name": "Place Name",
      "description": "One or two sentences",
      "category": "{category_value}",
      "coordinates": {{"lat": <latitude>, "lng": <longitude>}}
    }}
    Categories must be one of: Nature, Culinary, Culture, History, Hidden Gem.
    """
)

_DETAILS_TEMPLATE = textwrap.dedent(
    """\
    A traveller is visiting "{place_name}" in {city}.
    Return ONLY a JSON object (no markdown) of the form:
    {{
      "description": "Short description of the place",
      "dos": ["etiquette the visitor should follow"],
      "donts": ["things the visitor must avoid"],
      "warnings": ["safety or cultural warnings"]
    }}
    Give 2-4 short items in each list.
    """
)

MAP_SYSTEM_INSTRUCTION = textwrap.dedent(
    """\
    ## System Instructions for Map Planner
    You are an AI travel assistant. Your goal is to create detailed, multi-stop travel itineraries.

    WHEN GENERATING A TRIP (e.g., "1 day in Bandung", "Trip to Tokyo"):
    1. Generate MULTIPLE locations (at least 3-5) that form a logical route.
    2. Use the 'location' tool for EACH stop.
    3. Use the 'line' tool to connect consecutive locations.
    4. Assign a 'sequence' number to each location (1, 2, 3...).
    5. Provide realistic 'time' (e.g., "09:00 AM") and 'duration' (e.g., "2 hours") for each stop.

    IMPORTANT:
    - Coordinates must be precise.
    - You must ALWAYS use the provided tools. DO NOT reply with conversational text.
    - If the user asks for a specific place, suggest nearby attractions to make it a complete trip.

    DAY_PLANNER_MODE: {planner_mode}
    """
)


def build_itinerary_prompt(request: PlanRequest) -> str:
    interests = request.interest_names()
    return _ITINERARY_TEMPLATE.format(
        city=request.city,
        days=request.days,
        pace=request.pace.value,
        interests=", ".join(interests),
        interests_json=json.dumps(interests),
        eco_line=(
            "- Prioritize eco-friendly and sustainable options."
            if request.eco_focus
            else "- Balance popular and local options."
        ),
        eco_json=json.dumps(request.eco_focus),
        first_interest=interests[0],
        per_day=PACE_PLACES_PER_DAY[request.pace.value],
    )


def build_recommendations_prompt(city: str, category: str | None = None) -> str:
    return _RECOMMENDATIONS_TEMPLATE.format(
        city=city,
        category_clause=f" in the {category} category" if category else "",
        category_value=category or "<category>",
    )


def build_details_prompt(place_name: str, city: str) -> str:
    return _DETAILS_TEMPLATE.format(place_name=place_name, city=city)


def build_map_system_instruction(planner_mode: bool) -> str:
    return MAP_SYSTEM_INSTRUCTION.format(planner_mode=str(planner_mode).lower())


def build_map_prompt(prompt: str, planner_mode: bool) -> str:
    return f"{prompt} day trip itinerary" if planner_mode else prompt


_STRING = types.Schema(type=types.Type.STRING)
_LAT_LNG = types.Schema(
    type=types.Type.OBJECT,
    properties={"lat": _STRING, "lng": _STRING},
)

LOCATION_DECLARATION = types.FunctionDeclaration(
    name="location",
    description="Geographic coordinates of a location.",
    parameters=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "name": types.Schema(type=types.Type.STRING, description="Name of the location."),
            "description": types.Schema(type=types.Type.STRING, description="Description of the location."),
            "lat": types.Schema(type=types.Type.STRING, description="Latitude."),
            "lng": types.Schema(type=types.Type.STRING, description="Longitude."),
            "time": types.Schema(type=types.Type.STRING, description="Time of day."),
            "duration": types.Schema(type=types.Type.STRING, description="Duration of stay."),
            "sequence": types.Schema(type=types.Type.NUMBER, description="Order in itinerary."),
        },
        required=["name", "description", "lat", "lng"],
    ),
)

LINE_DECLARATION = types.FunctionDeclaration(
    name="line",
    description="Connection route between locations.",
    parameters=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "name": _STRING,
            "start": _LAT_LNG,
            "end": _LAT_LNG,
            "transport": _STRING,
            "travelTime": _STRING,
        },
        required=["name", "start", "end"],
    ),
)
