import json

from fastapi.testclient import TestClient
from google.genai import errors as genai_errors

from ecotrip.core.config import Settings
from ecotrip.llm.dispatcher import RequestDispatcher
from ecotrip.llm.keys import KeyPool
from gemini_fakes import always, call_chunk, json_chunks
from main import create_app

PLAN = {"city": "Bandung", "days": 1, "pace": "Moderate", "interests": ["Nature"], "eco_focus": True}

ITINERARY_PAYLOAD = {
    "days": [
        {
            "dayNumber": 1,
            "places": [
                {
                    "name": "Tangkuban Perahu",
                    "description": "Volcano",
                    "coordinates": {"lat": -6.759, "lng": 107.609},
                    "category": "Nature",
                    "timeSlot": "08:00",
                    "duration": 180,
                }
            ],
        }
    ],
    "mapCenter": {"lat": -6.9175, "lng": 107.6191},
}


def make_client(keys, outcome, fallback_to_mock=False):
    settings = Settings(llm_provider="gemini", fallback_to_mock=fallback_to_mock, gemini_api_key=None)
    dispatcher = RequestDispatcher(KeyPool(keys), client_factory=always(outcome), fallbacks={})
    return TestClient(create_app(settings, dispatcher=dispatcher))


def test_health_reports_key_count():
    client = make_client(["k1", "k2"], [])
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "api_keys": 2}


def test_create_and_edit_itinerary():
    client = make_client(["k1"], json_chunks(ITINERARY_PAYLOAD))

    resp = client.post("/itinerary/", json=PLAN)
    assert resp.status_code == 200
    plan = resp.json()
    assert plan["source"] == "gemini"
    assert plan["eco_focus"] is True
    assert plan["days"][0]["places"][0]["name"] == "Tangkuban Perahu"

    trip_id = plan["trip_id"]
    assert client.get(f"/itinerary/{trip_id}").json()["trip_id"] == trip_id
    assert len(client.get("/itinerary/").json()["itineraries"]) == 1

    place_id = plan["days"][0]["places"][0]["id"]
    resp = client.delete(f"/itinerary/{trip_id}/days/1/places/{place_id}")
    assert resp.status_code == 200
    assert resp.json()["days"][0]["places"] == []

    assert client.delete(f"/itinerary/{trip_id}").status_code == 204
    assert client.get(f"/itinerary/{trip_id}").status_code == 404


def test_invalid_plan_input_is_422():
    client = make_client(["k1"], [])
    resp = client.post("/itinerary/", json={**PLAN, "days": 0})
    assert resp.status_code == 422


def test_no_keys_without_fallback_is_503():
    client = make_client([], [])
    resp = client.post("/itinerary/", json=PLAN)
    assert resp.status_code == 503
    assert "No Gemini API keys" in resp.json()["detail"]


def test_no_keys_with_fallback_serves_mock_data():
    client = make_client([], [], fallback_to_mock=True)
    resp = client.post("/itinerary/", json=PLAN)
    assert resp.status_code == 200
    assert resp.json()["source"] == "mock"


def test_exhausted_keys_is_503():
    client = make_client(["k1", "k2"], genai_errors.ClientError(429, {"error": {"message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED"}}))
    resp = client.get("/places/recommendations", params={"city": "Bali"})
    assert resp.status_code == 503
    assert "exhausted" in resp.json()["detail"]


def test_fatal_upstream_error_is_502():
    client = make_client(["k1"], genai_errors.ClientError(400, {"error": {"message": "API key not valid", "status": "INVALID_ARGUMENT"}}))
    resp = client.get("/places/details", params={"city": "Bali", "place_name": "Uluwatu"})
    assert resp.status_code == 502


def test_map_plan_streams_ndjson():
    chunks = [
        call_chunk("location", {"name": "Gedung Sate", "description": "Landmark", "lat": -6.9025, "lng": 107.6188}),
        call_chunk(
            "line",
            {"name": "walk", "start": {"lat": -6.9, "lng": 107.6}, "end": {"lat": -6.91, "lng": 107.61}},
        ),
    ]
    client = make_client(["k1"], chunks)

    resp = client.post("/maps/plan", json={"prompt": "Bandung", "planner_mode": False})

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/x-ndjson")
    features = [json.loads(line) for line in resp.text.splitlines() if line]
    assert [f["kind"] for f in features] == ["location", "line"]
    assert features[0]["name"] == "Gedung Sate"


def test_map_plan_without_tool_calls_is_502():
    client = make_client(["k1"], [])
    resp = client.post("/maps/plan", json={"prompt": "Bandung"})
    assert resp.status_code == 502
    assert "Could not generate any results" in resp.json()["detail"]
