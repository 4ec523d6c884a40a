import json
import os

import requests
import streamlit as st

BACKEND_URL = os.getenv("BACKEND_URL", "http://localhost:8000")

PACES = ["Relaxed", "Moderate", "Fast-Paced"]
INTERESTS = ["Nature", "Culinary", "Culture", "History", "Hidden Gem"]


def post_itinerary(payload: dict) -> dict:
    resp = requests.post(f"{BACKEND_URL}/itinerary/", json=payload, timeout=180)
    resp.raise_for_status()
    return resp.json()


def list_itineraries() -> list[dict]:
    resp = requests.get(f"{BACKEND_URL}/itinerary/", timeout=10)
    resp.raise_for_status()
    return resp.json()["itineraries"]


def reorder(trip_id: str, day_number: int, from_index: int, to_index: int) -> dict:
    resp = requests.post(
        f"{BACKEND_URL}/itinerary/{trip_id}/days/{day_number}/reorder",
        json={"from_index": from_index, "to_index": to_index},
        timeout=10,
    )
    resp.raise_for_status()
    return resp.json()


def remove_place(trip_id: str, day_number: int, place_id: str) -> dict:
    resp = requests.delete(
        f"{BACKEND_URL}/itinerary/{trip_id}/days/{day_number}/places/{place_id}", timeout=10
    )
    resp.raise_for_status()
    return resp.json()


def add_place(trip_id: str, day_number: int, place: dict) -> dict:
    resp = requests.post(
        f"{BACKEND_URL}/itinerary/{trip_id}/days/{day_number}/places", json=place, timeout=10
    )
    resp.raise_for_status()
    return resp.json()


def get_recommendations(city: str, category: str | None) -> list[dict]:
    params = {"city": city}
    if category:
        params["category"] = category
    resp = requests.get(f"{BACKEND_URL}/places/recommendations", params=params, timeout=120)
    resp.raise_for_status()
    return resp.json()["places"]


@st.cache_data(ttl=3600)
def get_place_details(city: str, place_name: str) -> dict:
    resp = requests.get(
        f"{BACKEND_URL}/places/details",
        params={"city": city, "place_name": place_name},
        timeout=120,
    )
    resp.raise_for_status()
    return resp.json()


def stream_map_plan(prompt: str, planner_mode: bool):
    with requests.post(
        f"{BACKEND_URL}/maps/plan",
        json={"prompt": prompt, "planner_mode": planner_mode},
        stream=True,
        timeout=180,
    ) as resp:
        resp.raise_for_status()
        for line in resp.iter_lines(decode_unicode=True):
            if line:
                yield json.loads(line)


def render_itinerary(plan: dict) -> None:
    st.header(f"{plan['total_days']} days in {plan['city']}")
    st.caption(
        f"Pace: {plan['pace']} | Interests: {', '.join(plan['interests'])} | source: {plan['source']}"
    )
    points = [
        {"lat": p["coordinates"]["lat"], "lon": p["coordinates"]["lng"]}
        for day in plan["days"]
        for p in day["places"]
    ]
    if points:
        st.map({"lat": [p["lat"] for p in points], "lon": [p["lon"] for p in points]})

    for day in plan["days"]:
        with st.expander(f"Day {day['day_number']}", expanded=day["day_number"] == 1):
            for idx, place in enumerate(day["places"]):
                cols = st.columns([6, 1, 1, 1])
                cols[0].markdown(
                    f"**{place['time_slot']} · {place['name']}**  \n"
                    f"{place['description']}  \n"
                    f"{place['category']} | {place['duration'] // 60}h {place['duration'] % 60}m"
                )
                key = f"{plan['trip_id']}-{day['day_number']}-{place['id']}"
                if idx > 0 and cols[1].button("↑", key=f"up-{key}"):
                    st.session_state["current_plan"] = reorder(
                        plan["trip_id"], day["day_number"], idx, idx - 1
                    )
                    st.rerun()
                if idx < len(day["places"]) - 1 and cols[2].button("↓", key=f"down-{key}"):
                    st.session_state["current_plan"] = reorder(
                        plan["trip_id"], day["day_number"], idx, idx + 1
                    )
                    st.rerun()
                if cols[3].button("✕", key=f"rm-{key}"):
                    st.session_state["current_plan"] = remove_place(
                        plan["trip_id"], day["day_number"], place["id"]
                    )
                    st.rerun()
                if st.toggle("Etiquette", key=f"details-{key}"):
                    try:
                        details = get_place_details(plan["city"], place["name"])
                    except Exception as exc:  # noqa: BLE001
                        st.error(f"Could not load details: {exc}")
                        continue
                    st.info(details["description"])
                    for label, items in (("Do", details["dos"]), ("Don't", details["donts"]), ("Warning", details["warnings"])):
                        for item in items:
                            st.markdown(f"- **{label}:** {item}")


def render_recommendations(plan: dict) -> None:
    st.subheader("Recommended places")
    category = st.selectbox("Category", options=["All"] + INTERESTS)
    day_number = st.number_input("Add to day", min_value=1, max_value=plan["total_days"], value=1)
    if st.button("Load recommendations"):
        try:
            st.session_state["recommendations"] = get_recommendations(
                plan["city"], None if category == "All" else category
            )
        except Exception as exc:  # noqa: BLE001
            st.error(f"Failed to load recommendations: {exc}")
    for place in st.session_state.get("recommendations", []):
        cols = st.columns([6, 1])
        cols[0].markdown(f"**{place['name']}** ({place['category']})  \n{place['description']}")
        if cols[1].button("Add", key=f"add-{place['id']}"):
            st.session_state["current_plan"] = add_place(plan["trip_id"], int(day_number), place)
            st.rerun()


st.set_page_config(page_title="Eco Itinerary Planner", layout="wide")
st.title("Eco Itinerary Planner")
st.caption("Backend: FastAPI + Gemini | UI: Streamlit")

with st.sidebar.form("plan_form"):
    st.subheader("Trip preferences")
    city = st.text_input("City", value="Bali")
    days = st.number_input("Days", min_value=1, max_value=10, value=3)
    pace = st.selectbox("Pace", options=PACES, index=1)
    interests = st.multiselect("Interests", options=INTERESTS, default=["Nature", "Culinary"])
    eco_focus = st.checkbox("Prioritize eco-friendly options")
    submitted = st.form_submit_button("Generate itinerary")

if submitted:
    payload = {
        "city": city,
        "days": int(days),
        "pace": pace,
        "interests": interests,
        "eco_focus": eco_focus,
    }
    try:
        st.session_state["current_plan"] = post_itinerary(payload)
        st.session_state.pop("recommendations", None)
        st.success("Itinerary generated")
    except Exception as exc:  # noqa: BLE001
        st.error(f"Failed to generate itinerary: {exc}")
        st.session_state.pop("current_plan", None)

saved = st.sidebar.expander("Saved itineraries")
try:
    for item in list_itineraries():
        if saved.button(f"{item['city']} ({item['total_days']}d)", key=f"saved-{item['trip_id']}"):
            st.session_state["current_plan"] = item
except requests.RequestException as exc:
    saved.warning(f"Backend unavailable: {exc}")

tab_plan, tab_map = st.tabs(["Itinerary", "Map planner"])

with tab_plan:
    plan = st.session_state.get("current_plan")
    if plan:
        render_itinerary(plan)
        render_recommendations(plan)
    else:
        st.info("Fill in the form to generate an itinerary.")

with tab_map:
    prompt = st.text_input("Where to?", placeholder="1 day in Bandung")
    planner_mode = st.checkbox("Day planner mode")
    if st.button("Plan on map") and prompt.strip():
        locations, routes = [], []
        timeline = st.empty()
        try:
            for feature in stream_map_plan(prompt, planner_mode):
                if feature["kind"] == "location":
                    locations.append(feature)
                    timeline.markdown(
                        "\n".join(
                            f"{loc.get('sequence') or '-'}. **{loc['name']}** {loc.get('time') or ''}"
                            for loc in sorted(locations, key=lambda loc: loc.get("sequence") or 99)
                        )
                    )
                else:
                    routes.append(feature)
        except requests.RequestException as exc:
            st.error(f"Map planner failed: {exc}")
        if locations:
            st.map({"lat": [loc["lat"] for loc in locations], "lon": [loc["lng"] for loc in locations]})
            st.caption(f"{len(locations)} stops, {len(routes)} routes")
