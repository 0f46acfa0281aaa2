import httpx
import pytest

from main import app
from services.hospital_lookup import HospitalLookup, facility_types, get_hospital_lookup, haversine_km

HERE = (18.5204, 73.8567)


def place(name, lat, lng, **address):
    return {"display_name": f"{name}, Pune, India", "lat": str(lat), "lon": str(lng), "address": address}


def lookup_with(handler) -> HospitalLookup:
    return HospitalLookup(base_url="http://search.test/search", transport=httpx.MockTransport(handler))


def test_haversine_distance():
    assert haversine_km(*HERE, *HERE) == 0
    # Pune to Mumbai is roughly 120 km as the crow flies
    assert 115 < haversine_km(*HERE, 19.0760, 72.8777) < 125


@pytest.mark.parametrize("condition, first", [
    ("Cardiac arrest", "hospital"),
    ("mental health", "psychiatric"),
    ("pediatric fever", "pediatric"),
    ("broken toe", "hospital"),
])
def test_facility_types(condition, first):
    assert facility_types(condition)[0] == first


def test_results_sorted_by_distance_and_capped():
    places = [place(f"H{i}", HERE[0] + 0.01 * (7 - i), HERE[1]) for i in range(7)]

    def handler(request):
        assert request.headers["user-agent"]
        assert request.url.params["format"] == "json"
        return httpx.Response(200, json=places)

    hospitals = lookup_with(handler).nearby(*HERE, "general")
    assert len(hospitals) == 5
    assert [h["name"] for h in hospitals] == ["H6", "H5", "H4", "H3", "H2"]
    assert hospitals[0]["distance"].endswith(" km")
    assert hospitals[0]["phone"] == "Contact hospital directly"


def test_falls_back_to_plain_query():
    queries = []

    def handler(request):
        queries.append(request.url.params["q"])
        if len(queries) == 1:
            return httpx.Response(200, json=[])
        return httpx.Response(200, json=[place("City Hospital", 18.53, 73.85, amenity="hospital")])

    hospitals = lookup_with(handler).nearby(*HERE, "mental")
    assert queries[0].startswith("hospital psychiatric near")
    assert queries[1].startswith("hospital near")
    assert hospitals[0]["type"] == "hospital"


def test_search_failure_gives_no_results():
    def handler(request):
        return httpx.Response(503)

    assert lookup_with(handler).nearby(*HERE) == []


def test_nearby_route(client):
    def handler(request):
        return httpx.Response(200, json=[place("Ruby Hall", 18.53, 73.87)])

    app.dependency_overrides[get_hospital_lookup] = lambda: lookup_with(handler)
    response = client.get("/hospitals/nearby?latitude=18.5204&longitude=73.8567&condition=cardiac")
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 1
    assert body["condition"] == "cardiac"
    assert body["location"] == {"lat": 18.5204, "lng": 73.8567}


def test_nearby_route_validates_coordinates(client):
    assert client.get("/hospitals/nearby?latitude=95&longitude=0").status_code == 400
