import logging
import math
from typing import List, Optional

import httpx

from core.config import HOSPITAL_SEARCH_URL, HOSPITAL_TIMEOUT_SECONDS, HOSPITAL_USER_AGENT

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371
MAX_RESULTS = 5

CONDITION_FACILITIES = {
    "cardiac": ["hospital", "cardiac center", "heart hospital"],
    "emergency": ["emergency", "hospital", "trauma center"],
    "mental": ["psychiatric", "mental health", "hospital"],
    "pediatric": ["pediatric", "children hospital"],
    "general": ["hospital", "medical center", "clinic"],
}


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2)
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def facility_types(condition: str) -> List[str]:
    condition = (condition or "general").lower()
    for key, types in CONDITION_FACILITIES.items():
        if key in condition:
            return types
    return ["hospital", "medical center"]


class HospitalLookup:
    def __init__(self, base_url: str = HOSPITAL_SEARCH_URL, timeout: float = HOSPITAL_TIMEOUT_SECONDS,
                 transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport

    def _search(self, query: str) -> list:
        params = {"q": query, "format": "json", "limit": MAX_RESULTS, "addressdetails": 1}
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport,
                              headers={"User-Agent": HOSPITAL_USER_AGENT}) as client:
                response = client.get(self.base_url, params=params)
                response.raise_for_status()
                return response.json() or []
        except (httpx.HTTPError, ValueError) as e:
            logger.info("Hospital search for %r failed: %s", query, e)
            return []

    def _to_hospital(self, place: dict, lat: float, lng: float) -> Optional[dict]:
        try:
            place_lat = float(place["lat"])
            place_lng = float(place["lon"])
        except (KeyError, TypeError, ValueError):
            return None
        address = place.get("address") or {}
        display_name = place.get("display_name") or ""
        distance = haversine_km(lat, lng, place_lat, place_lng)
        return {
            "name": display_name.split(",")[0] or "Hospital",
            "type": address.get("hospital") or address.get("amenity") or "Medical Facility",
            "distance": f"{distance:.1f} km",
            "distanceKm": round(distance, 1),
            "phone": address.get("phone") or "Contact hospital directly",
            "address": display_name,
            "lat": place_lat,
            "lng": place_lng,
        }

    def nearby(self, lat: float, lng: float, condition: str = "general") -> List[dict]:
        types = facility_types(condition)
        places = self._search(f"hospital {types[0]} near {lat},{lng}")
        if not places:
            places = self._search(f"hospital near {lat},{lng}")

        hospitals = [h for h in (self._to_hospital(p, lat, lng) for p in places) if h]
        hospitals.sort(key=lambda h: h["distanceKm"])
        return hospitals[:MAX_RESULTS]


hospital_lookup = HospitalLookup()


def get_hospital_lookup() -> HospitalLookup:
    return hospital_lookup
