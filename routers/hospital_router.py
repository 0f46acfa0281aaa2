from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool

from services.hospital_lookup import HospitalLookup, get_hospital_lookup

router = APIRouter(prefix="/hospitals", tags=["Hospitals"])


# ---------------- Nearby hospitals (public) ----------------
@router.get("/nearby")
async def nearby_hospitals(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    condition: str = "general",
    lookup: HospitalLookup = Depends(get_hospital_lookup),
):
    hospitals = await run_in_threadpool(lookup.nearby, latitude, longitude, condition)
    return {
        "success": True,
        "hospitals": hospitals,
        "condition": condition,
        "location": {"lat": latitude, "lng": longitude},
        "count": len(hospitals),
    }
