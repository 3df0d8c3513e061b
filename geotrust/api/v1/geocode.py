from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from geotrust.core.config import Settings
from geotrust.core.deps import get_settings_dep
from geotrust.services.geocode import detect_city

router = APIRouter()


class CityOut(BaseModel):
    latitude: float
    longitude: float
    city: str


@router.get("/city", response_model=CityOut)
async def reverse_city(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    settings: Settings = Depends(get_settings_dep),
):
    city = await detect_city(
        latitude,
        longitude,
        api_key=settings.opencage_api_key,
        url=settings.opencage_url,
        timeout=settings.geocode_timeout_seconds,
    )
    return CityOut(latitude=latitude, longitude=longitude, city=city)
