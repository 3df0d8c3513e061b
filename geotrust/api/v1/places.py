from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from geotrust.core.config import Settings
from geotrust.core.deps import get_db_session, get_settings_dep
from geotrust.schemas.place import PlaceIn, PlaceOut
from geotrust.services.places import add_place, draw_hunt_places, list_places

router = APIRouter()


@router.get("", response_model=list[PlaceOut])
async def read_places(city: Optional[str] = None, session: AsyncSession = Depends(get_db_session)):
    return await list_places(session, city)


@router.post("", response_model=PlaceOut, status_code=status.HTTP_201_CREATED)
async def create_place(payload: PlaceIn, session: AsyncSession = Depends(get_db_session)):
    return await add_place(session, payload)


@router.get("/draw", response_model=list[PlaceOut])
async def draw_places(
    city: str = Query(..., min_length=1),
    count: Optional[int] = Query(default=None, ge=1, le=20),
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings_dep),
):
    return await draw_hunt_places(session, city, count or settings.clues_per_game)
