import random
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from geotrust.models.place import Place
from geotrust.schemas.place import PlaceIn


async def list_places(session: AsyncSession, city: Optional[str] = None) -> list[Place]:
    stmt = select(Place).order_by(Place.id)
    if city:
        stmt = stmt.where(func.lower(Place.city) == city.strip().lower())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_place(session: AsyncSession, place_id: int) -> Place:
    place = await session.get(Place, place_id)
    if place is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Place not found")
    return place


async def add_place(session: AsyncSession, payload: PlaceIn) -> Place:
    # Ids follow the catalog's max + 1 convention rather than a sequence.
    max_id = (await session.execute(select(func.max(Place.id)))).scalar_one_or_none()
    new_id = (max_id or 0) + 1
    result = await session.execute(
        insert(Place).values(id=new_id, **payload.model_dump()).returning(Place)
    )
    place = result.scalar_one()
    await session.commit()
    return place


async def draw_hunt_places(
    session: AsyncSession,
    city: str,
    count: int,
    rng: random.Random | None = None,
) -> list[Place]:
    """Pick `count` places of a city in random order for one hunt."""
    candidates = await list_places(session, city)
    if len(candidates) < count:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Not enough quests available in {city}",
        )
    return (rng or random).sample(candidates, count)
