from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from geotrust.schemas.location import SpoofVerdict


class PlaceIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    clue: str = Field(..., min_length=1, max_length=1024)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    city: str = Field(..., min_length=1, max_length=128)
    threshold_distance: float = Field(default=100.0, gt=0)


class PlaceOut(PlaceIn):
    model_config = ConfigDict(from_attributes=True)

    id: int


class PresenceResult(BaseModel):
    success: bool
    message: str
    distance_meters: float
    band: str
    progress: float
    spoof: Optional[SpoofVerdict] = None
