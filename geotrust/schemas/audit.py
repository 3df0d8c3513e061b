import datetime as dt
from pydantic import BaseModel, ConfigDict
from typing import Optional


class SpoofAuditOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    session_id: str
    rule: str
    reason: str
    latitude: float
    longitude: float
    speed_mps: Optional[float] = None
    created_at: dt.datetime
