from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class LocationFix(BaseModel):
    """One GPS observation as reported by the device.

    Coordinates are not range-checked here; request schemas validate at the edge.
    """

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    timestamp_ms: int
    accuracy_meters: Optional[float] = None


class LocationFixIn(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    timestamp_ms: int = Field(..., ge=0)
    accuracy_meters: Optional[float] = Field(default=None, ge=0)

    def to_fix(self) -> LocationFix:
        return LocationFix(**self.model_dump())


class SpoofVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    spoof_detected: bool
    reason: Optional[str] = None
    rule: Optional[str] = None
    speed_mps: Optional[float] = None
    distance_meters: Optional[float] = None
    duration_seconds: Optional[float] = None


class IpLocation(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timezone: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class ConsistencyVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    consistent: bool
    distance_meters: Optional[float] = None
    reason: Optional[str] = None


class TimezoneVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    detected: bool
    reason: Optional[str] = None


class ConsistencyCheckIn(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    browser_timezone: Optional[str] = Field(default=None, max_length=64)


class ConsistencyReport(BaseModel):
    ip: ConsistencyVerdict
    timezone: TimezoneVerdict
    ip_timezone: Optional[str] = None


class HistoryOut(BaseModel):
    session_id: str
    fixes: list[LocationFix]
