import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence

from geotrust.schemas.location import (
    ConsistencyVerdict,
    IpLocation,
    LocationFix,
    SpoofVerdict,
    TimezoneVerdict,
)
from geotrust.services.geo import haversine_distance_meters
from geotrust.services.history import LocationHistory, append_to_history

logger = logging.getLogger(__name__)

MIN_HISTORY_FOR_VELOCITY = 2
MIN_UPDATE_INTERVAL_SECONDS = 1.0
MAX_SPEED_MPS = 280.0  # ~1008 km/h
MIN_PLAUSIBLE_ACCURACY_M = 1.0
MAX_IP_GPS_DISTANCE_M = 100_000.0
IP_LOOKUP_TIMEOUT_SECONDS = 5.0

RULE_TOO_FAST = "update_interval"
RULE_SPEED = "speed"
RULE_ACCURACY = "accuracy"

IpLookup = Callable[[], Awaitable[Optional[IpLocation]]]


def evaluate_fix(history: Sequence[LocationFix], new_fix: LocationFix) -> SpoofVerdict:
    """
    Judge a candidate fix against recent history. The fix is not recorded.
    Rules run in a fixed order and the first one that fires is reported.
    """
    if len(history) < MIN_HISTORY_FOR_VELOCITY:
        return SpoofVerdict(spoof_detected=False)

    previous = history[-1]
    duration_s = (new_fix.timestamp_ms - previous.timestamp_ms) / 1000
    if duration_s < MIN_UPDATE_INTERVAL_SECONDS:
        return SpoofVerdict(
            spoof_detected=True,
            reason="Location updated too quickly",
            rule=RULE_TOO_FAST,
            duration_seconds=duration_s,
        )

    distance_m = haversine_distance_meters(
        previous.latitude, previous.longitude, new_fix.latitude, new_fix.longitude
    )
    speed = distance_m / duration_s
    if speed > MAX_SPEED_MPS:
        return SpoofVerdict(
            spoof_detected=True,
            reason=f"Unrealistic movement detected: {round(speed)} m/s ({round(speed * 3.6)} km/h)",
            rule=RULE_SPEED,
            speed_mps=speed,
            distance_meters=distance_m,
            duration_seconds=duration_s,
        )

    if new_fix.accuracy_meters is not None and new_fix.accuracy_meters < MIN_PLAUSIBLE_ACCURACY_M:
        return SpoofVerdict(
            spoof_detected=True,
            reason="Suspiciously high location accuracy",
            rule=RULE_ACCURACY,
            speed_mps=speed,
            distance_meters=distance_m,
            duration_seconds=duration_s,
        )

    return SpoofVerdict(
        spoof_detected=False,
        speed_mps=speed,
        distance_meters=distance_m,
        duration_seconds=duration_s,
    )


async def check_ip_consistency(
    latitude: float,
    longitude: float,
    ip_lookup: IpLookup,
    timeout: float = IP_LOOKUP_TIMEOUT_SECONDS,
) -> ConsistencyVerdict:
    """
    Compare a GPS coordinate with the network-derived location.
    Lookup failures and timeouts are treated as consistent (fail-open).
    """
    try:
        ip_location = await asyncio.wait_for(ip_lookup(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("IP lookup timed out after %.1fs", timeout)
        return ConsistencyVerdict(consistent=True)
    except Exception as exc:
        logger.warning("IP lookup failed: %s", exc)
        return ConsistencyVerdict(consistent=True)

    if ip_location is None or not ip_location.has_coordinates:
        return ConsistencyVerdict(consistent=True)

    distance_m = haversine_distance_meters(latitude, longitude, ip_location.latitude, ip_location.longitude)
    if distance_m > MAX_IP_GPS_DISTANCE_M:
        return ConsistencyVerdict(
            consistent=False,
            distance_meters=distance_m,
            reason=f"IP location and GPS location are too far apart ({round(distance_m / 1000)} km)",
        )
    return ConsistencyVerdict(consistent=True, distance_meters=distance_m)


def check_timezone_consistency(browser_timezone: Optional[str], ip_timezone: Optional[str]) -> TimezoneVerdict:
    # Exact match only: aliases such as Asia/Kolkata vs Asia/Calcutta are reported as mismatches.
    if browser_timezone and ip_timezone and browser_timezone != ip_timezone:
        return TimezoneVerdict(
            detected=True,
            reason=f"Browser timezone {browser_timezone} does not match IP timezone {ip_timezone}",
        )
    return TimezoneVerdict(detected=False)


class LocationTrustEvaluator:
    """Per-session evaluator that owns its location history."""

    def __init__(self, history: LocationHistory | None = None, ip_lookup_timeout: float = IP_LOOKUP_TIMEOUT_SECONDS):
        self.history = history if history is not None else LocationHistory()
        self.ip_lookup_timeout = ip_lookup_timeout

    def evaluate(self, fix: LocationFix) -> SpoofVerdict:
        return evaluate_fix(self.history, fix)

    def record(self, fix: LocationFix) -> None:
        append_to_history(self.history, fix)

    def evaluate_and_record(self, fix: LocationFix, record_spoofed: bool = False) -> SpoofVerdict:
        verdict = self.evaluate(fix)
        if not verdict.spoof_detected or record_spoofed:
            self.record(fix)
        return verdict

    def reset(self) -> None:
        self.history.clear()

    async def check_ip_consistency(self, latitude: float, longitude: float, ip_lookup: IpLookup) -> ConsistencyVerdict:
        return await check_ip_consistency(latitude, longitude, ip_lookup, timeout=self.ip_lookup_timeout)

    @staticmethod
    def check_timezone_consistency(browser_timezone: Optional[str], ip_timezone: Optional[str]) -> TimezoneVerdict:
        return check_timezone_consistency(browser_timezone, ip_timezone)
