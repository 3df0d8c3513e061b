from geotrust.schemas.location import LocationFix, SpoofVerdict
from geotrust.schemas.place import PlaceOut, PresenceResult
from geotrust.services.geo import haversine_distance_meters

BAND_NEAR = "near"
BAND_WARM = "warm"
BAND_FAR = "far"


def proximity_band(distance_m: float, threshold_m: float) -> str:
    if distance_m <= threshold_m:
        return BAND_NEAR
    if distance_m <= threshold_m * 2:
        return BAND_WARM
    return BAND_FAR


def proximity_progress(distance_m: float, threshold_m: float) -> float:
    """0-100 closeness indicator; reaches 0 at five times the threshold."""
    if threshold_m <= 0:
        return 100.0 if distance_m <= 0 else 0.0
    return max(0.0, min(100.0, 100 - distance_m / (threshold_m * 5) * 100))


def verify_presence(fix: LocationFix, place: PlaceOut, spoof: SpoofVerdict | None = None) -> PresenceResult:
    distance_m = haversine_distance_meters(fix.latitude, fix.longitude, place.latitude, place.longitude)
    band = proximity_band(distance_m, place.threshold_distance)
    progress = proximity_progress(distance_m, place.threshold_distance)

    if spoof is not None and spoof.spoof_detected:
        return PresenceResult(
            success=False,
            message=f"Location could not be trusted: {spoof.reason}",
            distance_meters=distance_m,
            band=band,
            progress=progress,
            spoof=spoof,
        )

    if distance_m <= place.threshold_distance:
        message = f"Location verified! You are {round(distance_m)}m from the target."
        success = True
    else:
        message = f"Too far away: {round(distance_m)}m. Need to be within {place.threshold_distance:g}m."
        success = False
    return PresenceResult(
        success=success,
        message=message,
        distance_meters=distance_m,
        band=band,
        progress=progress,
        spoof=spoof,
    )
