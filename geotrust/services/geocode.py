import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

UNKNOWN_CITY = "Unknown City"
CITY_COMPONENTS = ("suburb", "city", "town", "village", "county", "state_district")


def extract_city(result: dict[str, Any]) -> str:
    """Pick a city-like name from one OpenCage result."""
    components = result.get("components") or {}
    city = next((components[k] for k in CITY_COMPONENTS if components.get(k)), "")

    if city and "-" in city:
        city = city.split("-")[0].strip()

    if not city and result.get("formatted"):
        parts = result["formatted"].split(",")
        if len(parts) > 1:
            city = parts[0].strip()

    return city or UNKNOWN_CITY


async def detect_city(
    latitude: float,
    longitude: float,
    api_key: Optional[str],
    url: str,
    timeout: float = 5.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    if not api_key:
        logger.warning("OpenCage API key not configured")
        return UNKNOWN_CITY
    params = {"q": f"{latitude},{longitude}", "key": api_key, "language": "en"}
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            resp = await client.get(url, params=params)
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Reverse geocoding failed: %s", exc)
        return UNKNOWN_CITY

    results = data.get("results") or []
    if not results:
        return UNKNOWN_CITY
    return extract_city(results[0])
