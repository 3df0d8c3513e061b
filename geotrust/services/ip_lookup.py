import ipaddress
from typing import Optional

import httpx

from geotrust.schemas.location import IpLocation


class IpLookupError(Exception):
    pass


def _is_public(ip: str) -> bool:
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return addr.is_global


class HttpIpLookup:
    """
    ipLookup capability bound to one client address, backed by an
    ipapi-compatible endpoint (`{base_url}/{ip}/json/`).
    Private or unparsable addresses query the endpoint's "self" route.
    """

    def __init__(
        self,
        client_ip: Optional[str],
        base_url: str,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_ip = client_ip
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _url(self) -> str:
        if self.client_ip and _is_public(self.client_ip):
            return f"{self.base_url}/{self.client_ip}/json/"
        return f"{self.base_url}/json/"

    async def __call__(self) -> IpLocation:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            resp = await client.get(self._url())
        if resp.status_code != 200:
            raise IpLookupError(f"IP lookup returned {resp.status_code}")
        data = resp.json()
        if data.get("error"):
            raise IpLookupError(data.get("reason") or "IP lookup error")
        return IpLocation(
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            timezone=data.get("timezone"),
        )
