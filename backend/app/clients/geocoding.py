from __future__ import annotations
import httpx

from app.clients.base import GeocodingClient
from app.clients.http_helpers import get_json

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"


class GoogleGeocodingClient(GeocodingClient):
    def __init__(self, api_key: str, timeout: float = 30, transport: httpx.BaseTransport | None = None):
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def geocode(self, address: str) -> dict:
        return get_json(GEOCODE_URL, {"address": address, "key": self.api_key}, self.timeout, self.transport)

    def reverse_geocode(self, latitude: float, longitude: float) -> dict:
        return get_json(
            GEOCODE_URL,
            {"latlng": f"{latitude},{longitude}", "key": self.api_key},
            self.timeout,
            self.transport,
        )


def first_postal_code(result: dict) -> str:
    for component in result.get("address_components") or []:
        if "postal_code" in (component.get("types") or []):
            return str(component.get("long_name") or "")
    return ""
