from __future__ import annotations
from dataclasses import dataclass, field


@dataclass(frozen=True)
class UpstreamListing:
    external_id: str
    title: str
    source_url: str = ""
    raw_city: str = ""
    raw_country: str = ""
    business_area: str = ""
    company_name: str = ""
    raw_payload: dict = field(default_factory=dict, compare=False, hash=False)


class ListingSource:
    source_name: str

    def fetch_all(self) -> list[UpstreamListing]:
        raise NotImplementedError


class TextGenerationClient:
    def complete(self, prompt: str) -> str:
        raise NotImplementedError


class GeocodingClient:
    def geocode(self, address: str) -> dict:
        raise NotImplementedError

    def reverse_geocode(self, latitude: float, longitude: float) -> dict:
        raise NotImplementedError
