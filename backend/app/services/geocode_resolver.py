from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Protocol

from app.clients.base import GeocodingClient
from app.clients.geocoding import first_postal_code
from app.services.location_parser import StandardizedLocation
from app.utils.states import is_united_states, state_abbreviation

logger = logging.getLogger(__name__)

# centroid first, then N, S, E, W, NE, SW
REVERSE_OFFSETS = (
    (0.0, 0.0),
    (0.01, 0.0),
    (-0.01, 0.0),
    (0.0, 0.01),
    (0.0, -0.01),
    (0.005, 0.005),
    (-0.005, -0.005),
)


class PostalCodeLookup(Protocol):
    def lookup(self, city: str, state: str) -> str: ...


@dataclass(frozen=True)
class GeoResult:
    latitude: str = ""
    longitude: str = ""
    postal_code: str = ""

    @property
    def has_coordinates(self) -> bool:
        return bool(self.latitude and self.longitude)


def address_formats(location: StandardizedLocation) -> list[str]:
    """Address strings to try, most specific first, blanks and repeats removed."""
    candidates = [", ".join(p for p in (location.city, location.state, location.country) if p)]
    if is_united_states(location.country):
        candidates.append(", ".join(p for p in (location.city, location.state, "USA") if p))
        if location.state:
            candidates.append(", ".join(p for p in (location.city, state_abbreviation(location.state), "USA") if p))

    formats: list[str] = []
    for address in candidates:
        if address and address not in formats:
            formats.append(address)
    return formats


def synthetic_addresses(city: str, state: str) -> list[str]:
    abbrev = state_abbreviation(state)
    return [
        f"100 Main Street, {city}, {abbrev}",
        f"1 {city} Ave, {city}, {abbrev}",
        f"City Hall, {city}, {abbrev}",
        f"{city} Town Center, {city}, {abbrev}",
        f"Downtown {city}, {abbrev}",
    ]


class GeocodeResolver:
    def __init__(
        self,
        client: GeocodingClient,
        zipcode_lookup: PostalCodeLookup | None = None,
        zipcode_table: PostalCodeLookup | None = None,
    ):
        self.client = client
        self.zipcode_lookup = zipcode_lookup
        self.zipcode_table = zipcode_table

    def resolve(self, location: StandardizedLocation) -> GeoResult:
        for address in address_formats(location):
            result = self._geocode_first(address)
            if result is None:
                continue

            coords = (result.get("geometry") or {}).get("location") or {}
            lat, lng = coords.get("lat"), coords.get("lng")
            if lat is None or lng is None:
                logger.debug("geocode result for %r has no coordinates", address)
                continue

            postal_code = first_postal_code(result)
            if not postal_code and location.city and location.state and is_united_states(location.country):
                postal_code = self.resolve_postal_code(location.city, location.state, float(lat), float(lng))
            if not postal_code:
                logger.info("no postal code found for %s, %s", location.city, location.state)

            logger.debug("geocoded %r -> %s,%s zip=%s", address, lat, lng, postal_code or "none")
            return GeoResult(latitude=str(lat), longitude=str(lng), postal_code=postal_code)

        logger.info(
            "all geocoding attempts failed for %s, %s, %s", location.city, location.state, location.country
        )
        return GeoResult()

    def resolve_postal_code(self, city: str, state: str, latitude: float, longitude: float) -> str:
        for name, lookup in (("zipcode table", self.zipcode_lookup), ("zipcode fallback", self.zipcode_table)):
            if lookup is None:
                continue
            try:
                postal_code = lookup.lookup(city, state)
            except Exception as exc:  # noqa: BLE001
                logger.warning("%s lookup failed for %s, %s: %s", name, city, state, exc)
                continue
            if postal_code:
                logger.debug("%s: %s, %s -> %s", name, city, state, postal_code)
                return postal_code

        for address in synthetic_addresses(city, state):
            result = self._geocode_first(address)
            postal_code = first_postal_code(result) if result else ""
            if postal_code:
                logger.debug("postal code for %s, %s via %r: %s", city, state, address, postal_code)
                return postal_code

        return self._reverse_postal_code(latitude, longitude)

    def _geocode_first(self, address: str) -> dict | None:
        try:
            data = self.client.geocode(address)
        except Exception as exc:  # noqa: BLE001
            logger.warning("geocoding request failed for %r: %s", address, exc)
            return None
        results = data.get("results") or []
        if data.get("status") != "OK" or not results:
            logger.debug("geocoding %r returned status %s", address, data.get("status"))
            return None
        return results[0]

    def _reverse_postal_code(self, latitude: float, longitude: float) -> str:
        for d_lat, d_lng in REVERSE_OFFSETS:
            try:
                data = self.client.reverse_geocode(latitude + d_lat, longitude + d_lng)
            except Exception as exc:  # noqa: BLE001
                logger.debug("reverse geocoding failed at offset %s,%s: %s", d_lat, d_lng, exc)
                continue
            if data.get("status") != "OK":
                continue
            for result in data.get("results") or []:
                postal_code = first_postal_code(result)
                if postal_code:
                    return postal_code
        return ""
