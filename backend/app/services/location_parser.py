from __future__ import annotations
import json
import logging
import re
from dataclasses import dataclass

from app.clients.base import TextGenerationClient, UpstreamListing

logger = logging.getLogger(__name__)

_FIELDS = ("city", "state", "country")
_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


@dataclass(frozen=True)
class StandardizedLocation:
    city: str = ""
    state: str = ""
    country: str = ""


def build_prompt(listing: UpstreamListing) -> str:
    return f"""Analyze this job posting and extract the complete location information:

Job Title: {listing.title}
Job URL: {listing.source_url}
Location: {listing.raw_city}, {listing.raw_country}
Description: {listing.business_area}
Company: {listing.company_name}

Based on this job information, determine the full standardized location. Use the job title, URL domain, and description context to help identify the specific state/province for "{listing.raw_city}" in {listing.raw_country}.

Return a JSON object with these exact fields:
- city: The city name (standardized)
- state: The state/province name (full name, not abbreviation)
- country: The country name (standardized)

For US locations, always include the state. Examples:
- Houston -> Texas
- Michigan City -> Indiana
- Charlotte -> North Carolina

Use the job context and URL to determine the most accurate location."""


def strip_code_fence(content: str) -> str:
    text = (content or "").strip()
    if not text.startswith("```"):
        return text
    text = _FENCE_RE.sub("", text).strip()
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        return text[start : end + 1]
    return text


def _clean(value) -> str:
    if value is None:
        return ""
    return " ".join(str(value).split())


def regex_extract(content: str) -> dict[str, str]:
    """Recover each location field on its own from a reply that is not valid JSON."""
    found: dict[str, str] = {}
    for name in _FIELDS:
        match = re.search(rf'"{name}"\s*:\s*"([^"]+)"', content, re.IGNORECASE) or re.search(
            rf"\b{name}\b[^:\n]*:\s*\"?([^\",\n}}]+)\"?", content, re.IGNORECASE
        )
        if match:
            value = _clean(match.group(1))
            if value and value.lower() not in ("null", "none", "n/a"):
                found[name] = value
    return found


class LocationParser:
    def __init__(self, client: TextGenerationClient):
        self.client = client

    @staticmethod
    def raw_location(listing: UpstreamListing) -> StandardizedLocation:
        return StandardizedLocation(city=listing.raw_city, state="", country=listing.raw_country)

    def parse(self, listing: UpstreamListing) -> StandardizedLocation:
        try:
            content = self.client.complete(build_prompt(listing))
        except Exception as exc:  # noqa: BLE001
            logger.warning("location model call failed for %s, using raw location: %s", listing.external_id, exc)
            return self.raw_location(listing)

        fields = self._parse_json(content)
        if fields is None:
            logger.info("location reply for %s is not JSON, falling back to regex", listing.external_id)
            fields = regex_extract(content or "")

        return StandardizedLocation(
            city=fields.get("city") or listing.raw_city,
            state=fields.get("state") or "",
            country=fields.get("country") or listing.raw_country,
        )

    @staticmethod
    def _parse_json(content: str) -> dict[str, str] | None:
        try:
            parsed = json.loads(strip_code_fence(content))
        except (TypeError, ValueError):
            return None
        if not isinstance(parsed, dict):
            return None
        return {name: _clean(parsed.get(name)) for name in _FIELDS}
