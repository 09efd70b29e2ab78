from __future__ import annotations
import logging

import httpx

from app.clients.base import ListingSource, UpstreamListing
from app.clients.http_helpers import post_json
from app.core.errors import SourceFetchError

logger = logging.getLogger(__name__)

MAX_HITS_PER_PAGE = 1000


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return ", ".join(str(v).strip() for v in value if str(v).strip())
    return str(value).strip()


def listing_from_hit(hit: dict) -> UpstreamListing | None:
    data = hit.get("data") if isinstance(hit.get("data"), dict) else hit
    external_id = _text(data.get("jobID"))
    if not external_id:
        return None
    return UpstreamListing(
        external_id=external_id,
        title=_text(data.get("title")),
        source_url=_text(data.get("externalPath")),
        raw_city=_text(data.get("city")),
        raw_country=_text(data.get("country")),
        business_area=_text(data.get("businessArea")),
        company_name=_text(data.get("brand")) or _text(data.get("company")),
        raw_payload=data,
    )


class AlgoliaListingSource(ListingSource):
    source_name = "algolia"

    def __init__(
        self,
        application_id: str,
        api_key: str,
        index_name: str,
        filters: str = "",
        page_size: int = MAX_HITS_PER_PAGE,
        timeout: float = 30,
        transport: httpx.BaseTransport | None = None,
    ):
        self.application_id = application_id
        self.api_key = api_key
        self.index_name = index_name
        self.filters = filters
        self.page_size = max(1, min(page_size, MAX_HITS_PER_PAGE))
        self.timeout = timeout
        self.transport = transport

    @property
    def query_url(self) -> str:
        return f"https://{self.application_id}.algolia.net/1/indexes/{self.index_name}/query"

    def _params(self, page: int) -> str:
        parts = []
        if self.filters:
            parts.append(f"filters={self.filters}")
        parts.append(f"hitsPerPage={self.page_size}")
        parts.append(f"page={page}")
        parts.append("query=")
        return "&".join(parts)

    def fetch_page(self, page: int) -> dict:
        headers = {
            "X-Algolia-API-Key": self.api_key,
            "X-Algolia-Application-Id": self.application_id,
        }
        try:
            return post_json(
                self.query_url,
                {"params": self._params(page)},
                headers=headers,
                timeout=self.timeout,
                transport=self.transport,
            )
        except httpx.HTTPStatusError as exc:
            raise SourceFetchError(
                f"search index returned {exc.response.status_code} on page {page}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise SourceFetchError(f"failed to fetch page {page}: {exc}") from exc

    def fetch_all(self) -> list[UpstreamListing]:
        listings: list[UpstreamListing] = []
        page = 0
        total_pages = 1
        while page < total_pages:
            data = self.fetch_page(page)
            if page == 0:
                total_pages = int(data.get("nbPages") or 1)
            for hit in data.get("hits") or []:
                listing = listing_from_hit(hit)
                if listing is not None:
                    listings.append(listing)
            page += 1
            logger.info("fetched page %s/%s (%s listings so far)", page, total_pages, len(listings))
        return listings
