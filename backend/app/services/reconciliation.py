from __future__ import annotations
from dataclasses import dataclass, field
from typing import Generic, Sequence, TypeVar

from app.clients.base import UpstreamListing

StoredT = TypeVar("StoredT")


@dataclass
class ReconciliationPlan(Generic[StoredT]):
    jobs_to_delete: list[StoredT] = field(default_factory=list)
    jobs_to_enrich: list[UpstreamListing] = field(default_factory=list)

    @property
    def delete_ids(self) -> set[str]:
        return {str(job.external_id) for job in self.jobs_to_delete}

    @property
    def enrich_ids(self) -> set[str]:
        return {listing.external_id for listing in self.jobs_to_enrich}


def reconcile(upstream: Sequence[UpstreamListing], stored: Sequence[StoredT]) -> ReconciliationPlan[StoredT]:
    """Diff one upstream snapshot against one stored snapshot by external id.

    Stored rows without an external id are never deleted. A listing id that
    appears twice upstream is enriched once, in its first position.
    """
    upstream_ids = {listing.external_id for listing in upstream}
    stored_ids = {str(job.external_id) for job in stored if job.external_id}

    jobs_to_delete = [job for job in stored if job.external_id and str(job.external_id) not in upstream_ids]

    jobs_to_enrich: list[UpstreamListing] = []
    seen: set[str] = set()
    for listing in upstream:
        if listing.external_id in stored_ids or listing.external_id in seen:
            continue
        seen.add(listing.external_id)
        jobs_to_enrich.append(listing)

    return ReconciliationPlan(jobs_to_delete=jobs_to_delete, jobs_to_enrich=jobs_to_enrich)
