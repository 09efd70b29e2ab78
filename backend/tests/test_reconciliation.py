from __future__ import annotations
from types import SimpleNamespace

from app.services.reconciliation import reconcile


def _stored(*ids):
    return [SimpleNamespace(external_id=i) for i in ids]


def test_stale_and_new_sets_are_disjoint(listings):
    upstream = listings("J1", "J2", "J3", "J4")
    plan = reconcile(upstream, _stored("J0", "J2", "J3"))

    assert plan.delete_ids == {"J0"}
    assert plan.enrich_ids == {"J1", "J4"}
    assert not plan.delete_ids & plan.enrich_ids


def test_enrich_keeps_source_order(listings):
    plan = reconcile(listings("J9", "J3", "J7"), _stored())

    assert [listing.external_id for listing in plan.jobs_to_enrich] == ["J9", "J3", "J7"]


def test_repeated_upstream_id_is_enriched_once(listings):
    plan = reconcile(listings("J1", "J2", "J1"), _stored())

    assert [listing.external_id for listing in plan.jobs_to_enrich] == ["J1", "J2"]


def test_stored_rows_without_external_id_are_never_deleted(listings):
    plan = reconcile(listings("J1"), _stored("", None, "J5"))

    assert plan.delete_ids == {"J5"}


def test_empty_upstream_deletes_everything_stored():
    plan = reconcile([], _stored("J1", "J2"))

    assert plan.delete_ids == {"J1", "J2"}
    assert plan.jobs_to_enrich == []
