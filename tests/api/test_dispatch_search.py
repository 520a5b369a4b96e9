"""Dispatch records for the test company are searchable."""
from __future__ import annotations

import pytest

from proof360.search import DispatchQuery

pytestmark = pytest.mark.api


def test_cluster_reachable(es_client):
    assert es_client.test_connection()


def test_latest_dispatch_for_test_company(es_client, settings):
    query = DispatchQuery(company=settings.test_company, site=settings.test_es_site or None)
    assert es_client.latest_dispatch_id(query) is not None


def test_search_returns_records_newest_first(es_client, settings):
    records = es_client.search_dispatches(DispatchQuery(company=settings.test_company, site=None, size=5))
    timestamps = [r.timestamp for r in records if r.timestamp]
    assert timestamps == sorted(timestamps, reverse=True)
