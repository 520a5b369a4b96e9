"""Skip API scenarios when their endpoints are not configured."""

from __future__ import annotations

import pytest

from proof360.events import EventPublisher
from proof360.search import ElasticsearchClient


@pytest.fixture
def publisher(settings):
    if not settings.has_event_grid():
        pytest.skip("Event Grid URL / SAS key not configured")
    p = EventPublisher(settings)
    yield p
    p.close()


@pytest.fixture
def es_client(settings):
    if not settings.has_elasticsearch():
        pytest.skip("Elasticsearch URL / credentials not configured")
    with ElasticsearchClient.from_settings(settings) as client:
        yield client
