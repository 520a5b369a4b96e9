"""Each synthetic alert kind is accepted by Event Grid."""
from __future__ import annotations

import pytest

from proof360.events import AlertKind

pytestmark = pytest.mark.api


@pytest.mark.parametrize("kind", list(AlertKind), ids=lambda k: k.value)
def test_publish_alert(publisher, settings, kind):
    if kind is AlertKind.TREX_PUBLIC and not (settings.trex_public_url and settings.trex_public_saskey):
        pytest.skip("TREX_PUBLIC_URL / TREX_PUBLIC_SASKEY not configured")
    result = publisher.publish(kind)
    assert not result.skipped
    assert result.ok, f"{kind.value} returned {result.status}"
    assert 200 <= result.status < 300
