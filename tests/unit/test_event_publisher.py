"""Unit tests for EventPublisher with a mocked HTTP session."""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from proof360.config import Settings
from proof360.errors import PublishError
from proof360.events import AlertKind, EventPublisher

pytestmark = pytest.mark.unit


def make_settings(**overrides) -> Settings:
    values = dict(
        environment="uat",
        uat_url="https://uat.eventgrid/api/events",
        uat_saskey="uat-key",
        uat_topic="lpr-topic",
        uat_isentry_topic="ub-topic",
        uat_isentry_firefly_topic="firefly-topic",
        trex_public_url="https://trex.eventgrid/api/events",
        trex_public_saskey="trex-key",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_session(status: int = 200) -> MagicMock:
    session = MagicMock()
    resp = MagicMock(ok=200 <= status < 300, status_code=status, text="denied")
    session.post.return_value = resp
    return session


class TestPublish:
    def test_trex_private_posts_single_event(self):
        session = make_session()
        result = EventPublisher(make_settings(), session=session).trex_private()

        assert result.ok and result.status == 200 and not result.skipped
        url = session.post.call_args.args[0]
        kwargs = session.post.call_args.kwargs
        assert url == "https://uat.eventgrid/api/events"
        assert kwargs["headers"]["aeg-sas-key"] == "uat-key"
        body = kwargs["json"]
        assert isinstance(body, list) and len(body) == 1
        assert body[0]["topic"] == "firefly-topic"
        assert body[0]["data"]["deviceIdList"] == ["123363"]
        assert result.event_id == body[0]["id"]

    def test_trex_public_uses_its_own_endpoint(self):
        session = make_session()
        EventPublisher(make_settings(), session=session).trex_public()
        assert session.post.call_args.args[0] == "https://trex.eventgrid/api/events"
        assert session.post.call_args.kwargs["headers"]["aeg-sas-key"] == "trex-key"

    def test_unusual_behaviour_topic(self):
        session = make_session()
        EventPublisher(make_settings(), session=session).publish(AlertKind.UNUSUAL_BEHAVIOUR)
        body = session.post.call_args.kwargs["json"]
        assert body[0]["topic"] == "ub-topic"
        assert body[0]["eventType"] == "iSentry Event"

    def test_public_lpr_by_name(self):
        session = make_session()
        EventPublisher(make_settings(plate_id2="ABC123"), session=session).publish("public-lpr")
        body = session.post.call_args.kwargs["json"]
        assert body[0]["subject"] == "lpr-topic"
        assert body[0]["data"]["data"]["plateId"] == "ABC123"

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            EventPublisher(make_settings(), session=make_session()).publish("smoke")


class TestFailures:
    def test_skipped_when_not_configured(self):
        session = make_session()
        publisher = EventPublisher(make_settings(uat_url="", uat_saskey=""), session=session)
        for kind in (AlertKind.TREX_PRIVATE, AlertKind.UNUSUAL_BEHAVIOUR, AlertKind.PUBLIC_LPR):
            assert publisher.publish(kind).skipped
        session.post.assert_not_called()

    def test_trex_public_skipped_without_its_key(self):
        session = make_session()
        result = EventPublisher(make_settings(trex_public_saskey=""), session=session).trex_public()
        assert result.skipped
        session.post.assert_not_called()

    def test_http_error_status_is_reported(self):
        result = EventPublisher(make_settings(), session=make_session(401)).trex_private()
        assert result.ok is False
        assert result.status == 401

    def test_transport_error_raises(self):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(PublishError):
            EventPublisher(make_settings(), session=session).unusual_behaviour()
