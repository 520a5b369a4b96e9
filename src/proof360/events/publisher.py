"""Post synthetic alerts to Event Grid."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import requests
from loguru import logger

from proof360.config import Settings
from proof360.errors import PublishError
from proof360.events.builders import public_lpr_event, trex_event, unusual_behaviour_event
from proof360.events.models import EventGridEvent

SAS_HEADER = "aeg-sas-key"


class AlertKind(str, Enum):
    TREX_PUBLIC = "trex-public"
    TREX_PRIVATE = "trex-private"
    UNUSUAL_BEHAVIOUR = "unusual-behaviour"
    PUBLIC_LPR = "public-lpr"


@dataclass
class PublishResult:
    ok: bool = False
    status: Optional[int] = None
    skipped: bool = False
    event_id: Optional[str] = None


class EventPublisher:
    """Publishes one event per call to the configured Event Grid endpoint.

    Missing endpoint configuration yields ``PublishResult(skipped=True)``.
    Non-2xx responses are reported on the result; only transport failures
    raise ``PublishError``.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None, timeout: float = 30.0):
        self.settings = settings
        self.session = session or requests.Session()
        self.timeout = timeout

    def _post(self, url: str, key: str, event: EventGridEvent, label: str) -> PublishResult:
        try:
            resp = self.session.post(
                url,
                json=[event.to_wire()],
                headers={SAS_HEADER: key, "Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"[EventPublisher] {label} publish failed: {e}")
            raise PublishError(f"Publishing {label} to {url} failed: {e}") from e
        result = PublishResult(ok=resp.ok, status=resp.status_code, event_id=event.id)
        if resp.ok:
            logger.info(f"[EventPublisher] {label} published ({resp.status_code})")
        else:
            logger.warning(f"[EventPublisher] {label} rejected: {resp.status_code} {resp.text[:200]}")
        return result

    def _skip(self, label: str, keys: str) -> PublishResult:
        logger.info(f"[EventPublisher] {keys} not configured. Skipping {label}.")
        return PublishResult(skipped=True)

    def trex_public(self) -> PublishResult:
        s = self.settings
        if not (s.trex_public_url and s.trex_public_saskey):
            return self._skip("TREX public", "TREX_PUBLIC_URL/TREX_PUBLIC_SASKEY")
        event = trex_event(
            s.trex_device_id,
            s.trex_camera_name,
            s.trex_image_url,
            s.trex_video_url,
            topic=s.event_grid().isentry_firefly_topic or None,
        )
        return self._post(s.trex_public_url, s.trex_public_saskey, event, "TREX public")

    def trex_private(self) -> PublishResult:
        s = self.settings
        target = s.event_grid()
        if not target.configured:
            return self._skip("TREX private", "URL/SASKEY")
        event = trex_event(
            s.trex_private_device_id,
            s.trex_private_camera_id,
            s.trex_image_url,
            s.trex_video_url,
            topic=target.isentry_firefly_topic or None,
        )
        return self._post(target.url, target.saskey, event, "TREX private")

    def unusual_behaviour(self) -> PublishResult:
        s = self.settings
        target = s.event_grid()
        if not target.configured:
            return self._skip("Unusual Behaviour", "URL/SASKEY")
        event = unusual_behaviour_event(
            s.ub_device_id, s.ub_camera_name, s.ub_image_url, topic=target.isentry_topic or None
        )
        return self._post(target.url, target.saskey, event, "Unusual Behaviour")

    def public_lpr(self) -> PublishResult:
        s = self.settings
        target = s.event_grid()
        if not target.configured:
            return self._skip("Public LPR", "URL/SASKEY")
        event = public_lpr_event(
            device_id=s.public_lpr_device_id,
            camera_name=s.public_lpr_camera_name,
            plate_id=s.plate_id2,
            organization_id=s.organization_id,
            latitude=s.public_lpr_latitude,
            longitude=s.public_lpr_longitude,
            case_number=s.public_lpr_case_number,
            crime_type=s.public_lpr_crime_type,
            level_id=s.public_lpr_level_id,
            level_time_created=s.public_lpr_time_created,
            topic=target.topic or None,
        )
        return self._post(target.url, target.saskey, event, "Public LPR")

    def publish(self, kind: AlertKind | str) -> PublishResult:
        kind = AlertKind(kind)
        handlers = {
            AlertKind.TREX_PUBLIC: self.trex_public,
            AlertKind.TREX_PRIVATE: self.trex_private,
            AlertKind.UNUSUAL_BEHAVIOUR: self.unusual_behaviour,
            AlertKind.PUBLIC_LPR: self.public_lpr,
        }
        return handlers[kind]()

    def close(self) -> None:
        self.session.close()
