"""Synthetic alert events for Event Grid ingestion."""

from proof360.events.builders import public_lpr_event, trex_event, unusual_behaviour_event
from proof360.events.models import EventGridEvent
from proof360.events.publisher import AlertKind, EventPublisher, PublishResult

__all__ = [
    "AlertKind",
    "EventGridEvent",
    "EventPublisher",
    "PublishResult",
    "public_lpr_event",
    "trex_event",
    "unusual_behaviour_event",
]
