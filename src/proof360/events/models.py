"""Event Grid envelope."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


def guid() -> str:
    return str(uuid.uuid4())


def iso_timestamp(when: Optional[datetime] = None) -> str:
    """UTC timestamp with millisecond precision and a ``Z`` suffix."""
    when = when or datetime.now(timezone.utc)
    return when.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + f"{when.microsecond // 1000:03d}Z"


class EventGridEvent(BaseModel):
    """One Event Grid event; the request body is a list of these."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=guid)
    subject: Optional[str] = None
    data: dict[str, Any]
    event_type: str = Field(alias="eventType")
    data_version: str = Field(alias="dataVersion")
    metadata_version: str = Field(default="1", alias="metadataVersion")
    event_time: str = Field(default_factory=iso_timestamp, alias="eventTime")
    topic: Optional[str] = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
