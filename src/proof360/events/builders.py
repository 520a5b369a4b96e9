"""Payload builders for the alert kinds the suite injects.

Each call returns a fresh event: new GUIDs and current timestamps.
"""

from __future__ import annotations

import time
from typing import Optional

from proof360.events.models import EventGridEvent, guid, iso_timestamp

UB_LOCAL_ID = "88e87751-23bf-4f12-b3d5-fc4905a2a23e"
UB_ALERT_ID = 267
UB_CAMERA_ID = 1496


def trex_event(
    device_id: str,
    camera_name: str,
    image_url: str,
    video_url: str,
    topic: Optional[str] = None,
) -> EventGridEvent:
    """iSentry Firefly "Trex" alert; public and private differ only in ids."""
    return EventGridEvent(
        subject="iSentry Firefly Alert",
        data={
            "source": "iSentry Firefly",
            "ref": guid(),
            "type": "Trex",
            "timestamp": iso_timestamp(),
            "deviceIdList": [device_id],
            "data": {
                "organisationId": [],
                "reason": "Trex",
                "description": "Trex",
                "shortDescription": "Trex",
                "localId": guid(),
                "priority": "Unknown",
                "cameraName": camera_name,
                "escalationActionName": "",
                "escalationClassificationName": "",
            },
            "imageList": [image_url],
            "videoList": [video_url],
        },
        event_type="iSentry Firefly Event",
        data_version="2.0",
        topic=topic,
    )


def unusual_behaviour_event(
    base_device_id: str,
    camera_name: str,
    image_url: str,
    topic: Optional[str] = None,
    now_ms: Optional[int] = None,
) -> EventGridEvent:
    """iSentry "Unusual Behaviour" alert with a single alert frame.

    The device id gets a millisecond suffix so repeated runs do not merge
    into one alert group.
    """
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    now = iso_timestamp()
    device_id = f"{base_device_id}-{now_ms}"
    frame = {
        "ImagePixelFormat": 137224,
        "Number": 0,
        "FrameNumber": 130527,
        "HighRes": True,
        "FrameID": guid(),
        "iSentryServerID": guid(),
        "MSCameraID": device_id,
        "Timestamp": now_ms,
        "TimestampUTC": now,
        "CameraID": UB_CAMERA_ID,
        "FrameImageType": 0,
        "Width": 384,
        "Height": 288,
        "Bounding_Box_Inclusion_Percentage": 2,
        "Facial_Inflation_Percentage": 15,
        "TrackingID": "00000000-0000-0000-0000-000000000000",
        "Created": now,
        "ImageURL": image_url,
    }
    return EventGridEvent(
        subject="iSentry API",
        data={
            "source": "iSentry API",
            "ref": guid(),
            "type": "Unusual Behaviour",
            "timestamp": now,
            "deviceIdList": [device_id],
            "data": {
                "organisationId": "",
                "reason": "Unusual Behaviour",
                "localId": UB_LOCAL_ID,
                "priority": "HIGH",
                "cameraName": camera_name,
                "timeZone": "Day",
                "frames": [
                    {"Number": 0, "ActionApplied": 0, "MasterFrame": False, "AlertFrame": frame}
                ],
                "alertIdInt": UB_ALERT_ID,
            },
            "imageList": [image_url],
            "videoList": [],
        },
        event_type="iSentry Event",
        data_version="4.0",
        event_time=now,
        topic=topic,
    )


def public_lpr_event(
    device_id: str,
    camera_name: str,
    plate_id: str,
    organization_id: int,
    latitude: float,
    longitude: float,
    case_number: str,
    crime_type: str,
    level_id: str,
    level_time_created: str,
    topic: Optional[str] = None,
) -> EventGridEvent:
    """Public vehicle-of-interest plate read."""
    now = iso_timestamp()
    return EventGridEvent(
        subject=topic,
        data={
            "data": {
                "cameraName": camera_name,
                "direction": "forward",
                "imageList": [],
                "isSuperVOI": False,
                "latitude": latitude,
                "levelOfIncidence": {
                    "caseNumber": case_number,
                    "crimeType": crime_type,
                    "id": level_id,
                    "isPublic": 1,
                    "level": 1,
                    "organizationId": organization_id,
                    "schedule": "",
                    "timeCreated": level_time_created,
                },
                "longitude": longitude,
                "organizationId": organization_id,
                "plateId": plate_id,
                "timeCaptured": now,
                "timeDispatched": now,
                "voiSource": "Public",
            },
            "deviceIdList": [device_id],
            "ref": guid(),
            "source": "proof",
            "timestamp": now,
            "type": "plate",
        },
        event_type="Vumacam.LPR.AlertDispatchedEvent",
        data_version="2.0",
        event_time=now,
        topic=topic,
    )
