"""Configuration management using Pydantic settings.

Values come from environment variables and a dotenv file. The dotenv path
defaults to ``.env`` and can be switched with ``ENV_FILE`` (for example
``ENV_FILE=.env.uat``).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

from proof360.errors import ConfigurationError

# Keys checked by ``proof360-qa verify-env``
REQUIRED_ENV_KEYS = (
    "ADMIN_MS_USERNAME",
    "ADMIN_MS_PASSWORD",
    "NORMAL_MS_USERNAME",
    "NORMAL_MS_PASSWORD",
    "UAT_URL",
    "UAT_SASKEY",
    "ELASTICSEARCH_URL",
)

USER_TYPES = ("admin", "normal")


class EventGridTarget(BaseModel):
    """Connection details for one Event Grid environment."""

    url: str = ""
    saskey: str = ""
    topic: str = ""
    isentry_topic: str = ""
    isentry_firefly_topic: str = ""

    @property
    def configured(self) -> bool:
        return bool(self.url and self.saskey)


class Settings(BaseSettings):
    """Suite settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application under test
    base_url: str = "https://uat.proof360.io/"
    environment: str = "uat"  # "dev" or "uat", selects the Event Grid target

    # Accounts
    admin_ms_username: str = ""
    admin_ms_password: str = ""
    normal_ms_username: str = ""
    normal_ms_password: str = ""
    test_company: str = "Automation company"
    manual_alert_site: str = "BDFD_Boeing"
    ub_trex_site: str = "WVRD_9th Ave and JG Strydom Rd_62"

    # Event Grid (per environment)
    dev_url: str = ""
    dev_saskey: str = ""
    dev_topic: str = ""
    dev_isentry_topic: str = ""
    dev_isentry_firefly_topic: str = ""
    uat_url: str = ""
    uat_saskey: str = ""
    uat_topic: str = ""
    uat_isentry_topic: str = ""
    uat_isentry_firefly_topic: str = ""

    # TREX public goes to its own domain
    trex_public_url: str = ""
    trex_public_saskey: str = ""

    # Payload defaults
    trex_device_id: str = "116444"
    trex_camera_name: str = "116444"
    trex_private_device_id: str = "123363"
    trex_private_camera_id: str = "123352"
    trex_image_url: str = (
        "https://wwwproof360coza.blob.core.windows.net/isentry-firefly-alert-images/"
        "128237_1688624021_2023-07-06-06-13-41_9.idat.jpeg"
    )
    trex_video_url: str = (
        "https://wwwproof360coza.blob.core.windows.net/isentry-firefly-alert-videos/"
        "128237_1688624021_2023-07-06-06-13-41_9.idat.mp4"
    )
    ub_device_id: str = "7B2951D9-59AA-4651-87D4-3D27B0B9C0B9"
    ub_camera_name: str = "Vicp_Opposite 25 Leighton Rd_9.2_T"
    ub_image_url: str = (
        "https://wwwproof360coza.blob.core.windows.net/isentry/"
        "e11001f382d14138a9040a7a3d8a9a5a.jpg"
    )
    organization_id: int = 100526
    plate_id2: str = "TESTGP"
    public_lpr_device_id: str = "121467"
    public_lpr_camera_name: str = "MCLN_Berea Str and Bourke Str_20.4_A"
    public_lpr_latitude: float = -26.124830
    public_lpr_longitude: float = 28.082690
    public_lpr_case_number: str = "CAS 128/11/20"
    public_lpr_crime_type: str = "Common Robbery"
    public_lpr_level_id: str = "05ce87af-55c0-477e-a148-73c708a859a6"
    public_lpr_time_created: str = "2022-11-06T13:48:58.843Z"

    # Elasticsearch
    elasticsearch_url: str = ""
    elasticsearch_index: str = "proof360-dispatch*"
    elasticsearch_api_key: str = ""
    elasticsearch_username: str = ""
    elasticsearch_password: str = ""
    test_es_site: str = ""

    # Browser
    headless: bool = True
    viewport_width: int = 1920
    viewport_height: int = 1080
    action_timeout_ms: int = 60_000
    navigation_timeout_ms: int = 90_000
    expect_timeout_ms: int = 30_000

    # Artifacts and persisted sessions
    artifacts_root: Path = Path(".")
    state_dir: Path = Path(".")
    session_validity_minutes: int = 30
    session_refresh_minutes: int = 20

    def event_grid(self) -> EventGridTarget:
        """Event Grid connection for the selected environment."""
        prefix = "dev" if self.environment.lower() == "dev" else "uat"
        return EventGridTarget(
            url=getattr(self, f"{prefix}_url"),
            saskey=getattr(self, f"{prefix}_saskey"),
            topic=getattr(self, f"{prefix}_topic"),
            isentry_topic=getattr(self, f"{prefix}_isentry_topic"),
            isentry_firefly_topic=getattr(self, f"{prefix}_isentry_firefly_topic"),
        )

    def has_event_grid(self) -> bool:
        return self.event_grid().configured

    def has_elasticsearch(self) -> bool:
        has_auth = bool(
            self.elasticsearch_api_key
            or (self.elasticsearch_username and self.elasticsearch_password)
        )
        return bool(self.elasticsearch_url) and has_auth

    def credentials(self, user_type: str = "admin") -> tuple[str, str]:
        """Return ``(username, password)`` for ``admin`` or ``normal``."""
        if user_type not in USER_TYPES:
            raise ConfigurationError(
                f"Unknown user type {user_type!r}; expected one of {USER_TYPES}"
            )
        return (
            getattr(self, f"{user_type}_ms_username"),
            getattr(self, f"{user_type}_ms_password"),
        )

    def has_credentials(self, user_type: str = "admin") -> bool:
        username, password = self.credentials(user_type)
        return bool(username and password)

    def missing(self, keys: tuple[str, ...] = REQUIRED_ENV_KEYS) -> list[str]:
        """Names from ``keys`` that resolve to an empty value."""
        return [k for k in keys if not getattr(self, k.lower(), "")]

    @property
    def viewport(self) -> dict[str, int]:
        return {"width": self.viewport_width, "height": self.viewport_height}


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Build settings, honouring ``ENV_FILE`` when no file is given."""
    env_file = env_file or os.environ.get("ENV_FILE", ".env")
    return Settings(_env_file=env_file)


settings = load_settings()
