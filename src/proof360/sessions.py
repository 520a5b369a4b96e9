"""Persisted browser sessions, so each run logs in at most once per user.

Two files per user type live in the state directory:
``userStorageState_<type>.json`` (Playwright storage state) and
``sessionValidity_<type>.json`` (when the state was saved).
"""

from __future__ import annotations

import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from loguru import logger
from playwright.sync_api import Playwright

from proof360.artifacts import ArtifactsCleanup
from proof360.config import USER_TYPES, Settings
from proof360.pages.login import LoginPage


class SessionManager:
    def __init__(
        self,
        user_type: str = "admin",
        state_dir: str | Path = ".",
        validity: float = 30 * 60,
        refresh_after: float = 20 * 60,
        clock: Callable[[], float] = time.time,
    ):
        self.user_type = user_type
        self.state_dir = Path(state_dir)
        self.storage_state_path = self.state_dir / f"userStorageState_{user_type}.json"
        self.validity_path = self.state_dir / f"sessionValidity_{user_type}.json"
        self.validity = validity
        self.refresh_after = refresh_after
        self.clock = clock

    @classmethod
    def from_settings(cls, user_type: str, settings: Settings) -> "SessionManager":
        return cls(
            user_type,
            settings.state_dir,
            validity=settings.session_validity_minutes * 60,
            refresh_after=settings.session_refresh_minutes * 60,
        )

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def _age_seconds(self) -> float:
        data = json.loads(self.validity_path.read_text(encoding="utf-8"))
        return (self._now_ms() - data["timestamp"]) / 1000

    def has_valid_session(self) -> bool:
        tag = f"[SessionManager-{self.user_type}]"
        try:
            if not self.storage_state_path.exists():
                logger.info(f"{tag} No storage state file found")
                return False
            if not self.validity_path.exists():
                logger.info(f"{tag} No session validity file found")
                return False
            if self._age_seconds() > self.validity:
                logger.info(f"{tag} Session expired")
                return False
            state = json.loads(self.storage_state_path.read_text(encoding="utf-8"))
            if not state.get("cookies") or not isinstance(state.get("origins"), list):
                logger.info(f"{tag} Invalid storage state structure")
                return False
        except (OSError, ValueError, KeyError) as e:
            logger.info(f"{tag} Error checking session validity: {e}")
            return False
        logger.info(f"{tag} Valid session found")
        return True

    def mark_session_valid(self) -> None:
        data = {
            "timestamp": self._now_ms(),
            "created": datetime.now(timezone.utc).isoformat(),
            "userType": self.user_type,
        }
        try:
            self.validity_path.parent.mkdir(parents=True, exist_ok=True)
            self.validity_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            logger.info(f"[SessionManager-{self.user_type}] Session marked as valid")
        except OSError as e:
            logger.warning(f"[SessionManager-{self.user_type}] Error marking session as valid: {e}")

    def extend_session(self) -> None:
        if not self.validity_path.exists():
            return
        try:
            data = json.loads(self.validity_path.read_text(encoding="utf-8"))
            data["timestamp"] = self._now_ms()
            data["lastExtended"] = datetime.now(timezone.utc).isoformat()
            self.validity_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            logger.info(f"[SessionManager-{self.user_type}] Session extended")
        except (OSError, ValueError) as e:
            logger.warning(f"[SessionManager-{self.user_type}] Error extending session: {e}")

    def needs_refresh(self) -> bool:
        try:
            return self._age_seconds() > self.refresh_after
        except (OSError, ValueError, KeyError):
            return True

    def clear_session(self) -> None:
        for path in (self.storage_state_path, self.validity_path):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"[SessionManager-{self.user_type}] Error removing {path}: {e}")
        logger.info(f"[SessionManager-{self.user_type}] Session cleared")


def _login_and_save(playwright: Playwright, settings: Settings, user_type: str) -> None:
    manager = SessionManager.from_settings(user_type, settings)
    if manager.has_valid_session():
        logger.info(f"[GlobalSetup] Valid {user_type} session found, skipping login")
        return
    username, password = settings.credentials(user_type)
    if not (username and password):
        logger.info(f"[GlobalSetup] No credentials for {user_type} user, skipping setup")
        return

    logger.info(f"[GlobalSetup] No valid {user_type} session found, performing login...")
    browser = playwright.chromium.launch(headless=settings.headless)
    context = browser.new_context(base_url=settings.base_url, viewport=settings.viewport)
    page = context.new_page()
    try:
        LoginPage(page, settings.base_url).login(username, password)
        page.wait_for_url("**/command**", timeout=60_000)
        manager.state_dir.mkdir(parents=True, exist_ok=True)
        context.storage_state(path=str(manager.storage_state_path))
        manager.mark_session_valid()
        logger.info(f"[GlobalSetup] {user_type} storage state saved")
    except Exception as e:
        logger.error(f"[GlobalSetup] {user_type} login failed: {e}")
        LoginPage(page).screenshot(
            Path(settings.artifacts_root) / f"debug-global-setup-{user_type}-login-failed.png"
        )
        if user_type == "admin":
            raise
    finally:
        browser.close()


def prepare_sessions(
    settings: Settings,
    playwright: Playwright,
    user_types: tuple[str, ...] = USER_TYPES,
    cleanup: Optional[ArtifactsCleanup] = None,
) -> None:
    """Run-wide setup: clean old artifacts, then log in each user type.

    The admin login is required; a failed normal-user login is only logged.
    """
    logger.info("[GlobalSetup] Starting global setup...")
    try:
        (cleanup or ArtifactsCleanup(settings.artifacts_root)).cleanup()
    except OSError as e:
        logger.warning(f"[GlobalSetup] Cleanup failed, continuing with setup: {e}")
    for user_type in user_types:
        _login_and_save(playwright, settings, user_type)
    logger.info("[GlobalSetup] Global setup completed")
