"""Shared behaviour for Proof360 page objects."""

from __future__ import annotations

import re
import time
from pathlib import Path

from loguru import logger
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator, Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

DIALOG = '[role="dialog"]'
ACTIVE_MODAL = '[role="dialog"][aria-modal="true"]'
_CLOSE_NAMES = re.compile(r"^(Close|Cancel|Dismiss)$", re.I)


class BasePage:
    """Wraps a Playwright page with the tolerant waits the suite relies on."""

    def __init__(self, page: Page):
        self.page = page

    def is_visible(self, locator: Locator, timeout: float = 1.0) -> bool:
        """True if ``locator`` becomes visible within ``timeout`` seconds."""
        try:
            locator.first.wait_for(state="visible", timeout=timeout * 1000)
            return True
        except (PlaywrightTimeoutError, PlaywrightError):
            return False

    def settle(self, timeout: float = 15.0) -> None:
        """Wait for network idle; a busy page is not an error."""
        try:
            self.page.wait_for_load_state("networkidle", timeout=timeout * 1000)
        except PlaywrightTimeoutError:
            logger.debug(f"[Page] network not idle after {timeout:.0f}s, continuing")

    def pause(self, seconds: float) -> None:
        self.page.wait_for_timeout(seconds * 1000)

    def screenshot(self, path: str | Path) -> str | None:
        """Full-page screenshot; returns the path or None if it failed."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self.page.screenshot(path=str(path), full_page=True)
            return str(path)
        except PlaywrightError as e:
            logger.warning(f"[Page] screenshot {path} failed: {e}")
            return None

    def any_dialog_visible(self) -> bool:
        dialogs = self.page.locator(DIALOG)
        for i in range(dialogs.count()):
            if dialogs.nth(i).is_visible():
                return True
        return False

    def dismiss_overlays(self, timeout: float = 15.0) -> bool:
        """Close any visible dialog or overlay that would intercept clicks.

        Tries a Close/Cancel/Dismiss button in the active modal, then
        Escape, then a click on a neutral spot, until nothing is visible
        or ``timeout`` runs out. Returns True when the page is clear.
        """
        active = self.page.locator(ACTIVE_MODAL).first
        dialogs = self.page.locator(DIALOG)
        main = self.page.locator('main, [role="main"]').first
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if not self.any_dialog_visible():
                return True
            container = active if active.is_visible() else dialogs.first
            close = container.get_by_role("button", name=_CLOSE_NAMES).first
            try:
                if close.is_visible():
                    close.click(force=True)
                else:
                    self.page.keyboard.press("Escape")
                self.page.wait_for_timeout(200)
                if main.is_visible():
                    main.click(position={"x": 5, "y": 5})
                else:
                    self.page.mouse.click(10, 10)
            except PlaywrightError as e:
                logger.debug(f"[Page] overlay dismissal step failed: {e}")
            self.page.wait_for_timeout(250)
        logger.warning("[Page] overlay may still be present after timeout; proceeding")
        return False
