"""The multi-step outcome dialog shown after RESOLVE ALL."""

from __future__ import annotations

import re

from loguru import logger
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator, Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from proof360.pages.base import ACTIVE_MODAL, DIALOG, BasePage

_OPTION_SELECTORS = (
    '[role="radio"]',
    '[role="option"]',
    '[role="menuitemradio"]',
    "button",
    '[role="button"]',
    '[tabindex]:not([tabindex="-1"])',
)
_NAVIGATION = re.compile(r"^(Back|Cancel|Close|Resolve All|Next|Previous)$", re.I)
_RESOLVE = re.compile(r"^Resolve$", re.I)

MAX_STEPS = 6
MIN_STEPS_BEFORE_RESOLVE = 3


class ResolutionDialog(BasePage):
    """Walk the resolution dialog to the final Resolve button."""

    def __init__(self, page: Page):
        super().__init__(page)
        self.dialog = page.locator(DIALOG).first

    def active_dialog(self) -> Locator:
        """The aria-modal dialog if one is open, else the first dialog."""
        modal = self.page.locator(ACTIVE_MODAL).first
        if modal.count():
            return modal
        return self.page.locator(DIALOG).first

    def resolve_button(self) -> Locator:
        return self.dialog.get_by_role("button", name=_RESOLVE).first

    def next_option(self) -> Locator | None:
        """First visible, enabled, non-navigation option in the dialog."""
        for selector in _OPTION_SELECTORS:
            candidates = self.dialog.locator(selector)
            for i in range(candidates.count()):
                option = candidates.nth(i)
                try:
                    if not option.is_visible() or not option.is_enabled():
                        continue
                    label = (option.text_content() or "").strip()
                except PlaywrightError:
                    continue
                if not label or _NAVIGATION.match(label) or _RESOLVE.match(label):
                    continue
                return option
        return None

    def last_action_button(self) -> Locator | None:
        buttons = self.dialog.get_by_role("button")
        for i in reversed(range(buttons.count())):
            button = buttons.nth(i)
            label = (button.text_content() or "").strip()
            if button.is_visible() and label and not _NAVIGATION.match(label):
                return button
        return None

    def complete(self) -> None:
        """Select outcome options until Resolve is offered, then resolve.

        Raises Playwright's TimeoutError when the dialog never appears.
        """
        self.dialog = self.active_dialog()
        self.dialog.wait_for(state="visible", timeout=10_000)
        steps = 0
        while steps < MAX_STEPS:
            if steps >= MIN_STEPS_BEFORE_RESOLVE and self.is_visible(self.resolve_button(), 0.5):
                break
            option = self.next_option()
            if option is None:
                break
            option.click()
            steps += 1
            logger.info(f"[Resolution] selected option {steps}")
            self.pause(0.5)

        button = self.resolve_button()
        if not self.is_visible(button, 2.0):
            button = self.last_action_button()
        if button is None:
            logger.warning("[Resolution] no resolve button found; closing dialog")
            self.dismiss_overlays(timeout=5.0)
            return
        button.click()
        try:
            self.dialog.wait_for(state="hidden", timeout=20_000)
        except PlaywrightTimeoutError:
            logger.warning("[Resolution] dialog still visible after resolve")
        self.settle()
        self.dismiss_overlays(timeout=5.0)
