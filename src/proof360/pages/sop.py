"""Standard operating procedure tab and the dispatch/escalate actions."""

from __future__ import annotations

from loguru import logger
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

from proof360.errors import SopError
from proof360.pages.base import BasePage
from proof360.pages.dashboard import AlertsDashboardPage

SOP_TAB = '[data-test-id="SOP-tab"]'
COMPLETE_TEXT = "Standard operating procedure complete"
ANSWER_YES = 'button:has-text("Yes")'
ANSWER_FALLBACK = '[data-test-id="answer-button"]'
COMPLETION_FALLBACKS = (
    '[data-test-id="sop-complete"]',
    "text=/procedure complete/i",
    '[data-test-id="SOP-tab"] svg[data-icon="check"]',
)

_VISIBLE_JS = """(sel) => {
    const el = document.querySelector(sel);
    if (!el) return false;
    const rect = el.getBoundingClientRect();
    const style = window.getComputedStyle(el);
    return rect.width > 0 && rect.height > 0
        && style.visibility !== 'hidden' && style.display !== 'none'
        && style.opacity !== '0';
}"""


class SopPage(BasePage):
    """The SOP panel of a selected alert."""

    def __init__(self, page: Page):
        super().__init__(page)
        self.tab = page.locator(SOP_TAB)
        self.complete_text = page.get_by_text(COMPLETE_TEXT)
        self.dispatch_button = page.get_by_role("button", name="DISPATCH").last
        self.escalate_button = page.get_by_role("button", name="ESCALATE")

    def open_tab(self) -> None:
        """Open the SOP tab.

        Probes the tab with a style-aware check first because the tab can be
        in the DOM but zero-sized while the panel animates in.
        """
        self.settle()
        try:
            self.page.wait_for_function(_VISIBLE_JS, arg=SOP_TAB, timeout=10_000)
            self.tab.first.click()
            logger.info("[Sop] opened SOP tab")
            return
        except PlaywrightError as e:
            logger.info(f"[Sop] SOP tab probe failed, trying fallbacks: {e}")

        for fallback in (self.tab.first, self.page.locator('text="SOP"').first):
            if self.is_visible(fallback, 5.0):
                fallback.click()
                logger.info("[Sop] opened SOP tab via fallback")
                return
        self.screenshot("test-results/sop-tab-missing.png")
        raise SopError("SOP tab not found")

    def is_complete(self, timeout: float = 1.0) -> bool:
        return self.is_visible(self.complete_text, timeout)

    def answer(self) -> bool:
        """Click the first visible, enabled answer button."""
        for selector in (ANSWER_YES, ANSWER_FALLBACK):
            buttons = self.page.locator(selector)
            for i in range(buttons.count()):
                button = buttons.nth(i)
                if button.is_visible() and button.is_enabled():
                    button.click()
                    return True
        return False

    def complete_and_validate(self, timeout: float = 20.0) -> None:
        """Answer the procedure and check it reports completion.

        Raises:
            SopError: the completion text (or a fallback indicator) never shows.
        """
        self.open_tab()
        if self.is_complete():
            logger.info("[Sop] already complete")
            return
        if not self.answer():
            logger.warning("[Sop] no answer button visible")
        if self.is_complete(timeout):
            logger.info("[Sop] procedure complete")
            return
        for selector in COMPLETION_FALLBACKS:
            if self.is_visible(self.page.locator(selector), 2.0):
                logger.info(f"[Sop] completion confirmed via {selector}")
                return
        self.screenshot("test-results/sop-incomplete.png")
        raise SopError("Standard operating procedure did not complete")

    def dispatch(self) -> None:
        self.dispatch_button.click()
        self.settle()
        logger.info("[Sop] dispatched")

    def escalate(self, timeout: float = 15.0) -> int:
        """Escalate and wait for the Incident stack to empty.

        Lingering cards are logged and screenshotted, not raised.
        Returns the number of cards left.
        """
        self.escalate_button.click()
        self.settle()
        remaining = AlertsDashboardPage(self.page).wait_for_cards_to_leave(timeout)
        if remaining:
            logger.warning(f"[Sop] {remaining} card(s) still on Incident stack after escalate")
            self.screenshot("test-results/escalate-lingering-cards.png")
        else:
            logger.info("[Sop] escalated; Incident stack empty")
        return remaining

