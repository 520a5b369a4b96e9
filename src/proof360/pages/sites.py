"""Sites page: raising manual alerts."""

from __future__ import annotations

from loguru import logger
from playwright.sync_api import Page

from proof360.pages.base import BasePage

SEARCH_TOGGLE = '[data-test-id="search-toggle"]'
SEARCH_INPUT = '[data-test-id="search-input"]'
CREATE_ALERT = '[data-test-id="createAlertSiteBtn"]'


class SitesPage(BasePage):
    def __init__(self, page: Page):
        super().__init__(page)
        self.search_toggle = page.locator(SEARCH_TOGGLE)
        self.search_input = page.locator(SEARCH_INPUT)
        self.create_alert_button = page.locator(CREATE_ALERT)

    def search(self, site_name: str) -> None:
        if not self.is_visible(self.search_input, 1.0):
            self.search_toggle.click()
        self.search_input.fill(site_name)
        self.settle()

    def create_manual_alert(self, site_name: str) -> None:
        """Raise a manual alert on ``site_name``.

        Picks the first alert type offered in the dialog.
        """
        self.search(site_name)
        self.page.get_by_text(site_name).first.click()
        self.create_alert_button.first.click()
        self.page.locator('input[type="radio"]').first.check(force=True)
        self.page.get_by_role("button", name="Create", exact=True).click()
        self.settle()
        logger.info(f"[Sites] created manual alert for {site_name}")
