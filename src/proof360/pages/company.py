"""Company selector in the app header."""

from __future__ import annotations

from typing import Optional

from loguru import logger
from playwright.sync_api import Page

from proof360.pages.base import BasePage

SELECTED_COMPANY = '[data-test-id="selected-company"]'
COMPANY_SEARCH = '[data-test-id="company-search-input"]'


class CompanyPage(BasePage):
    def __init__(self, page: Page):
        super().__init__(page)
        self.selector = page.locator(SELECTED_COMPANY)

    def selected_company(self) -> Optional[str]:
        if not self.is_visible(self.selector, 5.0):
            return None
        return (self.selector.first.text_content() or "").strip() or None

    def select_company(self, name: str, force: bool = False) -> bool:
        """Switch to ``name``; returns False when it was already selected."""
        current = self.selected_company()
        if current == name and not force:
            logger.info(f"[Company] {name} already selected")
            return False
        self.selector.first.click()
        search = self.page.locator(COMPANY_SEARCH)
        if self.is_visible(search, 2.0):
            search.fill(name)
        self.page.get_by_text(name, exact=True).first.click()
        self.settle()
        self.selector.filter(has_text=name).first.wait_for(state="visible", timeout=15_000)
        logger.info(f"[Company] selected {name} (was {current!r})")
        return True
