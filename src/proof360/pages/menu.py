"""Side menu navigation."""

from __future__ import annotations

from loguru import logger
from playwright.sync_api import Page

from proof360.pages.base import BasePage

BURGER = '[data-test-id="burger-menu-button"]'

MENU_ITEMS = {
    "Command": '[data-test-id="command"]',
    "History": '[data-test-id="history"]',
    "Proof View": '[data-test-id="proof-view"]',
    "Sites": '[data-test-id="sites"]',
    "Metrics": '[data-test-id="metrics"]',
    "Reports": '[data-test-id="sidebaritem-reports"]',
    "Configurations": '[data-test-id="configurations"]',
}

CONFIGURATION_ITEMS = {
    "Area Management": '[data-test-id="area-management"]',
    "Company Management": '[data-test-id="company-management"]',
    "Site Management": '[data-test-id="site-management"]',
    "User Management": '[data-test-id="user-management"]',
    "Role Management": '[data-test-id="role-management"]',
    "Telegram Management": '[data-test-id="telegram-management"]',
    "Suppression Management": '[data-test-id="suppression-management"]',
}

REPORT_ITEMS = {
    "Alert Reports": '[data-test-id="sidebaritem-alert-reports"]',
    "Dispatch Reports": "text=Dispatch Reports",
}


def _lookup(items: dict[str, str], name: str, kind: str) -> str:
    try:
        return items[name]
    except KeyError:
        raise ValueError(f"Unknown {kind} {name!r}; expected one of {sorted(items)}") from None


class MenuPage(BasePage):
    def __init__(self, page: Page):
        super().__init__(page)
        self.burger = page.locator(BURGER)

    def open_menu(self) -> None:
        self.dismiss_overlays(timeout=5.0)
        self.burger.click()
        self.pause(0.5)

    def navigate_to(self, menu: str) -> None:
        selector = _lookup(MENU_ITEMS, menu, "menu")
        self.open_menu()
        self.page.locator(selector).first.click()
        self.settle()
        logger.info(f"[Menu] navigated to {menu}")

    def navigate_to_configuration(self, submenu: str) -> None:
        selector = _lookup(CONFIGURATION_ITEMS, submenu, "configuration submenu")
        self.navigate_to("Configurations")
        self.page.locator(selector).first.click()
        self.settle()
        logger.info(f"[Menu] navigated to Configurations > {submenu}")

    def navigate_to_reports(self, submenu: str) -> None:
        selector = _lookup(REPORT_ITEMS, submenu, "reports submenu")
        self.navigate_to("Reports")
        self.page.locator(selector).first.click()
        self.settle()
        logger.info(f"[Menu] navigated to Reports > {submenu}")
