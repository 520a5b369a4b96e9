"""Command page: the Incident/Situation stacks and the stack filter."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional, Sequence

from loguru import logger
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator, Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from proof360.pages.base import BasePage
from proof360.pages.resolution import ResolutionDialog
from proof360.polling import Stack, StackSnapshot, wait_for_stable_count

MANUAL_ALERT = "Manual Alert"
UNUSUAL_BEHAVIOUR = "Unusual Behaviour"
TREX = "Trex"
UB_AND_TREX = (UNUSUAL_BEHAVIOUR, TREX)

EMPTY_TEXTS = ("No Results Found", "Please adjust your search to see results")

SITE_CARD = '[data-test-id="aggregated-site-card"]'
SITE_CARD_NAME = '[data-test-id="aggregated-site-card-name"]'
MANUAL_CARD = '[data-test-id="manual-alert-card"]'
ALERT_CARD = '[data-test-id="alert-card"]'
ANY_CARD = '[data-test-id*="alert-card"], [data-test-id*="site-card"]'
STACK_CONTAINER = '[data-test-id="aggregated-alert-stack"]'
STACK_DROPDOWN = '[testid="events-situations-dropdown"]'
EXPAND_BUTTON = '[data-test-id="site-alert-card-expand-button"]'
FILTER_TRIGGER = '[data-test-id="alert-stack-popover-trigger-button"]'
FILTER_RESET = '[data-test-id="alert-filter-reset-button"]'
FILTER_APPLY = '[data-test-id="alert-filter-apply-button"]'
MODAL_CLOSE = '[data-test-id="modalClose"]'
MODAL_OVERLAY = ".react-aria-ModalOverlay"
SIDEBAR_BACKDROP = ".sidebar-backdrop"
LOADER = ".loader"
ERROR_BANNER = '[role="alert"]:has-text("error")'
WRONG_DISMISS = '[data-test-id="wrongDismiss"]'
RESOLVE_ALL = '//button[normalize-space(.)="RESOLVE ALL"]'
POSITIVE = '//button[normalize-space(.)="POSITIVE"]'


def alert_type_checkbox(alert_type: str) -> str:
    return f'[data-test-id="stack-filter-alert-type-{alert_type}"]'


@dataclass(frozen=True)
class AlertFilter:
    """What the stack filter should show."""

    alert_types: tuple[str, ...]
    site_name: Optional[str] = None

    @property
    def site_prefix(self) -> Optional[str]:
        """First two words of the site name; cards truncate long names."""
        if not self.site_name:
            return None
        return " ".join(self.site_name.split(" ")[:2])


MANUAL_ALERT_FILTER = AlertFilter((MANUAL_ALERT,))


def ub_and_trex_filter(site_name: Optional[str]) -> AlertFilter:
    return AlertFilter(UB_AND_TREX, site_name)


class AlertsDashboardPage(BasePage):
    """The alert stacks on ``/command``."""

    def __init__(self, page: Page):
        super().__init__(page)
        self.stack_dropdown = page.locator(STACK_DROPDOWN)
        self.stack_container = page.locator(STACK_CONTAINER)
        self.site_cards = page.locator(SITE_CARD)
        self.manual_cards = page.locator(MANUAL_CARD)
        self.alert_cards = page.locator(ALERT_CARD)
        self.filter_trigger = page.locator(FILTER_TRIGGER)
        self.filter_reset = page.locator(FILTER_RESET)
        self.filter_apply = page.locator(FILTER_APPLY)
        self.modal_close = page.locator(MODAL_CLOSE)
        self.wrong_dismiss = page.locator(WRONG_DISMISS)
        self.resolve_all_button = page.locator(RESOLVE_ALL)
        self.positive_button = page.locator(POSITIVE)
        self.resolution = ResolutionDialog(page)

    # ------------------------------------------------------------------
    # Stack state
    # ------------------------------------------------------------------

    def matching_alert_cards(self, alert_types: Sequence[str] = ()) -> Locator:
        if not alert_types:
            return self.alert_cards
        selector = ", ".join(f'{ALERT_CARD}:has-text("{t}")' for t in alert_types)
        return self.page.locator(selector)

    def empty_text_visible(self, timeout: float = 0.5) -> bool:
        return any(
            self.is_visible(self.stack_container.get_by_text(text, exact=True), timeout)
            for text in EMPTY_TEXTS
        )

    def snapshot(self, alert_types: Sequence[str] = ()) -> StackSnapshot:
        """Read the current stack without waiting."""
        error_text = None
        banner = self.page.locator(ERROR_BANNER).first
        if banner.is_visible():
            error_text = (banner.text_content() or "").strip() or "error"
        alert_count = self.matching_alert_cards(alert_types).count() if alert_types else 0
        return StackSnapshot(
            site_cards=self.site_cards.count(),
            manual_cards=self.manual_cards.count(),
            alert_cards=alert_count,
            empty_text=self.empty_text_visible(),
            loading=self.page.locator(LOADER).first.is_visible(),
            error_text=error_text,
        )

    def wait_for_alerts_to_render(
        self,
        stack: Stack,
        min_wait: float = 4.0,
        max_wait: float = 5.0,
        interval: float = 1.0,
    ) -> int:
        """Wait for the card count on ``stack`` to stabilise."""
        logger.info(f"[AlertsDashboard] Waiting for alerts to render on {stack.value} stack...")
        loader = self.page.locator(LOADER).first
        if self.is_visible(loader, 0.5):
            try:
                loader.wait_for(state="hidden", timeout=max_wait * 1000)
            except PlaywrightTimeoutError:
                logger.warning("[AlertsDashboard] loader still visible, counting anyway")
        count = wait_for_stable_count(
            lambda: self.page.locator(ANY_CARD).count(),
            min_wait=min_wait,
            max_wait=max_wait,
            interval=interval,
            sleep=self.pause,
            label=stack.value,
        )
        self.settle(5.0)
        return count

    # ------------------------------------------------------------------
    # Stack switching
    # ------------------------------------------------------------------

    def current_stack(self) -> Optional[Stack]:
        """The dropdown names the stack you would switch *to*."""
        for stack in Stack:
            if self.is_visible(self.stack_dropdown.filter(has_text=stack.other().value), 0.5):
                return stack
        return None

    def switch_to(self, stack: Stack, attempts: int = 3) -> bool:
        """Switch to ``stack``; True once the dropdown label has flipped."""
        if self.current_stack() is stack:
            return True
        toggle = self.stack_dropdown.filter(has_text=stack.value)
        self.dismiss_overlays(timeout=8.0)
        if not self.is_visible(toggle, 5.0):
            logger.warning(f"[AlertsDashboard] stack toggle for {stack.value} not visible")
            return False
        for attempt in range(1, attempts + 1):
            if attempt > 1 and self.current_stack() is stack:
                return True
            try:
                toggle.click()
                self.settle()
                if self.is_visible(self.stack_dropdown.filter(has_text=stack.other().value), 2.0):
                    logger.info(f"[AlertsDashboard] Switched to {stack.value} stack")
                    return True
            except PlaywrightError as e:
                logger.info(
                    f"[AlertsDashboard] Retry {attempt}/{attempts} switching to {stack.value}: {e}"
                )
                self.dismiss_overlays(timeout=3.0)
                self.pause(0.3)
        logger.warning(f"[AlertsDashboard] Could not confidently switch to {stack.value}; continuing")
        return False

    # ------------------------------------------------------------------
    # Stack filter
    # ------------------------------------------------------------------

    def filter_open(self) -> bool:
        return self.is_visible(self.filter_reset, 0.5)

    def open_filter(self) -> None:
        if self.filter_open():
            return
        backdrop = self.page.locator(SIDEBAR_BACKDROP)
        if self.is_visible(backdrop, 1.0):
            backdrop.click()
            self.pause(0.5)
        self.filter_trigger.click(timeout=15_000)
        self.filter_reset.wait_for(state="visible", timeout=10_000)
        self.pause(0.3)

    def close_filter(self) -> None:
        if self.is_visible(self.modal_close, 1.0):
            try:
                self.modal_close.click()
            except PlaywrightError:
                self.page.keyboard.press("Escape")
        else:
            self.page.keyboard.press("Escape")
        self.pause(0.5)
        if self.is_visible(self.page.locator(MODAL_OVERLAY), 1.0):
            self.page.keyboard.press("Escape")
            self.pause(0.3)

    def click_apply(self) -> None:
        try:
            self.filter_apply.click(timeout=5_000)
        except PlaywrightError as e:
            logger.info(f"[AlertsDashboard] Apply click failed, using DOM click: {e}")
            self.page.evaluate(
                """(sel) => {
                    const btn = document.querySelector(sel);
                    if (btn instanceof HTMLElement) btn.click();
                }""",
                FILTER_APPLY,
            )

    def filter_checked(self, alert_type: str) -> bool:
        """Checkbox state inside the open filter modal."""
        return bool(self.page.evaluate(
            """(sel) => {
                const el = document.querySelector(sel);
                if (!el) return false;
                if (el instanceof HTMLInputElement) return el.checked;
                const input = el.querySelector('input[type="checkbox"]');
                if (input instanceof HTMLInputElement) return input.checked;
                return (el.getAttribute('aria-checked') || '').toLowerCase() === 'true';
            }""",
            alert_type_checkbox(alert_type),
        ))

    def toggle_alert_type(self, alert_type: str) -> None:
        selector = alert_type_checkbox(alert_type)
        try:
            self.page.locator(f"label:has({selector})").click(timeout=5_000)
        except PlaywrightError:
            logger.info(f"[AlertsDashboard] {alert_type} label click failed, forcing checkbox")
            self.page.locator(selector).click(force=True)

    def reset_filter(self) -> None:
        """Reset the stack filter so every alert type shows."""
        logger.info("[AlertsDashboard] Resetting alert filter...")
        self.settle()
        self.open_filter()
        self.filter_reset.click()
        self.pause(0.5)
        self.click_apply()
        self.close_filter()
        self.settle()

    def apply_filter(self, alert_filter: AlertFilter) -> None:
        """Filter the stack to ``alert_filter`` and wait briefly for results."""
        logger.info(
            f"[AlertsDashboard] Applying filter {list(alert_filter.alert_types)} "
            f"site={alert_filter.site_name!r}"
        )
        self.open_filter()
        if alert_filter.site_name:
            search = self.page.get_by_placeholder("Search by site name")
            search.fill(alert_filter.site_name)
            search.press("Enter")
            self.pause(0.3)
        for alert_type in alert_filter.alert_types:
            if not self.filter_checked(alert_type):
                self.toggle_alert_type(alert_type)
        self.click_apply()
        self.close_filter()

        prefix = alert_filter.site_prefix
        for _ in range(6):
            if prefix and self.is_visible(
                self.page.locator(SITE_CARD_NAME).filter(has_text=prefix), 0.3
            ):
                break
            if self.is_visible(self.page.get_by_text(EMPTY_TEXTS[0]), 0.3):
                break
            if not prefix and self.site_cards.count() > 0:
                break
            self.pause(0.5)
        self.settle()

    def ensure_filters_applied(
        self, alert_types: Sequence[str] = UB_AND_TREX, max_retries: int = 3
    ) -> bool:
        """Re-open the filter and re-tick anything the app dropped."""
        for attempt in range(1, max_retries + 1):
            logger.info(f"[AlertsDashboard] Filter verification attempt {attempt}/{max_retries}")
            try:
                self.page.keyboard.press("Escape")
                self.open_filter()
                unchecked = [t for t in alert_types if not self.filter_checked(t)]
                if not unchecked:
                    self.close_filter()
                    logger.info(f"[AlertsDashboard] Filters confirmed: {list(alert_types)}")
                    return True
                for alert_type in unchecked:
                    self.toggle_alert_type(alert_type)
                self.click_apply()
                self.close_filter()
                self.pause(0.8)
            except PlaywrightError as e:
                logger.warning(f"[AlertsDashboard] Filter verification attempt {attempt} failed: {e}")
                self.pause(1.0)
        logger.warning("[AlertsDashboard] Filter persistence not confirmed")
        return False

    # ------------------------------------------------------------------
    # Card selection and actions
    # ------------------------------------------------------------------

    def site_card(self, site_name: str) -> Locator:
        return self.site_cards.filter(
            has=self.page.locator(SITE_CARD_NAME).filter(has_text=site_name)
        ).first

    def select_site_card(
        self, site_name: Optional[str] = None, require_text: Optional[str] = None
    ) -> bool:
        """Click a parent site card.

        Tries the full site name, then its first two words, then any card
        containing ``require_text``, then the first card.
        """
        candidates: list[tuple[str, Locator]] = []
        if site_name:
            candidates.append(("exact name", self.site_card(site_name)))
            prefix = AlertFilter((), site_name).site_prefix
            candidates.append(("partial name", self.site_cards.filter(has_text=prefix).first))
        if require_text:
            candidates.append((f"text {require_text!r}", self.site_cards.filter(has_text=require_text).first))
        candidates.append(("first available", self.site_cards.first))

        for label, card in candidates:
            if self.is_visible(card, 5.0 if label != "first available" else 3.0):
                card.click()
                self.settle()
                logger.info(f"[AlertsDashboard] Selected site card by {label}")
                return True
        logger.warning(f"[AlertsDashboard] No site card found for {site_name!r}")
        return False

    def expand_and_select_alert(
        self, site_name: Optional[str] = None, alert_types: Sequence[str] = ()
    ) -> None:
        """Open a site card, expand it and click one child alert card.

        Prefers cards of ``alert_types`` in order, then any alert card.
        Raises Playwright's TimeoutError when no card appears.
        """
        self.settle(30.0)
        self.pause(3.0)
        prefix = AlertFilter((), site_name).site_prefix
        if prefix:
            parent = self.site_cards.filter(
                has=self.page.locator(SITE_CARD_NAME).filter(has_text=prefix)
            ).first
        else:
            parent = self.site_cards.first
        parent.wait_for(state="visible", timeout=10_000)
        parent.click()
        expand = parent.locator(EXPAND_BUTTON)
        expand.wait_for(state="visible", timeout=10_000)
        expand.click()
        self.pause(1.0)

        card: Optional[Locator] = None
        for alert_type in alert_types:
            candidate = self.alert_cards.filter(has_text=alert_type).first
            if self.is_visible(candidate, 2.0):
                card = candidate
                logger.info(f"[AlertsDashboard] Found {alert_type} alert card")
                break
        if card is None:
            card = self.manual_cards.first if not alert_types else self.alert_cards.first
        card.wait_for(state="visible", timeout=10_000)
        card.click()

    def dismiss_selected(self) -> bool:
        """Dismiss the selected group; False when dismiss is not offered."""
        if not self.is_visible(self.wrong_dismiss, 2.0):
            return False
        self.wrong_dismiss.click(force=True)
        self.settle()
        return True

    def resolve_all(self) -> None:
        """RESOLVE ALL, then POSITIVE if offered, else the outcome dialog."""
        self.resolve_all_button.click(force=True)
        self.settle()
        if self.is_visible(self.positive_button, 2.0):
            self.positive_button.click(force=True)
            self.settle()
        else:
            self.resolution.complete()

    def stack_heading_visible(self, stack: Stack, timeout: float = 15.0) -> bool:
        return self.is_visible(
            self.page.get_by_role("heading", name=f"{stack.value} Stack"), timeout
        )

    def card_count(self) -> int:
        return self.page.locator(f"{ANY_CARD}, {MANUAL_CARD}").count()

    def wait_for_cards_to_leave(self, timeout: float = 15.0) -> int:
        """Poll every 0.5s until no card is left; returns what remains."""
        deadline = time.monotonic() + timeout
        remaining = self.card_count()
        while remaining > 0 and time.monotonic() < deadline:
            self.pause(0.5)
            remaining = self.card_count()
        return remaining
