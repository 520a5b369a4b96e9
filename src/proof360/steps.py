"""Reusable scenario steps built from the page objects and the workflow."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional, TypeVar

from loguru import logger
from playwright.sync_api import Page

from proof360.config import Settings
from proof360.pages import (
    AlertsDashboardPage,
    CompanyPage,
    DispatchReportsPage,
    LoginFlow,
    LoginPage,
    MenuPage,
    ReportRequest,
    SitesPage,
    SopPage,
)
from proof360.pages.dashboard import MANUAL_ALERT, MANUAL_ALERT_FILTER
from proof360.polling import Stack, retry
from proof360.workflow import CleanupReport, StackCleanupWorkflow

T = TypeVar("T")


class SharedSteps:
    """Steps shared across the browser scenarios."""

    def __init__(self, page: Page, settings: Settings):
        self.page = page
        self.settings = settings
        self.login_page = LoginPage(page, settings.base_url)
        self.company = CompanyPage(page)
        self.menu = MenuPage(page)
        self.sites = SitesPage(page)
        self.dashboard = AlertsDashboardPage(page)
        self.sop = SopPage(page)
        self.reports = DispatchReportsPage(page)
        self.workflow = StackCleanupWorkflow(
            self.dashboard,
            self.sop,
            screenshot_dir=Path(settings.artifacts_root) / "test-results",
        )

    # Session -----------------------------------------------------------

    def is_logged_in(self) -> bool:
        return self.login_page.is_logged_in()

    def authenticate(self, user_type: str = "admin") -> LoginFlow:
        username, password = self.settings.credentials(user_type)
        return self.login_page.login(username, password)

    def select_company(self, name: Optional[str] = None, force: bool = False) -> bool:
        return self.company.select_company(name or self.settings.test_company, force)

    def navigate(self, menu: str) -> None:
        self.menu.navigate_to(menu)

    # Alerts ------------------------------------------------------------

    def create_manual_alert(self, site_name: Optional[str] = None) -> None:
        self.navigate("Sites")
        self.sites.create_manual_alert(site_name or self.settings.manual_alert_site)

    def filter_manual_alerts(self) -> None:
        self.navigate("Command")
        self.dashboard.switch_to(Stack.INCIDENT)
        self.dashboard.reset_filter()
        self.dashboard.apply_filter(MANUAL_ALERT_FILTER)

    def select_manual_alert(self, site_name: Optional[str] = None) -> None:
        site = site_name or self.settings.manual_alert_site
        if not self.dashboard.select_site_card(site, require_text=MANUAL_ALERT):
            raise AssertionError(f"No manual alert card for {site} on the Incident stack")

    def complete_sop(self) -> None:
        self.sop.complete_and_validate()

    def dispatch(self) -> None:
        self.sop.dispatch()

    def escalate(self) -> int:
        return self.sop.escalate()

    # Cleanup -----------------------------------------------------------

    def cleanup_manual_alerts(self) -> CleanupReport:
        self.navigate("Command")
        return self.workflow.clean_manual_alerts()

    def cleanup_ub_and_trex(self, site_name: str) -> CleanupReport:
        """Clean UB/Trex alerts for ``site_name``, retrying the whole pass once."""
        if not site_name:
            raise ValueError("site_name is required for UB/Trex cleanup")

        def attempt() -> CleanupReport:
            self.navigate("Command")
            return self.workflow.clean_ub_and_trex(site_name)

        return retry(
            attempt,
            f"UB/Trex cleanup for {site_name}",
            attempts=2,
            base_delay=2.0,
            sleep=self.dashboard.pause,
            on_failure=lambda attempt_no, error: self.dashboard.screenshot(
                Path(self.settings.artifacts_root) / "test-results" / "ub-trex-cleanup-retry.png"
            ),
        )

    # Composite flows ---------------------------------------------------

    def alert_creation_workflow(self, site_name: Optional[str] = None) -> None:
        """Create a manual alert and select it on the Incident stack."""
        self.select_company()
        self.create_manual_alert(site_name)
        self.filter_manual_alerts()
        self.dashboard.wait_for_alerts_to_render(Stack.INCIDENT)
        self.select_manual_alert(site_name)

    def workflow_with_cleanup(self, steps: Callable[["SharedSteps"], T]) -> T:
        """Run ``steps`` and always clean manual alerts afterwards."""
        try:
            return steps(self)
        finally:
            try:
                self.cleanup_manual_alerts()
            except Exception as e:
                logger.warning(f"[Steps] cleanup after workflow failed: {e}")

    # Dispatch reports --------------------------------------------------

    def open_dispatch_reports(self) -> None:
        self.menu.navigate_to_reports("Dispatch Reports")

    def create_dispatch_report(self, request: Optional[ReportRequest] = None) -> ReportRequest:
        request = request or ReportRequest.unique()
        self.open_dispatch_reports()
        self.reports.create_report(request)
        self.reports.wait_until_ready(request.name)
        return request

    def download_dispatch_report(self, request: ReportRequest, target_dir: str | Path) -> Path:
        return self.reports.download_report(request.name, target_dir, request.extension)
