"""Dispatch reports: request, download and archive."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path

from loguru import logger
from playwright.sync_api import Locator, Page

from proof360.errors import ReportDownloadError
from proof360.pages.base import BasePage

XLSX_FORMAT = ".xlsx - no images attached"


@dataclass
class ReportRequest:
    name: str
    format: str = XLSX_FORMAT
    extension: str = ".xlsx"

    @classmethod
    def unique(cls, prefix: str = "Automation report") -> "ReportRequest":
        return cls(f"{prefix} {int(time.time())}")


class DispatchReportsPage(BasePage):
    def __init__(self, page: Page):
        super().__init__(page)
        self.create_new = page.get_by_role("button", name="Create new")

    def create_report(self, request: ReportRequest) -> None:
        self.create_new.click()
        self.page.get_by_role("textbox").first.fill(request.name)
        self.page.get_by_text(request.format, exact=True).click()
        self.page.get_by_role("button", name="CONTINUE").click()
        self.page.get_by_role("button", name="Continue to reports").click()
        self.settle()
        logger.info(f"[DispatchReports] requested {request.name!r}")

    def report_row(self, name: str) -> Locator:
        return self.page.get_by_role("row").filter(
            has=self.page.get_by_role("cell", name=name, exact=True)
        )

    def report_status(self, name: str) -> str | None:
        row = self.report_row(name)
        for status in ("Ready", "Processing", "Failed"):
            if row.get_by_text(status, exact=True).count():
                return status
        return None

    def wait_until_ready(self, name: str, timeout: float = 120.0) -> None:
        """Reload until the report row shows Ready.

        Raises:
            RuntimeError: the report failed or did not become ready in time.
        """
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            status = self.report_status(name)
            if status == "Ready":
                return
            if status == "Failed":
                raise RuntimeError(f"Dispatch report {name!r} failed to generate")
            logger.debug(f"[DispatchReports] {name!r} status={status}")
            self.pause(5.0)
            self.page.reload()
            self.settle()
        raise RuntimeError(f"Dispatch report {name!r} not ready after {timeout:.0f}s")

    def download_report(self, name: str, target_dir: str | Path, extension: str = ".xlsx") -> Path:
        """Download the report into ``target_dir`` under the name the app offers.

        Raises:
            ReportDownloadError: the offered name is not ``<name><extension>``.
        """
        expected = f"{name}{extension}"
        with self.page.expect_download() as info:
            self.report_row(name).get_by_role("button", name="Download").click()
        download = info.value
        if download.suggested_filename != expected:
            logger.error(f"[DispatchReports] offered {download.suggested_filename!r}, expected {expected!r}")
            raise ReportDownloadError(expected, download.suggested_filename)
        target = Path(target_dir) / download.suggested_filename
        target.parent.mkdir(parents=True, exist_ok=True)
        download.save_as(target)
        logger.info(f"[DispatchReports] downloaded {target}")
        return target

    def archive_report(self, name: str) -> None:
        self.report_row(name).get_by_role("button", name="Archive").click()
        self.page.get_by_text(f"{name} archived").wait_for(state="visible", timeout=15_000)
        logger.info(f"[DispatchReports] archived {name!r}")
