"""Unit tests for artifact cleanup and failure capture."""
from __future__ import annotations

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from playwright.sync_api import Error as PlaywrightError

from proof360.artifacts import ArtifactsCleanup, capture_failure_artifacts, failure_dir_name

pytestmark = pytest.mark.unit


class TestArtifactsCleanup:
    def test_creates_missing_directories(self, tmp_path):
        ArtifactsCleanup(tmp_path).cleanup()
        assert (tmp_path / "test-failures").is_dir()
        assert (tmp_path / "test-results").is_dir()

    def test_empties_existing_directories(self, tmp_path):
        old = tmp_path / "test-failures" / "case_1"
        old.mkdir(parents=True)
        (old / "failure-screenshot.png").write_bytes(b"png")
        (tmp_path / "test-results").mkdir()
        (tmp_path / "test-results" / "trace.zip").write_bytes(b"zip")

        ArtifactsCleanup(tmp_path).cleanup()
        assert list((tmp_path / "test-failures").iterdir()) == []
        assert list((tmp_path / "test-results").iterdir()) == []

    def test_summary_ignores_last_run_file(self, tmp_path):
        results = tmp_path / "test-results"
        results.mkdir()
        (results / ".last-run.json").write_text("{}")
        (results / "trace.zip").write_bytes(b"")
        summary = ArtifactsCleanup(tmp_path).display_summary()
        assert summary["test-results"] == {"exists": True, "count": 1, "items": ["trace.zip"]}
        assert summary["test-failures"]["exists"] is False
        assert summary["test-failures"]["count"] == 0


def test_failure_dir_name_is_filesystem_safe():
    when = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
    name = failure_dir_name("cleanup leaves stacks empty [uat]", when)
    assert name == "cleanup_leaves_stacks_empty__uat__2024-01-02T03-04-05-678+00-00"


def make_page() -> MagicMock:
    page = MagicMock()
    page.url = "https://uat.proof360.io/command"
    page.viewport_size = {"width": 1920, "height": 1080}
    page.content.return_value = "<html><body>stack</body></html>"
    page.evaluate.return_value = "Mozilla/5.0"
    page.locator.return_value.aria_snapshot.return_value = "- main:\n  - heading \"Incident Stack\""
    return page


class TestCaptureFailureArtifacts:
    def test_writes_all_artifacts(self, tmp_path):
        page = make_page()
        out = capture_failure_artifacts(page, "test_cleanup", ["AssertionError: 2 cards"],
                                        "tests/e2e/test_stack_cleanup.py", root=tmp_path)
        assert out.parent == tmp_path / "test-failures"
        assert out.name.startswith("test_cleanup_")
        page.screenshot.assert_called_once_with(path=str(out / "failure-screenshot.png"), full_page=True)
        assert (out / "page-content.html").read_text() == "<html><body>stack</body></html>"
        info = json.loads((out / "failure-info.json").read_text())
        assert info["testTitle"] == "test_cleanup"
        assert info["pageUrl"] == "https://uat.proof360.io/command"
        assert info["userAgent"] == "Mozilla/5.0"
        assert info["errors"] == ["AssertionError: 2 cards"]
        assert "Incident Stack" in (out / "accessibility-snapshot.yml").read_text()

    def test_page_errors_do_not_raise(self, tmp_path):
        page = make_page()
        page.screenshot.side_effect = PlaywrightError("Target closed")
        out = capture_failure_artifacts(page, "closed page", root=tmp_path)
        assert out.is_dir()
        assert not (out / "page-content.html").exists()

    def test_snapshot_failure_keeps_other_artifacts(self, tmp_path):
        page = make_page()
        page.locator.return_value.aria_snapshot.side_effect = PlaywrightError("detached")
        out = capture_failure_artifacts(page, "no aria", root=tmp_path)
        assert (out / "failure-info.json").exists()
        assert not (out / "accessibility-snapshot.yml").exists()
