"""Test artifact directories and failure captures."""

from __future__ import annotations

import json
import re
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

FAILURES_DIR = "test-failures"
RESULTS_DIR = "test-results"
IGNORED_ENTRIES = {".last-run.json"}


class ArtifactsCleanup:
    """Empties ``test-failures/`` and ``test-results/`` before a run."""

    def __init__(self, root: str | Path = "."):
        self.root = Path(root)
        self.directories = {
            FAILURES_DIR: self.root / FAILURES_DIR,
            RESULTS_DIR: self.root / RESULTS_DIR,
        }

    def clean_directory(self, path: Path, name: str) -> None:
        if path.exists():
            count = sum(1 for _ in path.iterdir())
            if count:
                logger.info(f"[Cleanup] Removing {count} items from {name}...")
                shutil.rmtree(path)
            else:
                logger.info(f"[Cleanup] {name} directory already empty")
        else:
            logger.info(f"[Cleanup] {name} directory doesn't exist, skipping")
        path.mkdir(parents=True, exist_ok=True)

    def cleanup(self) -> None:
        """Raises OSError when a directory cannot be removed."""
        logger.info("[Cleanup] Starting test artifacts cleanup...")
        for name, path in self.directories.items():
            self.clean_directory(path, name)
        logger.info("[Cleanup] Test artifacts cleanup completed")

    def summary(self) -> dict[str, dict]:
        result = {}
        for name, path in self.directories.items():
            items = []
            if path.exists():
                items = sorted(p.name for p in path.iterdir() if p.name not in IGNORED_ENTRIES)
            result[name] = {"exists": path.exists(), "count": len(items), "items": items}
        return result

    def display_summary(self) -> dict[str, dict]:
        summary = self.summary()
        logger.info("[Cleanup] Artifact directories status:")
        for name, info in summary.items():
            logger.info(f"[Cleanup]   {name}: {info['count']} items")
        if any(info["count"] for info in summary.values()):
            logger.info("[Cleanup] Will clean these directories before test run")
        else:
            logger.info("[Cleanup] Directories already clean")
        return summary


def failure_dir_name(test_name: str, when: Optional[datetime] = None) -> str:
    when = when or datetime.now(timezone.utc)
    stamp = re.sub(r"[:.]", "-", when.isoformat(timespec="milliseconds"))
    return f"{re.sub(r'[^a-zA-Z0-9]', '_', test_name)}_{stamp}"


def capture_failure_artifacts(
    page: Page,
    test_name: str,
    errors: Sequence[str] = (),
    test_file: Optional[str] = None,
    root: str | Path = ".",
) -> Optional[Path]:
    """Save a screenshot, the HTML, failure info and an ARIA snapshot.

    Best effort: returns the artifact directory, or None if nothing could
    be written.
    """
    artifact_dir = Path(root) / FAILURES_DIR / failure_dir_name(test_name)
    try:
        artifact_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"[FailureHandler] cannot create {artifact_dir}: {e}")
        return None

    logger.error(f"[FailureHandler] TEST FAILURE DETECTED: {test_name}")
    try:
        page.screenshot(path=str(artifact_dir / "failure-screenshot.png"), full_page=True)
        (artifact_dir / "page-content.html").write_text(page.content(), encoding="utf-8")
        info = {
            "testTitle": test_name,
            "testFile": test_file,
            "failureTime": datetime.now(timezone.utc).isoformat(),
            "pageUrl": page.url,
            "viewport": page.viewport_size,
            "userAgent": page.evaluate("() => navigator.userAgent"),
            "errors": list(errors),
        }
        (artifact_dir / "failure-info.json").write_text(json.dumps(info, indent=2), encoding="utf-8")
    except (PlaywrightError, OSError) as e:
        logger.error(f"[FailureHandler] Failed to capture failure artifacts: {e}")
        return artifact_dir

    try:
        snapshot = page.locator("body").aria_snapshot()
        (artifact_dir / "accessibility-snapshot.yml").write_text(snapshot, encoding="utf-8")
    except (PlaywrightError, OSError) as e:
        logger.debug(f"[FailureHandler] accessibility snapshot skipped: {e}")

    logger.info(f"[FailureHandler] All failure artifacts saved to: {artifact_dir}")
    return artifact_dir
