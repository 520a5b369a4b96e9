"""Playwright fixtures for the browser scenarios.

A session-scoped browser is launched once, after persisted logins have been
refreshed. Each test gets its own context built from the saved storage
state, so most tests start already signed in. When a test fails, the page
fixture saves a screenshot, the HTML, failure info and an ARIA snapshot
under ``test-failures/`` before the context closes.
"""

from __future__ import annotations

import pytest
from playwright.sync_api import expect, sync_playwright

from proof360.artifacts import capture_failure_artifacts
from proof360.sessions import SessionManager, prepare_sessions
from proof360.steps import SharedSteps


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Keep each phase's report on the item for the page fixture."""
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)


@pytest.fixture(scope="session")
def playwright_instance(settings):
    if not settings.has_credentials("admin"):
        pytest.skip("ADMIN_MS_USERNAME / ADMIN_MS_PASSWORD not configured")
    pw = sync_playwright().start()
    yield pw
    pw.stop()


@pytest.fixture(scope="session")
def browser(playwright_instance, settings):
    """Session-scoped Chromium, launched after logins are refreshed."""
    prepare_sessions(settings, playwright_instance)
    expect.set_options(timeout=settings.expect_timeout_ms)
    b = playwright_instance.chromium.launch(headless=settings.headless)
    yield b
    b.close()


@pytest.fixture
def user_type() -> str:
    """Override in a module to run as the normal user."""
    return "admin"


@pytest.fixture
def context(browser, settings, user_type):
    session = SessionManager.from_settings(user_type, settings)
    options = {
        "base_url": settings.base_url,
        "viewport": settings.viewport,
        "accept_downloads": True,
    }
    if session.has_valid_session():
        options["storage_state"] = str(session.storage_state_path)
    ctx = browser.new_context(**options)
    ctx.set_default_timeout(settings.action_timeout_ms)
    ctx.set_default_navigation_timeout(settings.navigation_timeout_ms)
    yield ctx
    ctx.close()


@pytest.fixture
def page(context, request, settings):
    p = context.new_page()
    yield p
    report = getattr(request.node, "rep_call", None)
    if report is not None and report.failed:
        capture_failure_artifacts(
            p,
            request.node.name,
            [report.longreprtext],
            str(request.node.path),
            root=settings.artifacts_root,
        )


@pytest.fixture
def steps(page, settings, user_type) -> SharedSteps:
    """Signed-in steps on the test company."""
    s = SharedSteps(page, settings)
    s.authenticate(user_type)
    s.select_company()
    return s
