"""Drive the Incident and Situation stacks to an empty state.

Alerts arrive on the Incident stack. Clearing one means selecting its site
card, completing the SOP and dismissing it (or resolving it when dismiss is
not offered). Escalated alerts sit on the Situation stack, where the alert
card is expanded, the SOP completed and the group resolved. The workflow
reads each stack through ``StackSnapshot`` so it can tell a genuinely empty
stack from one that is still loading, showing an error, or merely not yet
rendered.

``StackCleanupWorkflow`` only uses the public methods of the dashboard and
SOP page objects, so tests can hand it a scripted stand-in.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Sequence

from loguru import logger

from proof360.errors import CleanupError, Proof360Error
from proof360.pages.dashboard import (
    MANUAL_ALERT,
    UB_AND_TREX,
    AlertFilter,
    ub_and_trex_filter,
)
from proof360.polling import Stack, StackState, poll_until


class Action(str, Enum):
    NONE = "none"
    DISMISSED = "dismissed"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass
class StackOutcome:
    """What happened to one stack during cleanup."""

    stack: Stack
    initial_state: StackState
    action: Action = Action.NONE
    verified_clear: bool = False
    error: Optional[str] = None


@dataclass
class CleanupReport:
    site_name: Optional[str] = None
    outcomes: list[StackOutcome] = field(default_factory=list)

    def outcome(self, stack: Stack) -> Optional[StackOutcome]:
        for outcome in self.outcomes:
            if outcome.stack is stack:
                return outcome
        return None

    @property
    def ok(self) -> bool:
        return all(o.verified_clear for o in self.outcomes)

    @property
    def failures(self) -> list[StackOutcome]:
        return [o for o in self.outcomes if o.action is Action.FAILED]


class StackCleanupWorkflow:
    """Two-stack cleanup over an alerts dashboard and an SOP panel.

    Args:
        dashboard: ``AlertsDashboardPage`` or anything with the same methods.
        sop: ``SopPage`` or equivalent.
        clock: monotonic clock used for the empty-stack waits.
        sleep: defaults to ``dashboard.pause`` so waits go through the page.
        screenshot_dir: where failure screenshots are written.
    """

    def __init__(
        self,
        dashboard,
        sop,
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], None]] = None,
        screenshot_dir: str | Path = "test-results",
    ):
        self.dashboard = dashboard
        self.sop = sop
        self.clock = clock
        self.sleep = sleep or dashboard.pause
        self.screenshot_dir = Path(screenshot_dir)

    # ------------------------------------------------------------------
    # Waits
    # ------------------------------------------------------------------

    def wait_for_stack_empty(
        self,
        stack: Stack,
        timeout: float = 30.0,
        interval: float = 1.0,
        alert_types: Sequence[str] = (),
    ) -> bool:
        """Poll until ``stack`` shows no cards."""
        return poll_until(
            lambda: self.dashboard.snapshot(alert_types).is_clear,
            timeout=timeout,
            interval=interval,
            sleep=self.sleep,
            clock=self.clock,
            description=f"{stack.value} stack empty",
        )

    def verify_cleared(
        self,
        stack: Stack,
        attempts: int = 5,
        interval: float = 1.0,
        alert_types: Sequence[str] = (),
    ) -> bool:
        """Re-read ``stack`` a few times after an action; True once clear."""
        for attempt in range(1, attempts + 1):
            snapshot = self.dashboard.snapshot(alert_types)
            if snapshot.is_clear:
                if snapshot.state is StackState.UNSETTLED:
                    logger.info(
                        f"[Workflow] {stack.value} stack has no cards but no empty text; "
                        "proceeding with caution"
                    )
                return True
            logger.debug(
                f"[Workflow] {stack.value} verification {attempt}/{attempts}: "
                f"{snapshot.state.value} ({snapshot.total_cards} cards)"
            )
            if attempt < attempts:
                self.sleep(interval)
        return False

    # ------------------------------------------------------------------
    # Stack actions
    # ------------------------------------------------------------------

    def _dismiss_incident(self, site_name: Optional[str], prefer_text: Optional[str]) -> Action:
        if not self.dashboard.select_site_card(site_name, require_text=prefer_text):
            raise Proof360Error("No site card to select on Incident stack")
        self.sop.complete_and_validate()
        if self.dashboard.dismiss_selected():
            logger.info("[Workflow] Incident alerts dismissed")
            return Action.DISMISSED
        logger.info("[Workflow] Dismiss not offered, resolving instead")
        self.dashboard.resolve_all()
        return Action.RESOLVED

    def _resolve_situation(self, site_name: Optional[str], alert_types: Sequence[str]) -> Action:
        card_types = [t for t in alert_types if t != MANUAL_ALERT]
        self.dashboard.expand_and_select_alert(site_name, card_types)
        self.sop.complete_and_validate()
        self.dashboard.resolve_all()
        logger.info("[Workflow] Situation alerts resolved")
        return Action.RESOLVED

    def _read_settled(self, stack: Stack, alert_types: Sequence[str]):
        self.dashboard.wait_for_alerts_to_render(stack)
        snapshot = self.dashboard.snapshot(alert_types)
        if snapshot.state is StackState.LOADING:
            poll_until(
                lambda: self.dashboard.snapshot(alert_types).state is not StackState.LOADING,
                timeout=15.0,
                sleep=self.sleep,
                clock=self.clock,
                description=f"{stack.value} stack loaded",
            )
            snapshot = self.dashboard.snapshot(alert_types)
        return snapshot

    def clear_stack(
        self,
        stack: Stack,
        alert_filter: AlertFilter,
        prefer_text: Optional[str] = None,
    ) -> StackOutcome:
        """Clear whatever ``alert_filter`` shows on ``stack``.

        Failures are logged and recorded on the outcome, not raised, so the
        other stack still gets cleaned.
        """
        types = alert_filter.alert_types
        snapshot = self._read_settled(stack, types)
        outcome = StackOutcome(stack, snapshot.state)
        logger.info(
            f"[Workflow] {stack.value} stack is {snapshot.state.value} "
            f"(site={snapshot.site_cards}, manual={snapshot.manual_cards}, alerts={snapshot.alert_cards})"
        )

        if snapshot.is_clear:
            outcome.verified_clear = True
            return outcome
        if snapshot.state is StackState.ERROR:
            outcome.action = Action.FAILED
            outcome.error = snapshot.error_text
            logger.error(f"[Workflow] {stack.value} stack shows an error: {snapshot.error_text}")
            return outcome
        if snapshot.state is StackState.LOADING:
            outcome.action = Action.FAILED
            outcome.error = "stack still loading"
            logger.error(f"[Workflow] {stack.value} stack never finished loading")
            return outcome

        try:
            if stack is Stack.INCIDENT:
                outcome.action = self._dismiss_incident(alert_filter.site_name, prefer_text)
            else:
                outcome.action = self._resolve_situation(alert_filter.site_name, types)
            outcome.verified_clear = self.wait_for_stack_empty(
                stack, alert_types=types
            ) or self.verify_cleared(stack, alert_types=types)
        except Exception as e:
            outcome.action = Action.FAILED
            outcome.error = str(e)
            logger.error(f"[Workflow] Cleanup on {stack.value} stack failed: {e}")
            self.dashboard.dismiss_overlays(timeout=5.0)
        return outcome

    def _clear_both(self, alert_filter: AlertFilter, prefer_text: Optional[str]) -> CleanupReport:
        report = CleanupReport(alert_filter.site_name)
        self.dashboard.switch_to(Stack.INCIDENT)
        self.dashboard.reset_filter()
        self.dashboard.apply_filter(alert_filter)
        report.outcomes.append(self.clear_stack(Stack.INCIDENT, alert_filter, prefer_text))

        self.dashboard.switch_to(Stack.SITUATION)
        self.dashboard.ensure_filters_applied(alert_filter.alert_types)
        report.outcomes.append(self.clear_stack(Stack.SITUATION, alert_filter, prefer_text))
        return report

    def clean_manual_alerts(self, site_name: Optional[str] = None) -> CleanupReport:
        """Clear manual alerts from both stacks."""
        logger.info("[Workflow] Cleaning up manual alerts")
        report = self._clear_both(AlertFilter((MANUAL_ALERT,), site_name), MANUAL_ALERT)
        logger.info(f"[Workflow] Manual alert cleanup finished (ok={report.ok})")
        return report

    def clean_ub_and_trex(self, site_name: str) -> CleanupReport:
        """Clear Unusual Behaviour and Trex alerts for ``site_name``.

        Raises:
            ValueError: no site name given.
            CleanupError: matching alerts are still visible afterwards.
        """
        if not site_name:
            raise ValueError("site_name is required for UB/Trex cleanup")
        logger.info(f"[Workflow] Cleaning up UB/Trex alerts for {site_name}")
        report = self._clear_both(ub_and_trex_filter(site_name), None)
        self.assert_no_alerts_remaining(site_name, UB_AND_TREX)
        return report

    def assert_no_alerts_remaining(
        self, site_name: str, alert_types: Sequence[str] = UB_AND_TREX
    ) -> None:
        """Re-filter each stack and fail if matching alert cards remain.

        Site cards with no matching alert under them are acceptable.
        """
        alert_filter = AlertFilter(tuple(alert_types), site_name)
        for stack in (Stack.INCIDENT, Stack.SITUATION):
            self.dashboard.switch_to(stack)
            self.dashboard.apply_filter(alert_filter)
            self.dashboard.wait_for_alerts_to_render(stack)
            snapshot = self.dashboard.snapshot(alert_filter.alert_types)
            if snapshot.alert_cards > 0:
                path = self.screenshot_dir / (
                    f"cleanup-failure-{stack.value.lower()}-{time.strftime('%Y%m%d-%H%M%S')}.png"
                )
                shot = self.dashboard.screenshot(path)
                logger.error(
                    f"[Workflow] {snapshot.alert_cards} {'/'.join(alert_types)} alert(s) "
                    f"remain on {stack.value} stack"
                )
                raise CleanupError(
                    stack.value, site_name, snapshot.alert_cards, snapshot.site_cards, shot
                )
            if snapshot.site_cards:
                logger.info(
                    f"[Workflow] {stack.value} stack has {snapshot.site_cards} site card(s) "
                    "with no matching alerts; acceptable"
                )
        logger.info(f"[Workflow] No {'/'.join(alert_types)} alerts remain for {site_name}")
