"""Scripted stand-ins for the dashboard and SOP page objects.

``FakeDashboard`` keeps a card count per stack and a fake clock that only
moves when the workflow pauses, so cleanup runs instantly and
deterministically. Actions (dismiss / resolve all) clear the current stack
``clear_after`` seconds later unless the stack is ``sticky``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from proof360.errors import SopError
from proof360.polling import Stack, StackSnapshot


class FakeClock:
    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class FakeStack:
    site_cards: int = 0
    manual_cards: int = 0
    alert_cards: int = 0
    show_empty_text: bool = True
    error_text: Optional[str] = None
    loading_reads: int = 0
    sticky: bool = False
    clear_after: float = 2.0
    residual_site_cards: int = 0
    cleared_at: Optional[float] = None


class FakeDashboard:
    def __init__(
        self,
        incident: Optional[FakeStack] = None,
        situation: Optional[FakeStack] = None,
        dismiss_offered: bool = True,
        clock: Optional[FakeClock] = None,
    ):
        self.clock = clock or FakeClock()
        self.stacks = {
            Stack.INCIDENT: incident or FakeStack(),
            Stack.SITUATION: situation or FakeStack(),
        }
        self.current = Stack.INCIDENT
        self.dismiss_offered = dismiss_offered
        self.calls: list[tuple] = []
        self.filters = []
        self.screenshots: list[str] = []

    def _active(self) -> FakeStack:
        return self.stacks[self.current]

    def _cleared(self, stack: FakeStack) -> bool:
        return stack.cleared_at is not None and self.clock() >= stack.cleared_at

    def pause(self, seconds: float) -> None:
        self.clock.advance(seconds)

    def snapshot(self, alert_types=()) -> StackSnapshot:
        stack = self._active()
        loading = stack.loading_reads > 0
        if loading:
            stack.loading_reads -= 1
        if self._cleared(stack):
            site, manual, alerts = stack.residual_site_cards, 0, 0
        else:
            site = stack.site_cards
            manual = stack.manual_cards
            alerts = stack.alert_cards if alert_types else 0
        total = site + manual + alerts
        return StackSnapshot(
            site_cards=site,
            manual_cards=manual,
            alert_cards=alerts,
            empty_text=stack.show_empty_text and total == 0,
            loading=loading,
            error_text=stack.error_text,
        )

    def switch_to(self, stack: Stack, attempts: int = 3) -> bool:
        self.calls.append(("switch_to", stack))
        self.current = stack
        return True

    def reset_filter(self) -> None:
        self.calls.append(("reset_filter",))

    def apply_filter(self, alert_filter) -> None:
        self.calls.append(("apply_filter", alert_filter))
        self.filters.append(alert_filter)

    def ensure_filters_applied(self, alert_types=(), max_retries: int = 3) -> bool:
        self.calls.append(("ensure_filters_applied", tuple(alert_types)))
        return True

    def wait_for_alerts_to_render(self, stack: Stack, **kwargs) -> int:
        self.calls.append(("wait_for_alerts_to_render", stack))
        self.pause(1.0)
        return self.snapshot(("any",)).total_cards

    def select_site_card(self, site_name=None, require_text=None) -> bool:
        self.calls.append(("select_site_card", site_name, require_text))
        stack = self._active()
        return not self._cleared(stack) and (stack.site_cards + stack.manual_cards) > 0

    def expand_and_select_alert(self, site_name=None, alert_types=()) -> None:
        self.calls.append(("expand_and_select_alert", site_name, list(alert_types)))
        stack = self._active()
        if self._cleared(stack) or stack.alert_cards + stack.manual_cards == 0:
            raise RuntimeError("no alert card to select")

    def _act(self) -> None:
        stack = self._active()
        if not stack.sticky:
            stack.cleared_at = self.clock() + stack.clear_after

    def dismiss_selected(self) -> bool:
        self.calls.append(("dismiss_selected",))
        if not self.dismiss_offered:
            return False
        self._act()
        return True

    def resolve_all(self) -> None:
        self.calls.append(("resolve_all", self.current))
        self._act()

    def screenshot(self, path) -> str:
        self.screenshots.append(str(path))
        return str(path)

    def dismiss_overlays(self, timeout: float = 15.0) -> bool:
        self.calls.append(("dismiss_overlays",))
        return True

    def called(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]


class FakeSop:
    def __init__(self, fail_on: tuple[int, ...] = ()):
        self.completed = 0
        self.fail_on = fail_on

    def complete_and_validate(self) -> None:
        self.completed += 1
        if self.completed in self.fail_on:
            raise SopError("Standard operating procedure did not complete")
