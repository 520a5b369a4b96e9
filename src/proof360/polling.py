"""Stack state model and the polling/retry primitives used against the UI.

The Proof360 command page has two work queues (Incident and Situation).
Every wait in the suite is a cooperative poll: read the DOM, classify,
sleep, read again. The helpers here keep that loop in one place and take
``sleep``/``clock`` callables so the loop can be driven by a Playwright
page (``page.wait_for_timeout``) or by a fake clock in unit tests.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, TypeVar

from loguru import logger

from proof360.errors import RetryExhaustedError

T = TypeVar("T")

Sleep = Callable[[float], None]
Clock = Callable[[], float]


class Stack(str, Enum):
    """The two alert queues on the command page."""

    INCIDENT = "Incident"
    SITUATION = "Situation"

    def other(self) -> "Stack":
        return Stack.SITUATION if self is Stack.INCIDENT else Stack.INCIDENT


class StackState(str, Enum):
    EMPTY = "empty"
    LOADING = "loading"
    POPULATED = "populated"
    UNSETTLED = "unsettled"  # zero cards but no empty-state text yet
    ERROR = "error"


@dataclass(frozen=True)
class StackSnapshot:
    """One reading of the visible stack."""

    site_cards: int = 0
    manual_cards: int = 0
    alert_cards: int = 0
    empty_text: bool = False
    loading: bool = False
    error_text: Optional[str] = None

    @property
    def total_cards(self) -> int:
        return self.site_cards + self.manual_cards + self.alert_cards

    @property
    def state(self) -> StackState:
        if self.error_text:
            return StackState.ERROR
        if self.loading:
            return StackState.LOADING
        if self.total_cards > 0:
            return StackState.POPULATED
        if self.empty_text:
            return StackState.EMPTY
        return StackState.UNSETTLED

    @property
    def is_clear(self) -> bool:
        return self.state in (StackState.EMPTY, StackState.UNSETTLED)


def poll_until(
    predicate: Callable[[], bool],
    timeout: float = 30.0,
    interval: float = 1.0,
    sleep: Sleep = time.sleep,
    clock: Clock = time.monotonic,
    description: str = "condition",
) -> bool:
    """Call ``predicate`` until it returns True or ``timeout`` seconds pass.

    Exceptions raised by the predicate count as "not yet".
    """
    deadline = clock() + timeout
    while True:
        try:
            if predicate():
                return True
        except Exception as e:
            logger.debug(f"[Polling] {description} check raised: {e}")
        if clock() >= deadline:
            logger.warning(f"[Polling] {description} not met after {timeout:.1f}s")
            return False
        sleep(interval)


def retry(
    operation: Callable[[], T],
    name: str,
    attempts: int = 3,
    base_delay: float = 1.0,
    sleep: Sleep = time.sleep,
    on_failure: Optional[Callable[[int, BaseException], None]] = None,
) -> T:
    """Run ``operation`` with exponential backoff between attempts.

    Waits ``base_delay * 2**(attempt - 2)`` before attempt 2 onwards.
    ``on_failure`` is called once, after the second-to-last failure, so
    callers can grab a debug screenshot before the final try.

    Raises:
        RetryExhaustedError: every attempt failed.
    """
    last_error: Optional[BaseException] = None
    for attempt in range(1, attempts + 1):
        if attempt > 1:
            delay = base_delay * 2 ** (attempt - 2)
            logger.info(f"[Reliability] Waiting {delay:.1f}s before retry...")
            sleep(delay)
        logger.info(f"[Reliability] {name} - attempt {attempt}/{attempts}")
        try:
            result = operation()
        except Exception as e:
            last_error = e
            logger.warning(f"[Reliability] {name} - failed on attempt {attempt}: {e}")
            if on_failure is not None and attempt == attempts - 1:
                try:
                    on_failure(attempt, e)
                except Exception as hook_error:
                    logger.warning(f"[Reliability] failure hook raised: {hook_error}")
            continue
        logger.info(f"[Reliability] {name} - succeeded on attempt {attempt}")
        return result

    logger.error(f"[Reliability] {name} - all {attempts} attempts failed")
    raise RetryExhaustedError(name, attempts, last_error) from last_error


def wait_for_stable_count(
    count: Callable[[], int],
    min_wait: float = 4.0,
    max_wait: float = 5.0,
    interval: float = 1.0,
    sleep: Sleep = time.sleep,
    clock: Clock = time.monotonic,
    label: str = "stack",
) -> int:
    """Wait for a card count to stop changing.

    Sleeps ``min_wait`` first (slow renders), then polls every
    ``interval`` until two consecutive readings after the first one
    agree or ``max_wait`` elapses. Returns the last count read.
    """
    sleep(min_wait)
    start = clock()
    previous: Optional[int] = None
    stable = 0
    current = 0
    while clock() - start < max_wait:
        try:
            current = count()
        except Exception as e:
            logger.debug(f"[Reliability] count on {label} raised: {e}")
            sleep(interval)
            continue
        if current == previous:
            stable += 1
            if stable >= 2:
                logger.info(f"[Reliability] {label} card count stabilised at {current}")
                return current
        else:
            stable = 0
            previous = current
        sleep(interval)
    logger.info(f"[Reliability] {label} render wait ended at {current} cards")
    return current
