"""Bounded polling of readiness conditions, with cancellation."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

import structlog
from tenacity import RetryError, Retrying, retry_if_result

from kkp_provisioner.config import PollBounds
from kkp_provisioner.errors import ProvisioningCancelledError, WaitTimeoutError

log = structlog.get_logger()

Condition = Callable[[], bool]


class ConditionWaiter:
    """Evaluate a condition on a fixed cadence until it holds, fails, or runs out of time.

    A condition returns ``True`` when satisfied and ``False`` when it should be
    retried; anything it raises aborts the wait unchanged. Elapsed time is
    measured with ``clock`` and every sleep is capped at the remaining budget,
    so a wait returns no later than ``timeout + interval`` after its first
    evaluation.

    The cancellation event is checked before every evaluation and every
    sleep. The default sleep blocks on the event itself, so setting it also
    cuts a sleep short.
    """

    def __init__(
        self,
        cancel: threading.Event | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], object] | None = None,
    ) -> None:
        self.cancel = cancel if cancel is not None else threading.Event()
        self._clock = clock
        self._sleep = sleep if sleep is not None else self.cancel.wait

    def check_cancelled(self, what: str) -> None:
        """Raise ProvisioningCancelledError if the run has been cancelled."""
        if self.cancel.is_set():
            msg = f"provisioning cancelled before {what}"
            raise ProvisioningCancelledError(msg)

    def _pause(self, seconds: float, description: str) -> None:
        self.check_cancelled(f"waiting for {description}")
        if seconds > 0:
            self._sleep(seconds)
        self.check_cancelled(f"checking {description}")

    def poll(self, bounds: PollBounds, condition: Condition, description: str = "condition") -> None:
        """Wait one interval, then evaluate ``condition`` until it holds."""
        self._wait(bounds, condition, description, immediate=False)

    def poll_immediate(self, bounds: PollBounds, condition: Condition, description: str = "condition") -> None:
        """Evaluate ``condition`` right away, then every interval until it holds."""
        self._wait(bounds, condition, description, immediate=True)

    def _wait(self, bounds: PollBounds, condition: Condition, description: str, *, immediate: bool) -> None:
        interval, timeout = bounds.interval, bounds.timeout
        deadline = self._clock() + timeout
        log.debug("wait_started", target=description, interval=interval, timeout=timeout, immediate=immediate)

        if not immediate:
            self._pause(min(interval, timeout), description)

        def attempt() -> bool:
            self.check_cancelled(f"checking {description}")
            return condition()

        retrying = Retrying(
            retry=retry_if_result(lambda done: not done),
            stop=lambda state: self._clock() >= deadline,
            wait=lambda state: min(interval, max(0.0, deadline - self._clock())),
            sleep=lambda seconds: self._pause(seconds, description),
        )
        try:
            retrying(attempt)
        except RetryError:
            log.warning("wait_timed_out", target=description, interval=interval, timeout=timeout)
            raise WaitTimeoutError(description, interval, timeout) from None

        log.debug("wait_satisfied", target=description, attempts=retrying.statistics.get("attempt_number"))
