"""Health watches layered on the reconciler's counters.

Two independent checks, each driven by its own fixed-interval tick:

* **stale watch**: no *new* boost for ``stale_timeout`` seconds.
* **failure watch**: ``max_failures`` consecutive cycles without a parse.

Both are edge-triggered: an alert fires once per threshold crossing and
the flag is cleared only by the reconciler (new boost re-arms the stale
watch, any successful parse re-arms the failure watch).
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Protocol

from core.reconciler import BoostReconciler

_log = logging.getLogger("boost.health")

DEFAULT_STALE_TIMEOUT = 12 * 60.0
DEFAULT_MAX_FAILURES = 6


class SupportsHealthAlert(Protocol):
    def post_health_alert(self, message: str) -> object: ...


class HealthMonitor:
    """Edge-triggered stale and failure alerts."""

    def __init__(
        self,
        reconciler: BoostReconciler,
        notifier: SupportsHealthAlert | None = None,
        *,
        stale_timeout: float = DEFAULT_STALE_TIMEOUT,
        max_failures: int = DEFAULT_MAX_FAILURES,
        clock: Callable[[], float] = time.time,
        failure_mention: str = "",
        stale_mention: str = "@everyone",
    ) -> None:
        self.reconciler = reconciler
        self.notifier = notifier
        self.stale_timeout = max(1.0, float(stale_timeout))
        self.max_failures = max(1, int(max_failures))
        self.failure_mention = failure_mention
        self.stale_mention = stale_mention
        self._clock = clock

    def check_stale(self, now: float | None = None) -> bool:
        """Fire the stale alert if the timeout has elapsed; ``True`` if fired."""
        current = self._clock() if now is None else now
        with self.reconciler.lock:
            counters = self.reconciler.counters
            elapsed = current - counters.last_unique_boost_at
            _log.debug(
                "stale check: %.0fs since last unique boost (timeout %.0fs, notified=%s)",
                elapsed, self.stale_timeout, counters.stale_alert_sent,
            )
            if elapsed < self.stale_timeout or counters.stale_alert_sent:
                return False
            counters.stale_alert_sent = True

        minutes = round(elapsed / 60)
        message = (
            f"{self.stale_mention} 🚨 **SYSTEM ALERT**: No new unique boost detected for "
            f"{minutes} minutes! System may need attention."
        ).strip()
        _log.warning("no new unique boost for %d minutes", minutes)
        self._post(message)
        return True

    def check_failures(self) -> bool:
        """Fire the failure alert at the threshold; ``True`` if fired."""
        with self.reconciler.lock:
            counters = self.reconciler.counters
            failures = counters.consecutive_parse_failures
            _log.debug(
                "failure check: %d failures (threshold %d, notified=%s)",
                failures, self.max_failures, counters.failure_alert_sent,
            )
            if failures < self.max_failures or counters.failure_alert_sent:
                return False
            counters.failure_alert_sent = True

        message = (
            f"{self.failure_mention} **ALERT**: Failed to detect numbers for "
            f"{failures} consecutive attempts! Bot is down."
        ).strip()
        _log.warning("number detection failed %d consecutive times", failures)
        self._post(message)
        return True

    def _post(self, message: str) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.post_health_alert(message)
        except Exception as exc:
            _log.error("health alert delivery failed: %s", exc)
