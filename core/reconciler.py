"""Boost reconciler: decides whether an observation is a new boost.

Holds the single current :class:`BoostIdentity` together with the health
counters and applies the transition rules:

* new boost   → replace identity, reset failure counter and both alert
                flags, stamp ``last_unique_boost_at``.
* repeat      → reset failure counter and the failure alert flag only.
* parse miss  → bump the failure counter; timestamps untouched.

All reads and writes of :class:`ReconcilerState` go through one lock, so
health ticks fired from another thread never see a half-applied update.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Callable

_log = logging.getLogger("boost.reconciler")


@dataclass(frozen=True, slots=True)
class BoostIdentity:
    """The triple compared to tell one boost from another."""

    percentage: float
    was_odds: str | None
    now_odds: str | None


@dataclass(frozen=True, slots=True)
class BoostObservation:
    """One successful capture-and-parse result."""

    percentage: float
    was_odds: str | None = None
    now_odds: str | None = None
    observed_at: float = field(default_factory=time.time)

    def identity(self) -> BoostIdentity:
        return BoostIdentity(self.percentage, self.was_odds, self.now_odds)

    def odds_label(self) -> str:
        if self.was_odds and self.now_odds:
            return f"{self.was_odds} → {self.now_odds}"
        return self.was_odds or ""


@dataclass(slots=True)
class HealthCounters:
    consecutive_parse_failures: int = 0
    last_unique_boost_at: float = field(default_factory=time.time)
    failure_alert_sent: bool = False
    stale_alert_sent: bool = False


@dataclass(slots=True)
class ReconcilerState:
    identity: BoostIdentity | None = None
    counters: HealthCounters = field(default_factory=HealthCounters)
    total_boosts: int = 0
    last_observation: BoostObservation | None = None


class Transition(enum.Enum):
    NEW_BOOST = "new_boost"
    REPEAT = "repeat"


def is_different_boost(observation: BoostObservation, identity: BoostIdentity | None) -> bool:
    """``True`` when *observation* differs from *identity* in any field.

    Equality is exact, ``None`` included, so two lines boosted by the
    same percentage still count as different boosts.
    """
    if identity is None:
        return True
    return (
        observation.percentage != identity.percentage
        or observation.was_odds != identity.was_odds
        or observation.now_odds != identity.now_odds
    )


class BoostReconciler:
    """Owner of :class:`ReconcilerState`."""

    def __init__(
        self,
        state: ReconcilerState | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._clock = clock
        self._state = state or ReconcilerState(counters=HealthCounters(last_unique_boost_at=clock()))
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def state(self) -> ReconcilerState:
        return self._state

    @property
    def counters(self) -> HealthCounters:
        return self._state.counters

    def observe(self, observation: BoostObservation) -> Transition:
        """Apply one successful parse and report which transition happened."""
        with self._lock:
            state = self._state
            counters = state.counters
            counters.consecutive_parse_failures = 0
            counters.failure_alert_sent = False

            if not is_different_boost(observation, state.identity):
                _log.debug("same boost continuing: %s%% %s", observation.percentage, observation.odds_label())
                return Transition.REPEAT

            previous = state.identity
            state.identity = observation.identity()
            state.last_observation = observation
            state.total_boosts += 1
            counters.last_unique_boost_at = observation.observed_at
            counters.stale_alert_sent = False

        if previous is None:
            _log.info("first boost: %s%% %s", observation.percentage, observation.odds_label())
        else:
            _log.info(
                "new boost: %s%% (%s/%s) -> %s%% (%s/%s)",
                previous.percentage, previous.was_odds, previous.now_odds,
                observation.percentage, observation.was_odds, observation.now_odds,
            )
        return Transition.NEW_BOOST

    def record_failure(self, reason: str = "parse_miss") -> int:
        """Count one failed cycle; returns the new consecutive count."""
        with self._lock:
            self._state.counters.consecutive_parse_failures += 1
            count = self._state.counters.consecutive_parse_failures
        _log.debug("cycle failure reason=%s consecutive=%d", reason, count)
        return count

    def health_snapshot(self) -> HealthCounters:
        """Copy of the counters taken under the lock."""
        with self._lock:
            return replace(self._state.counters)

    def totals(self) -> tuple[int, BoostObservation | None]:
        """``(total_boosts, last_observation)`` read under the lock."""
        with self._lock:
            return self._state.total_boosts, self._state.last_observation

    def snapshot(self) -> dict[str, object]:
        """Plain-dict copy of the state for status reporting."""
        with self._lock:
            state = self._state
            counters = state.counters
            last = state.last_observation
            return {
                "percentage": state.identity.percentage if state.identity else None,
                "was_odds": state.identity.was_odds if state.identity else None,
                "now_odds": state.identity.now_odds if state.identity else None,
                "last_boost_at": last.observed_at if last else None,
                "total_boosts": state.total_boosts,
                "consecutive_parse_failures": counters.consecutive_parse_failures,
                "last_unique_boost_at": counters.last_unique_boost_at,
                "failure_alert_sent": counters.failure_alert_sent,
                "stale_alert_sent": counters.stale_alert_sent,
            }
