"""Engine: cooperative scheduler that drives the sentinel.

One thread, one loop.  Each iteration looks at a handful of deadlines and
runs whatever is due:

* capture cycle       every ``capture_interval`` seconds (7.5 s)
* re-scan             once, ``rescan_delay`` after an extreme new boost
* stale check         every ``stale_check_interval`` seconds
* failure check       every ``failure_check_interval`` seconds
* status update       every ``status_interval`` seconds

A capture cycle always runs to completion; if it overruns, the next one
is pushed back instead of overlapping.  The loop stops between cycles on
``KeyboardInterrupt``, ``SIGTERM`` or after ``max_cycles``, posts the
shutdown notice and logs a JSON run report.

Configuration keys (``config.yaml`` / ``BOOST_*`` env)
------------------------------------------------------
``capture.interval_seconds``   Seconds between capture cycles.
``engine.max_cycles``          Stop after N cycles (``0`` = run forever).
``engine.rescan_delay``        Delay of the confirmation re-scan.
``engine.extreme_boost``       Percentage above which a re-scan is queued.
``engine.report_dir``          Directory for JSON run reports.
"""

from __future__ import annotations

import json
import os
import signal
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from agent.cycle_agent import CycleAgent
from core.health_monitor import HealthMonitor
from core.reconciler import BoostReconciler
from utils.config import (
    CaptureRuntimeConfig,
    HealthRuntimeConfig,
    NotifierConfig,
    OCRRuntimeConfig,
    StatusStoreConfig,
)
from utils.image_cleanup import cleanup_old_images
from utils.logger import SentinelLogger
from utils.sentinel_config import cfg
from workflows.boost_workflow import STATUS_NEW_BOOST, CycleOutcome

_log = SentinelLogger("Engine")

# Shortest period any deadline may advance by.
MIN_INTERVAL = 0.5


@dataclass(slots=True)
class EngineConfig:
    """Loop timings.

    Attributes:
        capture_interval:       Seconds between capture cycles.
        stale_check_interval:   Seconds between stale-boost checks.
        failure_check_interval: Seconds between failure-count checks.
        status_interval:        Seconds between status updates.
        rescan_delay:           Delay of the confirmation re-scan.
        extreme_boost:          New boosts above this queue a re-scan.
        max_cycles:             Stop after this many cycles (``None`` = forever).
        max_sleep:              Longest single sleep, keeps stop() responsive.
        report_dir:             Where the JSON run report is written.
    """

    capture_interval: float = 7.5
    stale_check_interval: float = 120.0
    failure_check_interval: float = 60.0
    status_interval: float = 1800.0
    rescan_delay: float = 2.5
    extreme_boost: float = 49.0
    max_cycles: int | None = None
    max_sleep: float = 1.0
    report_dir: str = ""

    @classmethod
    def from_config(cls, health: HealthRuntimeConfig | None = None) -> EngineConfig:
        health = health or HealthRuntimeConfig()
        max_cycles = cfg.get_int("engine.max_cycles", 0)
        return cls(
            capture_interval=max(MIN_INTERVAL, cfg.get_float("capture.interval_seconds", 7.5)),
            stale_check_interval=max(MIN_INTERVAL, health.stale_check_interval),
            failure_check_interval=max(MIN_INTERVAL, health.failure_check_interval),
            status_interval=max(MIN_INTERVAL, health.status_interval),
            rescan_delay=cfg.get_float("engine.rescan_delay", 2.5),
            extreme_boost=cfg.get_float("engine.extreme_boost", 49.0),
            max_cycles=max_cycles if max_cycles > 0 else None,
            report_dir=cfg.get_str("engine.report_dir", ""),
        )


@dataclass(slots=True)
class RunStats:
    cycles: int = 0
    rescans: int = 0
    outcomes: dict[str, int] = field(default_factory=dict)
    stale_alerts: int = 0
    failure_alerts: int = 0
    status_updates: int = 0

    def record(self, outcome: CycleOutcome) -> None:
        self.outcomes[outcome.status] = self.outcomes.get(outcome.status, 0) + 1


class Engine:
    """Top-level composition engine."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        agent: CycleAgent | None = None,
        reconciler: BoostReconciler | None = None,
        health: HealthMonitor | None = None,
        notifier: Any | None = None,
        status: Any | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config or EngineConfig()
        self.agent = agent
        self.reconciler = reconciler
        self.health = health
        self.notifier = notifier
        self.status = status
        self.stats = RunStats()
        self._clock = clock
        self._sleep = sleep
        self._running = False
        self._started_at = 0.0

    def bootstrap(self) -> None:
        """Wire capture, OCR, notifier, status store, workflow and agent."""
        from agent.screen_capture import ScreenCapture
        from agent.vision_ocr import BoostOCR
        from memory.status_store import StatusStore
        from tools.discord_notifier import DiscordNotifier
        from workflows.boost_workflow import BoostWorkflow

        capture_config = CaptureRuntimeConfig()
        health_config = HealthRuntimeConfig()
        notifier_config = NotifierConfig()
        status_config = StatusStoreConfig()

        removed = cleanup_old_images()
        if removed:
            _log.info(f"cleaned {removed} old images")

        if self.reconciler is None:
            self.reconciler = BoostReconciler(clock=self._clock)
        if self.notifier is None:
            self.notifier = DiscordNotifier(notifier_config)
        if self.status is None:
            self.status = StatusStore(
                redis_url=status_config.redis_url,
                key_prefix=status_config.key_prefix,
                use_redis=status_config.enabled,
            )
        if self.health is None:
            self.health = HealthMonitor(
                self.reconciler,
                self.notifier,
                stale_timeout=health_config.stale_timeout,
                max_failures=health_config.max_failures,
                clock=self._clock,
                failure_mention=notifier_config.failure_mention,
                stale_mention=notifier_config.stale_mention,
            )
        if self.agent is None:
            capture = ScreenCapture(capture_config)
            if capture_config.backend == "mss" and capture_config.monitor <= 0:
                capture.find_active_monitor()
            workflow = BoostWorkflow(
                capture=capture,
                ocr=BoostOCR(OCRRuntimeConfig()),
                reconciler=self.reconciler,
                notifier=self.notifier,
                status=self.status,
                discrepancy_threshold=health_config.discrepancy_threshold,
                debug_dir=capture_config.debug_dir,
                save_debug=capture_config.save_debug,
            )
            self.agent = CycleAgent(workflow, self.reconciler)

        _log.info(f"status backend={getattr(self.status, 'backend', 'n/a')} capture backend={capture_config.backend}")

    # ── Loop pieces ─────────────────────────────────────────────────

    def _run_cycle(self, *, rescan: bool = False) -> CycleOutcome:
        assert self.agent is not None
        outcome = self.agent.step()
        self.stats.cycles += 1
        if rescan:
            self.stats.rescans += 1
        self.stats.record(outcome)
        return outcome

    def _wants_rescan(self, outcome: CycleOutcome) -> bool:
        return (
            outcome.status == STATUS_NEW_BOOST
            and outcome.observation is not None
            and outcome.observation.percentage > self.config.extreme_boost
        )

    def _post_status(self) -> None:
        if self.notifier is None or self.reconciler is None:
            return
        total_boosts, last_observation = self.reconciler.totals()
        sent = self.notifier.post_status_update(
            uptime_seconds=self._clock() - self._started_at,
            total_boosts=total_boosts,
            last_observation=last_observation,
        )
        if sent:
            self.stats.status_updates += 1

    @staticmethod
    def _advance(deadline: float, interval: float, now: float) -> float:
        step = max(interval, MIN_INTERVAL)
        while deadline <= now:
            deadline += step
        return deadline

    def _install_signal_handler(self) -> Any:
        if threading.current_thread() is not threading.main_thread():
            return None

        def _on_sigterm(signum: int, frame: Any) -> None:
            _log.warn("SIGTERM received. stopping after current cycle")
            self.stop()

        return signal.signal(signal.SIGTERM, _on_sigterm)

    def _write_report_file(self, report: dict[str, Any]) -> str | None:
        """Persist *report* as JSON under ``report_dir``. Return path or ``None``."""
        report_dir = self.config.report_dir.strip()
        if not report_dir:
            return None
        try:
            os.makedirs(report_dir, exist_ok=True)
            file_path = os.path.join(report_dir, f"run_report_{time.strftime('%Y%m%d_%H%M%S')}.json")
            with open(file_path, "w", encoding="utf-8") as report_file:
                json.dump(report, report_file, ensure_ascii=False, indent=2)
            return file_path
        except OSError as error:
            _log.error(f"report_write_error={error}")
            return None

    def report(self) -> dict[str, Any]:
        return {
            "cycles": self.stats.cycles,
            "rescans": self.stats.rescans,
            "outcomes": dict(self.stats.outcomes),
            "stale_alerts": self.stats.stale_alerts,
            "failure_alerts": self.stats.failure_alerts,
            "status_updates": self.stats.status_updates,
            "total_boosts": self.reconciler.totals()[0] if self.reconciler else 0,
            "duration_seconds": round(self._clock() - self._started_at, 3),
        }

    # ── Main loop ───────────────────────────────────────────────────

    def run(self) -> dict[str, Any]:
        """Bootstrap if needed, loop until stopped, return the run report."""
        if self.agent is None or self.health is None:
            self.bootstrap()
        assert self.health is not None

        previous_handler = self._install_signal_handler()
        self._running = True
        self._started_at = now = self._clock()
        config = self.config
        next_capture = now
        next_stale = now + config.stale_check_interval
        next_failure = now + config.failure_check_interval
        next_status = now + config.status_interval
        rescan_at: float | None = None

        if self.notifier is not None:
            self.notifier.post_startup_message()
        _log.highlight("monitoring started")

        try:
            while self._running:
                now = self._clock()

                if rescan_at is not None and now >= rescan_at:
                    rescan_at = None
                    _log.info("confirmation re-scan")
                    self._run_cycle(rescan=True)
                    if self._reached_max_cycles():
                        break
                elif now >= next_capture:
                    outcome = self._run_cycle()
                    next_capture = self._advance(next_capture, config.capture_interval, self._clock())
                    if self._wants_rescan(outcome):
                        rescan_at = self._clock() + config.rescan_delay
                    if self._reached_max_cycles():
                        break

                now = self._clock()
                if now >= next_stale:
                    if self.health.check_stale(now):
                        self.stats.stale_alerts += 1
                    next_stale = self._advance(next_stale, config.stale_check_interval, now)
                if now >= next_failure:
                    if self.health.check_failures():
                        self.stats.failure_alerts += 1
                    next_failure = self._advance(next_failure, config.failure_check_interval, now)
                if now >= next_status:
                    self._post_status()
                    next_status = self._advance(next_status, config.status_interval, now)

                deadlines = [next_capture, next_stale, next_failure, next_status]
                if rescan_at is not None:
                    deadlines.append(rescan_at)
                wait = min(deadlines) - self._clock()
                if wait > 0 and self._running:
                    self._sleep(min(wait, config.max_sleep))
        except KeyboardInterrupt:
            _log.warn("interrupted by user. stopping loop")
        finally:
            self.stop()
            if previous_handler is not None:
                signal.signal(signal.SIGTERM, previous_handler)
            if self.notifier is not None:
                self.notifier.post_shutdown_message()
            report = self.report()
            _log.success(f"run_report={json.dumps(report, ensure_ascii=False)}")
            report_file = self._write_report_file(report)
            if report_file is not None:
                _log.info(f"run_report_file={report_file}")
        return report

    def _reached_max_cycles(self) -> bool:
        if self.config.max_cycles is not None and self.stats.cycles >= self.config.max_cycles:
            _log.info(f"reached max cycles={self.config.max_cycles}. stopping loop")
            return True
        return False

    def stop(self) -> None:
        """Signal the loop to exit after the current cycle."""
        self._running = False


def main() -> None:
    """CLI entry-point: read configuration and start the engine."""
    Engine(config=EngineConfig.from_config()).run()


if __name__ == "__main__":
    main()
