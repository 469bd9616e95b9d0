from __future__ import annotations

from typing import Any

from core.reconciler import BoostObservation, BoostReconciler
from orchestrator.engine import Engine, EngineConfig
from workflows.boost_workflow import CycleOutcome


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


class DummyAgent:
    def __init__(self, clock: FakeClock, outcomes: list[CycleOutcome] | None = None, duration: float = 0.0) -> None:
        self.clock = clock
        self.outcomes = list(outcomes or [])
        self.duration = duration
        self.started: list[float] = []

    def step(self) -> CycleOutcome:
        self.started.append(self.clock.now)
        self.clock.now += self.duration
        if self.outcomes:
            return self.outcomes.pop(0)
        return CycleOutcome(status="repeat")


class DummyHealth:
    def __init__(self) -> None:
        self.stale_checks: list[float] = []
        self.failure_checks = 0

    def check_stale(self, now: float | None = None) -> bool:
        self.stale_checks.append(now if now is not None else -1.0)
        return False

    def check_failures(self) -> bool:
        self.failure_checks += 1
        return self.failure_checks == 1


class DummyNotifier:
    def __init__(self) -> None:
        self.events: list[str] = []
        self.status_updates: list[dict[str, Any]] = []

    def post_startup_message(self) -> bool:
        self.events.append("startup")
        return True

    def post_shutdown_message(self) -> bool:
        self.events.append("shutdown")
        return True

    def post_status_update(self, **kwargs: Any) -> bool:
        self.status_updates.append(kwargs)
        return True


def _engine(clock: FakeClock, agent: DummyAgent, **config: Any) -> tuple[Engine, DummyHealth, DummyNotifier]:
    health = DummyHealth()
    notifier = DummyNotifier()
    engine = Engine(
        EngineConfig(**config),
        agent=agent,  # type: ignore[arg-type]
        reconciler=BoostReconciler(clock=clock),
        health=health,  # type: ignore[arg-type]
        notifier=notifier,
        clock=clock,
        sleep=clock.sleep,
    )
    return engine, health, notifier


def test_runs_capture_cycles_on_interval() -> None:
    clock = FakeClock()
    agent = DummyAgent(clock)
    engine, _, notifier = _engine(clock, agent, capture_interval=7.5, max_cycles=3)

    report = engine.run()

    assert agent.started == [0.0, 7.5, 15.0]
    assert report["cycles"] == 3
    assert report["outcomes"] == {"repeat": 3}
    assert notifier.events == ["startup", "shutdown"]


def test_extreme_new_boost_triggers_one_rescan() -> None:
    clock = FakeClock()
    extreme = CycleOutcome(status="new_boost", observation=BoostObservation(60.0, observed_at=0.0))
    agent = DummyAgent(clock, [extreme])
    engine, _, _ = _engine(clock, agent, capture_interval=7.5, rescan_delay=2.5, max_cycles=3)

    report = engine.run()

    assert agent.started == [0.0, 2.5, 7.5]
    assert report["rescans"] == 1


def test_ordinary_new_boost_does_not_rescan() -> None:
    clock = FakeClock()
    normal = CycleOutcome(status="new_boost", observation=BoostObservation(25.0, observed_at=0.0))
    agent = DummyAgent(clock, [normal])
    engine, _, _ = _engine(clock, agent, capture_interval=7.5, max_cycles=2)

    engine.run()

    assert agent.started == [0.0, 7.5]


def test_health_checks_follow_their_own_intervals() -> None:
    clock = FakeClock()
    agent = DummyAgent(clock)
    engine, health, _ = _engine(
        clock, agent,
        capture_interval=7.5, stale_check_interval=120.0, failure_check_interval=60.0, max_cycles=20,
    )

    report = engine.run()

    assert health.stale_checks == [120.0]
    assert health.failure_checks == 2
    assert report["failure_alerts"] == 1


def test_status_updates_are_periodic() -> None:
    clock = FakeClock()
    agent = DummyAgent(clock)
    engine, _, notifier = _engine(clock, agent, capture_interval=10.0, status_interval=25.0, max_cycles=7)

    engine.run()

    assert len(notifier.status_updates) == 2
    assert notifier.status_updates[0]["total_boosts"] == 0
    assert notifier.status_updates[0]["uptime_seconds"] == 25.0


def test_overrunning_cycle_delays_next_tick() -> None:
    clock = FakeClock()
    agent = DummyAgent(clock, duration=10.0)
    engine, _, _ = _engine(clock, agent, capture_interval=7.5, max_cycles=3)

    engine.run()

    assert agent.started == [0.0, 15.0, 30.0]
    for previous, current in zip(agent.started, agent.started[1:]):
        assert current - previous >= agent.duration


def test_keyboard_interrupt_stops_cleanly() -> None:
    clock = FakeClock()

    class InterruptingAgent(DummyAgent):
        def step(self) -> CycleOutcome:
            if len(self.started) == 2:
                raise KeyboardInterrupt
            return super().step()

    agent = InterruptingAgent(clock)
    engine, _, notifier = _engine(clock, agent, capture_interval=5.0)

    report = engine.run()

    assert report["cycles"] == 2
    assert notifier.events == ["startup", "shutdown"]


def test_stop_ends_loop_between_cycles() -> None:
    clock = FakeClock()
    holder: dict[str, Engine] = {}

    class StoppingAgent(DummyAgent):
        def step(self) -> CycleOutcome:
            outcome = super().step()
            if len(self.started) == 4:
                holder["engine"].stop()
            return outcome

    agent = StoppingAgent(clock)
    engine, _, _ = _engine(clock, agent, capture_interval=5.0)
    holder["engine"] = engine

    assert engine.run()["cycles"] == 4


def test_report_written_to_directory(tmp_path: Any) -> None:
    clock = FakeClock()
    agent = DummyAgent(clock)
    engine, _, _ = _engine(clock, agent, max_cycles=1, report_dir=str(tmp_path))

    engine.run()

    files = list(tmp_path.glob("run_report_*.json"))
    assert len(files) == 1


def test_advance_with_zero_interval_terminates() -> None:
    assert Engine._advance(0.0, 0.0, 1.0) > 1.0
    assert Engine._advance(0.0, -5.0, 1.0) > 1.0


def test_advance_skips_missed_slots() -> None:
    assert Engine._advance(0.0, 7.5, 16.0) == 22.5
    assert Engine._advance(30.0, 7.5, 16.0) == 30.0


def test_zero_health_intervals_do_not_hang_the_loop() -> None:
    clock = FakeClock()
    agent = DummyAgent(clock)
    engine, health, _ = _engine(
        clock, agent,
        capture_interval=5.0, stale_check_interval=0.0, failure_check_interval=0.0, status_interval=-1.0, max_cycles=3,
    )

    report = engine.run()

    assert report["cycles"] == 3
    assert health.stale_checks


def test_from_config_clamps_health_intervals() -> None:
    from utils.config import HealthRuntimeConfig

    health = HealthRuntimeConfig(
        stale_timeout=720.0, max_failures=6, stale_check_interval=0.0,
        failure_check_interval=-3.0, status_interval=0.0, discrepancy_threshold=10.0,
    )
    config = EngineConfig.from_config(health)

    assert config.stale_check_interval > 0
    assert config.failure_check_interval > 0
    assert config.status_interval > 0
