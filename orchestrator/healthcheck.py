"""Quick health-check for the sentinel pipeline.

Bootstraps the full stack and runs a single cycle to verify end-to-end
connectivity (capture → OCR → parse → status store).
"""

from __future__ import annotations

from orchestrator.engine import Engine, EngineConfig


def main() -> int:
    """Bootstrap and run one cycle; return ``0`` on success, ``1`` on failure."""
    engine = Engine(config=EngineConfig.from_config())
    engine.bootstrap()

    if engine.agent is None:
        print("[Healthcheck] FAIL: cycle agent not created")
        return 1

    outcome = engine.agent.step()
    print(f"[Healthcheck] OK status_backend={getattr(engine.status, 'backend', 'n/a')}")
    print(f"[Healthcheck] {'FAIL' if outcome.status == 'error' else 'OK'} first_outcome={outcome.status} {outcome.reason}".rstrip())
    return 1 if outcome.status == "error" else 0


if __name__ == "__main__":
    raise SystemExit(main())
