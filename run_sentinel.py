"""Launcher for Boost Sentinel.

Startup sequence:

  1. Enable ANSI colours on Windows terminals.
  2. Apply CLI overrides (they become ``BOOST_*`` env vars, so every
     config reader sees them).
  3. Check the Tesseract binary and Redis (Redis is optional).
  4. Start the engine loop in the main thread.

Usage::

    python run_sentinel.py
    python run_sentinel.py --backend adb --interval 5
    python run_sentinel.py --dry-run --max-cycles 10
    python run_sentinel.py --healthcheck
"""

from __future__ import annotations

import argparse
import logging
import os
import time

_RESET = "\033[0m"
_BOLD = "\033[1m"
_RED = "\033[91m"
_GREEN = "\033[92m"
_YELLOW = "\033[93m"
_CYAN = "\033[96m"
_MAGENTA = "\033[95m"


def _enable_ansi_windows() -> None:
    if os.name != "nt":
        return
    try:
        import ctypes
        kernel32 = ctypes.windll.kernel32  # type: ignore[attr-defined]
        kernel32.SetConsoleMode(kernel32.GetStdHandle(-11), 7)
    except (AttributeError, OSError):
        pass


def _banner() -> None:
    print(f"""
{_CYAN}{_BOLD}╔══════════════════════════════════════════════════════════╗
║                 🚀  BOOST SENTINEL  🚀                    ║
║         Odds boost detection for mirrored screens        ║
║                                                          ║
║   Capture: mss / adb screencap                           ║
║   OCR:     OpenCV + Tesseract                            ║
║   Alerts:  Discord webhooks                              ║
╚══════════════════════════════════════════════════════════╝{_RESET}
""")


def _log(level: str, msg: str) -> None:
    colors = {"INFO": _CYAN, "OK": _GREEN, "WARN": _YELLOW, "ERROR": _RED, "STEP": _MAGENTA}
    color = colors.get(level, _RESET)
    print(f"{_BOLD}[{time.strftime('%H:%M:%S')}]{_RESET} {color}[{level}]{_RESET} {msg}")


def check_tesseract(explicit: str = "") -> bool:
    """Report whether the ``tesseract`` binary can be found."""
    from agent.vision_ocr import resolve_tesseract_cmd

    cmd = resolve_tesseract_cmd(explicit)
    if cmd:
        _log("OK", f"Tesseract: {_GREEN}{cmd}{_RESET}")
        return True
    _log("ERROR", "Tesseract not found; install it or set ocr.tesseract_cmd")
    return False


def check_redis(redis_url: str) -> bool:
    """Report whether Redis answers; the sentinel runs without it."""
    import redis

    try:
        redis.Redis.from_url(redis_url, socket_timeout=3).ping()
    except redis.RedisError as err:
        _log("WARN", f"Redis unreachable ({err}); status kept in memory")
        return False
    _log("OK", f"Redis reachable at {_GREEN}{redis_url}{_RESET}")
    return True


def _apply_overrides(args: argparse.Namespace) -> None:
    overrides = {
        "BOOST_CONFIG_FILE": args.config,
        "BOOST_CAPTURE_BACKEND": args.backend,
        "BOOST_CAPTURE_INTERVAL_SECONDS": args.interval,
        "BOOST_CAPTURE_MONITOR": args.monitor,
        "BOOST_ENGINE_MAX_CYCLES": args.max_cycles,
        "BOOST_NOTIFIER_DRY_RUN": "1" if args.dry_run else None,
        "BOOST_CAPTURE_SAVE_DEBUG": "1" if args.save_debug else None,
    }
    for key, value in overrides.items():
        if value not in (None, ""):
            os.environ[key] = str(value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Boost Sentinel: odds boost detection and alerts")
    parser.add_argument("--config", type=str, default="", help="Path to config.yaml")
    parser.add_argument("--backend", choices=("mss", "adb"), default=None, help="Capture backend")
    parser.add_argument("--monitor", type=int, default=None, help="mss monitor index (0 = probe)")
    parser.add_argument("--interval", type=float, default=None, help="Seconds between captures (default: 7.5)")
    parser.add_argument("--max-cycles", type=int, default=None, help="Stop after N cycles")
    parser.add_argument("--dry-run", action="store_true", help="Print alerts instead of posting them")
    parser.add_argument("--save-debug", action="store_true", help="Save crops of failed cycles to debug/")
    parser.add_argument("--healthcheck", action="store_true", help="Run a single cycle and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    _enable_ansi_windows()
    args = build_parser().parse_args(argv)
    _apply_overrides(args)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if args.healthcheck:
        from orchestrator.healthcheck import main as healthcheck_main

        return healthcheck_main()

    _banner()
    from utils.config import OCRRuntimeConfig, StatusStoreConfig

    if not check_tesseract(OCRRuntimeConfig().tesseract_cmd):
        return 1
    status_config = StatusStoreConfig()
    if status_config.enabled:
        check_redis(status_config.redis_url)

    from orchestrator.engine import Engine, EngineConfig

    Engine(config=EngineConfig.from_config()).run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
