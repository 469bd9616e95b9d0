"""Colored terminal logger for Boost Sentinel.

Each line carries a wall-clock stamp, a coloured ``[Module]`` tag and a
one-character level mark, so a monitor left running for hours can be
skimmed at a glance.  Colour is dropped when stdout is not a terminal or
when ``BOOST_NO_COLOR=1`` / ``NO_COLOR`` is set.
"""

from __future__ import annotations

import os
import sys
import time

_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"

PALETTE: dict[str, str] = {
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "magenta": "\033[35m",
    "cyan": "\033[36m",
    "white": "\033[37m",
    "bright_green": "\033[92m",
    "bright_yellow": "\033[93m",
    "bright_cyan": "\033[96m",
}

# (mark, colour) per level
_LEVELS: dict[str, tuple[str, str]] = {
    "info": (">", "green"),
    "success": ("+", "bright_green"),
    "warn": ("!", "yellow"),
    "error": ("X", "red"),
}

_MODULE_COLORS: dict[str, str] = {
    "Engine": "cyan",
    "Workflow": "magenta",
    "Capture": "blue",
    "OCR": "bright_cyan",
    "Reconciler": "green",
    "Health": "red",
    "Notifier": "bright_yellow",
    "Status": "yellow",
}


def _supports_color() -> bool:
    if os.getenv("BOOST_NO_COLOR", "").strip().lower() in {"1", "true", "yes"} or os.getenv("NO_COLOR"):
        return False
    if os.name == "nt":
        try:
            import ctypes
            kernel32 = ctypes.windll.kernel32  # type: ignore[attr-defined]
            return bool(kernel32.SetConsoleMode(kernel32.GetStdHandle(-11), 7))
        except (AttributeError, OSError):
            return bool(os.getenv("WT_SESSION")) or os.getenv("TERM_PROGRAM") == "vscode"
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


_COLOR_ENABLED = _supports_color()


class SentinelLogger:
    """Console logger bound to one module tag."""

    def __init__(self, module: str) -> None:
        self.module = module
        self._color = PALETTE[_MODULE_COLORS.get(module, "white")]

    def _tag(self) -> str:
        if _COLOR_ENABLED:
            return f"{self._color}{_BOLD}[{self.module}]{_RESET}"
        return f"[{self.module}]"

    def _emit(self, level: str, message: str) -> None:
        mark, color = _LEVELS[level]
        stamp = time.strftime("%H:%M:%S")
        if _COLOR_ENABLED:
            print(f"{_DIM}{stamp}{_RESET} {self._tag()} {PALETTE[color]}{mark}{_RESET} {message}")
        else:
            print(f"{stamp} {self._tag()} {mark} {message}")

    def info(self, message: str) -> None:
        self._emit("info", message)

    def success(self, message: str) -> None:
        self._emit("success", message)

    def warn(self, message: str) -> None:
        self._emit("warn", message)

    def error(self, message: str) -> None:
        self._emit("error", message)

    def status(self, message: str) -> None:
        """Dimmed line for routine events (repeat boosts)."""
        body = f"{_DIM}{message}{_RESET}" if _COLOR_ENABLED else message
        print(f"{self._tag()} {body}")

    def highlight(self, message: str) -> None:
        """Bold line for events worth noticing (new boosts, startup)."""
        if _COLOR_ENABLED:
            print(f"{self._color}{_BOLD}[{self.module}] * {message}{_RESET}")
        else:
            print(f"[{self.module}] * {message}")
