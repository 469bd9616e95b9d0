"""Sentinel Config: central loader for ``config.yaml``.

Values are looked up by dotted key.  A ``BOOST_*`` environment variable
**always wins** over the YAML file; the file is the friendly fallback and
the getter's ``default`` the last resort.  A value that cannot be coerced
to the requested type is skipped, so a typo in the environment falls
through to the file instead of crashing the monitor.

Usage::

    from utils.sentinel_config import cfg

    cfg.get_float("capture.interval_seconds")   # 7.5
    cfg.get_str("notifier.boosts_webhook")      # "https://discord.com/api/webhooks/..."
    cfg.get_bool("notifier.dry_run")            # False

``capture.interval_seconds`` is overridden by ``BOOST_CAPTURE_INTERVAL_SECONDS``;
``BOOST_CONFIG_FILE`` points at a different YAML file.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Any, Callable, TypeVar

import yaml

_log = logging.getLogger("boost.config")

T = TypeVar("T")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _find_config_path() -> Path:
    """``BOOST_CONFIG_FILE`` if set, else the first ``config.yaml`` found near the code."""
    override = os.getenv("BOOST_CONFIG_FILE", "").strip()
    if override:
        return Path(override)
    here = Path(__file__).resolve().parent
    for folder in (Path.cwd(), here, here.parent):
        if (folder / "config.yaml").exists():
            return folder / "config.yaml"
    return here.parent / "config.yaml"


def env_key(dotted_key: str) -> str:
    """``capture.interval_seconds`` -> ``BOOST_CAPTURE_INTERVAL_SECONDS``."""
    return "BOOST_" + dotted_key.upper().replace(".", "_")


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"not a boolean: {value!r}")


class SentinelConfig:
    """Configuration access with ``env > yaml > default`` priority.

    The YAML file is read lazily on first access; :meth:`reload` re-reads it.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path is not None else None
        self._data: dict[str, Any] | None = None
        self._lock = threading.Lock()

    def _read_file(self) -> dict[str, Any]:
        path = self._path or _find_config_path()
        if not path.exists():
            return {}
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            _log.warning("could not read %s: %s", path, exc)
            return {}
        return raw if isinstance(raw, dict) else {}

    def _document(self) -> dict[str, Any]:
        with self._lock:
            if self._data is None:
                self._data = self._read_file()
            return self._data

    def reload(self) -> None:
        with self._lock:
            self._data = self._read_file()

    def _from_file(self, dotted_key: str) -> Any:
        node: Any = self._document()
        for part in dotted_key.split("."):
            if not isinstance(node, dict):
                return None
            node = node.get(part)
        return node

    def _get(self, key: str, default: T, convert: Callable[[Any], T]) -> T:
        # env first, then file; unconvertible values fall through
        for raw in (os.getenv(env_key(key), "").strip() or None, self._from_file(key)):
            if raw is None:
                continue
            try:
                return convert(raw)
            except (TypeError, ValueError):
                _log.debug("ignoring %s=%r", key, raw)
        return default

    # ── Typed getters ─────────────────────────────────────────────

    def get_str(self, key: str, default: str = "") -> str:
        return self._get(key, default, str)

    def get_int(self, key: str, default: int = 0) -> int:
        return self._get(key, default, int)

    def get_float(self, key: str, default: float = 0.0) -> float:
        return self._get(key, default, float)

    def get_bool(self, key: str, default: bool = False) -> bool:
        return self._get(key, default, _to_bool)

    def get_dict(self, key: str) -> dict[str, Any]:
        node = self._from_file(key)
        return dict(node) if isinstance(node, dict) else {}

    def __repr__(self) -> str:
        return f"<SentinelConfig sections={list(self._document())}>"


# ── Global singleton ─────────────────────────────────────────────
cfg = SentinelConfig()
