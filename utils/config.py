"""Runtime configuration dataclasses for capture, OCR, notifier and health.

Each dataclass reads its defaults through :data:`utils.sentinel_config.cfg`
at construction time (``BOOST_*`` env > ``config.yaml`` > literal default).
Override individual fields when constructing from code (e.g. in tests).

NOTE: every field uses ``default_factory`` so values are read at
**instantiation** time, which keeps ``monkeypatch.setenv`` effective.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from utils.sentinel_config import cfg

Region = tuple[int, int, int, int]

# Crop regions (x, y, w, h) for the mirrored phone in portrait.
DEFAULT_BOOST_REGION = "890,447,144,35"
DEFAULT_ODDS_REGION = "762,493,420,35"
DEFAULT_DETAILS_REGION = "737,560,445,280"


def parse_region(value: str) -> Region | None:
    """Parse ``"x,y,w,h"`` into a tuple; ``None`` when malformed or empty."""
    raw = (value or "").strip().replace(" ", "")
    if not raw:
        return None
    parts = raw.split(",")
    if len(parts) != 4:
        return None
    try:
        x, y, w, h = (int(part) for part in parts)
    except ValueError:
        return None
    if w <= 0 or h <= 0:
        return None
    return (max(0, x), max(0, y), w, h)


@dataclass(slots=True)
class CaptureRuntimeConfig:
    """Screen capture source and crop geometry.

    ``backend`` is ``mss`` (desktop mirror window) or ``adb``
    (``exec-out screencap``).  ``monitor`` indexes ``mss().monitors``;
    ``0`` means "probe for the active monitor at startup".
    """

    backend: str = field(default_factory=lambda: cfg.get_str("capture.backend", "mss").strip().lower())
    monitor: int = field(default_factory=lambda: cfg.get_int("capture.monitor", 0))
    adb_path: str = field(default_factory=lambda: cfg.get_str("capture.adb_path", "adb"))
    adb_device: str = field(default_factory=lambda: cfg.get_str("capture.adb_device", ""))
    boost_region: str = field(default_factory=lambda: cfg.get_str("capture.boost_region", DEFAULT_BOOST_REGION))
    odds_region: str = field(default_factory=lambda: cfg.get_str("capture.odds_region", DEFAULT_ODDS_REGION))
    details_region: str = field(default_factory=lambda: cfg.get_str("capture.details_region", DEFAULT_DETAILS_REGION))
    min_crop_stddev: float = field(default_factory=lambda: cfg.get_float("capture.min_crop_stddev", 3.0))
    debug_dir: str = field(default_factory=lambda: cfg.get_str("capture.debug_dir", "debug"))
    save_debug: bool = field(default_factory=lambda: cfg.get_bool("capture.save_debug", False))

    def regions(self) -> dict[str, Region]:
        """Effective crop regions keyed by name; malformed values use defaults."""
        resolved: dict[str, Region] = {}
        for key, raw, default in (
            ("boost", self.boost_region, DEFAULT_BOOST_REGION),
            ("odds", self.odds_region, DEFAULT_ODDS_REGION),
            ("details", self.details_region, DEFAULT_DETAILS_REGION),
        ):
            region = parse_region(raw) or parse_region(default)
            assert region is not None
            resolved[key] = region
        return resolved


@dataclass(slots=True)
class OCRRuntimeConfig:
    """Tesseract backend settings."""

    tesseract_cmd: str = field(default_factory=lambda: cfg.get_str("ocr.tesseract_cmd", "").strip())
    language: str = field(default_factory=lambda: cfg.get_str("ocr.language", "eng"))
    percentage_height: int = field(default_factory=lambda: cfg.get_int("ocr.percentage_height", 150))
    odds_height: int = field(default_factory=lambda: cfg.get_int("ocr.odds_height", 400))
    threshold: int = field(default_factory=lambda: cfg.get_int("ocr.threshold", 128))


@dataclass(slots=True)
class NotifierConfig:
    """Discord webhook routing and role mentions."""

    boosts_webhook: str = field(default_factory=lambda: cfg.get_str("notifier.boosts_webhook", ""))
    high_boosts_webhook: str = field(default_factory=lambda: cfg.get_str("notifier.high_boosts_webhook", ""))
    super_high_boosts_webhook: str = field(default_factory=lambda: cfg.get_str("notifier.super_high_boosts_webhook", ""))
    system_webhook: str = field(default_factory=lambda: cfg.get_str("notifier.system_webhook", ""))
    status_webhook: str = field(default_factory=lambda: cfg.get_str("notifier.status_webhook", ""))
    discrepancy_webhook: str = field(default_factory=lambda: cfg.get_str("notifier.discrepancy_webhook", ""))
    high_boost_threshold: float = field(default_factory=lambda: cfg.get_float("notifier.high_boost_threshold", 28.5))
    super_high_boost_threshold: float = field(default_factory=lambda: cfg.get_float("notifier.super_high_boost_threshold", 50.0))
    high_boost_role: str = field(default_factory=lambda: cfg.get_str("notifier.high_boost_role", ""))
    short_odds_role: str = field(default_factory=lambda: cfg.get_str("notifier.short_odds_role", ""))
    discrepancy_role: str = field(default_factory=lambda: cfg.get_str("notifier.discrepancy_role", ""))
    limited_selections_mention: str = field(default_factory=lambda: cfg.get_str("notifier.limited_selections_mention", ""))
    failure_mention: str = field(default_factory=lambda: cfg.get_str("notifier.failure_mention", ""))
    stale_mention: str = field(default_factory=lambda: cfg.get_str("notifier.stale_mention", "@everyone"))
    timeout_seconds: float = field(default_factory=lambda: cfg.get_float("notifier.timeout_seconds", 20.0))
    dry_run: bool = field(default_factory=lambda: cfg.get_bool("notifier.dry_run", False))


@dataclass(slots=True)
class HealthRuntimeConfig:
    """Thresholds and tick intervals (seconds) for the health watches."""

    stale_timeout: float = field(default_factory=lambda: cfg.get_float("health.stale_timeout_seconds", 720.0))
    max_failures: int = field(default_factory=lambda: cfg.get_int("health.max_failures", 6))
    stale_check_interval: float = field(default_factory=lambda: cfg.get_float("health.stale_check_interval", 120.0))
    failure_check_interval: float = field(default_factory=lambda: cfg.get_float("health.failure_check_interval", 60.0))
    status_interval: float = field(default_factory=lambda: cfg.get_float("health.status_interval", 1800.0))
    discrepancy_threshold: float = field(default_factory=lambda: cfg.get_float("health.discrepancy_threshold", 10.0))


@dataclass(slots=True)
class StatusStoreConfig:
    """Where the last-boost/health snapshot is published."""

    redis_url: str = field(default_factory=lambda: cfg.get_str("status.redis_url", "redis://127.0.0.1:6379/0"))
    key_prefix: str = field(default_factory=lambda: cfg.get_str("status.key_prefix", "boost_sentinel"))
    enabled: bool = field(default_factory=lambda: cfg.get_bool("status.redis_enabled", True))
