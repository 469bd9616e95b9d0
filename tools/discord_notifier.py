"""Discord webhook notifier.

Delivers boost alerts, discrepancy reports, health alerts, periodic status
updates and startup/shutdown notices through channel webhooks.

Routing
-------
* Every boost goes to ``boosts_webhook``.
* Boosts at or above ``high_boost_threshold`` (28.5 %) also go to
  ``high_boosts_webhook``; at or above ``super_high_boost_threshold``
  (50 %) also to ``super_high_boosts_webhook``.
* Health, startup and shutdown messages go to ``system_webhook``; status
  updates to ``status_webhook`` (falling back to the system webhook);
  discrepancies to ``discrepancy_webhook`` (same fallback).

Delivery is best-effort: HTTP failures are logged and reported as a
``False`` return value, never raised.  ``dry_run`` prints instead.
"""

from __future__ import annotations

import json
import logging
import os
import random
import time
from contextlib import ExitStack
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from core.boost_calculator import BoostCalculation, format_discrepancy_message
from core.odds import normalize_odds
from core.reconciler import BoostObservation
from utils.config import NotifierConfig
from utils.logger import SentinelLogger

_log = logging.getLogger("boost.notifier")
_console = SentinelLogger("Notifier")

MAX_CONTENT_LENGTH = 1900
_TRIMMED = "\n…(trimmed)"
SEPARATOR = "-" * 42
SHORT_ODDS_MIN_PERCENTAGE = 24.0
SHORT_ODDS_MAX_PERCENTAGE = 49.5
SHORT_ODDS_MAX_PRE = 500
VERIFICATION_MIN_DISCREPANCY = 10.0

STARTUP_MESSAGES: tuple[str, ...] = (
    "🤖 **Boost sentinel online.** Watching the screen for new boosts. 👀",
    "🚀 **Liftoff!** Boost detection is running and ready to catch percentages. 🎯",
    "🔍 **Scanner engaged.** Every boost that shows up gets reported. 🔎",
)
SHUTDOWN_MESSAGES: tuple[str, ...] = (
    "🛑 **Boost sentinel shutting down.** Back soon. 💤",
    "🌙 **Going offline.** Monitoring paused until the next start. 😴",
    "🚪 **Logging off.** No boosts will be reported until restart. 👋",
)


def make_session() -> requests.Session:
    """HTTP session with retry/backoff on rate limits and 5xx."""
    session = requests.Session()
    retries = Retry(
        total=4,
        backoff_factor=1.0,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset(["POST"]),
        raise_on_status=False,
    )
    session.mount("https://", HTTPAdapter(max_retries=retries))
    session.headers.update({"User-Agent": "boost-sentinel/1.0"})
    return session


def boost_headline(percentage: float) -> str:
    """Bold headline with the emoji tier for *percentage*."""
    value = f"{percentage:g}"
    if percentage >= 300:
        return f"**☢☢☢{value}% Boost ☢☢☢**"
    if percentage >= 200:
        return f"**🌶🌶{value}% Boost 🌶🌶**"
    if percentage >= 100:
        return f"**🚀{value}% Boost 🚀**"
    return f"**{value}% Boost**"


def _odds_number(odds: str | None) -> int | None:
    canonical = normalize_odds(odds)
    if canonical is None:
        return None
    return int(canonical)


def _role(role_id: str) -> str:
    role_id = role_id.strip()
    if not role_id:
        return ""
    if role_id.startswith("<") or role_id.startswith("@"):
        return role_id
    return f"<@&{role_id}>"


def format_uptime(seconds: float) -> str:
    total_minutes = int(max(0.0, seconds) // 60)
    return f"{total_minutes // 60}h {total_minutes % 60}m"


class DiscordNotifier:
    """Webhook client for every message the sentinel sends."""

    def __init__(
        self,
        config: NotifierConfig | None = None,
        session: Any | None = None,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or NotifierConfig()
        self.session = session if session is not None else make_session()
        self._rng = rng or random.Random()

    # ── Message builders ────────────────────────────────────────────

    def format_boost_message(self, observation: BoostObservation, artifacts: Any | None = None) -> str:
        percentage = observation.percentage
        content = boost_headline(percentage)
        if observation.was_odds:
            content = f"**{content.replace('**', '')} | {observation.odds_label()}**"

        calculation: BoostCalculation | None = getattr(artifacts, "calculation", None)
        if calculation is not None and calculation.discrepancy >= VERIFICATION_MIN_DISCREPANCY:
            content += (
                "\n\n📊 **Boost Verification:**"
                f"\n🎯 **Detected:** {calculation.detected_percentage:g}%"
                f"\n🧮 **Calculated:** {calculation.calculated_percentage:g}%"
                f"\n🚨 **Accuracy:** {calculation.discrepancy:.2f}% difference"
            )
            mention = _role(self.config.discrepancy_role)
            content += f"\n\n🚨 **SIGNIFICANT DISCREPANCY** {mention}".rstrip()

        if percentage >= self.config.super_high_boost_threshold:
            mention = _role(self.config.high_boost_role)
            if mention:
                content += f"\n{mention}"
        elif SHORT_ODDS_MIN_PERCENTAGE <= percentage <= SHORT_ODDS_MAX_PERCENTAGE:
            pre = _odds_number(observation.was_odds)
            mention = _role(self.config.short_odds_role)
            if pre is not None and pre < SHORT_ODDS_MAX_PRE and mention:
                content += f"\n{mention} 🎯 **Short Odds Alert**"

        if artifacts is not None and not getattr(artifacts, "has_see_all", True):
            mention = _role(self.config.limited_selections_mention)
            if mention:
                content += f"\n{mention} 📋 **Limited selections**"
        return content

    def boost_webhooks(self, percentage: float) -> list[str]:
        """Webhooks a boost of *percentage* is delivered to, in order."""
        targets = [self.config.boosts_webhook]
        if percentage >= self.config.high_boost_threshold:
            targets.append(self.config.high_boosts_webhook)
        if percentage >= self.config.super_high_boost_threshold:
            targets.append(self.config.super_high_boosts_webhook)
        return [url for url in targets if url]

    # ── Delivery ────────────────────────────────────────────────────

    def _post(self, webhook: str, content: str = "", files: list[str] | None = None) -> bool:
        attachments = [path for path in (files or []) if path and os.path.isfile(path)]
        if not content and not attachments:
            return False
        if len(content) > MAX_CONTENT_LENGTH:
            content = content[:MAX_CONTENT_LENGTH - len(_TRIMMED)] + _TRIMMED

        if self.config.dry_run:
            _console.info(f"[dry-run] {content}" + (f" files={attachments}" if attachments else ""))
            return True
        if not webhook:
            _log.debug("no webhook configured, dropping message: %s", content[:80])
            return False

        payload: dict[str, Any] = {"allowed_mentions": {"parse": ["users", "roles", "everyone"]}}
        if content:
            payload["content"] = content
        try:
            if attachments:
                with ExitStack() as stack:
                    multipart = {
                        f"files[{index}]": (os.path.basename(path), stack.enter_context(open(path, "rb")), "image/png")
                        for index, path in enumerate(attachments)
                    }
                    response = self.session.post(
                        webhook,
                        data={"payload_json": json.dumps(payload)},
                        files=multipart,
                        timeout=self.config.timeout_seconds,
                    )
            else:
                response = self.session.post(webhook, json=payload, timeout=self.config.timeout_seconds)
        except (requests.RequestException, OSError) as exc:
            _log.error("Discord webhook failed: %s", exc)
            return False

        if response.status_code >= 400:
            _log.error("Discord webhook HTTP %s: %s", response.status_code, response.text[:200])
            return False
        return True

    # ── Public API ──────────────────────────────────────────────────

    def post_boost_alert(self, observation: BoostObservation, artifacts: Any | None = None) -> bool:
        """Send the boost message, its timestamp, crop images and a separator."""
        content = self.format_boost_message(observation, artifacts)
        stamp = time.strftime("%H:%M:%S", time.localtime(observation.observed_at))
        images = [
            getattr(artifacts, "boost_image", None),
            getattr(artifacts, "odds_image", None),
            getattr(artifacts, "details_image", None),
        ]
        delivered = False
        for webhook in self.boost_webhooks(observation.percentage) or [""]:
            if not self._post(webhook, content):
                continue
            delivered = True
            self._post(webhook, f"🕐 {stamp}", [path for path in images if path])
            self._post(webhook, SEPARATOR)
        if delivered:
            _console.success(f"boost alert sent: {observation.percentage:g}%")
        return delivered

    def post_discrepancy_alert(self, calculation: BoostCalculation) -> bool:
        webhook = self.config.discrepancy_webhook or self.config.system_webhook
        return self._post(webhook, format_discrepancy_message(calculation))

    def post_health_alert(self, message: str) -> bool:
        sent = self._post(self.config.system_webhook or self.config.boosts_webhook, message)
        if sent:
            _console.warn(f"health alert sent: {message}")
        return sent

    def post_status_update(
        self,
        *,
        uptime_seconds: float,
        total_boosts: int,
        last_observation: BoostObservation | None = None,
    ) -> bool:
        if last_observation is not None:
            when = time.strftime("%H:%M:%S", time.localtime(last_observation.observed_at))
            last_line = f"**Last Boost:** {last_observation.percentage:g}% at {when}"
        else:
            last_line = "**Last Boost:** None detected yet"
        message = (
            "🟢 **Bot Status Update** 🟢\n"
            "**Status:** Online & Monitoring\n"
            f"**Uptime:** {format_uptime(uptime_seconds)}\n"
            f"**Total Boosts Detected:** {total_boosts}\n"
            f"{last_line}"
        )
        return self._post(self.config.status_webhook or self.config.system_webhook, message)

    def post_startup_message(self) -> bool:
        return self._post(self.config.system_webhook, self._rng.choice(STARTUP_MESSAGES))

    def post_shutdown_message(self) -> bool:
        return self._post(self.config.system_webhook, self._rng.choice(SHUTDOWN_MESSAGES))
