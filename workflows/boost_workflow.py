"""Boost workflow: one capture → OCR → parse → reconcile → notify cycle.

Steps:

1. Capture the mirrored screen; a failed or empty capture counts as a
   failed cycle and stops here.
2. OCR the percentage crop; no percentage means a parse miss.
3. OCR the odds crop (grayscale) and the details crop.  Missing odds do
   not fail the cycle; the observation carries ``None`` odds.
4. Hand the observation to the reconciler.  Only a ``NEW_BOOST``
   transition produces an alert (plus a discrepancy alert when the
   detected and implied percentages disagree).  Once a new boost is
   recorded, failures while building or delivering the alert are logged
   and never abort it.
5. Publish the current boost and health counters to the status store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from core.boost_calculator import DEFAULT_DISCREPANCY_THRESHOLD, BoostCalculation, verify
from core.details_parser import has_see_all
from core.odds_parser import OddsTextParser
from core.percentage_parser import PercentageTextParser
from core.reconciler import BoostObservation, BoostReconciler, Transition
from utils.image_cleanup import save_crop
from utils.logger import SentinelLogger
from workflows.protocol import SupportsCapture, SupportsNotifier, SupportsOCR, SupportsStatusStore

_log = logging.getLogger("boost.workflow")
_console = SentinelLogger("Workflow")

STATUS_NEW_BOOST = "new_boost"
STATUS_REPEAT = "repeat"
STATUS_PARSE_MISS = "parse_miss"
STATUS_CAPTURE_FAILED = "capture_failed"
STATUS_ERROR = "error"


@dataclass(slots=True)
class BoostArtifacts:
    """Everything an alert needs besides the observation itself."""

    boost_image: str | None = None
    odds_image: str | None = None
    details_image: str | None = None
    boost_text: str = ""
    odds_text: str = ""
    details_text: str = ""
    has_see_all: bool = False
    calculation: BoostCalculation | None = None


@dataclass(slots=True)
class CycleOutcome:
    """What happened in one cycle; returned to the engine."""

    status: str
    observation: BoostObservation | None = None
    calculation: BoostCalculation | None = None
    transition: Transition | None = None
    reason: str = ""

    @property
    def is_new_boost(self) -> bool:
        return self.status == STATUS_NEW_BOOST


@dataclass(slots=True)
class BoostWorkflow:
    """Drives a single detection cycle.

    Attributes:
        capture:    Screen grabber returning a ``CaptureResult``.
        ocr:        Text reader for the three crops.
        reconciler: Owner of the current boost identity and counters.
        notifier:   Alert sink (optional).
        status:     Snapshot publisher (optional).
        alerts_dir: Where crops attached to alerts are written.
        debug_dir:  Where crops of failed cycles are written when
                    ``save_debug`` is set.
    """

    capture: SupportsCapture
    ocr: SupportsOCR
    reconciler: BoostReconciler
    notifier: SupportsNotifier | None = None
    status: SupportsStatusStore | None = None
    discrepancy_threshold: float = DEFAULT_DISCREPANCY_THRESHOLD
    alerts_dir: str = "alerts"
    debug_dir: str = "debug"
    save_debug: bool = False
    odds_parser: OddsTextParser = field(default_factory=OddsTextParser)
    percentage_parser: PercentageTextParser = field(default_factory=PercentageTextParser)

    def _fail(self, status: str, reason: str) -> CycleOutcome:
        count = self.reconciler.record_failure(reason)
        _console.warn(f"{reason} (consecutive failures={count})")
        self._publish_health()
        return CycleOutcome(status=status, reason=reason)

    def _publish_health(self) -> None:
        if self.status is not None:
            self.status.publish_health(self.reconciler.health_snapshot())

    def _save_debug(self, result: Any, label: str) -> None:
        if not self.save_debug:
            return
        for name in ("boost", "odds", "details"):
            save_crop(getattr(result, name), self.debug_dir, f"{label}_{name}", result.captured_at)

    def execute(self) -> CycleOutcome:
        result = self.capture.capture()
        if result.failed:
            return self._fail(STATUS_CAPTURE_FAILED, result.reason or "capture_failed")
        if result.too_small:
            self._save_debug(result, "small")
            return self._fail(STATUS_CAPTURE_FAILED, result.reason or "too_small")

        boost_text = self.ocr.read_percentage_text(result.boost)
        percentage = self.percentage_parser.parse(boost_text)
        if percentage is None:
            _log.debug("no percentage in %r", boost_text)
            self._save_debug(result, "miss")
            return self._fail(STATUS_PARSE_MISS, "parse_miss")

        odds_text = self.ocr.read_odds_text(result.odds_gray if result.odds_gray is not None else result.odds)
        pair = self.odds_parser.parse(odds_text)
        if pair is None:
            _log.info("no odds pair in %r", odds_text)

        observation = BoostObservation(
            percentage=percentage,
            was_odds=pair.pre if pair else None,
            now_odds=pair.post if pair else None,
            observed_at=result.captured_at,
        )
        calculation = verify(percentage, pair.pre, pair.post, self.discrepancy_threshold) if pair else None
        transition = self.reconciler.observe(observation)

        if transition is Transition.REPEAT:
            _console.status(f"same boost {percentage:g}% {observation.odds_label()}")
            self._publish_health()
            return CycleOutcome(STATUS_REPEAT, observation, calculation, transition)

        # The identity is already recorded, so nothing below may abort the alert.
        artifacts = self._collect_artifacts(result, boost_text, odds_text, calculation)
        _console.highlight(f"NEW BOOST {percentage:g}% {observation.odds_label()}".rstrip())
        if calculation is not None:
            _log.info(
                "verification detected=%s calculated=%s discrepancy=%.2f",
                calculation.detected_percentage, calculation.calculated_percentage, calculation.discrepancy,
            )
        self._deliver(observation, artifacts)
        return CycleOutcome(STATUS_NEW_BOOST, observation, calculation, transition)

    def _collect_artifacts(
        self,
        result: Any,
        boost_text: str,
        odds_text: str,
        calculation: BoostCalculation | None,
    ) -> BoostArtifacts:
        """Details OCR and alert crops; whatever fails is left empty."""
        artifacts = BoostArtifacts(boost_text=boost_text, odds_text=odds_text, calculation=calculation)
        try:
            artifacts.details_text = self.ocr.read_details_text(result.details)
            artifacts.has_see_all = has_see_all(artifacts.details_text)
        except Exception:
            _log.exception("details OCR failed, alerting without details")
        try:
            artifacts.boost_image = save_crop(result.boost, self.alerts_dir, "boost", result.captured_at)
            artifacts.odds_image = save_crop(result.odds, self.alerts_dir, "odds", result.captured_at)
            artifacts.details_image = save_crop(result.details, self.alerts_dir, "details", result.captured_at)
        except Exception:
            _log.exception("saving alert crops failed")
        return artifacts

    def _deliver(self, observation: BoostObservation, artifacts: BoostArtifacts) -> None:
        calculation = artifacts.calculation
        if self.notifier is not None:
            try:
                self.notifier.post_boost_alert(observation, artifacts)
                if calculation is not None and calculation.is_significant:
                    self.notifier.post_discrepancy_alert(calculation)
            except Exception:
                _log.exception("boost alert delivery raised")
        if self.status is not None:
            try:
                self.status.publish_boost(observation)
            except Exception:
                _log.exception("status publish raised")
        self._publish_health()
