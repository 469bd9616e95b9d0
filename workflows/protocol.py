"""Structural interfaces for the collaborators of :class:`BoostWorkflow`.

Kept in their own module so the workflow and its tests can type against
them without importing OpenCV, Tesseract, Redis or requests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from agent.screen_capture import CaptureResult
    from core.boost_calculator import BoostCalculation
    from core.reconciler import BoostObservation, HealthCounters
    from workflows.boost_workflow import BoostArtifacts


class SupportsCapture(Protocol):
    """Implementations: :class:`agent.screen_capture.ScreenCapture`."""

    def capture(self) -> CaptureResult: ...


class SupportsOCR(Protocol):
    """Implementations: :class:`agent.vision_ocr.BoostOCR`."""

    def read_percentage_text(self, image: Any) -> str: ...

    def read_odds_text(self, gray_image: Any) -> str: ...

    def read_details_text(self, image: Any) -> str: ...


class SupportsNotifier(Protocol):
    """Implementations: :class:`tools.discord_notifier.DiscordNotifier`."""

    def post_boost_alert(self, observation: BoostObservation, artifacts: BoostArtifacts) -> object: ...

    def post_discrepancy_alert(self, calculation: BoostCalculation) -> object: ...

    def post_health_alert(self, message: str) -> object: ...


class SupportsStatusStore(Protocol):
    """Implementations: :class:`memory.status_store.StatusStore`."""

    def publish_boost(self, observation: BoostObservation) -> None: ...

    def publish_health(self, counters: HealthCounters) -> None: ...
