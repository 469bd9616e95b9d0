"""Tests for agent.screen_capture: crop geometry and capture verdicts."""

from __future__ import annotations

import subprocess
from typing import Any

import pytest

np = pytest.importorskip("numpy")
pytest.importorskip("cv2")

from agent.screen_capture import CaptureResult, ScreenCapture, crop_region, crop_stddev, encoded_size  # noqa: E402
from utils.config import CaptureRuntimeConfig  # noqa: E402


def _config(**overrides: Any) -> CaptureRuntimeConfig:
    values = dict(
        backend="mss",
        monitor=1,
        adb_path="adb",
        adb_device="",
        boost_region="890,447,144,35",
        odds_region="762,493,420,35",
        details_region="737,560,445,280",
        min_crop_stddev=3.0,
        debug_dir="debug",
        save_debug=False,
    )
    values.update(overrides)
    return CaptureRuntimeConfig(**values)


def _noise_frame(width: int = 1280, height: int = 900) -> Any:
    rng = np.random.default_rng(7)
    return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)


class TestCropHelpers:
    def test_crop_region_slices_x_y_w_h(self) -> None:
        frame = np.zeros((100, 200, 3), dtype=np.uint8)
        frame[10:20, 30:70] = 255
        crop = crop_region(frame, (30, 10, 40, 10))
        assert crop.shape == (10, 40, 3)
        assert int(crop.min()) == 255

    def test_crop_region_outside_frame(self) -> None:
        frame = np.zeros((100, 200, 3), dtype=np.uint8)
        assert crop_region(frame, (190, 0, 20, 10)) is None
        assert crop_region(None, (0, 0, 1, 1)) is None

    def test_stddev_of_flat_crop_is_zero(self) -> None:
        assert crop_stddev(np.full((10, 10, 3), 80, dtype=np.uint8)) == 0.0
        assert crop_stddev(None) == 0.0

    def test_noise_encodes_larger_than_flat(self) -> None:
        flat = np.zeros((35, 144, 3), dtype=np.uint8)
        noisy = _noise_frame(144, 35)
        assert encoded_size(flat) < 500 < encoded_size(noisy)


class TestCropFrame:
    def test_usable_capture(self) -> None:
        capture = ScreenCapture(_config())
        result = capture.crop_frame(_noise_frame(), captured_at=42.0)
        assert result.usable
        assert result.captured_at == 42.0
        assert result.boost.shape == (35, 144, 3)
        assert result.odds_gray.shape == (35, 420)
        assert result.details.shape == (280, 445, 3)

    def test_flat_frame_is_too_small(self) -> None:
        capture = ScreenCapture(_config())
        result = capture.crop_frame(np.zeros((900, 1280, 3), dtype=np.uint8), captured_at=1.0)
        assert result.too_small
        assert not result.failed
        assert not result.usable
        assert result.reason == "too_small:boost,odds,details"

    def test_region_outside_frame_fails(self) -> None:
        capture = ScreenCapture(_config())
        result = capture.crop_frame(_noise_frame(800, 600), captured_at=1.0)
        assert result.failed
        assert result.reason == "boost_out_of_bounds"
        assert result.boost is None

    def test_missing_frame_fails(self) -> None:
        result = ScreenCapture(_config()).crop_frame(None, captured_at=1.0)
        assert result.failed
        assert result.reason == "no_frame"

    def test_grab_error_becomes_failed_capture(self, monkeypatch: pytest.MonkeyPatch) -> None:
        capture = ScreenCapture(_config())

        def broken() -> None:
            raise RuntimeError("display gone")

        monkeypatch.setattr(capture, "grab_frame", broken)
        result = capture.capture()
        assert isinstance(result, CaptureResult)
        assert result.failed
        assert result.reason == "grab_error:RuntimeError"


class TestAdbBackend:
    def test_screencap_command_and_failure(self, monkeypatch: pytest.MonkeyPatch) -> None:
        seen: list[list[str]] = []

        def fake_run(cmd: list[str], **_kwargs: Any) -> subprocess.CompletedProcess:
            seen.append(cmd)
            return subprocess.CompletedProcess(cmd, 1, stdout=b"", stderr=b"no device")

        monkeypatch.setattr(subprocess, "run", fake_run)
        capture = ScreenCapture(_config(backend="adb", adb_device="emulator-5554"))
        result = capture.capture()
        assert seen == [["adb", "-s", "emulator-5554", "exec-out", "screencap", "-p"]]
        assert result.failed
        assert result.reason == "no_frame"

    def test_screencap_png_is_decoded(self, monkeypatch: pytest.MonkeyPatch) -> None:
        import cv2

        ok, png = cv2.imencode(".png", _noise_frame())
        assert ok

        def fake_run(cmd: list[str], **_kwargs: Any) -> subprocess.CompletedProcess:
            return subprocess.CompletedProcess(cmd, 0, stdout=png.tobytes(), stderr=b"")

        monkeypatch.setattr(subprocess, "run", fake_run)
        result = ScreenCapture(_config(backend="adb")).capture()
        assert result.usable
        assert result.full.shape == (900, 1280, 3)
