from __future__ import annotations

from pathlib import Path

import pytest

from utils.image_cleanup import cleanup_directory, cleanup_old_images, save_crop


def test_cleanup_removes_only_images(tmp_path: Path) -> None:
    alerts = tmp_path / "alerts"
    alerts.mkdir()
    (alerts / "boost_1.png").write_bytes(b"x")
    (alerts / "odds_1.JPG").write_bytes(b"x")
    (alerts / "notes.txt").write_text("keep")
    assert cleanup_directory(str(alerts)) == 2
    assert [p.name for p in alerts.iterdir()] == ["notes.txt"]


def test_cleanup_missing_directory(tmp_path: Path) -> None:
    assert cleanup_directory(str(tmp_path / "nope")) == 0


def test_cleanup_old_images_walks_known_directories(tmp_path: Path) -> None:
    for name in ("alerts", "debug", "evidence", "other"):
        (tmp_path / name).mkdir()
        (tmp_path / name / "a.png").write_bytes(b"x")
    assert cleanup_old_images(str(tmp_path)) == 3
    assert (tmp_path / "other" / "a.png").exists()


def test_save_crop_none_image(tmp_path: Path) -> None:
    assert save_crop(None, str(tmp_path), "boost", 1.0) is None
    assert list(tmp_path.iterdir()) == []


def test_save_crop_writes_png(tmp_path: Path) -> None:
    np = pytest.importorskip("numpy")
    pytest.importorskip("cv2")
    image = np.zeros((10, 20, 3), dtype=np.uint8)
    path = save_crop(image, str(tmp_path / "alerts"), "boost", 12.5)
    assert path is not None
    assert Path(path).name == "boost_12500.png"
    assert Path(path).stat().st_size > 0
