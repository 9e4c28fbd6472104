from __future__ import annotations

import json
from pathlib import Path

import cv2
import numpy as np
import pytest

from tiny_yolo_detection.app import detect
from tiny_yolo_detection.app.config.profile import ModelProfile

PERSON = 14


class DummyScorer:
    """Pretends the model found one person in the centre cell of every image."""

    def __init__(self, model_path, profile: ModelProfile, providers=None, pixel_scale=1.0) -> None:
        self.params = (model_path, providers, pixel_scale)
        self.geometry = profile.geometry
        self.calls = 0

    def score(self, image: np.ndarray) -> np.ndarray:
        self.calls += 1
        raw = np.full(self.geometry.expected_size, -10.0, dtype=np.float32)
        offset = self.geometry.offset(6, 6, 0, 0)
        raw[offset : offset + 4] = 0.0
        raw[offset + 4] = 10.0
        raw[offset + 5 + PERSON] = 10.0
        return raw


def write_images(folder: Path) -> None:
    folder.mkdir(parents=True)
    cv2.imwrite(str(folder / "first.jpg"), np.full((300, 400, 3), 127, dtype=np.uint8))
    cv2.imwrite(str(folder / "second.png"), np.zeros((416, 416, 3), dtype=np.uint8))
    (folder / "broken.jpg").write_text("not an image", encoding="utf-8")
    (folder / "notes.txt").write_text("ignored", encoding="utf-8")


def test_main_smoke(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    images_dir = tmp_path / "images"
    output_dir = tmp_path / "output"
    write_images(images_dir)
    monkeypatch.setattr(detect, "OnnxModelScorer", DummyScorer)

    with pytest.raises(SystemExit) as excinfo:
        detect.main(
            [
                "--images",
                str(images_dir),
                "--output",
                str(output_dir),
                "--model",
                str(tmp_path / "model.onnx"),
                "--conf",
                "0.4",
                "--providers",
                "CPUExecutionProvider",
            ]
        )

    assert excinfo.value.code == 0
    records = json.loads((output_dir / "detections.json").read_text(encoding="utf-8"))
    assert [record["image_name"] for record in records] == ["first.jpg", "second.png"]
    for record in records:
        assert [detection["label"] for detection in record["detections"]] == ["person"]
        assert record["detections"][0]["confidence"] == pytest.approx(0.9999, abs=2e-4)
    assert (output_dir / "first.jpg").exists()
    assert (output_dir / "second.png").exists()


def test_main_without_saving_images(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    images_dir = tmp_path / "images"
    output_dir = tmp_path / "output"
    write_images(images_dir)
    monkeypatch.setattr(detect, "OnnxModelScorer", DummyScorer)

    with pytest.raises(SystemExit) as excinfo:
        detect.main(["--images", str(images_dir), "--output", str(output_dir), "--no-save"])

    assert excinfo.value.code == 0
    assert (output_dir / "detections.json").exists()
    assert sorted(path.name for path in output_dir.iterdir()) == ["detections.json"]


def test_run_detection_reports_configuration_errors(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    profile_path = tmp_path / "mismatch.yaml"
    profile_path.write_text(
        "\n".join(
            [
                "grid_rows: 2",
                "grid_cols: 2",
                "image_width: 64",
                "image_height: 64",
                "anchor_count: 3",
                "anchors:",
                "  - [1.0, 1.0]",
                "labels: [cat]",
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.setattr(detect, "OnnxModelScorer", DummyScorer)
    args = detect.build_arg_parser().parse_args(
        ["--profile", str(profile_path), "--images", str(tmp_path), "--output", str(tmp_path / "out")]
    )

    assert detect.run_detection(args) == 2


def test_run_detection_reports_missing_image_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    output_dir = tmp_path / "output"
    monkeypatch.setattr(detect, "OnnxModelScorer", DummyScorer)
    args = detect.build_arg_parser().parse_args(
        ["--images", str(tmp_path / "missing"), "--output", str(output_dir)]
    )

    assert detect.run_detection(args) == 2
    assert not (output_dir / "detections.json").exists()


def test_run_detection_reports_missing_model(tmp_path: Path) -> None:
    images_dir = tmp_path / "images"
    write_images(images_dir)
    args = detect.build_arg_parser().parse_args(
        [
            "--images",
            str(images_dir),
            "--output",
            str(tmp_path / "output"),
            "--model",
            str(tmp_path / "missing.onnx"),
        ]
    )

    assert detect.run_detection(args) == 2


def test_main_reports_invalid_threshold(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        detect.main(["--images", str(tmp_path), "--output", str(tmp_path / "output"), "--conf", "1.5"])

    assert excinfo.value.code == 2


def test_resolve_settings_applies_overrides(tmp_path: Path) -> None:
    args = detect.build_arg_parser().parse_args(
        [
            "--conf",
            "0.45",
            "--iou",
            "0.3",
            "--max-results",
            "7",
            "--providers",
            "CUDAExecutionProvider, CPUExecutionProvider",
            "--log-format",
            "json",
            "--output",
            str(tmp_path),
        ]
    )

    settings = detect.resolve_settings(args)

    assert settings.confidence_threshold == 0.45
    assert settings.iou_threshold == 0.3
    assert settings.max_results == 7
    assert settings.providers == ["CUDAExecutionProvider", "CPUExecutionProvider"]
    assert settings.log_format == "json"
    assert settings.output_dir == tmp_path
