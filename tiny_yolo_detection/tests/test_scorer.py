from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from tiny_yolo_detection.app.config.profile import load_profile
from tiny_yolo_detection.app.errors import InputShapeError
from tiny_yolo_detection.app.services.scorer import OnnxModelScorer, to_cell_major
from tiny_yolo_detection.app.utils.geometry import GridGeometry


def test_to_cell_major_reorders_channel_major_output() -> None:
    geometry = GridGeometry(grid_rows=2, grid_cols=3, anchor_count=2, class_count=2)
    anchors, fields, rows, cols = 2, geometry.fields_per_anchor, 2, 3
    channel_major = np.zeros((1, anchors * fields, rows, cols), dtype=np.float32)
    for anchor in range(anchors):
        for field in range(fields):
            for row in range(rows):
                for col in range(cols):
                    channel_major[0, anchor * fields + field, row, col] = anchor * 1000 + field * 100 + row * 10 + col

    flat = to_cell_major(channel_major, geometry)

    assert flat.shape == (geometry.expected_size,)
    for row in range(rows):
        for col in range(cols):
            for anchor in range(anchors):
                for field in range(fields):
                    expected = anchor * 1000 + field * 100 + row * 10 + col
                    assert flat[geometry.offset(row, col, anchor, field)] == expected


def test_to_cell_major_rejects_wrong_size() -> None:
    geometry = GridGeometry(grid_rows=13, grid_cols=13, anchor_count=5, class_count=20)
    with pytest.raises(InputShapeError):
        to_cell_major(np.zeros((1, 125, 13, 12), dtype=np.float32), geometry)


def test_scorer_requires_existing_model(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        OnnxModelScorer(tmp_path / "missing.onnx", load_profile())


def build_unloaded_scorer(pixel_scale: float = 1.0) -> OnnxModelScorer:
    scorer = object.__new__(OnnxModelScorer)
    scorer.profile = load_profile()
    scorer.geometry = scorer.profile.geometry
    scorer.pixel_scale = pixel_scale
    return scorer


def test_preprocess_emits_rgb_planes_at_model_size() -> None:
    scorer = build_unloaded_scorer()
    image = np.zeros((240, 320, 3), dtype=np.uint8)
    image[..., 2] = 255

    blob = scorer.preprocess(image)

    assert blob.shape == (1, 3, 416, 416)
    assert blob.dtype == np.float32
    assert blob[0, 0].mean() == pytest.approx(255.0)
    assert blob[0, 1].mean() == pytest.approx(0.0)
    assert blob[0, 2].mean() == pytest.approx(0.0)


def test_preprocess_applies_pixel_scale() -> None:
    scorer = build_unloaded_scorer(pixel_scale=1.0 / 255.0)
    image = np.full((416, 416, 3), 255, dtype=np.uint8)

    blob = scorer.preprocess(image)

    assert blob.max() == pytest.approx(1.0)
