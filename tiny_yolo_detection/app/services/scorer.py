"""ONNX Runtime scoring service producing raw Tiny YOLO output."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

import cv2
import numpy as np

try:  # pragma: no cover - import guarded for environments without onnxruntime
    import onnxruntime as ort
except ImportError as exc:  # pragma: no cover
    raise ImportError(
        "onnxruntime is required for model scoring. Install dependencies via "
        "`pip install -e .` before running detect.py."
    ) from exc

from ..config.profile import ModelProfile
from ..errors import InputShapeError
from ..utils.geometry import GridGeometry

LOGGER = logging.getLogger(__name__)


def to_cell_major(output: np.ndarray, geometry: GridGeometry) -> np.ndarray:
    """Reorder a channel-major ``(1, A*(5+C), H, W)`` tensor into the flat cell-major layout."""

    array = np.asarray(output, dtype=np.float32)
    if array.size != geometry.expected_size:
        raise InputShapeError(geometry.expected_size, int(array.size))
    channel_major = array.reshape(
        geometry.anchor_count,
        geometry.fields_per_anchor,
        geometry.grid_rows,
        geometry.grid_cols,
    )
    return np.ascontiguousarray(channel_major.transpose(2, 3, 0, 1)).ravel()


class OnnxModelScorer:
    """Runs the Tiny YOLOv2 ONNX model on BGR images."""

    def __init__(
        self,
        model_path: Path,
        profile: ModelProfile,
        providers: Optional[Iterable[str]] = None,
        pixel_scale: float = 1.0,
    ) -> None:
        if not model_path.exists():
            raise FileNotFoundError(f"Model file not found: {model_path}")
        self.model_path = model_path
        self.profile = profile
        self.geometry = profile.geometry
        self.pixel_scale = pixel_scale
        self._providers: List[str] = list(providers or ["CPUExecutionProvider"])
        LOGGER.info("Loading ONNX model from %s", model_path)
        LOGGER.info("Default parameters: image size=(%d,%d)", profile.image_width, profile.image_height)
        self._session = ort.InferenceSession(str(model_path), providers=self._providers)
        self._input_name = self._session.get_inputs()[0].name
        self._output_name = self._session.get_outputs()[0].name

    def preprocess(self, image: np.ndarray) -> np.ndarray:
        """Resize a BGR image to the model input and return an RGB NCHW float32 batch of one."""

        resized = cv2.resize(
            image,
            (self.profile.image_width, self.profile.image_height),
            interpolation=cv2.INTER_LINEAR,
        )
        rgb = cv2.cvtColor(resized, cv2.COLOR_BGR2RGB)
        pixels = rgb.astype(np.float32) * self.pixel_scale
        return np.transpose(pixels, (2, 0, 1))[None]

    def score(self, image: np.ndarray) -> np.ndarray:
        """Return the flat raw output for one image in the decoder's layout."""

        blob = self.preprocess(image)
        (output,) = self._session.run([self._output_name], {self._input_name: blob})
        return to_cell_major(output, self.geometry)
