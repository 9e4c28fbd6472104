"""Decode a raw Tiny YOLO output tensor into per-anchor candidates."""
from __future__ import annotations

import logging
import math
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from ..config.profile import ModelProfile
from ..errors import ConfigurationError
from ..models import Anchor, Candidate
from ..utils.activations import sigmoid, softmax
from ..utils.geometry import (
    BOX_FIELDS,
    FIELD_OBJECTNESS,
    FIELD_TH,
    FIELD_TW,
    FIELD_TX,
    FIELD_TY,
    GridGeometry,
)

LOGGER = logging.getLogger(__name__)


class BoxDecoder:
    """Inverts the grid, sigmoid and anchor encodings of a single-head YOLOv2 output.

    The decoder holds only immutable configuration, so one instance can decode any number
    of tensors, from any number of threads.
    """

    def __init__(
        self,
        grid_rows: int,
        grid_cols: int,
        anchors: Sequence[Union[Anchor, Tuple[float, float]]],
        labels: Sequence[str],
        image_width: float,
        image_height: float,
        *,
        anchor_count: Optional[int] = None,
        class_count: Optional[int] = None,
    ) -> None:
        if grid_rows <= 0 or grid_cols <= 0:
            raise ConfigurationError(f"Grid dimensions must be positive, got {grid_rows}x{grid_cols}")
        if image_width <= 0 or image_height <= 0:
            raise ConfigurationError(f"Image dimensions must be positive, got {image_width}x{image_height}")
        if not anchors:
            raise ConfigurationError("At least one anchor box is required")
        if not labels:
            raise ConfigurationError("At least one class label is required")
        if anchor_count is not None and anchor_count != len(anchors):
            raise ConfigurationError(f"anchor_count is {anchor_count} but {len(anchors)} anchors were supplied")
        if class_count is not None and class_count != len(labels):
            raise ConfigurationError(f"class_count is {class_count} but {len(labels)} labels were supplied")

        self.anchors: Tuple[Anchor, ...] = tuple(self._sanitize_anchor(anchor) for anchor in anchors)
        self.labels: Tuple[str, ...] = tuple(labels)
        self.image_width = float(image_width)
        self.image_height = float(image_height)
        self.geometry = GridGeometry(
            grid_rows=int(grid_rows),
            grid_cols=int(grid_cols),
            anchor_count=len(self.anchors),
            class_count=len(self.labels),
        )
        self.cell_width = self.image_width / self.geometry.grid_cols
        self.cell_height = self.image_height / self.geometry.grid_rows

    @classmethod
    def from_profile(cls, profile: ModelProfile) -> "BoxDecoder":
        return cls(
            grid_rows=profile.grid_rows,
            grid_cols=profile.grid_cols,
            anchors=profile.anchors,
            labels=profile.labels,
            image_width=profile.image_width,
            image_height=profile.image_height,
            anchor_count=profile.anchor_count,
            class_count=profile.class_count,
        )

    @staticmethod
    def _sanitize_anchor(anchor: Union[Anchor, Tuple[float, float]]) -> Anchor:
        try:
            width, height = anchor
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Anchor must be a (width, height) pair, got {anchor!r}") from exc
        width, height = float(width), float(height)
        if not (math.isfinite(width) and math.isfinite(height)) or width <= 0 or height <= 0:
            raise ConfigurationError(f"Anchor sizes must be positive and finite, got {anchor!r}")
        return Anchor(width, height)

    @property
    def candidate_count(self) -> int:
        return self.geometry.cell_count * self.geometry.anchor_count

    def decode(self, raw: Union[Sequence[float], np.ndarray]) -> Tuple[Candidate, ...]:
        """Return one candidate per (row, col, anchor), row-major over cells then by anchor."""

        grid = self.geometry.view(raw).astype(np.float64)
        rows = np.arange(self.geometry.grid_rows, dtype=np.float64)[:, None, None]
        cols = np.arange(self.geometry.grid_cols, dtype=np.float64)[None, :, None]
        anchor_widths = np.array([anchor.width for anchor in self.anchors])[None, None, :]
        anchor_heights = np.array([anchor.height for anchor in self.anchors])[None, None, :]

        with np.errstate(over="ignore", invalid="ignore"):
            center_x = (cols + sigmoid(grid[..., FIELD_TX])) * self.cell_width
            center_y = (rows + sigmoid(grid[..., FIELD_TY])) * self.cell_height
            width = np.exp(grid[..., FIELD_TW]) * anchor_widths * self.cell_width
            height = np.exp(grid[..., FIELD_TH]) * anchor_heights * self.cell_height
        objectness = sigmoid(grid[..., FIELD_OBJECTNESS])
        class_scores = grid[..., BOX_FIELDS:]

        candidates = tuple(
            Candidate(
                row=row,
                col=col,
                anchor=anchor,
                center=(float(center_x[row, col, anchor]), float(center_y[row, col, anchor])),
                size=(float(width[row, col, anchor]), float(height[row, col, anchor])),
                objectness=float(objectness[row, col, anchor]),
                class_probabilities=tuple(float(p) for p in softmax(class_scores[row, col, anchor])),
            )
            for row, col, anchor in np.ndindex(*self.geometry.shape[:3])
        )
        LOGGER.debug("Decoded %d candidates", len(candidates))
        return candidates
