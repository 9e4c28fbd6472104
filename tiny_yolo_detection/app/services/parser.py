"""End-to-end parsing of raw network output into labeled bounding boxes."""
from __future__ import annotations

import logging
from typing import Iterable, List, Sequence, Union

import numpy as np

from ..config.profile import ModelProfile
from ..config.settings import AppSettings
from ..errors import ConfigurationError
from ..models import BoundingBox, Candidate
from ..utils.colors import color_for_class
from .confidence_filter import filter_candidates
from .decoder import BoxDecoder
from .suppression import non_max_suppression

LOGGER = logging.getLogger(__name__)

RawOutput = Union[Sequence[float], np.ndarray]


class YoloOutputParser:
    """Decode, filter and suppress one raw output tensor at a time."""

    def __init__(
        self,
        decoder: BoxDecoder,
        confidence_threshold: float,
        max_results: int,
        iou_threshold: float,
    ) -> None:
        if not 0.0 < confidence_threshold <= 1.0:
            raise ConfigurationError(f"confidence_threshold must be in (0, 1], got {confidence_threshold}")
        if not 0.0 < iou_threshold < 1.0:
            raise ConfigurationError(f"iou_threshold must be in (0, 1), got {iou_threshold}")
        if max_results < 0:
            raise ConfigurationError(f"max_results must be non-negative, got {max_results}")
        self.decoder = decoder
        self.confidence_threshold = confidence_threshold
        self.max_results = max_results
        self.iou_threshold = iou_threshold

    @classmethod
    def from_settings(cls, settings: AppSettings, profile: ModelProfile) -> "YoloOutputParser":
        return cls(
            BoxDecoder.from_profile(profile),
            confidence_threshold=settings.confidence_threshold,
            max_results=settings.max_results,
            iou_threshold=settings.iou_threshold,
        )

    def to_bounding_box(self, candidate: Candidate) -> BoundingBox:
        class_index = candidate.best_class_index
        return BoundingBox(
            label=self.decoder.labels[class_index],
            class_index=class_index,
            rectangle=candidate.rectangle,
            confidence=candidate.confidence,
            color=color_for_class(class_index),
        )

    def parse(self, raw: RawOutput) -> List[BoundingBox]:
        candidates = self.decoder.decode(raw)
        survivors = filter_candidates(candidates, self.confidence_threshold, self.max_results)
        boxes = non_max_suppression(
            [self.to_bounding_box(candidate) for candidate in survivors],
            self.iou_threshold,
        )
        LOGGER.debug("Parsed %d boxes from %d candidates", len(boxes), len(candidates))
        return boxes

    def parse_batch(self, outputs: Iterable[RawOutput]) -> List[List[BoundingBox]]:
        """Parse independent tensors, one result list per tensor."""

        return [self.parse(raw) for raw in outputs]
