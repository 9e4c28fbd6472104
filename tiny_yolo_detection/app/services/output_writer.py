"""Persist detection results and annotated images."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import cv2
import numpy as np

from ..config.settings import AppSettings
from ..errors import ConfigurationError
from ..models import BoundingBox
from ..utils.images import IMAGE_SUFFIXES

LOGGER = logging.getLogger(__name__)


@dataclass
class DetectionRecord:
    image_name: str
    timestamp: str
    latency_ms: float
    boxes: List[BoundingBox] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "image_name": self.image_name,
            "timestamp": self.timestamp,
            "latency_ms": self.latency_ms,
            "detections": [box.to_dict() for box in self.boxes],
        }


def reset_output_state(settings: AppSettings) -> None:
    """Remove results and annotated images left over from a previous run.

    Annotated images keep their source file names, so the output directory
    must not be the image directory.
    """

    output_dir = settings.output_dir
    if output_dir.resolve() == settings.images_dir.resolve():
        raise ConfigurationError(f"Output directory {output_dir} must differ from the image directory")

    output_dir.mkdir(parents=True, exist_ok=True)
    results_path = output_dir / settings.results_filename
    try:
        if results_path.exists():
            results_path.unlink()
            LOGGER.debug("Removed stale results file %s", results_path)
    except OSError as exc:
        LOGGER.warning("Unable to remove results file %s: %s", results_path, exc)

    for artifact in output_dir.iterdir():
        if not artifact.is_file() or artifact.suffix.lower() not in IMAGE_SUFFIXES:
            continue
        try:
            artifact.unlink()
        except OSError as exc:
            LOGGER.warning("Unable to remove annotated image %s: %s", artifact, exc)


class OutputManager:
    """Buffer detection records and write them, with annotated images, under ``output_dir``."""

    def __init__(self, settings: AppSettings) -> None:
        self.settings = settings
        self.records: List[DetectionRecord] = []
        self.results_path = settings.output_dir / settings.results_filename
        reset_output_state(settings)

    def append_record(self, record: DetectionRecord) -> None:
        self.records.append(record)

    def flush(self) -> None:
        """Write all buffered records to the results file."""

        serialized = [record.to_dict() for record in self.records]
        with self.results_path.open("w", encoding="utf-8") as handle:
            json.dump(serialized, handle, indent=2, allow_nan=False)
        LOGGER.info("Flushed %d records to %s", len(self.records), self.results_path)

    def close(self) -> None:
        LOGGER.debug("Closing output manager, forcing flush")
        self.flush()

    def save_annotated_image(self, image: np.ndarray, image_name: str) -> Path:
        """Persist an annotated image under the source file name, encoded by its suffix."""

        target = self.settings.output_dir / Path(image_name).name
        if not cv2.imwrite(str(target), image):
            raise RuntimeError(f"Unable to write annotated image {target}")
        LOGGER.debug("Saved annotated image %s", target)
        return target
