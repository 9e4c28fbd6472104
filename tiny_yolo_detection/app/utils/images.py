"""Image loading utilities for the detection CLI."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List

import cv2
import numpy as np

LOGGER = logging.getLogger(__name__)

IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png", ".bmp", ".tif", ".tiff")


@dataclass
class ImageItem:
    name: str
    path: Path
    data: np.ndarray


def list_images(folder: Path) -> List[Path]:
    """Return image files directly inside ``folder``, sorted by name."""

    if not folder.is_dir():
        raise FileNotFoundError(f"Image folder not found: {folder}")
    return sorted(path for path in folder.iterdir() if path.is_file() and path.suffix.lower() in IMAGE_SUFFIXES)


def iter_images(folder: Path) -> Iterator[ImageItem]:
    """Yield decoded BGR images from a folder, skipping files OpenCV cannot read."""

    paths = list_images(folder)
    LOGGER.info("Found %d images in %s", len(paths), folder)
    for path in paths:
        data = cv2.imread(str(path))
        if data is None:
            LOGGER.warning("Unable to read image %s, skipping", path)
            continue
        yield ImageItem(name=path.name, path=path, data=data)
