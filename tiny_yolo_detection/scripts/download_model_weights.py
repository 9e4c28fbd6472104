#!/usr/bin/env python3
"""Fetch a Tiny YOLOv2 ONNX export and install it once it loads with the bundled profile."""
from __future__ import annotations

import argparse
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

import onnxruntime as ort
import requests

from tiny_yolo_detection.app.config.profile import ModelProfile, load_profile
from tiny_yolo_detection.app.config.settings import load_settings
from tiny_yolo_detection.app.errors import DetectionError

LOGGER = logging.getLogger(__name__)

MODEL_BASE_URL = "https://github.com/onnx/models/raw/main/validated/vision/object_detection_segmentation/tiny-yolov2/model"
MODEL_VARIANTS = {
    "opset8": f"{MODEL_BASE_URL}/tinyyolov2-8.onnx",
    "opset7": f"{MODEL_BASE_URL}/tinyyolov2-7.onnx",
}
CHUNK_SIZE = 1 << 20


def verify_model(path: Path, profile: ModelProfile) -> None:
    """Open ``path`` with onnxruntime and check its output matches the profile grid."""

    try:
        session = ort.InferenceSession(str(path), providers=["CPUExecutionProvider"])
    except Exception as exc:  # onnxruntime raises its own untyped failures
        raise DetectionError(f"Downloaded file is not a loadable ONNX model: {exc}") from exc

    shape = session.get_outputs()[0].shape
    dims = [dim for dim in shape[1:] if isinstance(dim, int)]
    if len(dims) != len(shape) - 1:
        LOGGER.warning("Model output shape %s has symbolic dimensions; skipping size check", shape)
        return
    size = 1
    for dim in dims:
        size *= dim
    expected = profile.geometry.expected_size
    if size != expected:
        raise DetectionError(f"Model produces {size} values per image, profile {profile.name} expects {expected}")


def download_model(url: str, target: Path, profile: ModelProfile, timeout: float = 120.0) -> Path:
    """Stream ``url`` next to ``target`` and move it into place after verification."""

    target.parent.mkdir(parents=True, exist_ok=True)
    handle, partial_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".part", dir=target.parent)
    partial = Path(partial_name)
    try:
        with os.fdopen(handle, "wb") as stream:
            with requests.get(url, stream=True, timeout=timeout) as response:
                response.raise_for_status()
                written = 0
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    stream.write(chunk)
                    written += len(chunk)
        LOGGER.info("Fetched %d bytes from %s", written, url)
        verify_model(partial, profile)
        os.replace(partial, target)
    finally:
        if partial.exists():
            partial.unlink()
    LOGGER.info("Model installed at %s", target)
    return target


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Download Tiny YOLOv2 ONNX weights")
    parser.add_argument("--variant", choices=MODEL_VARIANTS.keys(), default="opset8", help="Model export to download")
    parser.add_argument("--url", type=str, default=None, help="Model URL override")
    parser.add_argument("--output", type=Path, default=None, help="Destination path (defaults to the configured model path)")
    parser.add_argument("--profile", type=Path, default=None, help="Model profile the download must match")
    return parser.parse_args(argv)


def main(argv: Optional[list] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    args = parse_args(argv)
    url = args.url or MODEL_VARIANTS[args.variant]
    target = args.output or load_settings().model_path
    try:
        download_model(url, target, load_profile(args.profile))
    except (requests.RequestException, DetectionError, OSError) as exc:
        LOGGER.error("Model download failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
