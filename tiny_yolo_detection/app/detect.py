"""Entry point for Tiny YOLO object detection over a folder of images."""
from __future__ import annotations

import argparse
import logging
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from pydantic import ValidationError

from .config.profile import load_profile
from .config.settings import AppSettings, load_settings
from .errors import DetectionError
from .models import BoundingBox
from .services.output_writer import DetectionRecord, OutputManager
from .services.parser import YoloOutputParser
from .services.scorer import OnnxModelScorer
from .utils.images import iter_images
from .utils.visualization import draw_bounding_boxes

LOGGER = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Tiny YOLOv2 object detection")
    parser.add_argument("--images", type=str, default=None, help="Folder containing images to score")
    parser.add_argument("--output", type=str, default=None, help="Folder for annotated images and results")
    parser.add_argument("--model", type=str, default=None, help="Path to the ONNX model file")
    parser.add_argument("--profile", type=str, default=None, help="Model profile YAML (grid, anchors, labels)")
    parser.add_argument("--conf", type=float, default=None, help="Confidence threshold")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold")
    parser.add_argument("--max-results", type=int, default=None, help="Maximum boxes kept before suppression")
    parser.add_argument("--providers", type=str, default=None, help="Comma separated onnxruntime providers")
    parser.add_argument("--no-save", action="store_true", help="Skip writing annotated images")
    parser.add_argument("--log-format", choices=["text", "json"], default=None, help="Logging format")
    return parser


def setup_logging(settings: AppSettings) -> None:
    log_level = logging.INFO
    if settings.log_format == "json":
        formatter = logging.Formatter('{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}')
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    logging.basicConfig(level=log_level, handlers=[handler])


def resolve_settings(args: argparse.Namespace) -> AppSettings:
    overrides = {}
    if args.images:
        overrides["images_dir"] = Path(args.images)
    if args.output:
        overrides["output_dir"] = Path(args.output)
    if args.model:
        overrides["model_path"] = Path(args.model)
    if args.profile:
        overrides["profile_path"] = Path(args.profile)
    if args.conf is not None:
        overrides["confidence_threshold"] = args.conf
    if args.iou is not None:
        overrides["iou_threshold"] = args.iou
    if args.max_results is not None:
        overrides["max_results"] = args.max_results
    if args.providers:
        overrides["providers"] = [name.strip() for name in args.providers.split(",") if name.strip()]
    if args.no_save:
        overrides["save_annotated"] = False
    if args.log_format:
        overrides["log_format"] = args.log_format

    settings = load_settings(**overrides)
    return settings


def log_detected_objects(image_name: str, boxes: Iterable[BoundingBox]) -> None:
    boxes = list(boxes)
    LOGGER.info("The objects in the image %s are detected as below (%d)", image_name, len(boxes))
    for box in boxes:
        LOGGER.info("%s and its confidence score: %.4f", box.label, box.confidence)


def process_images(
    settings: AppSettings,
    scorer: OnnxModelScorer,
    parser: YoloOutputParser,
    output_manager: OutputManager,
) -> List[DetectionRecord]:
    records: List[DetectionRecord] = []
    for item in iter_images(settings.images_dir):
        start = time.perf_counter()
        raw = scorer.score(item.data)
        boxes = parser.parse(raw)
        latency_ms = (time.perf_counter() - start) * 1000
        record = DetectionRecord(
            image_name=item.name,
            timestamp=datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            latency_ms=latency_ms,
            boxes=boxes,
        )
        output_manager.append_record(record)
        records.append(record)
        log_detected_objects(item.name, boxes)

        if settings.save_annotated:
            annotated = draw_bounding_boxes(
                item.data,
                boxes,
                parser.decoder.image_width,
                parser.decoder.image_height,
                font_scale=settings.overlay_font_scale,
                thickness=settings.box_thickness,
            )
            output_manager.save_annotated_image(annotated, item.name)
    return records


def run_detection(args: argparse.Namespace) -> int:
    try:
        settings = resolve_settings(args)
    except ValidationError as exc:
        logging.basicConfig(level=logging.INFO)
        LOGGER.error("Invalid settings: %s", exc)
        return 2
    setup_logging(settings)

    LOGGER.info("Starting Tiny YOLO detection pipeline")

    try:
        if not settings.images_dir.is_dir():
            raise FileNotFoundError(f"Image directory not found: {settings.images_dir}")
        profile = load_profile(settings.profile_path)
        parser = YoloOutputParser.from_settings(settings, profile)
        scorer = OnnxModelScorer(
            settings.model_path,
            profile,
            providers=settings.providers,
            pixel_scale=settings.pixel_scale,
        )
        output_manager = OutputManager(settings)
        try:
            process_images(settings, scorer, parser, output_manager)
        finally:
            output_manager.close()
    except (DetectionError, OSError) as exc:
        LOGGER.error("Detection failed: %s", exc)
        return 2

    LOGGER.info("Tiny YOLO detection completed")
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    sys.exit(run_detection(args))


if __name__ == "__main__":  # pragma: no cover
    main()
