"""Standalone Tesseract OCR service entrypoint with JSON-friendly contract."""
from __future__ import annotations

from pathlib import Path
from typing import Dict
import logging
import time

from tessbind.ocr.engine import TesseractInvoker, build_args
from tessbind.ocr.options import RecognitionOptions

LOGGER = logging.getLogger(__name__)


def run(payload: Dict[str, object]) -> Dict[str, object]:
    image_path_raw = payload.get("image_path")
    if not image_path_raw:
        raise ValueError("payload must include 'image_path'")
    params = payload.get("params") or {}
    if not isinstance(params, dict):
        raise ValueError("payload 'params' must be a mapping")
    output_dir_raw = payload.get("output_dir")
    timeout_raw = payload.get("timeout")

    image_path = Path(str(image_path_raw))
    options = RecognitionOptions.from_dict(params)
    invoker = TesseractInvoker(
        path=str(options.path) if options.path is not None else None,
        timeout=float(timeout_raw) if timeout_raw is not None else None,
    )
    args = build_args(image_path, options)

    start = time.perf_counter()
    text = invoker.recognize(image_path, options)
    elapsed = time.perf_counter() - start

    # file output is written by tesseract itself, so nothing is copied
    text_path = None
    if output_dir_raw and options.writes_to_stdout:
        output_dir = Path(str(output_dir_raw))
        output_dir.mkdir(parents=True, exist_ok=True)
        text_path = output_dir / f"{image_path.stem}.txt"
        text_path.write_text(text, encoding="utf-8")
        LOGGER.info("OCR text written to %s", text_path)

    return {
        "engine": "tesseract",
        "binary": invoker.binary,
        "args": args,
        "elapsed_seconds": elapsed,
        "text": text,
        "text_path": str(text_path) if text_path else None,
    }
