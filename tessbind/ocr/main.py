"""Standalone OCR runner for a single image."""
from __future__ import annotations

import argparse
from pathlib import Path

from tessbind.ocr.service_tesseract import run as run_tesseract


def main() -> None:
    parser = argparse.ArgumentParser(description="Run Tesseract on one image.")
    parser.add_argument("--image", type=Path, required=True, help="Path to input image (PNG/JPG/TIFF).")
    parser.add_argument("--output-dir", type=Path, default=None, help="Optional directory for the OCR text file.")
    parser.add_argument("--lang", type=str, default=None, help="Tesseract languages, e.g. 'eng+deu'.")
    parser.add_argument("--psm", type=int, default=None, help="Page segmentation mode (0-13).")
    parser.add_argument("--oem", type=int, default=None, help="OCR engine mode (0-3).")
    args = parser.parse_args()

    params = {
        key: value
        for key, value in {"lang": args.lang, "psm": args.psm, "oem": args.oem}.items()
        if value is not None
    }
    res = run_tesseract(
        {
            "image_path": str(args.image),
            "params": params,
            "output_dir": str(args.output_dir) if args.output_dir else None,
        }
    )
    print(f"OCR done. chars={len(res['text'])} elapsed={res['elapsed_seconds']:.2f}s text={res['text_path']}")


if __name__ == "__main__":  # pragma: no cover
    main()
