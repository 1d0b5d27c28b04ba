"""Command line entry point for the Tesseract binding."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence

import argparse
import logging
import sys

from .config import AppConfig, load_config, set_path
from .ocr import (
    OCRValidationError,
    RecognitionOptions,
    TesseractError,
    TesseractInvoker,
)

LOGGER = logging.getLogger(__name__)


def _parse_pairs(pairs: Optional[List[str]], option: str) -> Dict[str, str]:
    parsed: Dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise OCRValidationError(f"{option} expects KEY=VALUE, got {pair!r}")
        parsed[key] = value
    return parsed


def _read_image(image: str):
    if image == "-":
        return sys.stdin.buffer.read()
    return Path(image)


def _recognition_options(args: argparse.Namespace, config: AppConfig) -> RecognitionOptions:
    base = RecognitionOptions.from_dict(config.recognition)
    overrides = {
        "lang": args.lang,
        "tessdata": args.tessdata,
        "psm": args.psm,
        "oem": args.oem,
        "dpi": args.dpi,
        "words": args.user_words,
        "patterns": args.user_patterns,
        "output": args.output,
        "stdin": True if args.stdin else None,
        "flags": _parse_pairs(args.flag, "--flag"),
        "config": _parse_pairs(args.config_var, "-c"),
    }
    return base.merged(overrides)


def _cmd_recognize(args: argparse.Namespace, invoker: TesseractInvoker, config: AppConfig) -> None:
    options = _recognition_options(args, config)
    text = invoker.recognize(_read_image(args.image), options)
    if text:
        sys.stdout.write(text)
        sys.stdout.flush()


def _cmd_langs(args: argparse.Namespace, invoker: TesseractInvoker, config: AppConfig) -> None:
    for language in invoker.get_languages():
        print(language)


def _cmd_version(args: argparse.Namespace, invoker: TesseractInvoker, config: AppConfig) -> None:
    print(invoker.get_version())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tessbind", description="Run the Tesseract OCR binary")
    parser.add_argument("--config", type=Path, default=None, help="Optional YAML config file")
    parser.add_argument("--tesseract", type=str, default=None, help="Path to the tesseract binary")
    parser.add_argument("--timeout", type=float, default=None, help="Kill tesseract after N seconds")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    recognize = subparsers.add_parser("recognize", help="Recognize text in an image")
    recognize.add_argument("image", help="Image path, or '-' to read image bytes from stdin")
    recognize.add_argument("--lang", "-l", type=str, default=None, help="Language(s), e.g. 'eng+deu'")
    recognize.add_argument("--tessdata", type=str, default=None, help="tessdata directory")
    recognize.add_argument("--psm", type=int, default=None, help="Page segmentation mode (0-13)")
    recognize.add_argument("--oem", type=int, default=None, help="OCR engine mode (0-3)")
    recognize.add_argument("--dpi", type=int, default=None, help="Image resolution")
    recognize.add_argument("--user-words", type=str, default=None, help="Path to a user-words file")
    recognize.add_argument("--user-patterns", type=str, default=None, help="Path to a user-patterns file")
    recognize.add_argument("--output", "-o", type=str, default=None, help="Output base path or 'stdout'")
    recognize.add_argument("--stdin", action="store_true", help="Pipe the image path through stdin")
    recognize.add_argument("--flag", action="append", metavar="NAME=VALUE", help="Extra tesseract flag")
    recognize.add_argument(
        "-c", dest="config_var", action="append", metavar="KEY=VALUE", help="Tesseract config variable"
    )
    recognize.set_defaults(handler=_cmd_recognize)

    langs = subparsers.add_parser("langs", help="List installed languages")
    langs.set_defaults(handler=_cmd_langs)

    version = subparsers.add_parser("version", help="Print the tesseract version")
    version.set_defaults(handler=_cmd_version)
    return parser


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)
    try:
        config = AppConfig()
        if args.config is not None:
            LOGGER.info("Loading config from %s", args.config)
            config = load_config(args.config)
        if config.tesseract.path:
            set_path(config.tesseract.path)
        timeout = args.timeout if args.timeout is not None else config.tesseract.timeout
        invoker = TesseractInvoker(path=args.tesseract, timeout=timeout)
        args.handler(args, invoker, config)
    except (OCRValidationError, TesseractError) as exc:
        LOGGER.error("%s", str(exc).strip())
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
