"""Thin binding around the Tesseract OCR command line tool."""

from .config import get_path, set_path
from .ocr import (
    OEM,
    PSM,
    OCRValidationError,
    RecognitionOptions,
    TesseractError,
    TesseractInvoker,
    TesseractNotFoundError,
    TesseractTimeoutError,
    build_args,
    get_languages,
    get_version,
    recognize,
)

__version__ = "0.1.0"

__all__ = [
    "OEM",
    "PSM",
    "OCRValidationError",
    "RecognitionOptions",
    "TesseractError",
    "TesseractInvoker",
    "TesseractNotFoundError",
    "TesseractTimeoutError",
    "build_args",
    "get_languages",
    "get_path",
    "get_version",
    "recognize",
    "set_path",
]
