"""OCR package."""

from .engine import (
    TesseractError,
    TesseractInvoker,
    TesseractNotFoundError,
    TesseractTimeoutError,
    build_args,
    get_languages,
    get_version,
    recognize,
)
from .options import OEM, PSM, OCRValidationError, RecognitionOptions
from .service_tesseract import run as run_tesseract

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
    "get_version",
    "recognize",
    "run_tesseract",
]
