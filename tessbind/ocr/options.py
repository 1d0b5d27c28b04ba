"""Recognition options passed through to the Tesseract command line."""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import IntEnum
from typing import Any, Dict, Mapping, Optional, Union

import logging
import os

LOGGER = logging.getLogger(__name__)

PSM_RANGE = (0, 13)
OEM_RANGE = (0, 3)
STDOUT_TARGETS = frozenset({"stdout", "-"})
STDIN_SELECTORS = frozenset({"stdin", "-"})


class OCRValidationError(ValueError):
    """Raised when an input or option is malformed; no process is spawned."""


class OEM(IntEnum):
    """OCR engine mode."""

    ORIGINAL = 0
    NEURAL_LSTM_ONLY = 1
    TESSERACT_LSTM = 2
    DEFAULT = 3


class PSM(IntEnum):
    """Page segmentation mode."""

    OSD = 0
    AUTO_PAGE_SEGMENT_OSD = 1
    AUTO_PAGE_SEGMENT = 2
    AUTO_PAGE_SEGMENT_OCR = 3
    SINGLE_COLUMN_TEXT = 4
    SINGLE_UNIFORM_VERTICAL_TEXT = 5
    SINGLE_UNIFORM_TEXT = 6
    SINGLE_TEXT_LINE = 7
    SINGLE_WORD = 8
    SINGLE_WORD_IN_CIRCLE = 9
    SINGLE_CHARACTER = 10
    SPARSE_TEXT = 11
    SPARSE_TEXT_OSD = 12
    RAW_LINE = 13


PathArg = Union[str, "os.PathLike[str]"]
OptionValue = Union[str, int, float]


@dataclass(slots=True)
class RecognitionOptions:
    lang: Optional[str] = None
    path: Optional[PathArg] = None
    tessdata: Optional[PathArg] = None
    psm: Optional[int] = None
    oem: Optional[int] = None
    dpi: Optional[Union[int, float]] = None
    words: Optional[PathArg] = None
    patterns: Optional[PathArg] = None
    flags: Dict[str, OptionValue] = field(default_factory=dict)
    config: Dict[str, OptionValue] = field(default_factory=dict)
    output: Optional[PathArg] = None
    stdin: bool = False

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "RecognitionOptions":
        """Build options from a plain mapping, e.g. a YAML section or JSON payload."""
        if not isinstance(raw, Mapping):
            raise OCRValidationError(f"Options must be a mapping, got {type(raw).__name__}")
        known = {f.name for f in fields(cls)}
        unknown = sorted(str(key) for key in raw if key not in known)
        if unknown:
            raise OCRValidationError(f"Unknown option(s): {', '.join(unknown)}")
        values = dict(raw)
        for key in ("flags", "config"):
            if values.get(key) is None:
                values.pop(key, None)
            elif isinstance(values[key], Mapping):
                values[key] = dict(values[key])
        return cls(**values)

    def merged(self, overrides: Mapping[str, Any]) -> "RecognitionOptions":
        """Return a copy with the non-None ``overrides`` applied."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values["flags"] = dict(self.flags)
        values["config"] = dict(self.config)
        for key, value in overrides.items():
            if value is None:
                continue
            if key in ("flags", "config"):
                values[key].update(value)
            else:
                values[key] = value
        return RecognitionOptions.from_dict(values)

    @property
    def output_target(self) -> str:
        return os.fspath(self.output) if self.output is not None else "stdout"

    @property
    def writes_to_stdout(self) -> bool:
        return self.output_target in STDOUT_TARGETS

    def validate(self) -> None:
        """Raise OCRValidationError unless every set field is well formed."""
        for name in ("lang",):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise OCRValidationError(f"{name} must be a string, got {type(value).__name__}")
        for name in ("path", "tessdata", "words", "patterns", "output"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, (str, os.PathLike)):
                raise OCRValidationError(f"{name} must be a path, got {type(value).__name__}")

        _check_mode("PSM", self.psm, PSM_RANGE)
        _check_mode("OEM", self.oem, OEM_RANGE)
        if self.dpi is not None and not _is_integral(self.dpi):
            raise OCRValidationError(f"Invalid DPI: {self.dpi!r}. Must be a whole number")
        if not isinstance(self.stdin, bool):
            raise OCRValidationError(f"stdin must be a boolean, got {type(self.stdin).__name__}")

        for name in ("flags", "config"):
            _check_mapping(name, getattr(self, name))


def coerce_options(options: Any) -> RecognitionOptions:
    """Accept None, a RecognitionOptions or a mapping and return validated options."""
    if options is None:
        options = RecognitionOptions()
    elif isinstance(options, Mapping):
        options = RecognitionOptions.from_dict(options)
    elif not isinstance(options, RecognitionOptions):
        raise OCRValidationError(
            f"Options must be RecognitionOptions or a mapping, got {type(options).__name__}"
        )
    options.validate()
    return options


def _check_mode(label: str, value: Any, bounds: tuple[int, int]) -> None:
    if value is None:
        return
    low, high = bounds
    if isinstance(value, bool) or not isinstance(value, int):
        raise OCRValidationError(f"Invalid {label}: {value!r}. Must be between {low}-{high}")
    if value < low or value > high:
        raise OCRValidationError(f"Invalid {label}: {int(value)}. Must be between {low}-{high}")


def _is_integral(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        return value.is_integer()
    return isinstance(value, int)


def _check_mapping(name: str, value: Any) -> None:
    if not isinstance(value, Mapping):
        raise OCRValidationError(f"{name} must be a mapping, got {type(value).__name__}")
    for key, item in value.items():
        if not isinstance(key, str) or not key:
            raise OCRValidationError(f"{name} keys must be non-empty strings, got {key!r}")
        if isinstance(item, bool) or not isinstance(item, (str, int, float)):
            raise OCRValidationError(f"{name}[{key!r}] must be a string, got {type(item).__name__}")
