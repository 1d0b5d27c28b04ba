"""Configuration helpers for the Tesseract binding."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import logging
import os

import yaml

LOGGER = logging.getLogger(__name__)

DEFAULT_BINARY = "tesseract"
PATH_ENV_VAR = "TESSERACT_PATH"

# Seeded once at import; mutated only through set_path().
TESSERACT_PATH: str = os.environ.get(PATH_ENV_VAR) or DEFAULT_BINARY


def set_path(path: str) -> None:
    """Set the default Tesseract binary used when a call passes no path."""
    global TESSERACT_PATH
    TESSERACT_PATH = str(path)
    LOGGER.debug("Default tesseract path set to %s", TESSERACT_PATH)


def get_path() -> str:
    return TESSERACT_PATH


@dataclass(slots=True)
class TesseractConfig:
    path: Optional[str] = None
    timeout: Optional[float] = None


@dataclass(slots=True)
class AppConfig:
    tesseract: TesseractConfig = field(default_factory=TesseractConfig)
    recognition: Dict[str, Any] = field(default_factory=dict)


def _optional_dict(raw: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"Section '{key}' must be a mapping")
    return value


def load_config(path: Path) -> AppConfig:
    """Load and validate configuration from a YAML file.

    Only the ``tesseract`` and ``recognition`` sections are read; both are
    optional. ``recognition`` is kept as a plain mapping and turned into
    ``RecognitionOptions`` by the caller.
    """
    raw_config = _load_yaml_file(path)

    tesseract_cfg = _optional_dict(raw_config, "tesseract")
    recognition_cfg = _optional_dict(raw_config, "recognition")

    timeout_raw = tesseract_cfg.get("timeout")
    config = AppConfig(
        tesseract=TesseractConfig(
            path=str(tesseract_cfg["path"]) if tesseract_cfg.get("path") else None,
            timeout=float(timeout_raw) if timeout_raw is not None else None,
        ),
        recognition=dict(recognition_cfg),
    )

    LOGGER.debug("Loaded configuration: %s", config)
    return config


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    text = Path(path).read_text(encoding="utf-8")
    LOGGER.debug("Using PyYAML to parse %s", path)
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise TypeError(f"Top level of {path} must be a mapping")
    return data
