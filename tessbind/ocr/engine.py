"""Tesseract CLI invocation: argument building, process I/O and output decoding."""
from __future__ import annotations

from typing import Any, List, Optional, Tuple, Union

import io
import logging
import os
import subprocess
import time

from PIL import Image

from tessbind import config as tess_config
from tessbind.ocr.options import (
    STDIN_SELECTORS,
    OCRValidationError,
    RecognitionOptions,
    coerce_options,
)

LOGGER = logging.getLogger(__name__)

LIST_LANGS_ARG = "--list-langs"
VERSION_ARG = "-v"
LANGS_HEADER = "List of available languages"
UNKNOWN_VERSION = "unknown"
PNG_MODES = frozenset({"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"})

ImageInput = Union[str, "os.PathLike[str]", bytes, bytearray, memoryview, Image.Image]


class TesseractError(RuntimeError):
    """Raised when tesseract writes anything to its error stream."""


class TesseractNotFoundError(TesseractError):
    """Raised when the tesseract binary cannot be located or started."""


class TesseractTimeoutError(TesseractError):
    """Raised when tesseract does not finish within the requested timeout."""


def _escape(value: str) -> str:
    return value.replace('"', '\\"')


def _is_path(image: Any) -> bool:
    return isinstance(image, (str, os.PathLike))


def check_image(image: Any) -> None:
    if _is_path(image) or isinstance(image, (bytes, bytearray, memoryview, Image.Image)):
        return
    raise OCRValidationError(
        f"Image must be a path, bytes or a PIL image, got {type(image).__name__}"
    )


def build_args(image: ImageInput, options: Any = None) -> List[str]:
    """Return the tesseract argument list (without the binary) for ``image``.

    Validates the input and options first; nothing is spawned here.
    """
    check_image(image)
    options = coerce_options(options)

    args: List[str] = []
    if _is_path(image) and not options.stdin:
        args.append(os.fsdecode(image))
    else:
        args.append("stdin")
    args.append(options.output_target)

    if options.lang is not None:
        args.extend(["-l", _escape(options.lang)])
    if options.tessdata is not None:
        args.append(f'--tessdata-dir="{_escape(os.fsdecode(options.tessdata))}"')
    if options.psm is not None:
        args.extend(["--psm", str(int(options.psm))])
    if options.oem is not None:
        args.append(f"--oem {int(options.oem)}")
    if options.dpi is not None:
        args.append(f"--dpi {int(options.dpi)}")
    if options.words is not None:
        args.append(f'--user-words="{_escape(os.fsdecode(options.words))}"')
    if options.patterns is not None:
        args.append(f'--user-patterns="{_escape(os.fsdecode(options.patterns))}"')

    for name, value in options.flags.items():
        dashes = "-" if len(name) == 1 else "--"
        args.append(f'{dashes}{name}="{_escape(str(value))}"')
    for key, value in options.config.items():
        args.extend(["-c", f"{key}={value}"])
    return args


def stdin_payload(image: ImageInput, selector: str) -> Optional[bytes]:
    """Bytes to write to tesseract's stdin, or None when the input is a path argument."""
    if selector not in STDIN_SELECTORS:
        return None
    if isinstance(image, Image.Image):
        if image.mode not in PNG_MODES:
            image = image.convert("RGB")
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()
    if _is_path(image):
        return os.fsdecode(image).encode("utf-8")
    return bytes(image)


def decode_output(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def check_stderr(stderr: bytes) -> None:
    if stderr:
        raise TesseractError(decode_output(stderr))


def parse_languages(stdout: bytes) -> List[str]:
    lines = decode_output(stdout).replace("\r", "").split("\n")
    languages = []
    for line in lines:
        if line.startswith(LANGS_HEADER):
            continue
        line = line.strip()
        if line:
            languages.append(line)
    return languages


def parse_version(stdout: bytes) -> str:
    first_line = decode_output(stdout).replace("\r", "").split("\n")[0]
    tokens = first_line.split()
    return tokens[-1] if tokens else UNKNOWN_VERSION


def _execute(
    binary: str,
    args: List[str],
    payload: Optional[bytes] = None,
    timeout: Optional[float] = None,
) -> Tuple[bytes, bytes]:
    cmd = [binary, *args]
    LOGGER.debug("Executing Tesseract command: %s", " ".join(cmd))
    try:
        proc = subprocess.Popen(
            cmd,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as exc:
        raise TesseractNotFoundError(f"Unable to start tesseract binary '{binary}': {exc}") from exc

    with proc:
        # communicate() closes stdin even when payload is None
        try:
            stdout, stderr = proc.communicate(input=payload, timeout=timeout)
        except subprocess.TimeoutExpired as exc:
            proc.kill()
            proc.communicate()
            raise TesseractTimeoutError(
                f"tesseract did not finish within {timeout}s: {' '.join(cmd)}"
            ) from exc
    LOGGER.debug(
        "Tesseract exited with %s (stdout=%d bytes, stderr=%d bytes)",
        proc.returncode,
        len(stdout),
        len(stderr),
    )
    return stdout, stderr


class TesseractInvoker:
    """Runs the tesseract binary.

    ``path`` pins the binary for this invoker; when it is None the process-wide
    default from ``tessbind.config`` is resolved on every call.
    """

    def __init__(self, path: Optional[str] = None, timeout: Optional[float] = None) -> None:
        self.path = path
        self.timeout = timeout

    @property
    def binary(self) -> str:
        return os.fsdecode(self.path) if self.path is not None else tess_config.get_path()

    def recognize(self, image: ImageInput, options: Any = None) -> str:
        """Run OCR on ``image`` and return the decoded stdout text (untrimmed)."""
        check_image(image)
        options = coerce_options(options)
        args = build_args(image, options)
        binary = os.fsdecode(options.path) if options.path is not None else self.binary
        payload = stdin_payload(image, args[0])

        start = time.perf_counter()
        stdout, stderr = _execute(binary, args, payload, self.timeout)
        elapsed = time.perf_counter() - start
        check_stderr(stderr)

        if not options.writes_to_stdout:
            LOGGER.info(
                "OCR via tesseract completed in %.2fs (output=%s)", elapsed, options.output_target
            )
            return ""
        text = decode_output(stdout)
        LOGGER.info("OCR via tesseract completed in %.2fs (chars=%d)", elapsed, len(text))
        return text

    def get_languages(self) -> List[str]:
        stdout, stderr = _execute(self.binary, [LIST_LANGS_ARG], timeout=self.timeout)
        check_stderr(stderr)
        languages = parse_languages(stdout)
        LOGGER.debug("Tesseract reports %d languages", len(languages))
        return languages

    def get_version(self) -> str:
        stdout, stderr = _execute(self.binary, [VERSION_ARG], timeout=self.timeout)
        check_stderr(stderr)
        return parse_version(stdout)


def recognize(
    image: ImageInput,
    options: Union[RecognitionOptions, dict, None] = None,
    timeout: Optional[float] = None,
) -> str:
    """Run tesseract on a path, raw bytes or PIL image with the given options."""
    return TesseractInvoker(timeout=timeout).recognize(image, options)


def get_languages(path: Optional[str] = None) -> List[str]:
    """Return the installed language packs in the order tesseract lists them."""
    return TesseractInvoker(path).get_languages()


def get_version(path: Optional[str] = None) -> str:
    """Return the last token of the first line of ``tesseract -v``."""
    return TesseractInvoker(path).get_version()
