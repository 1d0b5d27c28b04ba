"""asyncio variants of the tesseract calls for event-loop callers."""
from __future__ import annotations

from typing import Any, List, Optional, Tuple

import asyncio
import logging
import os
import time

from tessbind import config as tess_config
from tessbind.ocr.engine import (
    LIST_LANGS_ARG,
    VERSION_ARG,
    ImageInput,
    TesseractNotFoundError,
    TesseractTimeoutError,
    build_args,
    check_image,
    check_stderr,
    decode_output,
    parse_languages,
    parse_version,
    stdin_payload,
)
from tessbind.ocr.options import coerce_options

LOGGER = logging.getLogger(__name__)


async def _execute(
    binary: str,
    args: List[str],
    payload: Optional[bytes] = None,
    timeout: Optional[float] = None,
) -> Tuple[bytes, bytes]:
    LOGGER.debug("Executing Tesseract command: %s", " ".join([binary, *args]))
    try:
        proc = await asyncio.create_subprocess_exec(
            binary,
            *args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise TesseractNotFoundError(f"Unable to start tesseract binary '{binary}': {exc}") from exc

    try:
        # b"" still closes stdin; None leaves it open on older interpreters
        stdout, stderr = await asyncio.wait_for(
            proc.communicate(input=payload if payload is not None else b""), timeout
        )
    except asyncio.TimeoutError as exc:
        if proc.returncode is None:
            proc.kill()
        await proc.wait()
        raise TesseractTimeoutError(f"tesseract did not finish within {timeout}s") from exc
    except asyncio.CancelledError:
        if proc.returncode is None:
            proc.kill()
            await proc.wait()
        raise
    return stdout, stderr


async def recognize(
    image: ImageInput,
    options: Any = None,
    timeout: Optional[float] = None,
) -> str:
    check_image(image)
    options = coerce_options(options)
    args = build_args(image, options)
    binary = os.fsdecode(options.path) if options.path is not None else tess_config.get_path()

    start = time.perf_counter()
    stdout, stderr = await _execute(binary, args, stdin_payload(image, args[0]), timeout)
    check_stderr(stderr)
    LOGGER.info("OCR via tesseract completed in %.2fs", time.perf_counter() - start)

    if not options.writes_to_stdout:
        return ""
    return decode_output(stdout)


async def get_languages(path: Optional[str] = None, timeout: Optional[float] = None) -> List[str]:
    stdout, stderr = await _execute(
        path if path is not None else tess_config.get_path(), [LIST_LANGS_ARG], timeout=timeout
    )
    check_stderr(stderr)
    return parse_languages(stdout)


async def get_version(path: Optional[str] = None, timeout: Optional[float] = None) -> str:
    stdout, stderr = await _execute(
        path if path is not None else tess_config.get_path(), [VERSION_ARG], timeout=timeout
    )
    check_stderr(stderr)
    return parse_version(stdout)
