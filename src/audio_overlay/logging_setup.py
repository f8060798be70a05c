from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
PACKAGE_LOGGER = "audio_overlay"


def resolve_level(debug: bool, quiet: bool) -> int:
    if debug:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def setup_logging(
    debug: bool = False,
    log_file: Path | None = None,
    quiet: bool = False,
) -> logging.Logger:
    # Sample payloads go to stdout, so console logging stays on stderr.
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=resolve_level(debug, quiet),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    logging.captureWarnings(True)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.debug(
        "Logging initialized. debug=%s quiet=%s log_file=%s", debug, quiet, log_file
    )
    return logger
