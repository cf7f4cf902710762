"""Logging for the API server and the sample tools.

Everything ends up in one log file attached to the root logger. The parser
modules under ``roomplanner.parsers`` log every page and cell decision at
DEBUG; ``ROOMPLANNER_LOG_LEVEL=DEBUG`` opens those up without also letting
through pdfminer's debug stream, which runs to megabytes per document.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Final

from .paths import runtime_base_dir

LOG_HANDLER_NAME: Final = "roomplanner-file"
LOG_LEVEL_ENV_VAR: Final = "ROOMPLANNER_LOG_LEVEL"
LOG_FILE_ENV_VAR: Final = "ROOMPLANNER_LOG_FILE"
FILE_FORMAT: Final = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

PARSER_LOGGER: Final = "roomplanner.parsers"
# decoder internals, held at WARNING whatever level the parsers run at
QUIET_LOGGERS: Final = ("pdfminer", "pdfplumber")

_FILE_HANDLER_SETTINGS: dict[str, Any] | None = None


def get_configured_log_level(default: int = logging.INFO) -> int:
    value = (os.getenv(LOG_LEVEL_ENV_VAR) or "").strip()
    if not value:
        return default
    if value.isdigit():
        return int(value)
    resolved = logging.getLevelName(value.upper())
    return resolved if isinstance(resolved, int) else default


def log_file_path() -> Path:
    override = os.getenv(LOG_FILE_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return runtime_base_dir() / "roomplanner.log"


def apply_parser_log_level(level: int) -> None:
    """Run the parser loggers at ``level``; everything else stays at INFO or above."""

    logging.getLogger(PARSER_LOGGER).setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger = logging.getLogger()
    floor = max(level, logging.INFO)
    if root_logger.level > floor:
        root_logger.setLevel(floor)


def configure_file_logging(default_level: int = logging.INFO) -> dict[str, Any] | None:
    """Attach the shared log file to the root logger, once per process."""

    global _FILE_HANDLER_SETTINGS

    root_logger = logging.getLogger()
    existing = next(
        (h for h in root_logger.handlers if h.get_name() == LOG_HANDLER_NAME), None
    )
    if existing is not None:
        if isinstance(existing, logging.FileHandler):
            _FILE_HANDLER_SETTINGS = {
                "path": Path(existing.baseFilename),
                "level": existing.level,
            }
        return _FILE_HANDLER_SETTINGS

    level = get_configured_log_level(default_level)
    path = log_file_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError as exc:  # pragma: no cover - depends on IO
        logging.getLogger(__name__).warning("Could not open log file %s: %s", path, exc)
        _FILE_HANDLER_SETTINGS = None
        return None

    handler.set_name(LOG_HANDLER_NAME)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    root_logger.addHandler(handler)
    apply_parser_log_level(level)

    _FILE_HANDLER_SETTINGS = {"path": path, "level": level}
    logging.getLogger(__name__).info(
        "Log file: %s (parser level %s)", path, logging.getLevelName(level)
    )
    return _FILE_HANDLER_SETTINGS


def announce_log_destination() -> None:
    settings = _FILE_HANDLER_SETTINGS
    if not settings:
        print("[logging] No log file; parser messages go to the console only.")
        return

    message = (
        f"[logging] Writing {settings['path']} "
        f"(parser level {logging.getLevelName(settings['level'])})."
    )
    if settings["level"] > logging.DEBUG:
        message += f" Set {LOG_LEVEL_ENV_VAR}=DEBUG to log every page and cell decision."
    print(message)


def get_file_handler_settings() -> dict[str, Any] | None:
    return _FILE_HANDLER_SETTINGS
