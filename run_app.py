from __future__ import annotations

import logging
import os
import sys
from copy import deepcopy
from pathlib import Path
from typing import Any

import uvicorn
from uvicorn.config import LOGGING_CONFIG
from uvicorn.main import STARTUP_FAILURE

from roomplanner.logging_setup import (
    FILE_FORMAT,
    PARSER_LOGGER,
    announce_log_destination,
    configure_file_logging,
    get_configured_log_level,
    get_file_handler_settings,
)

LOGGER = logging.getLogger("roomplanner.run_app")

UVICORN_FILE_HANDLER = "roomplanner-uvicorn-file"
PARSER_CONSOLE_HANDLER = "roomplanner-parser-console"

configure_file_logging()


def get_uvicorn_log_config() -> dict[str, Any]:
    """Uvicorn's log config without colours, extended with the parser loggers.

    ``uvicorn`` and ``uvicorn.access`` don't propagate, so they get the log
    file as an extra handler; ``uvicorn.error`` reaches it via ``uvicorn``.
    Parser records propagate to the root file handler on their own and are
    echoed on the console from INFO up.
    """

    log_config: dict[str, Any] = deepcopy(LOGGING_CONFIG)
    formatters = log_config.setdefault("formatters", {})
    handlers = log_config.setdefault("handlers", {})
    loggers = log_config.setdefault("loggers", {})

    for formatter_name in ("default", "access"):
        formatter = formatters.get(formatter_name)
        if isinstance(formatter, dict):
            formatters[formatter_name] = {**formatter, "use_colors": False}

    settings = get_file_handler_settings()
    parser_level = settings["level"] if settings else get_configured_log_level()

    handlers[PARSER_CONSOLE_HANDLER] = {
        "class": "logging.StreamHandler",
        "formatter": "default",
        "stream": "ext://sys.stderr",
        "level": "INFO",
    }
    # dictConfig replaces the level set by apply_parser_log_level(), so repeat it
    loggers[PARSER_LOGGER] = {
        "handlers": [PARSER_CONSOLE_HANDLER],
        "level": logging.getLevelName(parser_level),
        "propagate": True,
    }

    if settings is not None:
        formatters[UVICORN_FILE_HANDLER] = {"()": "logging.Formatter", "fmt": FILE_FORMAT}
        handlers[UVICORN_FILE_HANDLER] = {
            "class": "logging.FileHandler",
            "formatter": UVICORN_FILE_HANDLER,
            "filename": str(settings["path"]),
            "encoding": "utf-8",
            "level": logging.getLevelName(settings["level"]),
        }
        for logger_name in ("uvicorn", "uvicorn.access"):
            logger_cfg = loggers.setdefault(logger_name, {"level": "INFO", "propagate": False})
            logger_handlers = logger_cfg.setdefault("handlers", [])
            if UVICORN_FILE_HANDLER not in logger_handlers:
                logger_handlers.append(UVICORN_FILE_HANDLER)

    return log_config


def main() -> None:
    os.chdir(Path(__file__).resolve().parent)

    from roomplanner.app import app

    host = os.getenv("ROOMPLANNER_HOST", "127.0.0.1")
    port = int(os.getenv("ROOMPLANNER_PORT", "8000"))

    announce_log_destination()
    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level=os.getenv("UVICORN_LOG_LEVEL", "info"),
        log_config=get_uvicorn_log_config(),
    )
    server = uvicorn.Server(config)
    server.run()

    if not server.started:
        LOGGER.error("Server failed to start on %s:%s", host, port)
        sys.exit(STARTUP_FAILURE)


if __name__ == "__main__":
    main()
