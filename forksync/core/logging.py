"""structlog on top of stdlib logging for the webhook service and the CLI.

``forksync.*`` loggers follow the configured level; library loggers that chat
on every GitHub request are held back unless something goes wrong.
"""

from __future__ import annotations

import logging
import logging.config
import os

import structlog

# httpx logs one INFO line per GitHub call, which drowns a fan-out.
_LIBRARY_LEVELS = {
    "httpx": "WARNING",
    "httpcore": "WARNING",
    "uvicorn.access": "WARNING",
    "uvicorn.error": "INFO",
}

_FORMATS = ("console", "json")


def resolve_level(level: str | None = None) -> str:
    """Explicit *level*, else ``FORKSYNC_LOG_LEVEL``, else INFO.

    Unknown names fall back to INFO rather than failing startup.
    """
    name = (level or os.environ.get("FORKSYNC_LOG_LEVEL") or "INFO").upper()
    return name if isinstance(logging.getLevelName(name), int) else "INFO"


def resolve_format(fmt: str | None = None) -> str:
    name = (fmt or os.environ.get("FORKSYNC_LOG_FORMAT") or "console").lower()
    return name if name in _FORMATS else "console"


def _renderer(fmt: str) -> structlog.types.Processor:
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Route structlog and stdlib records through one stdout handler.

    Request ids bound by the API middleware reach every line through
    ``merge_contextvars``, including lines from webhook fan-outs.
    """
    level = resolve_level(level)
    fmt = resolve_format(fmt)

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    loggers = {name: {"level": lib_level} for name, lib_level in _LIBRARY_LEVELS.items()}
    loggers["forksync"] = {"level": level}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "forksync": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": pre_chain,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        _renderer(fmt),
                    ],
                },
            },
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": "forksync",
                },
            },
            "root": {"handlers": ["stdout"], "level": level},
            "loggers": loggers,
        }
    )
