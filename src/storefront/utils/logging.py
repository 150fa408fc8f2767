"""Logging for the storefront: stdlib handlers underneath, structlog on top.

Every storefront module logs through ``structlog.get_logger(__name__)``.
Payment client secrets and webhook signatures travel through the checkout
and webhook code paths, so a processor masks them before anything is
rendered.
"""

import logging
import logging.handlers
import os
import re
import sys
from pathlib import Path

import structlog

# Event keys whose values must never reach a log sink
_SECRET_KEYS = re.compile(r"(client_secret|signature|webhook_secret|password|token)", re.IGNORECASE)
_REDACTED = "***"

_LEVELS_BY_ENV = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}


def current_env() -> str:
    return (os.getenv("PROTEAN_ENV") or os.getenv("ENVIRONMENT") or "development").lower()


def log_level_for(env: str) -> str:
    return os.getenv("LOG_LEVEL", _LEVELS_BY_ENV.get(env, "INFO"))


def redact_secrets(logger, method_name, event_dict):
    """structlog processor: mask values of secret-looking keys."""
    for key in list(event_dict):
        if key != "event" and _SECRET_KEYS.search(key):
            event_dict[key] = _REDACTED
    return event_dict


def _rotating(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def setup_stdlib_logging(level: str, log_dir: str | Path | None = None) -> None:
    """Console output always; rotating files only when ``log_dir`` is given.

    ``storefront_attention.log`` collects warnings and errors: payment
    anomalies, late payments and failed notifications.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        root_logger.addHandler(_rotating(log_dir / "storefront.log", level))
        root_logger.addHandler(_rotating(log_dir / "storefront_attention.log", logging.WARNING))

    for noisy in ("protean", "urllib3", "asyncio", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def setup_structlog(env: str) -> None:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if env in ("production", "staging"):
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(log_dir: str | Path | None = None) -> None:
    """Configure logging for the API process or the async engine.

    ``STOREFRONT_LOG_DIR`` enables the rotating file handlers when no
    ``log_dir`` is passed.
    """
    env = current_env()
    setup_stdlib_logging(log_level_for(env), log_dir or os.getenv("STOREFRONT_LOG_DIR"))
    setup_structlog(env)


def bind_request(**kwargs) -> None:
    """Attach request-scoped values (path, user) to every log line until cleared."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**{k: v for k, v in kwargs.items() if v is not None})


def clear_request() -> None:
    structlog.contextvars.clear_contextvars()
