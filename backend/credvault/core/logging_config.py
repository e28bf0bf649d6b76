"""Logging setup with secret redaction and request correlation ids."""

from __future__ import annotations

import logging
import logging.config
import re

from asgi_correlation_id import CorrelationIdFilter

_SENSITIVE_PATTERN = re.compile(
    r"(Authorization: Bearer\s+[\w\.-]+"
    r"|token\"?\s*[:=]\s*\"?[\w\.-]+"
    r"|password\"\s*:\s*\"[^\"]+\""
    r"|resetpassword/[\w-]+)",
    re.IGNORECASE,
)

_LOGGER_NAMES = ("uvicorn", "uvicorn.access", "uvicorn.error")


class SensitiveFilter(logging.Filter):
    """Replace credentials in log messages with a redaction marker."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = _SENSITIVE_PATTERN.sub("**REDACTED**", record.msg)
        if record.args:
            args = record.args if isinstance(record.args, tuple) else (record.args,)
            record.args = tuple(
                _SENSITIVE_PATTERN.sub("**REDACTED**", arg) if isinstance(arg, str) else arg
                for arg in args
            )
        return True


def configure_logging(level: str = "INFO") -> None:
    """Install the console handler and attach the redaction filter.

    uvicorn loggers carry their own handlers, so the filter is also added to
    them directly.
    """
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "sensitive": {"()": SensitiveFilter},
                "correlation_id": {
                    "()": CorrelationIdFilter,
                    "uuid_length": 32,
                    "default_value": "-",
                },
            },
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "filters": ["correlation_id", "sensitive"],
                    "formatter": "default",
                },
            },
            "loggers": {
                "credvault": {"level": level},
            },
            "root": {"handlers": ["console"], "level": level},
        }
    )
    for logger_name in _LOGGER_NAMES:
        logger = logging.getLogger(logger_name)
        if not any(isinstance(flt, SensitiveFilter) for flt in logger.filters):
            logger.addFilter(SensitiveFilter())


__all__ = ["SensitiveFilter", "configure_logging"]
