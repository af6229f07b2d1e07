"""structlog setup shared by the Django settings modules.

Application code logs through ``structlog.get_logger(__name__)`` with dotted
event names (``order.created``); stdlib records from Django and Celery go
through the same processors via ``foreign_pre_chain`` and come out as JSON.
"""

from __future__ import annotations

import re

import structlog

SENSITIVE_PATTERN = re.compile(
    r"((?<!\d)(?:\+84|0)\d{9,10}(?!\d))"  # VN phone numbers
    r"|(password|passwd|secret|token|authorization)"
    r"""([=:]\s*["']?)([^\s,}"']+)""",
    re.IGNORECASE,
)

MASK = "***MASKED***"


def mask_sensitive_data(_, __, event_dict):
    """Mask phone numbers and credential values in string log fields."""
    for key, value in list(event_dict.items()):
        if isinstance(value, str):
            event_dict[key] = SENSITIVE_PATTERN.sub(MASK, value)
    return event_dict


SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    mask_sensitive_data,
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def configure_structlog() -> None:
    structlog.configure(
        processors=[
            *SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def logging_dict(level: str = "INFO") -> dict:
    """``LOGGING`` for Django: one JSON console handler for everything."""
    console = {"handlers": ["console"], "propagate": False}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.JSONRenderer(),
                ],
                "foreign_pre_chain": SHARED_PROCESSORS,
            },
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "json"},
        },
        "root": {"handlers": ["console"], "level": level},
        "loggers": {
            "django": {**console, "level": "INFO"},
            "django.server": {**console, "level": "WARNING"},
            "celery": {**console, "level": "INFO"},
        },
    }
