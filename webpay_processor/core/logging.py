import logging
import sys
from typing import Any

import structlog

from webpay_processor.core.config import get_settings

REDACTED_FIELDS = frozenset({"api_key", "webpay_api_key", "transbank_token", "token_ws"})


def redact_sensitive_fields(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Mask gateway credentials and tokens before rendering."""
    for key in REDACTED_FIELDS.intersection(event_dict):
        value = str(event_dict[key])
        event_dict[key] = f"***{value[-4:]}" if len(value) > 8 else "***"
    return event_dict


def configure_logging() -> None:
    settings = get_settings()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            redact_sensitive_fields,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=settings.log_level,
    )


def get_logger(*args: Any, **kwargs: Any) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(*args, **kwargs)
