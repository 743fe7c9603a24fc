"""
Logging configuration for Entity Map.

The library itself only logs through module-level loggers
(``logging.getLogger(__name__)``) and passes structured context via
``extra={...}``. Applications that want the structured output call
:func:`configure_logging` once at startup:

1. **Structured JSON Logging**
   - Timestamp, level, logger name, message, service name
   - All extra fields from logger calls

2. **Test Mode**
   - TESTING=true switches to a simplified text format to avoid noise
     during pytest

Usage:
    from entitymap.observability import configure_logging

    configure_logging()
"""

import logging
from typing import Any, Optional

from pythonjsonlogger import jsonlogger

from entitymap.core.config import Settings, settings as default_settings

# =============================================================================
# Logging Configuration
# =============================================================================

# Reserved log record attributes that should not be treated as extra fields
RESERVED_LOG_ATTRS = frozenset({
    "args", "asctime", "created", "exc_info", "exc_text", "filename",
    "funcName", "levelname", "levelno", "lineno", "module", "msecs",
    "message", "msg", "name", "pathname", "process", "processName",
    "relativeCreated", "stack_info", "thread", "threadName", "taskName",
    "service",
})

TEXT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class StructuredJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that includes the service name and extra fields.

    This formatter outputs structured JSON logs that include:
    - Standard log fields (timestamp, level, logger name, message)
    - Service name for multi-service environments
    - All extra fields passed via logger.debug("msg", extra={...})
    """

    def __init__(self, *args: Any, service_name: str = "entitymap", **kwargs: Any) -> None:
        super().__init__(
            *args,
            **kwargs,
            timestamp=True,
        )
        self.service_name = service_name

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        """Add custom fields to the JSON log record."""
        super().add_fields(log_record, record, message_dict)

        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["service"] = self.service_name

        for key, value in record.__dict__.items():
            if key not in RESERVED_LOG_ATTRS and not key.startswith("_"):
                if key not in log_record:
                    log_record[key] = value


def configure_logging(config: Optional[Settings] = None) -> logging.Handler:
    """
    Configure root logging for applications embedding Entity Map.

    In JSON mode, outputs one JSON object per line with all extra fields.
    In test mode (TESTING=true) or with LOG_JSON disabled, uses a plain
    text format.

    Args:
        config: Settings to use. Defaults to the module-level settings.

    Returns:
        The handler installed on the root logger.
    """
    config = config or default_settings
    level = logging.getLevelName(config.LOG_LEVEL)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    if config.TESTING or not config.LOG_JSON:
        handler.setFormatter(logging.Formatter(TEXT_LOG_FORMAT))
    else:
        handler.setFormatter(StructuredJsonFormatter(service_name=config.LOG_SERVICE_NAME))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    # Remove any existing handlers and add our configured one
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    return handler
