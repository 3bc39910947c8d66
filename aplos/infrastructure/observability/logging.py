"""Structured JSON logging for applications embedding the client"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger.json import JsonFormatter

from aplos.config import ClientConfig, settings


class ServiceJsonFormatter(JsonFormatter):
    """JSON formatter stamping each record with a UTC timestamp, level and the service name"""

    def __init__(self, *args: Any, service_name: str, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(config: ClientConfig | None = None) -> None:
    """
    Route all logging to stdout as JSON lines.

    The level and service name come from config (APLOS_LOG_LEVEL and
    APLOS_SERVICE_NAME by default). The client never calls this itself.
    """
    config = config or settings
    root = logging.getLogger()
    root.setLevel(config.log_level.upper())
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        ServiceJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s", service_name=config.service_name)
    )
    root.addHandler(handler)


def log_request(operation: str, status_code: int, duration_ms: float, **fields: Any) -> None:
    """Log structured outcome of one API request"""
    logging.getLogger("aplos.requests").info(
        "Aplos request completed",
        extra={
            "operation": operation,
            "status_code": status_code,
            "duration_ms": duration_ms,
            **fields,
        },
    )
