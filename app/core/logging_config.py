"""
Structured logging for the auth service.

JSON lines in production, plain text in development. Every record carries
the service name, and credential-looking `extra` fields are masked before
they reach a handler.
"""

import logging
import sys
from typing import Any, Dict
from datetime import datetime, timezone
from pythonjsonlogger import jsonlogger

SERVICE_NAME = "auth-service"

# `extra=` keys whose values must never be written out
SENSITIVE_FIELDS = frozenset({
    "password", "new_password", "current_password",
    "otp", "otp_code", "reset_token", "token", "refresh_token",
})
MASK = "***"


class RedactingFilter(logging.Filter):
    """Masks sensitive attributes attached to a record via `extra`."""

    def filter(self, record: logging.LogRecord) -> bool:
        for field in SENSITIVE_FIELDS:
            if getattr(record, field, None) is not None:
                setattr(record, field, MASK)
        return True


class AuthJsonFormatter(jsonlogger.JsonFormatter):

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
        log_record['service'] = SERVICE_NAME
        log_record['level'] = record.levelname
        log_record['logger'] = record.name

        if record.levelno >= logging.WARNING:
            log_record['location'] = f"{record.module}.{record.funcName}:{record.lineno}"


def setup_logging(log_level: str = "INFO", json_logs: bool = True) -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_logs: JSON lines (production) or human-readable text (development)
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RedactingFilter())

    if json_logs:
        handler.setFormatter(AuthJsonFormatter('%(timestamp)s %(level)s %(logger)s %(message)s'))
    else:
        handler.setFormatter(logging.Formatter(
            f'%(asctime)s [{SERVICE_NAME}] %(levelname)s %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root_logger.addHandler(handler)

    # Quieter third-party loggers
    for noisy in ("urllib3", "boto3", "botocore", "kombu"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)
