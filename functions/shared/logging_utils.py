"""
JSON logging for the Lambda handlers.

Every line written to CloudWatch is a single JSON object carrying the
request id of the invocation that produced it, so Logs Insights can group
a request's provider, store and response lines together.
"""

import json
import logging
import os
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

from .request_utils import get_header

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# LogRecord attributes that are not caller-supplied ``extra`` fields
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """Render a record, plus any ``extra`` fields, as one JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": request_id_var.get(),
        }
        function_name = os.environ.get("AWS_LAMBDA_FUNCTION_NAME")
        if function_name:
            entry["function_name"] = function_name

        entry.update({key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS})

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_structured_logging(level: int = logging.INFO) -> logging.Logger:
    """Send everything through a single JSON handler on the root logger."""
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    # Replaces the runtime's plain-text handler; repeated calls stay idempotent
    root.handlers = [handler]
    return root


def set_request_id(event: dict) -> str:
    """Bind the API Gateway request id (or X-Request-Id, or a fresh uuid) to this invocation."""
    request_id = (
        (event.get("requestContext") or {}).get("requestId")
        or get_header(event, "x-request-id")
        or str(uuid.uuid4())
    )
    request_id_var.set(request_id)
    return request_id


def mask_email(email: Optional[str]) -> str:
    """``jane@example.com`` -> ``j***@example.com``."""
    if not email or "@" not in email:
        return "***"
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}"


def log_api_request(
    logger: logging.Logger,
    method: str,
    path: str,
    status_code: int,
    latency_ms: float,
) -> None:
    logger.info(
        f"{method} {path} -> {status_code}",
        extra={
            "http_method": method,
            "path": path,
            "status_code": status_code,
            "latency_ms": round(latency_ms, 2),
        },
    )


def log_external_call(
    logger: logging.Logger,
    service: str,
    operation: str,
    success: bool,
    latency_ms: float,
    error: Optional[str] = None,
) -> None:
    """One line per ElevenLabs or S3 call; failures are logged at WARNING."""
    outcome = "ok" if success else "failed"
    logger.log(
        logging.INFO if success else logging.WARNING,
        f"{service}.{operation} {outcome}",
        extra={
            "service": service,
            "operation": operation,
            "success": success,
            "latency_ms": round(latency_ms, 2),
            "error": error,
        },
    )
