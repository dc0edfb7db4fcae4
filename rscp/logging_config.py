"""
Logging configuration for RSCP.

Structured JSON logging for the issuer audit trail. Library modules log via
``logging.getLogger(__name__)`` and never install handlers; applications call
``configure_logging`` once at startup.

Audit events never carry raw attribute values. Anything derived from caller
data goes through ``protocol.sanitize_for_logging`` first, and the formatter
redacts any top-level event field named after a forbidden attribute.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .constants import FORBIDDEN_FIELDS, PROTOCOL_VERSION, REDACTED_MARKER

# Correlates every line logged while one issuance or verification runs
request_id_var: ContextVar[str] = ContextVar('rscp_request_id', default='')

_FORBIDDEN_KEYS = frozenset(name.lower() for name in FORBIDDEN_FIELDS)

_SEVERITY_LEVELS = {
    "low": logging.INFO,
    "medium": logging.WARNING,
    "high": logging.ERROR,
    "critical": logging.CRITICAL,
}

PLAIN_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line.

    Event fields attached by AuditLogger are merged at the top level. A field
    that would shadow a record key (``level`` on CREDENTIAL_ISSUED, say) is
    kept under ``event_<name>`` instead.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, timezone.utc)
        entry: Dict[str, Any] = {
            "timestamp": created.isoformat(timespec='milliseconds').replace('+00:00', 'Z'),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": "rscp",
            "protocol_version": PROTOCOL_VERSION,
            "source": f"{record.module}:{record.lineno}",
        }

        request_id = request_id_var.get()
        if request_id:
            entry["request_id"] = request_id

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in getattr(record, 'extra_fields', {}).items():
            if str(key).lower() in _FORBIDDEN_KEYS:
                value = REDACTED_MARKER
            entry["event_" + key if key in entry else key] = value

        return json.dumps(entry, default=str, ensure_ascii=False)


class AuditLogger:
    """
    Issuer audit events.

    Passed into the privacy gate, the verifier and the builder so callers
    with their own sinks can capture events without touching global handlers.
    Each event is one record whose ``extra_fields`` carry ``event_type`` plus
    the event's own fields.
    """

    def __init__(self, name: str = "rscp.audit"):
        self._logger = logging.getLogger(name)

    @property
    def name(self) -> str:
        return self._logger.name

    def _emit(self, level: int, event_type: str, message: str, /, **fields) -> None:
        # stacklevel points module/lineno at the code that raised the event
        self._logger.log(
            level,
            "%s: %s",
            event_type,
            message,
            extra={"extra_fields": {"event_type": event_type, **fields}},
            stacklevel=3,
        )

    def protocol_violation(
        self,
        fields: List[str],
        sanitized_data: Optional[Dict[str, Any]] = None,
        issuer_code: Optional[str] = None
    ) -> None:
        """A forbidden field was offered for the registry."""
        self._emit(
            logging.ERROR,
            "PROTOCOL_VIOLATION",
            f"Forbidden fields rejected: {', '.join(fields)}",
            fields=list(fields),
            sanitized_data=sanitized_data,
            issuer_code=issuer_code,
        )

    def credential_issued(
        self,
        credential_id: str,
        certificate_number: str,
        issuer_code: str,
        level: str
    ) -> None:
        self._emit(
            logging.INFO,
            "CREDENTIAL_ISSUED",
            f"Credential issued: {certificate_number}",
            credential_id=credential_id,
            certificate_number=certificate_number,
            issuer_code=issuer_code,
            level=level,
        )

    def verification_attempt(
        self,
        certificate_number: str,
        valid: bool,
        errors: Optional[List[str]] = None
    ) -> None:
        """A certificate was checked. Failures log at WARNING."""
        outcome = "passed" if valid else "failed"
        self._emit(
            logging.INFO if valid else logging.WARNING,
            "VERIFICATION_ATTEMPT",
            f"Verification {outcome} for {certificate_number}",
            certificate_number=certificate_number,
            valid=valid,
            errors=list(errors or []),
        )

    def signature_failure(self, credential_id: str, reason: str) -> None:
        self._emit(
            logging.WARNING,
            "SIGNATURE_FAILURE",
            f"Signature check failed: {reason}",
            credential_id=credential_id,
            reason=reason,
        )

    def security_event(self, event: str, severity: str = "medium", **details) -> None:
        """Severity is one of low/medium/high/critical; anything else logs at WARNING."""
        self._emit(
            _SEVERITY_LEVELS.get(severity, logging.WARNING),
            "SECURITY_EVENT",
            f"Security event: {event}",
            security_event=event,
            severity=severity,
            **details,
        )


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Configure root logging for an RSCP application.

    Replaces any handlers already on the root logger. Console output goes to
    stderr so CLI results on stdout stay machine-readable.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: StructuredFormatter when True, plain text otherwise
        log_file: Optional path that receives the same lines as the console

    Raises:
        ValueError: level is not a known level name
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    formatter = StructuredFormatter() if json_format else logging.Formatter(PLAIN_FORMAT)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set the request ID for the current context, generating one when None."""
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def get_request_id() -> str:
    return request_id_var.get()


# Default sink for the CLI and for callers that pass no audit logger
audit_log = AuditLogger()
