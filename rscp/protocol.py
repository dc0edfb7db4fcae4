"""
RSCP Protocol Enforcement

The privacy gate between issuer data and the public registry.

Only five attributes may ever be published: givenName, familyName, level,
validFrom and validUntil. Everything else (contact details, government IDs,
scores, financial data, internal IDs, location, biometrics) stays with the
issuer. enforce_public_attributes_only is the one implementation of that
rule; every registry-bound path funnels through it.

Failure modes:
- PROTOCOL_VIOLATION: a forbidden field was present (checked first)
- MISSING_ATTRIBUTE: a required field is absent or None
- INVALID_ATTRIBUTE: a field has the wrong shape
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from .constants import (
    ALLOWED_PUBLIC_FIELDS,
    FORBIDDEN_FIELDS,
    LOG_VALUE_MAX_LENGTH,
    NESTED_ATTRIBUTE_CONTAINERS,
    REDACTED_MARKER,
)
from .errors import ProtocolError
from .logging_config import AuditLogger, audit_log
from .models import CertificationLevel, PublicAttributes, RegistryInput

logger = logging.getLogger(__name__)

_FORBIDDEN_LOWER = frozenset(name.lower() for name in FORBIDDEN_FIELDS)
_ALLOWED_LOWER = frozenset(name.lower() for name in ALLOWED_PUBLIC_FIELDS)

_CONTROL_CHARS = re.compile(r"[\u0000-\u001f\u007f-\u009f]")
_HTML_TAG = re.compile(r"<[^>]*>")
_ISO_DATE = re.compile(
    r"([0-9]{4})-(0[1-9]|1[0-2])-(0[1-9]|[12][0-9]|3[01])"
    r"(?:T([0-9]{2}):([0-9]{2}):([0-9]{2})(?:\.([0-9]{3}))?Z?)?"
)
_ISSUER_CODE = re.compile(r"[A-Za-z]{3}")

NAME_MAX_LENGTH = 100

_NAME_REASON = "Must be a string between 1-100 characters without control characters or HTML"
_LEVEL_REASON = 'Must be "bronze", "silver", or "gold"'
_DATE_REASON = "Must be a valid ISO 8601 date (YYYY-MM-DD)"
_RANGE_REASON = "Must be after validFrom date"


# ============================================================
# Field Classification
# ============================================================

class FieldClass(str, Enum):
    """How the gate sees a field name."""
    ALLOWED = "ALLOWED"
    FORBIDDEN = "FORBIDDEN"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class FieldFinding:
    """One scanned key: ``field`` or ``container.field``."""
    path: str
    field_class: FieldClass


def is_forbidden_field(name: str) -> bool:
    """Exact, case-insensitive denylist match."""
    return isinstance(name, str) and name.lower() in _FORBIDDEN_LOWER


def is_allowed_field(name: str) -> bool:
    """Exact, case-insensitive allowlist match."""
    return isinstance(name, str) and name.lower() in _ALLOWED_LOWER


def classify_field(name: str) -> FieldClass:
    if is_forbidden_field(name):
        return FieldClass.FORBIDDEN
    if is_allowed_field(name):
        return FieldClass.ALLOWED
    return FieldClass.UNKNOWN


def scan_fields(data: Mapping[str, Any]) -> List[FieldFinding]:
    """
    Classify every key of ``data`` and of its nested attribute containers.

    Only keys are inspected. Values are never interpreted, except that
    ``publicAttributes`` and ``attributes`` are descended into (one level)
    when they are mappings. Non-string keys are skipped.
    """
    findings: List[FieldFinding] = []
    for key in data:
        if isinstance(key, str):
            findings.append(FieldFinding(key, classify_field(key)))

    for container in NESTED_ATTRIBUTE_CONTAINERS:
        nested = data.get(container)
        if not isinstance(nested, Mapping):
            continue
        for key in nested:
            if isinstance(key, str):
                findings.append(FieldFinding(f"{container}.{key}", classify_field(key)))

    return findings


def detect_forbidden_fields(data: Mapping[str, Any]) -> List[str]:
    """
    Return the paths of all forbidden fields in ``data`` (empty when clean).

    Example:
        >>> detect_forbidden_fields({"givenName": "Ravi", "publicAttributes": {"email": "x"}})
        ['publicAttributes.email']
    """
    return [f.path for f in scan_fields(data) if f.field_class == FieldClass.FORBIDDEN]


def detect_unknown_fields(data: Mapping[str, Any]) -> List[str]:
    """Top-level keys that are neither allowed nor forbidden."""
    return [
        key for key in data
        if isinstance(key, str) and classify_field(key) == FieldClass.UNKNOWN
    ]


# ============================================================
# Attribute Validation
# ============================================================

def _valid_name(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    if not 1 <= len(value) <= NAME_MAX_LENGTH:
        return False
    if _CONTROL_CHARS.search(value):
        return False
    if _HTML_TAG.search(value):
        return False
    return bool(value.strip())


def parse_iso_date(value: Any) -> Optional[datetime]:
    """
    Parse an ISO 8601 date or datetime into an aware UTC datetime.

    Accepts YYYY-MM-DD and YYYY-MM-DDTHH:MM:SS[.mmm][Z]. Values without
    a zone are read as UTC. Returns None for anything else, including
    impossible calendar dates such as 2026-02-30.
    """
    if not isinstance(value, str):
        return None
    match = _ISO_DATE.fullmatch(value)
    if not match:
        return None
    year, month, day, hour, minute, second, millis = match.groups()
    try:
        return datetime(
            int(year), int(month), int(day),
            int(hour or 0), int(minute or 0), int(second or 0),
            int(millis or 0) * 1000,
            tzinfo=timezone.utc,
        )
    except ValueError:
        return None


def _as_mapping(data: Union[Mapping[str, Any], PublicAttributes]) -> Mapping[str, Any]:
    if isinstance(data, PublicAttributes):
        return data.to_dict()
    if not isinstance(data, Mapping):
        raise TypeError(
            f"expected a mapping of attribute names to values, got {type(data).__name__}"
        )
    return data


# ============================================================
# Enforcement
# ============================================================

def enforce_public_attributes_only(
    data: Union[Mapping[str, Any], PublicAttributes],
    audit: Optional[AuditLogger] = None
) -> PublicAttributes:
    """
    Reduce ``data`` to the five public attributes, or raise.

    Checks run in a fixed order: forbidden fields, presence, shape, date
    range. A forbidden field always wins over a missing or malformed one.
    The result is a new PublicAttributes; nothing else from ``data``
    survives, so applying the gate to its own output is a no-op.

    Args:
        data: Candidate attributes (mapping or PublicAttributes)
        audit: When given, violations are reported through it with
            sanitized data before the error is raised

    Raises:
        ProtocolError: kind PROTOCOL_VIOLATION, MISSING_ATTRIBUTE or
            INVALID_ATTRIBUTE
        TypeError: if ``data`` is not a mapping
    """
    data = _as_mapping(data)

    forbidden = detect_forbidden_fields(data)
    if forbidden:
        logger.warning("Rejected forbidden fields: %s", ", ".join(forbidden))
        if audit is not None:
            audit.protocol_violation(forbidden, sanitize_for_logging(data))
        raise ProtocolError.violation(forbidden)

    for name in ALLOWED_PUBLIC_FIELDS:
        if data.get(name) is None:
            raise ProtocolError.missing(name)

    given_name = data["givenName"]
    family_name = data["familyName"]
    valid_from = data["validFrom"]
    valid_until = data["validUntil"]

    if not _valid_name(given_name):
        raise ProtocolError.invalid("givenName", _NAME_REASON)
    if not _valid_name(family_name):
        raise ProtocolError.invalid("familyName", _NAME_REASON)

    level = CertificationLevel.coerce(data["level"])
    if level is None:
        raise ProtocolError.invalid("level", _LEVEL_REASON)

    from_date = parse_iso_date(valid_from)
    if from_date is None:
        raise ProtocolError.invalid("validFrom", _DATE_REASON)
    until_date = parse_iso_date(valid_until)
    if until_date is None:
        raise ProtocolError.invalid("validUntil", _DATE_REASON)

    if until_date <= from_date:
        raise ProtocolError.invalid("validUntil", _RANGE_REASON)

    return PublicAttributes(
        given_name=given_name,
        family_name=family_name,
        level=level,
        valid_from=valid_from,
        valid_until=valid_until,
    )


def extract_public_attributes(
    credential: Mapping[str, Any],
    audit: Optional[AuditLogger] = None
) -> PublicAttributes:
    """
    Pull the public attributes out of a full credential record.

    Uses ``credential["publicAttributes"]`` whenever it is present and not
    None, even when empty; otherwise picks the five fields from the top
    level. Both paths go through enforce_public_attributes_only.
    """
    nested = credential.get("publicAttributes")
    if nested is not None:
        return enforce_public_attributes_only(nested, audit=audit)

    return enforce_public_attributes_only(
        {name: credential.get(name) for name in ALLOWED_PUBLIC_FIELDS},
        audit=audit,
    )


def validate_registry_input(
    registry_input: Mapping[str, Any],
    audit: Optional[AuditLogger] = None
) -> RegistryInput:
    """
    Validate a registry write request.

    The issuer code must be three letters (returned uppercased). Forbidden
    fields are rejected anywhere in the request, not just inside
    publicAttributes. signature and internalCertificationId pass through.

    Raises:
        ProtocolError
    """
    issuer_code = registry_input.get("issuerCode")
    if not isinstance(issuer_code, str) or not _ISSUER_CODE.fullmatch(issuer_code):
        raise ProtocolError.invalid("issuerCode", "Must be a 3-letter code")

    forbidden = detect_forbidden_fields(registry_input)
    if forbidden:
        if audit is not None:
            audit.protocol_violation(
                forbidden, sanitize_for_logging(registry_input), issuer_code.upper()
            )
        raise ProtocolError.violation(forbidden)

    public_attributes = enforce_public_attributes_only(
        registry_input.get("publicAttributes") or {}, audit=audit
    )

    return RegistryInput(
        public_attributes=public_attributes,
        issuer_code=issuer_code.upper(),
        signature=registry_input.get("signature"),
        internal_certification_id=registry_input.get("internalCertificationId"),
    )


# ============================================================
# Logging and Audit
# ============================================================

_LOGGABLE_SCALARS = (str, int, float, bool, date, Enum)


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return sanitize_for_logging(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_sanitize_value(item) for item in value]
    if value is not None and not isinstance(value, _LOGGABLE_SCALARS):
        return f"<{type(value).__name__}>"
    text = value if isinstance(value, str) else str(value)
    if len(text) > LOG_VALUE_MAX_LENGTH:
        return text[:LOG_VALUE_MAX_LENGTH] + "..."
    return text


def sanitize_for_logging(data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Make ``data`` safe to write to an audit log.

    Forbidden fields are replaced with a redaction marker and long values are
    cut to 50 characters plus "...". Mappings are sanitized the same way at
    any depth, including inside lists, tuples and sets (which become lists).
    Scalars become strings; any other object is logged as its type name only.
    """
    sanitized: Dict[str, Any] = {}
    for key, value in data.items():
        key = str(key)
        if is_forbidden_field(key):
            sanitized[key] = REDACTED_MARKER
        else:
            sanitized[key] = _sanitize_value(value)
    return sanitized


def log_protocol_violation(
    field: str,
    issuer_code: Optional[str] = None,
    source_ip: Optional[str] = None,
    details: Optional[str] = None,
    audit: Optional[AuditLogger] = None
) -> None:
    """
    Report a protocol violation attempt as a critical security event.

    Goes to the injected audit logger, or the global ``rscp.audit`` one.
    """
    (audit or audit_log).security_event(
        "protocol_violation",
        severity="critical",
        field=field,
        issuer_code=issuer_code,
        source_ip=source_ip,
        details=details,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
