"""
RSCP Certificate Verification

Offline checks a verification page runs on a certificate number and
verification code, optionally with the JSON read from the certificate QR
code. No registry lookup happens here; a checksum pass only proves the
identifiers were transcribed correctly.
"""

import json
import logging
from datetime import date
from typing import Any, Optional

from .identifiers import (
    parse_certificate_number,
    validate_certificate_number,
    validate_verification_code,
)
from .logging_config import AuditLogger
from .models import CertificateVerificationResult, QRCodeData
from .utils import days_until_expiry, is_expired

logger = logging.getLogger(__name__)

__all__ = [
    "parse_qr_data",
    "verify_certificate",
    "is_expired",
    "days_until_expiry",
]

ERR_CERTIFICATE = "Invalid certificate number format or check digit"
ERR_UNPARSEABLE = "Could not parse certificate number"
ERR_CODE = "Invalid verification code format or check digit"
ERR_EXPIRED = "Certificate has expired"


def _optional_str(data: dict, key: str) -> Optional[str]:
    value = data.get(key)
    return value if isinstance(value, str) else None


def parse_qr_data(text: Any) -> Optional[QRCodeData]:
    """
    Parse the JSON embedded in a certificate QR code.

    Returns None unless ``text`` is a JSON object with non-empty ``cert``
    and ``code`` strings. Never raises.
    """
    if not isinstance(text, (str, bytes)):
        return None
    try:
        data = json.loads(text)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None

    cert, code = data.get("cert"), data.get("code")
    if not (isinstance(cert, str) and cert and isinstance(code, str) and code):
        return None

    return QRCodeData(
        cert=cert,
        code=code,
        url=_optional_str(data, "url"),
        name=_optional_str(data, "name"),
        level=_optional_str(data, "level"),
        valid_until=_optional_str(data, "validUntil"),
    )


def _qr_expired(valid_until: str, today: Optional[date]) -> bool:
    try:
        return is_expired(valid_until, today)
    except ValueError:
        # Unreadable expiry dates do not mark a certificate expired.
        logger.debug("Ignoring unparseable QR validUntil %r", valid_until)
        return False


def verify_certificate(
    certificate_number: str,
    verification_code: str,
    qr_json: Optional[str] = None,
    today: Optional[date] = None,
    audit: Optional[AuditLogger] = None
) -> CertificateVerificationResult:
    """
    Verify a certificate number / verification code pair.

    Args:
        certificate_number: As typed or scanned
        verification_code: With or without hyphen
        qr_json: Optional QR payload; its validUntil drives the expiry check
        today: Reference date for expiry (default: today, UTC)
        audit: When given, the attempt is recorded as a verification event

    Returns:
        CertificateVerificationResult; ``valid`` requires both checksums to
        pass and the certificate not to be expired
    """
    errors = []
    qr_data = parse_qr_data(qr_json) if qr_json else None

    certificate_valid = validate_certificate_number(certificate_number)
    if not certificate_valid:
        errors.append(ERR_CERTIFICATE)

    parsed = parse_certificate_number(certificate_number)
    if parsed is None and certificate_valid:
        errors.append(ERR_UNPARSEABLE)

    code_valid = validate_verification_code(verification_code)
    if not code_valid:
        errors.append(ERR_CODE)

    expired = False
    if qr_data is not None and qr_data.valid_until:
        expired = _qr_expired(qr_data.valid_until, today)
        if expired:
            errors.append(ERR_EXPIRED)

    result = CertificateVerificationResult(
        valid=certificate_valid and code_valid and not expired,
        certificate_valid=certificate_valid,
        code_valid=code_valid,
        expired=expired,
        parsed=parsed,
        qr_data=qr_data,
        errors=errors,
    )

    if audit is not None:
        audit.verification_attempt(str(certificate_number), result.valid, errors)

    return result
