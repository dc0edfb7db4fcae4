"""
RSCP Identifier Generation

Generates and validates:
- Certificate numbers: RS-{YEAR}-{LEVEL}-{COUNTRY}-{ISSUER}-{SERIAL}-{CHECK}
- Verification codes: 7 random characters + 1 Damm check
- Credential IDs: urn:rscp:credential:{issuer}:{year}:{serial}
- DIDs: did:rscp:issuer:{code} and did:rscp:holder:{uuid}

Parsers return None for anything malformed; only the generators raise.
"""

import json
import re
from typing import Any, Optional, Union
from urllib.parse import quote

from . import config
from .check_digits import (
    calculate_damm_check,
    calculate_iso7064_check,
    clean_code,
    validate_damm_full,
    verify_iso7064,
    VERIFICATION_CODE_ALPHABET,
)
from .errors import IdentifierValidationError
from .models import (
    CertificateNumberParts,
    CertificationLevel,
    CredentialIdParts,
    Identifiers,
    PublicAttributes,
    VerificationCodeParts,
)
from .secure_random import get_random_string

MIN_YEAR = 2020
MAX_YEAR = 2100
MIN_SERIAL = 1
MAX_SERIAL = 999999

VERIFICATION_CODE_LENGTH = 8

_COUNTRY_PATTERN = re.compile(r"[A-Z]{2}")
_ISSUER_PATTERN = re.compile(r"[A-Z]{3}")
_CERTIFICATE_PATTERN = re.compile(
    r"RS-([0-9]{4})-([BSG])-([A-Z]{2})-([A-Z]{3})-([0-9]{6})-([A-Z0-9])"
)
_CREDENTIAL_ID_PATTERN = re.compile(
    r"urn:rscp:credential:([a-z]{3}):([0-9]{4}):([0-9]{6})"
)
_ISSUER_DID_PATTERN = re.compile(r"did:rscp:issuer:([a-z]{3})")
_HOLDER_DID_PATTERN = re.compile(
    r"did:rscp:holder:([0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})"
)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _ascii_upper(value: Any) -> str:
    # Non-ASCII input must not sneak in through case mapping ("\u00df".upper() == "SS").
    if not isinstance(value, str) or not value.isascii():
        return ""
    return value.upper()


# ============================================================
# Certificate Number
# ============================================================

def generate_certificate_number(
    year: int,
    level: Union[CertificationLevel, str],
    country: str,
    issuer_code: str,
    serial: int
) -> str:
    """
    Generate an RSCP certificate number.

    Example:
        >>> generate_certificate_number(2026, "gold", "IN", "ATV", 1)
        'RS-2026-G-IN-ATV-000001-4'

    Raises:
        IdentifierValidationError: naming the first invalid field
    """
    if not _is_int(year) or not MIN_YEAR <= year <= MAX_YEAR:
        raise IdentifierValidationError(
            "year", year, f"Must be an integer between {MIN_YEAR} and {MAX_YEAR}."
        )

    cert_level = CertificationLevel.coerce(level)
    if cert_level is None:
        raise IdentifierValidationError(
            "level", level, "Must be 'bronze', 'silver', or 'gold'."
        )

    upper_country = _ascii_upper(country)
    if not _COUNTRY_PATTERN.fullmatch(upper_country):
        raise IdentifierValidationError(
            "country", country, "Must be 2 letters (ISO 3166-1 alpha-2 shape)."
        )

    upper_issuer = _ascii_upper(issuer_code)
    if not _ISSUER_PATTERN.fullmatch(upper_issuer):
        raise IdentifierValidationError("issuer_code", issuer_code, "Must be 3 letters.")

    if not _is_int(serial) or not MIN_SERIAL <= serial <= MAX_SERIAL:
        raise IdentifierValidationError(
            "serial", serial, f"Must be an integer between {MIN_SERIAL} and {MAX_SERIAL}."
        )

    parts = CertificateNumberParts(
        year=year,
        level=cert_level,
        level_code=cert_level.code,
        country=upper_country,
        issuer_code=upper_issuer,
        serial=serial,
        check_digit="",
    )
    check_digit = calculate_iso7064_check(parts.base_string())
    return f"{parts.format()}{check_digit}"


def parse_certificate_number(certificate_number: str) -> Optional[CertificateNumberParts]:
    """
    Split a certificate number into its components.

    Only the shape is checked; use validate_certificate_number for the
    check digit.
    """
    if not isinstance(certificate_number, str):
        return None
    match = _CERTIFICATE_PATTERN.fullmatch(_ascii_upper(certificate_number))
    if not match:
        return None

    year_str, level_code, country, issuer_code, serial_str, check_digit = match.groups()
    return CertificateNumberParts(
        year=int(year_str),
        level=CertificationLevel.from_code(level_code),
        level_code=level_code,
        country=country,
        issuer_code=issuer_code,
        serial=int(serial_str),
        check_digit=check_digit,
    )


def validate_certificate_number(certificate_number: str) -> bool:
    """
    Validate a certificate number including its check digit.

    False for malformed input and for well-formed numbers whose check
    digit does not match.
    """
    parts = parse_certificate_number(certificate_number)
    if parts is None:
        return False
    return verify_iso7064(parts.base_string(), parts.check_digit)


def format_certificate_number(certificate_number: str) -> str:
    """Re-render in canonical uppercase form, or return the input uppercased."""
    parts = parse_certificate_number(certificate_number)
    if parts is None:
        return certificate_number.upper()
    return parts.format()


# ============================================================
# Verification Code
# ============================================================

def generate_verification_code() -> str:
    """
    Generate an 8-character verification code (storage form, no hyphen).

    Seven characters come from the secure random source over the
    unambiguous alphabet; the eighth is the Damm check.
    """
    base = get_random_string(VERIFICATION_CODE_LENGTH - 1, VERIFICATION_CODE_ALPHABET)
    return base + calculate_damm_check(base)


def format_verification_code(code: str) -> str:
    """Display form XXXX-XXXX; malformed input comes back uppercased."""
    clean = clean_code(code)
    if len(clean) != VERIFICATION_CODE_LENGTH:
        return code.upper()
    return f"{clean[:4]}-{clean[4:]}"


def validate_verification_code(code: str) -> bool:
    """Validate a verification code, with or without hyphen."""
    if not isinstance(code, str):
        return False
    clean = clean_code(code)
    if len(clean) != VERIFICATION_CODE_LENGTH:
        return False
    return validate_damm_full(clean)


def parse_verification_code(code: str) -> Optional[VerificationCodeParts]:
    if not isinstance(code, str):
        return None
    clean = clean_code(code)
    if len(clean) != VERIFICATION_CODE_LENGTH:
        return None
    return VerificationCodeParts(base=clean[:7], check_digit=clean[7:])


# ============================================================
# Credential ID
# ============================================================

def generate_credential_id(issuer_code: str, year: int, serial: int) -> str:
    """
    Example:
        >>> generate_credential_id("SWG", 2026, 1)
        'urn:rscp:credential:swg:2026:000001'
    """
    return f"urn:rscp:credential:{issuer_code.lower()}:{year}:{serial:06d}"


def parse_credential_id(credential_id: str) -> Optional[CredentialIdParts]:
    if not isinstance(credential_id, str):
        return None
    match = _CREDENTIAL_ID_PATTERN.fullmatch(credential_id.lower())
    if not match:
        return None
    issuer_code, year_str, serial_str = match.groups()
    return CredentialIdParts(
        issuer_code=issuer_code.upper(),
        year=int(year_str),
        serial=int(serial_str),
    )


# ============================================================
# Decentralized Identifiers
# ============================================================

def generate_issuer_did(issuer_code: str) -> str:
    return f"did:rscp:issuer:{issuer_code.lower()}"


def parse_issuer_did(did: str) -> Optional[str]:
    """Return the issuer code (uppercase), or None."""
    if not isinstance(did, str):
        return None
    match = _ISSUER_DID_PATTERN.fullmatch(did.lower())
    return match.group(1).upper() if match else None


def generate_holder_did(user_id: str) -> str:
    return f"did:rscp:holder:{user_id.lower()}"


def parse_holder_did(did: str) -> Optional[str]:
    """Return the holder UUID (lowercase), or None."""
    if not isinstance(did, str):
        return None
    match = _HOLDER_DID_PATTERN.fullmatch(did.lower())
    return match.group(1) if match else None


# ============================================================
# Convenience
# ============================================================

def generate_all_identifiers(
    year: int,
    level: Union[CertificationLevel, str],
    country: str,
    issuer_code: str,
    serial: int
) -> Identifiers:
    """Mint every identifier for one issuance."""
    return Identifiers(
        certificate_number=generate_certificate_number(year, level, country, issuer_code, serial),
        verification_code=generate_verification_code(),
        credential_id=generate_credential_id(issuer_code, year, serial),
        issuer_did=generate_issuer_did(issuer_code),
    )


def _base_url(base_url: Optional[str]) -> str:
    return (base_url if base_url is not None else config.VERIFY_BASE_URL).rstrip("/")


def get_verification_url(verification_code: str, base_url: Optional[str] = None) -> str:
    """Short verification link: {base}/v/{code}."""
    return f"{_base_url(base_url)}/v/{clean_code(verification_code)}"


def build_verify_url(
    certificate_number: str,
    verification_code: str,
    base_url: Optional[str] = None
) -> str:
    """Verification page link carrying both identifiers."""
    cert = quote(certificate_number, safe="-_.!~*'()")
    return f"{_base_url(base_url)}/verify?cert={cert}&code={clean_code(verification_code)}"


def build_qr_payload(
    identifiers: Identifiers,
    public_attributes: PublicAttributes,
    base_url: Optional[str] = None
) -> str:
    """
    JSON embedded in certificate QR codes.

    Carries the verify URL plus the raw identifiers, holder name, level
    and expiry so a verifier can check offline.
    """
    return json.dumps(
        {
            "url": build_verify_url(
                identifiers.certificate_number, identifiers.verification_code, base_url
            ),
            "cert": identifiers.certificate_number,
            "code": identifiers.verification_code,
            "name": public_attributes.full_name,
            "level": public_attributes.level.value,
            "validUntil": public_attributes.valid_until,
        },
        separators=(",", ":"),
        ensure_ascii=False,
    )
