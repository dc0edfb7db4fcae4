"""
RSCP Credential Signing

Symmetric HMAC-SHA256 over the canonical signature payload.

Keys are 256-bit values carried as 64 hex characters; the HMAC key is the
decoded bytes. Signatures are standard base64. A mismatch during
verification is reported in a SignatureVerificationResult, never raised.
"""

import base64
import binascii
import hashlib
import hmac
import logging
import re
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

from .canonicalization import PayloadLike, canonicalize_payload
from .models import (
    CertificationLevel,
    PublicAttributes,
    SignaturePayload,
    SignatureVerificationResult,
    SignedCredential,
)
from .secure_random import get_random_bytes

logger = logging.getLogger(__name__)

SIGNING_KEY_BYTES = 32

_SIGNING_KEY_PATTERN = re.compile(r"[a-fA-F0-9]{64}")


# ============================================================
# Keys
# ============================================================

def is_valid_signing_key(key: Any) -> bool:
    """Shape check only: exactly 64 hex characters, any case."""
    return isinstance(key, str) and _SIGNING_KEY_PATTERN.fullmatch(key) is not None


def generate_signing_key() -> str:
    """Generate a fresh 256-bit signing key as 64 lowercase hex characters."""
    return bytes_to_hex(get_random_bytes(SIGNING_KEY_BYTES))


# ============================================================
# Sign / Verify
# ============================================================

def sign_payload(payload: PayloadLike, signing_key: str) -> str:
    """
    Sign a payload with HMAC-SHA256.

    Args:
        payload: SignaturePayload or its camelCase wire dict
        signing_key: 64 hex characters

    Returns:
        Base64 signature

    Raises:
        ValueError: if the key is not 64 hex characters, or the payload is
            incomplete
    """
    if not is_valid_signing_key(signing_key):
        raise ValueError("Invalid signing key format. Must be 64 hex characters (256 bits).")

    mac = hmac.new(hex_to_bytes(signing_key), canonicalize_payload(payload), hashlib.sha256)
    return bytes_to_base64(mac.digest())


def verify_signature(
    payload: PayloadLike,
    signature: str,
    signing_key: str
) -> SignatureVerificationResult:
    """
    Check ``signature`` against a freshly computed one.

    Never raises. Errors: "Invalid signing key format", "Signature
    mismatch", or the reason the payload could not be canonicalized.
    """
    if not is_valid_signing_key(signing_key):
        return SignatureVerificationResult.failed("Invalid signing key format")

    try:
        expected = sign_payload(payload, signing_key)
    except ValueError as e:
        return SignatureVerificationResult.failed(str(e))

    if not isinstance(signature, str) or not timing_safe_equal(signature, expected):
        return SignatureVerificationResult.failed("Signature mismatch")
    return SignatureVerificationResult.ok()


def timing_safe_equal(a: str, b: str) -> bool:
    """Constant-time string comparison; unequal lengths compare False."""
    return hmac.compare_digest(a.encode('utf-8'), b.encode('utf-8'))


# ============================================================
# Signed Credentials
# ============================================================

def utc_timestamp() -> str:
    """Current UTC time as ISO 8601 with milliseconds and a Z suffix."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec='milliseconds')
        .replace('+00:00', 'Z')
    )


def create_signed_credential(
    credential_id: str,
    certificate_number: str,
    verification_code: str,
    public_attributes: PublicAttributes,
    issuer_code: str,
    signing_key: str,
    issued_at: Optional[str] = None
) -> SignedCredential:
    """
    Assemble and sign a credential payload.

    ``issued_at`` defaults to now and doubles as ``signed_at``.

    Raises:
        ValueError: on a malformed signing key
    """
    issued_at = issued_at or utc_timestamp()
    payload = SignaturePayload(
        credential_id=credential_id,
        certificate_number=certificate_number,
        verification_code=verification_code,
        public_attributes=public_attributes,
        issuer_code=issuer_code,
        issued_at=issued_at,
    )
    signature = sign_payload(payload, signing_key)
    logger.debug("Signed credential %s", credential_id)
    return SignedCredential(payload=payload, signature=signature, signed_at=issued_at)


def verify_signed_credential(
    signed: Union[SignedCredential, Mapping[str, Any]],
    signing_key: str
) -> SignatureVerificationResult:
    """Verify a SignedCredential (or its wire dict) against the issuer key. Never raises."""
    if isinstance(signed, SignedCredential):
        return verify_signature(signed.payload, signed.signature, signing_key)
    if not isinstance(signed, Mapping):
        return SignatureVerificationResult.failed("Signed credential must be an object")
    return verify_signature(signed.get("payload"), signed.get("signature"), signing_key)


def create_payload_for_verification(
    credential_id: str,
    certificate_number: str,
    verification_code: str,
    given_name: str,
    family_name: str,
    level: Union[CertificationLevel, str],
    valid_from: str,
    valid_until: str,
    issuer_code: str,
    issued_at: str
) -> SignaturePayload:
    """
    Rebuild a signature payload from the flat fields a verifier holds
    (registry row plus identifiers).

    Raises:
        ValueError: on an unknown level
    """
    cert_level = CertificationLevel.coerce(level)
    if cert_level is None:
        raise ValueError(f"Unknown level: {level}")
    return SignaturePayload(
        credential_id=credential_id,
        certificate_number=certificate_number,
        verification_code=verification_code,
        public_attributes=PublicAttributes(
            given_name=given_name,
            family_name=family_name,
            level=cert_level,
            valid_from=valid_from,
            valid_until=valid_until,
        ),
        issuer_code=issuer_code,
        issued_at=issued_at,
    )


# ============================================================
# Encoding Helpers
# ============================================================

def bytes_to_hex(data: bytes) -> str:
    return data.hex()


def hex_to_bytes(value: str) -> bytes:
    """
    Raises:
        ValueError: on odd length or non-hex characters
    """
    if len(value) % 2 != 0:
        raise ValueError("Invalid hex string")
    try:
        return bytes.fromhex(value)
    except ValueError:
        raise ValueError("Invalid hex character")


def bytes_to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')


def base64_to_bytes(value: str) -> bytes:
    """
    Raises:
        ValueError: on malformed base64
    """
    try:
        return base64.b64decode(value.encode('ascii'), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise ValueError(f"Invalid base64 string: {e}")
