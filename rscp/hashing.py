"""
RSCP Credential Hashing

SHA-256 fingerprint of the canonical signature payload, lowercase hex.
Independent of the signature: anyone holding the payload can recompute it
without the issuer key.
"""

import hashlib
from typing import Union

from .canonicalization import PayloadLike, canonicalize_payload
from .signing import timing_safe_equal


def sha256_hex(data: Union[bytes, str]) -> str:
    """Compute SHA-256 and return lowercase hex."""
    if isinstance(data, str):
        data = data.encode('utf-8')
    return hashlib.sha256(data).hexdigest()


def generate_credential_hash(payload: PayloadLike) -> str:
    """
    Compute the credential hash.

    credential_hash = SHA-256(canonical payload)

    Raises:
        ValueError: if the payload is incomplete
    """
    return sha256_hex(canonicalize_payload(payload))


def verify_credential_hash(payload: PayloadLike, expected_hash: str) -> bool:
    """Recompute and compare in constant time (hex case ignored). Never raises."""
    if not isinstance(expected_hash, str):
        return False
    try:
        actual = generate_credential_hash(payload)
    except ValueError:
        return False
    return timing_safe_equal(actual, expected_hash.lower())
