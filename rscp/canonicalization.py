"""
RSCP Canonical Payload Encoding

Signatures and hashes are computed over one byte-stable serialization of
the signature payload. Field order is fixed here, never taken from the
input mapping:

    credentialId, certificateNumber, verificationCode,
    publicAttributes {givenName, familyName, level, validFrom, validUntil},
    issuerCode, issuedAt

Output is compact JSON (no whitespace), UTF-8, non-ASCII left unescaped.
"""

import json
from enum import Enum
from typing import Any, Dict, Mapping, Union

from .constants import ALLOWED_PUBLIC_FIELDS
from .models import SignaturePayload

PAYLOAD_FIELD_ORDER = (
    "credentialId",
    "certificateNumber",
    "verificationCode",
    "publicAttributes",
    "issuerCode",
    "issuedAt",
)

PayloadLike = Union[SignaturePayload, Mapping[str, Any]]


def canonicalize_payload(payload: PayloadLike) -> bytes:
    """
    Encode a signature payload canonically.

    Args:
        payload: SignaturePayload or its camelCase wire dict

    Returns:
        UTF-8 bytes of the canonical JSON

    Raises:
        ValueError: if a payload field is missing or not JSON-representable
    """
    ordered = _ordered_payload(payload)
    return json.dumps(ordered, separators=(',', ':'), ensure_ascii=False).encode('utf-8')


def canonicalize_payload_str(payload: PayloadLike) -> str:
    """Return the canonical payload as a string."""
    return canonicalize_payload(payload).decode('utf-8')


def _ordered_payload(payload: PayloadLike) -> Dict[str, Any]:
    if isinstance(payload, SignaturePayload):
        payload = payload.to_dict()
    if not isinstance(payload, Mapping):
        raise ValueError("Signature payload must be an object")

    ordered: Dict[str, Any] = {}
    for name in PAYLOAD_FIELD_ORDER:
        if name not in payload:
            raise ValueError(f"Signature payload missing field: {name}")
        if name == "publicAttributes":
            ordered[name] = _ordered_attributes(payload[name])
        else:
            ordered[name] = _canonicalize_value(payload[name])
    return ordered


def _ordered_attributes(attributes: Any) -> Dict[str, Any]:
    if hasattr(attributes, "to_dict"):
        attributes = attributes.to_dict()
    if not isinstance(attributes, Mapping):
        raise ValueError("publicAttributes must be an object")

    ordered: Dict[str, Any] = {}
    for name in ALLOWED_PUBLIC_FIELDS:
        if name not in attributes:
            raise ValueError(f"Signature payload missing field: publicAttributes.{name}")
        ordered[name] = _canonicalize_value(attributes[name])
    return ordered


def _canonicalize_value(value: Any) -> Any:
    """Scalars only; the payload has no nested values besides publicAttributes."""
    if isinstance(value, Enum):
        return value.value
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    raise ValueError(f"Cannot canonicalize type: {type(value)}")
