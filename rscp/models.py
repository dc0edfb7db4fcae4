"""
RSCP Data Model

Certification levels and the value types that flow between the identifier
codec, the privacy gate and the signing layer.

Wire names (givenName, publicAttributes, ...) are camelCase because they are
protocol data; Python attributes are snake_case.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class CertificationLevel(str, Enum):
    """
    Road safety certification levels.

    - bronze: basic safety training (2 hours, >=70% score, 1 year validity)
    - silver: hazard perception (4 hours, >=80% score, 1 year validity)
    - gold: practical assessment (8 hours, >=85% score, 2 years validity)
    """
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"

    @property
    def code(self) -> str:
        return _LEVEL_CONSTANTS[self][0]

    @property
    def training_hours(self) -> int:
        return _LEVEL_CONSTANTS[self][1]

    @property
    def min_score(self) -> int:
        return _LEVEL_CONSTANTS[self][2]

    @property
    def validity_years(self) -> int:
        return _LEVEL_CONSTANTS[self][3]

    @property
    def rank(self) -> int:
        return _LEVEL_CONSTANTS[self][4]

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def from_code(cls, code: str) -> "CertificationLevel":
        """Map a single-letter level code (B/S/G) back to its level."""
        for level in cls:
            if level.code == code.upper():
                return level
        raise ValueError(f"Unknown level code: {code}")

    @classmethod
    def coerce(cls, value: Any) -> Optional["CertificationLevel"]:
        """Return the level for an exact level value, or None."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for level in cls:
                if level.value == value:
                    return level
        return None

    def __lt__(self, other):
        if not isinstance(other, CertificationLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, CertificationLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, CertificationLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, CertificationLevel):
            return NotImplemented
        return self.rank >= other.rank


# level -> (code, training hours, min score, validity years, rank)
_LEVEL_CONSTANTS = {
    CertificationLevel.BRONZE: ("B", 2, 70, 1, 1),
    CertificationLevel.SILVER: ("S", 4, 80, 1, 2),
    CertificationLevel.GOLD: ("G", 8, 85, 2, 3),
}


@dataclass(frozen=True)
class CertificateNumberParts:
    """Components of a parsed certificate number."""
    year: int
    level: CertificationLevel
    level_code: str
    country: str
    issuer_code: str
    serial: int
    check_digit: str

    @property
    def padded_serial(self) -> str:
        return f"{self.serial:06d}"

    def base_string(self) -> str:
        """Checksum input: the number without hyphens and check digit."""
        return (
            f"RS{self.year}{self.level_code}{self.country}"
            f"{self.issuer_code}{self.padded_serial}"
        )

    def format(self) -> str:
        return (
            f"RS-{self.year}-{self.level_code}-{self.country}-"
            f"{self.issuer_code}-{self.padded_serial}-{self.check_digit}"
        )


@dataclass(frozen=True)
class VerificationCodeParts:
    base: str
    check_digit: str


@dataclass(frozen=True)
class CredentialIdParts:
    issuer_code: str
    year: int
    serial: int


@dataclass(frozen=True)
class Identifiers:
    """All identifiers minted for one issuance."""
    certificate_number: str
    verification_code: str
    credential_id: str
    issuer_did: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "certificateNumber": self.certificate_number,
            "verificationCode": self.verification_code,
            "credentialId": self.credential_id,
            "issuerDid": self.issuer_did,
        }


@dataclass(frozen=True)
class PublicAttributes:
    """
    The only attribute shape that may reach the public registry.

    There is no field for anything else; instances built from untrusted
    input come from protocol.enforce_public_attributes_only.
    """
    given_name: str
    family_name: str
    level: CertificationLevel
    valid_from: str
    valid_until: str

    @property
    def full_name(self) -> str:
        return f"{self.given_name} {self.family_name}".strip()

    def to_dict(self) -> Dict[str, str]:
        return {
            "givenName": self.given_name,
            "familyName": self.family_name,
            "level": self.level.value,
            "validFrom": self.valid_from,
            "validUntil": self.valid_until,
        }


@dataclass(frozen=True)
class RegistryInput:
    """Validated input for a registry write."""
    public_attributes: PublicAttributes
    issuer_code: str
    signature: Optional[str] = None
    internal_certification_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "publicAttributes": self.public_attributes.to_dict(),
            "issuerCode": self.issuer_code,
        }
        if self.signature is not None:
            d["signature"] = self.signature
        if self.internal_certification_id is not None:
            d["internalCertificationId"] = self.internal_certification_id
        return d


@dataclass(frozen=True)
class SignaturePayload:
    """Credential content covered by the issuer signature."""
    credential_id: str
    certificate_number: str
    verification_code: str
    public_attributes: PublicAttributes
    issuer_code: str
    issued_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "credentialId": self.credential_id,
            "certificateNumber": self.certificate_number,
            "verificationCode": self.verification_code,
            "publicAttributes": self.public_attributes.to_dict(),
            "issuerCode": self.issuer_code,
            "issuedAt": self.issued_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignaturePayload":
        """
        Build a payload from its wire dict.

        Attribute values are taken verbatim; a payload read back for
        verification must reproduce the signed bytes, not be re-validated.
        """
        attrs = data["publicAttributes"]
        level = CertificationLevel.coerce(attrs["level"])
        if level is None:
            raise ValueError(f"Unknown level: {attrs['level']}")
        return cls(
            credential_id=data["credentialId"],
            certificate_number=data["certificateNumber"],
            verification_code=data["verificationCode"],
            public_attributes=PublicAttributes(
                given_name=attrs["givenName"],
                family_name=attrs["familyName"],
                level=level,
                valid_from=attrs["validFrom"],
                valid_until=attrs["validUntil"],
            ),
            issuer_code=data["issuerCode"],
            issued_at=data["issuedAt"],
        )


@dataclass(frozen=True)
class SignedCredential:
    payload: SignaturePayload
    signature: str
    signed_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "payload": self.payload.to_dict(),
            "signature": self.signature,
            "signedAt": self.signed_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignedCredential":
        return cls(
            payload=SignaturePayload.from_dict(data["payload"]),
            signature=data["signature"],
            signed_at=data["signedAt"],
        )


@dataclass
class SignatureVerificationResult:
    """Outcome of a signature check. A mismatch is a result, not an error."""
    valid: bool
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> "SignatureVerificationResult":
        return cls(valid=True)

    @classmethod
    def failed(cls, error: str) -> "SignatureVerificationResult":
        return cls(valid=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"valid": self.valid}
        if self.error:
            d["error"] = self.error
        return d


@dataclass
class QRCodeData:
    """Data embedded in a certificate QR code."""
    cert: str
    code: str
    url: Optional[str] = None
    name: Optional[str] = None
    level: Optional[str] = None
    valid_until: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"cert": self.cert, "code": self.code}
        if self.url is not None:
            d["url"] = self.url
        if self.name is not None:
            d["name"] = self.name
        if self.level is not None:
            d["level"] = self.level
        if self.valid_until is not None:
            d["validUntil"] = self.valid_until
        return d


@dataclass
class CertificateVerificationResult:
    """Result of checking a certificate number / verification code pair."""
    valid: bool
    certificate_valid: bool
    code_valid: bool
    expired: bool
    parsed: Optional[CertificateNumberParts] = None
    qr_data: Optional[QRCodeData] = None
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        parsed = None
        if self.parsed is not None:
            parsed = {
                "year": self.parsed.year,
                "level": self.parsed.level.value,
                "levelCode": self.parsed.level_code,
                "country": self.parsed.country,
                "issuerCode": self.parsed.issuer_code,
                "serial": self.parsed.serial,
                "checkDigit": self.parsed.check_digit,
            }
        return {
            "valid": self.valid,
            "certificateValid": self.certificate_valid,
            "codeValid": self.code_valid,
            "expired": self.expired,
            "parsed": parsed,
            "qrData": self.qr_data.to_dict() if self.qr_data else None,
            "errors": list(self.errors),
        }
