"""
RSCP Credential Builder

Orchestrates a typical issuance: privacy gate, then identifier codec, then
(optionally) signing and hashing.

Example:
    config = CredentialConfig(
        issuer_code="SWG",
        country="IN",
        given_name="Ravi",
        family_name="Kumar",
        level="gold",
        serial=1,
    )
    built = build_credential(config)
    issued = issue_credential(config, signing_key)
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from .hashing import generate_credential_hash
from .identifiers import generate_all_identifiers, get_verification_url
from .logging_config import AuditLogger
from .models import CertificationLevel, Identifiers, PublicAttributes, SignedCredential
from .protocol import enforce_public_attributes_only, parse_iso_date
from .signing import create_signed_credential
from .utils import add_years, get_expiry_date, get_today_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CredentialConfig:
    """
    Everything needed to mint one credential.

    Required fields are checked on construction; attribute shapes are
    checked by the privacy gate at build time.

    Defaults at build time: ``year`` is the current UTC year, ``valid_from``
    is today and ``valid_until`` is ``valid_from`` plus the level's validity
    period (or ``valid_for_years`` when set).
    """
    issuer_code: str
    country: str
    given_name: str
    family_name: str
    level: Union[CertificationLevel, str]
    serial: int
    year: Optional[int] = None
    valid_from: Optional[str] = None
    valid_until: Optional[str] = None
    valid_for_years: Optional[int] = None

    def __post_init__(self):
        required = (
            ("issuer_code", "Issuer code"),
            ("country", "Country"),
            ("given_name", "Given name"),
            ("family_name", "Family name"),
            ("level", "Level"),
            ("serial", "Serial number"),
        )
        for attr, label in required:
            if not getattr(self, attr):
                raise ValueError(f"{label} is required")
        if self.valid_for_years is not None and self.valid_until is not None:
            raise ValueError("Set either valid_until or valid_for_years, not both")

    def resolve_dates(self) -> Dict[str, str]:
        """Fill in validFrom / validUntil defaults."""
        valid_from = self.valid_from or get_today_iso()
        if self.valid_until:
            return {"validFrom": valid_from, "validUntil": self.valid_until}

        parsed = parse_iso_date(valid_from)
        start = parsed.date() if parsed else datetime.now(timezone.utc).date()
        if self.valid_for_years is not None:
            valid_until = add_years(start, self.valid_for_years).isoformat()
        else:
            # Unknown levels fall through to the gate, which reports them.
            level = CertificationLevel.coerce(self.level)
            valid_until = get_expiry_date(level, start) if level else valid_from
        return {"validFrom": valid_from, "validUntil": valid_until}


@dataclass(frozen=True)
class BuiltCredential:
    public_attributes: PublicAttributes
    identifiers: Identifiers
    issuer_code: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "publicAttributes": self.public_attributes.to_dict(),
            "identifiers": self.identifiers.to_dict(),
            "issuerCode": self.issuer_code,
        }


@dataclass(frozen=True)
class IssuedCredential:
    built: BuiltCredential
    signed: SignedCredential
    credential_hash: str
    verification_url: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.built.to_dict(),
            "signedCredential": self.signed.to_dict(),
            "credentialHash": self.credential_hash,
            "verificationUrl": self.verification_url,
        }


def build_credential(
    config: CredentialConfig,
    audit: Optional[AuditLogger] = None
) -> BuiltCredential:
    """
    Run the privacy gate over the holder data, then mint identifiers.

    Raises:
        ProtocolError: if the attributes fail the gate
        IdentifierValidationError: if year, country, issuer or serial are
            out of range
    """
    public_attributes = enforce_public_attributes_only(
        {
            "givenName": config.given_name,
            "familyName": config.family_name,
            "level": config.level,
            **config.resolve_dates(),
        },
        audit=audit,
    )

    year = config.year if config.year is not None else datetime.now(timezone.utc).year
    identifiers = generate_all_identifiers(
        year=year,
        level=public_attributes.level,
        country=config.country,
        issuer_code=config.issuer_code,
        serial=config.serial,
    )

    return BuiltCredential(
        public_attributes=public_attributes,
        identifiers=identifiers,
        issuer_code=config.issuer_code.upper(),
    )


def issue_credential(
    config: CredentialConfig,
    signing_key: str,
    audit: Optional[AuditLogger] = None,
    issued_at: Optional[str] = None,
    base_url: Optional[str] = None
) -> IssuedCredential:
    """
    Build, sign and fingerprint a credential.

    Raises:
        ProtocolError, IdentifierValidationError: as build_credential
        ValueError: on a malformed signing key
    """
    built = build_credential(config, audit=audit)
    signed = create_signed_credential(
        credential_id=built.identifiers.credential_id,
        certificate_number=built.identifiers.certificate_number,
        verification_code=built.identifiers.verification_code,
        public_attributes=built.public_attributes,
        issuer_code=built.issuer_code,
        signing_key=signing_key,
        issued_at=issued_at,
    )

    issued = IssuedCredential(
        built=built,
        signed=signed,
        credential_hash=generate_credential_hash(signed.payload),
        verification_url=get_verification_url(built.identifiers.verification_code, base_url),
    )

    logger.info("Issued credential %s", built.identifiers.certificate_number)
    if audit is not None:
        audit.credential_issued(
            credential_id=built.identifiers.credential_id,
            certificate_number=built.identifiers.certificate_number,
            issuer_code=built.issuer_code,
            level=built.public_attributes.level.value,
        )
    return issued
