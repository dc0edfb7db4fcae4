"""
RSCP Road Safety Credential Protocol Core

Version: 1.0.0

Issues and verifies short, self-checking identifiers for road safety
credentials and guarantees that a public registry only ever receives five
attributes: givenName, familyName, level, validFrom and validUntil.

Identifiers:
    RS-2026-G-IN-SWG-000001-8            certificate number (ISO 7064 MOD 11,10)
    A3B7-K9MD                            verification code (Damm)
    urn:rscp:credential:swg:2026:000001  credential ID
    did:rscp:issuer:swg                  issuer DID

Usage:
    from rscp import (
        CredentialConfig,
        enforce_public_attributes_only,
        issue_credential,
        verify_certificate,
        verify_signed_credential,
    )

    # Anything beyond the five public attributes is a protocol violation
    attrs = enforce_public_attributes_only(record)

    # Mint identifiers, sign and hash in one step
    issued = issue_credential(
        CredentialConfig(
            issuer_code="SWG", country="IN",
            given_name="Ravi", family_name="Kumar",
            level="gold", serial=1,
        ),
        signing_key,
    )

    # Offline verification of typed or scanned identifiers
    result = verify_certificate(certificate_number, verification_code)
"""

__version__ = "1.0.0"
__license__ = "Apache-2.0"

from .constants import (
    PROTOCOL_VERSION,
    ALLOWED_PUBLIC_FIELDS,
    FORBIDDEN_FIELDS,
)

# Data model and errors
from .models import (
    CertificationLevel,
    CertificateNumberParts,
    VerificationCodeParts,
    CredentialIdParts,
    Identifiers,
    PublicAttributes,
    RegistryInput,
    SignaturePayload,
    SignedCredential,
    SignatureVerificationResult,
    QRCodeData,
    CertificateVerificationResult,
)
from .errors import ErrorKind, ProtocolError, IdentifierValidationError

# Check digits and randomness
from .check_digits import (
    calculate_iso7064_check,
    verify_iso7064,
    validate_iso7064_full,
    calculate_damm_check,
    verify_damm,
    validate_damm_full,
    clean_code,
    is_valid_alphabet_char,
    get_verification_code_alphabet,
    get_iso7064_alphabet,
    ISO7064_ALPHABET,
    VERIFICATION_CODE_ALPHABET,
)
from .secure_random import get_random_bytes, get_secure_random_int, get_random_string

# Identifiers
from .identifiers import (
    generate_certificate_number,
    parse_certificate_number,
    validate_certificate_number,
    format_certificate_number,
    generate_verification_code,
    format_verification_code,
    validate_verification_code,
    parse_verification_code,
    generate_credential_id,
    parse_credential_id,
    generate_issuer_did,
    parse_issuer_did,
    generate_holder_did,
    parse_holder_did,
    generate_all_identifiers,
    get_verification_url,
    build_verify_url,
    build_qr_payload,
)

# Privacy gate
from .protocol import (
    FieldClass,
    FieldFinding,
    classify_field,
    scan_fields,
    is_forbidden_field,
    is_allowed_field,
    detect_forbidden_fields,
    detect_unknown_fields,
    enforce_public_attributes_only,
    extract_public_attributes,
    validate_registry_input,
    sanitize_for_logging,
    log_protocol_violation,
)

# Signing and hashing
from .canonicalization import canonicalize_payload, canonicalize_payload_str
from .signing import (
    is_valid_signing_key,
    generate_signing_key,
    sign_payload,
    verify_signature,
    timing_safe_equal,
    create_signed_credential,
    verify_signed_credential,
    create_payload_for_verification,
    bytes_to_hex,
    hex_to_bytes,
    bytes_to_base64,
    base64_to_bytes,
)
from .hashing import generate_credential_hash, verify_credential_hash

# Verification
from .verifier import parse_qr_data, verify_certificate

# Utilities
from .utils import (
    get_expiry_date,
    is_expired,
    days_until_expiry,
    get_today_iso,
    format_full_name,
    normalize_name,
    compare_levels,
    meets_level_requirement,
    get_level_display_name,
    get_level_training_hours,
    get_level_min_score,
    get_level_validity_years,
    is_valid_country_code,
    is_valid_issuer_code,
    is_valid_email,
    is_valid_phone,
    determine_level_from_scores,
)

# Builder
from .builder import (
    CredentialConfig,
    BuiltCredential,
    IssuedCredential,
    build_credential,
    issue_credential,
)

# Logging
from .logging_config import AuditLogger, configure_logging

__all__ = [
    # Version
    "__version__",
    "PROTOCOL_VERSION",
    "ALLOWED_PUBLIC_FIELDS",
    "FORBIDDEN_FIELDS",

    # Data model and errors
    "CertificationLevel",
    "CertificateNumberParts",
    "VerificationCodeParts",
    "CredentialIdParts",
    "Identifiers",
    "PublicAttributes",
    "RegistryInput",
    "SignaturePayload",
    "SignedCredential",
    "SignatureVerificationResult",
    "QRCodeData",
    "CertificateVerificationResult",
    "ErrorKind",
    "ProtocolError",
    "IdentifierValidationError",

    # Check digits and randomness
    "calculate_iso7064_check",
    "verify_iso7064",
    "validate_iso7064_full",
    "calculate_damm_check",
    "verify_damm",
    "validate_damm_full",
    "clean_code",
    "is_valid_alphabet_char",
    "get_verification_code_alphabet",
    "get_iso7064_alphabet",
    "ISO7064_ALPHABET",
    "VERIFICATION_CODE_ALPHABET",
    "get_random_bytes",
    "get_secure_random_int",
    "get_random_string",

    # Identifiers
    "generate_certificate_number",
    "parse_certificate_number",
    "validate_certificate_number",
    "format_certificate_number",
    "generate_verification_code",
    "format_verification_code",
    "validate_verification_code",
    "parse_verification_code",
    "generate_credential_id",
    "parse_credential_id",
    "generate_issuer_did",
    "parse_issuer_did",
    "generate_holder_did",
    "parse_holder_did",
    "generate_all_identifiers",
    "get_verification_url",
    "build_verify_url",
    "build_qr_payload",

    # Privacy gate
    "FieldClass",
    "FieldFinding",
    "classify_field",
    "scan_fields",
    "is_forbidden_field",
    "is_allowed_field",
    "detect_forbidden_fields",
    "detect_unknown_fields",
    "enforce_public_attributes_only",
    "extract_public_attributes",
    "validate_registry_input",
    "sanitize_for_logging",
    "log_protocol_violation",

    # Signing and hashing
    "canonicalize_payload",
    "canonicalize_payload_str",
    "is_valid_signing_key",
    "generate_signing_key",
    "sign_payload",
    "verify_signature",
    "timing_safe_equal",
    "create_signed_credential",
    "verify_signed_credential",
    "create_payload_for_verification",
    "bytes_to_hex",
    "hex_to_bytes",
    "bytes_to_base64",
    "base64_to_bytes",
    "generate_credential_hash",
    "verify_credential_hash",

    # Verification
    "parse_qr_data",
    "verify_certificate",

    # Utilities
    "get_expiry_date",
    "is_expired",
    "days_until_expiry",
    "get_today_iso",
    "format_full_name",
    "normalize_name",
    "compare_levels",
    "meets_level_requirement",
    "get_level_display_name",
    "get_level_training_hours",
    "get_level_min_score",
    "get_level_validity_years",
    "is_valid_country_code",
    "is_valid_issuer_code",
    "is_valid_email",
    "is_valid_phone",
    "determine_level_from_scores",

    # Builder
    "CredentialConfig",
    "BuiltCredential",
    "IssuedCredential",
    "build_credential",
    "issue_credential",

    # Logging
    "AuditLogger",
    "configure_logging",
]
