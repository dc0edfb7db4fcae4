#!/usr/bin/env python3
"""
RSCP Example - Complete Issuance and Verification Flow

A training provider certifies a delivery rider, publishes the five public
attributes to the registry, and a verifier checks the certificate offline.

Run with: python examples/complete_workflow.py
"""

import json
from typing import Any, Dict

from rscp import (
    CredentialConfig,
    ProtocolError,
    build_qr_payload,
    configure_logging,
    create_payload_for_verification,
    detect_forbidden_fields,
    determine_level_from_scores,
    extract_public_attributes,
    format_verification_code,
    generate_signing_key,
    issue_credential,
    validate_registry_input,
    verify_certificate,
    verify_signature,
)
from rscp.logging_config import AuditLogger


def simulate_rider_record() -> Dict[str, Any]:
    """
    Simulate the issuer's internal rider record.

    In production this comes from the training provider's own database and
    never leaves it.
    """
    return {
        "internalRiderId": "SWG-R-88213",
        "givenName": "Ravi",
        "familyName": "Kumar",
        "email": "ravi.kumar@example.com",
        "phone": "+91 98765 43210",
        "aadhaarNumber": "XXXX-XXXX-4821",
        "testScore": 91,
        "hazardScore": 87,
    }


def simulate_registry_write(request: Dict[str, Any]) -> Dict[str, Any]:
    """Simulate the public registry: it stores only what the gate returns."""
    accepted = validate_registry_input(request)
    return accepted.to_dict()


def main():
    configure_logging("WARNING", json_format=True)
    audit = AuditLogger()

    print("=" * 70)
    print("RSCP Rider Certification - Complete Example")
    print("=" * 70)

    signing_key = generate_signing_key()
    rider = simulate_rider_record()

    # =========================================================================
    # STEP 1: Assessment result
    # =========================================================================

    print("\n[STEP 1] Scoring assessment...")
    level = determine_level_from_scores(rider["testScore"], rider["hazardScore"])
    if level is None:
        print("  Rider did not pass; nothing to issue.")
        return
    print(f"  Level earned: {level.display_name}")

    # =========================================================================
    # STEP 2: Issue the credential
    # =========================================================================

    print("\n[STEP 2] Issuing credential...")
    issued = issue_credential(
        CredentialConfig(
            issuer_code="SWG",
            country="IN",
            given_name=rider["givenName"],
            family_name=rider["familyName"],
            level=level,
            serial=1,
        ),
        signing_key,
        audit=audit,
    )
    ids = issued.built.identifiers
    print(f"  Certificate number: {ids.certificate_number}")
    print(f"  Verification code:  {format_verification_code(ids.verification_code)}")
    print(f"  Verify at:          {issued.verification_url}")

    # =========================================================================
    # STEP 3: Publish to the registry
    # =========================================================================

    print("\n[STEP 3] Publishing to registry...")

    # A careless integration pushes the whole rider record
    careless = {"issuerCode": "SWG", "publicAttributes": rider}
    try:
        simulate_registry_write(careless)
    except ProtocolError as e:
        print(f"  Blocked {e.code}: {', '.join(e.fields)}")

    print(f"  Private fields in rider record: {', '.join(detect_forbidden_fields(rider))}")

    public = extract_public_attributes(issued.built.public_attributes.to_dict())
    row = simulate_registry_write({
        "issuerCode": "SWG",
        "publicAttributes": public.to_dict(),
        "signature": issued.signed.signature,
    })
    print("  Registry row:")
    print("  " + json.dumps(row, indent=2).replace("\n", "\n  "))

    # =========================================================================
    # STEP 4: Verify
    # =========================================================================

    print("\n[STEP 4] Verifying scanned certificate...")
    qr = build_qr_payload(ids, public)
    result = verify_certificate(ids.certificate_number, ids.verification_code, qr, audit=audit)
    print(f"  Checksums and expiry: {'PASS' if result.valid else 'FAIL'}")

    attrs = row["publicAttributes"]
    payload = create_payload_for_verification(
        ids.credential_id,
        ids.certificate_number,
        ids.verification_code,
        attrs["givenName"],
        attrs["familyName"],
        attrs["level"],
        attrs["validFrom"],
        attrs["validUntil"],
        row["issuerCode"],
        issued.signed.payload.issued_at,
    )
    signature_check = verify_signature(payload, row["signature"], signing_key)
    print(f"  Issuer signature:     {'PASS' if signature_check.valid else signature_check.error}")

    print("\n" + "=" * 70)
    print("Example complete.")
    print("=" * 70)


if __name__ == "__main__":
    main()
