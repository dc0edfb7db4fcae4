#!/usr/bin/env python3
"""
RSCP Command Line Interface

Usage:
    rscp generate --year <y> --level <level> --country <cc> --issuer <iii> --serial <n>
    rscp validate [--cert <number>] [--code <code>]
    rscp verify --cert <number> --code <code> [--qr <json>]
    rscp enforce --file <attributes.json>
    rscp sign --file <payload.json> [--key-file <key.hex>]
    rscp verify-signature --file <signed.json> [--key-file <key.hex>]
    rscp hash --file <payload.json>
    rscp keygen [--output <key.hex>]
    rscp demo
"""

import argparse
import json
import os
import sys
from pathlib import Path
from typing import List, Optional


def load_json(path: str) -> dict:
    """Load JSON from file."""
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def print_json(data: dict):
    print(json.dumps(data, indent=2, ensure_ascii=False))


def resolve_key(args) -> Optional[str]:
    """Signing key from --key-file or the environment; None (with a message) if absent."""
    from rscp import config

    try:
        return config.load_signing_key(args.key_file)
    except FileNotFoundError as e:
        print(f"✗ No signing key: {e}", file=sys.stderr)
        print("  Set RSCP_SIGNING_KEY or pass --key-file (see `rscp keygen`).", file=sys.stderr)
        return None


def cmd_generate(args):
    """Mint identifiers for one issuance."""
    from rscp import IdentifierValidationError, generate_all_identifiers

    try:
        identifiers = generate_all_identifiers(
            year=args.year,
            level=args.level,
            country=args.country,
            issuer_code=args.issuer,
            serial=args.serial,
        )
    except IdentifierValidationError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1

    print_json(identifiers.to_dict())
    return 0


def cmd_validate(args):
    """Check the check characters of a certificate number and/or verification code."""
    from rscp import format_verification_code, validate_certificate_number, validate_verification_code

    if not args.cert and not args.code:
        print("✗ Nothing to validate: pass --cert and/or --code", file=sys.stderr)
        return 2

    ok = True
    if args.cert:
        valid = validate_certificate_number(args.cert)
        ok = ok and valid
        print(f"{'✓' if valid else '✗'} certificate number {args.cert.upper()}")
    if args.code:
        valid = validate_verification_code(args.code)
        ok = ok and valid
        print(f"{'✓' if valid else '✗'} verification code {format_verification_code(args.code)}")
    return 0 if ok else 1


def cmd_verify(args):
    """Verify a certificate number / verification code pair."""
    from rscp import verify_certificate
    from rscp.logging_config import audit_log

    qr_json = args.qr
    if qr_json and os.path.isfile(qr_json):
        qr_json = Path(qr_json).read_text(encoding='utf-8')

    result = verify_certificate(args.cert, args.code, qr_json, audit=audit_log)
    print_json(result.to_dict())

    if result.valid:
        print("\n✓ VALID", file=sys.stderr)
        return 0
    print("\n✗ INVALID", file=sys.stderr)
    for error in result.errors:
        print(f"  - {error}", file=sys.stderr)
    return 1


def cmd_enforce(args):
    """Run a JSON attribute bag through the privacy gate."""
    from rscp import ProtocolError, detect_unknown_fields, enforce_public_attributes_only
    from rscp.logging_config import audit_log

    data = load_json(args.file)
    if not isinstance(data, dict):
        print("✗ Expected a JSON object", file=sys.stderr)
        return 1

    try:
        attributes = enforce_public_attributes_only(data, audit=audit_log)
    except ProtocolError as e:
        print(f"✗ {e.code}: {e}", file=sys.stderr)
        return 1

    print_json(attributes.to_dict())
    dropped = detect_unknown_fields(data)
    if dropped:
        print(f"\nDropped unknown fields: {', '.join(dropped)}", file=sys.stderr)
    return 0


def cmd_sign(args):
    """Sign a payload JSON file."""
    from rscp import sign_payload
    from rscp.signing import utc_timestamp

    key = resolve_key(args)
    if key is None:
        return 1

    payload = load_json(args.file)
    try:
        signature = sign_payload(payload, key)
    except ValueError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1

    signed_at = payload.get("issuedAt") or utc_timestamp()
    print_json({"payload": payload, "signature": signature, "signedAt": signed_at})
    return 0


def cmd_verify_signature(args):
    """Verify a signed credential JSON file."""
    from rscp import verify_signed_credential

    key = resolve_key(args)
    if key is None:
        return 1

    result = verify_signed_credential(load_json(args.file), key)
    if result.valid:
        print("✓ Signature valid")
        return 0
    print(f"✗ {result.error}")
    return 1


def cmd_hash(args):
    """Compute the credential hash of a payload JSON file."""
    from rscp import generate_credential_hash

    data = load_json(args.file)
    if not isinstance(data, dict):
        print("✗ Expected a JSON object", file=sys.stderr)
        return 1

    # Accept a bare payload or a signed credential
    payload = data.get("payload", data)
    try:
        print(f"credential_hash: {generate_credential_hash(payload)}")
    except ValueError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    return 0


def cmd_keygen(args):
    """Generate an HMAC signing key."""
    from rscp import config, generate_signing_key

    if not args.output and config.is_production():
        print("✗ Refusing to print a signing key in production; pass --output", file=sys.stderr)
        return 1

    key = generate_signing_key()
    if args.output:
        path = Path(args.output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(key + "\n", encoding='utf-8')
        path.chmod(0o600)
        print(f"Signing key saved to: {args.output}")
    else:
        print(key)
    return 0


def cmd_demo(args):
    """Run a demonstration of RSCP issuance and verification."""
    from dataclasses import replace

    from rscp import (
        CredentialConfig,
        ProtocolError,
        build_qr_payload,
        enforce_public_attributes_only,
        format_verification_code,
        generate_signing_key,
        issue_credential,
        verify_certificate,
        verify_signed_credential,
    )

    print("=" * 60)
    print("RSCP Protocol Demonstration")
    print("=" * 60)

    # Scenario 1: leaking issuer data into the registry
    print("\n" + "-" * 60)
    print("Scenario 1: Registry write WITH private data")
    print("-" * 60)

    try:
        enforce_public_attributes_only({
            "givenName": "Ravi",
            "familyName": "Kumar",
            "level": "gold",
            "validFrom": "2026-01-15",
            "validUntil": "2028-01-15",
            "email": "ravi@example.com",
            "testScore": 92,
        })
    except ProtocolError as e:
        print(f"Rejected: {e.code}")
        print(f"Fields: {', '.join(e.fields)}")

    # Scenario 2: normal issuance
    print("\n" + "-" * 60)
    print("Scenario 2: Issue a gold credential")
    print("-" * 60)

    key = generate_signing_key()
    config = CredentialConfig(
        issuer_code="SWG",
        country="IN",
        given_name="Ravi",
        family_name="Kumar",
        level="gold",
        serial=1,
    )
    issued = issue_credential(config, key)
    ids = issued.built.identifiers

    print(f"Certificate number: {ids.certificate_number}")
    print(f"Verification code:  {format_verification_code(ids.verification_code)}")
    print(f"Credential ID:      {ids.credential_id}")
    print(f"Issuer DID:         {ids.issuer_did}")
    print(f"Valid until:        {issued.built.public_attributes.valid_until}")
    print(f"Credential hash:    {issued.credential_hash}")
    print(f"Verify at:          {issued.verification_url}")

    # Scenario 3: verification
    print("\n" + "-" * 60)
    print("Scenario 3: Verify identifiers and signature")
    print("-" * 60)

    qr = build_qr_payload(ids, issued.built.public_attributes)
    result = verify_certificate(ids.certificate_number, ids.verification_code, qr)
    print(f"Checksums valid: {result.valid}")

    typo = ids.certificate_number[:-1] + ("0" if ids.certificate_number[-1] != "0" else "1")
    print(f"Typo {typo} valid: {verify_certificate(typo, ids.verification_code).valid}")

    print(f"Signature valid: {verify_signed_credential(issued.signed, key).valid}")

    tampered_attrs = replace(issued.signed.payload.public_attributes, family_name="Sharma")
    tampered = replace(
        issued.signed,
        payload=replace(issued.signed.payload, public_attributes=tampered_attrs),
    )
    print(f"Tampered signature: {verify_signed_credential(tampered, key).error}")

    print("\n" + "=" * 60)
    print("Demonstration complete.")
    print("=" * 60)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rscp",
        description="RSCP road safety credential CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  rscp demo                                Run demonstration
  rscp generate -y 2026 -l gold -c IN -i SWG -s 1
  rscp validate --cert RS-2026-G-IN-SWG-000001-8
  rscp verify --cert RS-2026-G-IN-SWG-000001-8 --code A3B7-K9MD
  rscp enforce -f attributes.json
  rscp keygen -o secrets/rscp_signing_key.hex
        """
    )
    parser.add_argument("--log-level", type=str.upper,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Enable logging at this level")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # generate
    gen_parser = subparsers.add_parser("generate", help="Generate identifiers")
    gen_parser.add_argument("-y", "--year", type=int, required=True, help="Issuance year")
    gen_parser.add_argument("-l", "--level", required=True, help="bronze, silver or gold")
    gen_parser.add_argument("-c", "--country", required=True, help="2-letter country code")
    gen_parser.add_argument("-i", "--issuer", required=True, help="3-letter issuer code")
    gen_parser.add_argument("-s", "--serial", type=int, required=True, help="Serial 1-999999")

    # validate
    validate_parser = subparsers.add_parser("validate", help="Validate check characters")
    validate_parser.add_argument("--cert", help="Certificate number")
    validate_parser.add_argument("--code", help="Verification code")

    # verify
    verify_parser = subparsers.add_parser("verify", help="Verify a certificate")
    verify_parser.add_argument("--cert", required=True, help="Certificate number")
    verify_parser.add_argument("--code", required=True, help="Verification code")
    verify_parser.add_argument("--qr", help="QR payload JSON (string or file)")

    # enforce
    enforce_parser = subparsers.add_parser("enforce", help="Run attributes through the privacy gate")
    enforce_parser.add_argument("-f", "--file", required=True, help="Attributes JSON file")

    # sign
    sign_parser = subparsers.add_parser("sign", help="Sign a credential payload")
    sign_parser.add_argument("-f", "--file", required=True, help="Payload JSON file")
    sign_parser.add_argument("-k", "--key-file", help="Signing key file (hex)")

    # verify-signature
    vsig_parser = subparsers.add_parser("verify-signature", help="Verify a signed credential")
    vsig_parser.add_argument("-f", "--file", required=True, help="Signed credential JSON file")
    vsig_parser.add_argument("-k", "--key-file", help="Signing key file (hex)")

    # hash
    hash_parser = subparsers.add_parser("hash", help="Compute credential hash")
    hash_parser.add_argument("-f", "--file", required=True, help="Payload JSON file")

    # keygen
    keygen_parser = subparsers.add_parser("keygen", help="Generate signing key")
    keygen_parser.add_argument("-o", "--output", help="Output file for the key")

    # demo
    subparsers.add_parser("demo", help="Run demonstration")

    return parser


COMMANDS = {
    "generate": cmd_generate,
    "validate": cmd_validate,
    "verify": cmd_verify,
    "enforce": cmd_enforce,
    "sign": cmd_sign,
    "verify-signature": cmd_verify_signature,
    "hash": cmd_hash,
    "keygen": cmd_keygen,
    "demo": cmd_demo,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    from rscp import config

    log_level = config.cli_log_level(args.log_level)
    if log_level:
        from rscp.logging_config import configure_logging

        try:
            configure_logging(log_level, config.LOG_JSON, config.LOG_FILE)
        except ValueError as e:
            print(f"✗ {e}", file=sys.stderr)
            return 2

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 0
    return command(args)


if __name__ == "__main__":
    sys.exit(main())
