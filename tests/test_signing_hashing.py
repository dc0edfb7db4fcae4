"""
RSCP Signing and Hashing Test Suite

Canonicalization correctness, HMAC-SHA256 signatures, credential hashes
and the encoding helpers.
"""

import hashlib
import hmac
import unittest

from rscp import (
    CertificationLevel,
    PublicAttributes,
    SignaturePayload,
    SignedCredential,
    base64_to_bytes,
    bytes_to_base64,
    bytes_to_hex,
    canonicalize_payload,
    canonicalize_payload_str,
    create_payload_for_verification,
    create_signed_credential,
    generate_credential_hash,
    generate_signing_key,
    hex_to_bytes,
    is_valid_signing_key,
    sign_payload,
    verify_credential_hash,
    verify_signature,
    verify_signed_credential,
)
from rscp.signing import utc_timestamp

KEY = "0123456789abcdef" * 4

CANONICAL = (
    '{"credentialId":"urn:rscp:credential:swg:2026:000001",'
    '"certificateNumber":"RS-2026-G-IN-SWG-000001-8",'
    '"verificationCode":"A3B7K9MD",'
    '"publicAttributes":{"givenName":"Ravi","familyName":"Kumar","level":"gold",'
    '"validFrom":"2026-01-15","validUntil":"2028-01-15"},'
    '"issuerCode":"SWG",'
    '"issuedAt":"2026-01-15T10:30:00.000Z"}'
)
CANONICAL_SHA256 = "90b91aa650cb43cf6c11a32911740940f173ebb119768c10a3ff1033a697468d"
CANONICAL_HMAC = "GLXnrnP8OlQ/H0GcTF26pd+C2GpiiNJLzCNDXi1biDI="


def make_payload(**overrides):
    fields = dict(
        credential_id="urn:rscp:credential:swg:2026:000001",
        certificate_number="RS-2026-G-IN-SWG-000001-8",
        verification_code="A3B7K9MD",
        public_attributes=PublicAttributes(
            "Ravi", "Kumar", CertificationLevel.GOLD, "2026-01-15", "2028-01-15"
        ),
        issuer_code="SWG",
        issued_at="2026-01-15T10:30:00.000Z",
    )
    fields.update(overrides)
    return SignaturePayload(**fields)


class TestCanonicalization(unittest.TestCase):
    """Test vectors for the canonical payload encoding."""

    def test_known_vector(self):
        self.assertEqual(canonicalize_payload_str(make_payload()), CANONICAL)
        self.assertEqual(canonicalize_payload(make_payload()), CANONICAL.encode("utf-8"))

    def test_dict_and_dataclass_agree(self):
        payload = make_payload()
        self.assertEqual(canonicalize_payload(payload.to_dict()), canonicalize_payload(payload))

    def test_input_key_order_ignored(self):
        wire = make_payload().to_dict()
        shuffled = dict(reversed(list(wire.items())))
        shuffled["publicAttributes"] = dict(reversed(list(wire["publicAttributes"].items())))
        self.assertEqual(canonicalize_payload_str(shuffled), CANONICAL)

    def test_extra_keys_not_serialized(self):
        wire = make_payload().to_dict()
        wire["note"] = "ignored"
        self.assertEqual(canonicalize_payload_str(wire), CANONICAL)

    def test_non_ascii_kept_as_utf8(self):
        payload = make_payload(public_attributes=PublicAttributes(
            "José", "Müller", CertificationLevel.GOLD, "2026-01-15", "2028-01-15"
        ))
        encoded = canonicalize_payload(payload)
        self.assertIn("José".encode("utf-8"), encoded)
        self.assertNotIn(b"\\u", encoded)

    def test_missing_field(self):
        wire = make_payload().to_dict()
        del wire["verificationCode"]
        with self.assertRaises(ValueError) as ctx:
            canonicalize_payload(wire)
        self.assertEqual(str(ctx.exception), "Signature payload missing field: verificationCode")

    def test_missing_attribute(self):
        wire = make_payload().to_dict()
        del wire["publicAttributes"]["level"]
        with self.assertRaises(ValueError) as ctx:
            canonicalize_payload(wire)
        self.assertIn("publicAttributes.level", str(ctx.exception))

    def test_unserializable_value(self):
        wire = make_payload().to_dict()
        wire["issuedAt"] = object()
        with self.assertRaises(ValueError):
            canonicalize_payload(wire)


class TestSigningKeys(unittest.TestCase):

    def test_generated_key(self):
        key = generate_signing_key()
        self.assertEqual(len(key), 64)
        self.assertEqual(key, key.lower())
        self.assertTrue(is_valid_signing_key(key))
        self.assertNotEqual(key, generate_signing_key())

    def test_key_shape(self):
        self.assertTrue(is_valid_signing_key(KEY))
        self.assertTrue(is_valid_signing_key(KEY.upper()))
        for bad in ("", KEY[:-1], KEY + "0", "z" * 64, None, 42):
            self.assertFalse(is_valid_signing_key(bad))


class TestSignatures(unittest.TestCase):

    def test_known_signature(self):
        self.assertEqual(sign_payload(make_payload(), KEY), CANONICAL_HMAC)

    def test_matches_plain_hmac(self):
        expected = hmac.new(bytes.fromhex(KEY), CANONICAL.encode("utf-8"), hashlib.sha256).digest()
        self.assertEqual(base64_to_bytes(sign_payload(make_payload(), KEY)), expected)

    def test_key_case_irrelevant(self):
        self.assertEqual(sign_payload(make_payload(), KEY.upper()), CANONICAL_HMAC)

    def test_verify_round_trip(self):
        payload = make_payload()
        result = verify_signature(payload, sign_payload(payload, KEY), KEY)
        self.assertTrue(result.valid)
        self.assertIsNone(result.error)
        self.assertEqual(result.to_dict(), {"valid": True})

    def test_wrong_key(self):
        other_key = generate_signing_key()
        result = verify_signature(make_payload(), CANONICAL_HMAC, other_key)
        self.assertFalse(result.valid)
        self.assertEqual(result.error, "Signature mismatch")

    def test_changed_payload(self):
        payload = make_payload(issuer_code="ATV")
        self.assertFalse(verify_signature(payload, CANONICAL_HMAC, KEY).valid)

    def test_bad_key(self):
        with self.assertRaises(ValueError) as ctx:
            sign_payload(make_payload(), "not-a-key")
        self.assertIn("64 hex characters", str(ctx.exception))
        result = verify_signature(make_payload(), CANONICAL_HMAC, "not-a-key")
        self.assertEqual(result.to_dict(), {"valid": False, "error": "Invalid signing key format"})

    def test_incomplete_payload_reported_not_raised(self):
        wire = make_payload().to_dict()
        del wire["credentialId"]
        result = verify_signature(wire, CANONICAL_HMAC, KEY)
        self.assertFalse(result.valid)
        self.assertEqual(result.error, "Signature payload missing field: credentialId")

    def test_non_object_payload_reported_not_raised(self):
        for payload in (None, 5, ["credentialId"], "payload"):
            with self.subTest(payload=payload):
                result = verify_signature(payload, CANONICAL_HMAC, KEY)
                self.assertFalse(result.valid)
                self.assertEqual(result.error, "Signature payload must be an object")

    def test_sign_non_object_payload(self):
        with self.assertRaises(ValueError):
            sign_payload([1, 2], KEY)


class TestSignedCredentials(unittest.TestCase):

    def test_create(self):
        signed = create_signed_credential(
            credential_id="urn:rscp:credential:swg:2026:000001",
            certificate_number="RS-2026-G-IN-SWG-000001-8",
            verification_code="A3B7K9MD",
            public_attributes=make_payload().public_attributes,
            issuer_code="SWG",
            signing_key=KEY,
            issued_at="2026-01-15T10:30:00.000Z",
        )
        self.assertEqual(signed.payload, make_payload())
        self.assertEqual(signed.signature, CANONICAL_HMAC)
        self.assertEqual(signed.signed_at, "2026-01-15T10:30:00.000Z")
        self.assertTrue(verify_signed_credential(signed, KEY).valid)

    def test_default_issued_at(self):
        signed = create_signed_credential(
            "urn:rscp:credential:swg:2026:000001", "RS-2026-G-IN-SWG-000001-8", "A3B7K9MD",
            make_payload().public_attributes, "SWG", KEY,
        )
        self.assertRegex(signed.payload.issued_at, r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")
        self.assertEqual(signed.signed_at, signed.payload.issued_at)

    def test_wire_round_trip(self):
        signed = SignedCredential(make_payload(), CANONICAL_HMAC, "2026-01-15T10:30:00.000Z")
        restored = SignedCredential.from_dict(signed.to_dict())
        self.assertEqual(restored, signed)
        self.assertTrue(verify_signed_credential(signed.to_dict(), KEY).valid)

    def test_wire_dict_without_signature(self):
        wire = SignedCredential(make_payload(), CANONICAL_HMAC, "x").to_dict()
        del wire["signature"]
        self.assertEqual(verify_signed_credential(wire, KEY).error, "Signature mismatch")

    def test_malformed_wire_shapes(self):
        result = verify_signed_credential({"payload": 5, "signature": "x"}, KEY)
        self.assertEqual(result.error, "Signature payload must be an object")
        result = verify_signed_credential({"signature": CANONICAL_HMAC}, KEY)
        self.assertEqual(result.error, "Signature payload must be an object")
        for signed in (None, [], "signed"):
            with self.subTest(signed=signed):
                result = verify_signed_credential(signed, KEY)
                self.assertEqual(result.error, "Signed credential must be an object")

    def test_create_bad_key(self):
        with self.assertRaises(ValueError):
            create_signed_credential(
                "urn:rscp:credential:swg:2026:000001", "RS-2026-G-IN-SWG-000001-8", "A3B7K9MD",
                make_payload().public_attributes, "SWG", "short",
            )

    def test_payload_for_verification(self):
        payload = create_payload_for_verification(
            "urn:rscp:credential:swg:2026:000001", "RS-2026-G-IN-SWG-000001-8", "A3B7K9MD",
            "Ravi", "Kumar", "gold", "2026-01-15", "2028-01-15",
            "SWG", "2026-01-15T10:30:00.000Z",
        )
        self.assertEqual(payload, make_payload())
        self.assertTrue(verify_signature(payload, CANONICAL_HMAC, KEY).valid)
        with self.assertRaises(ValueError):
            create_payload_for_verification(
                "c", "n", "v", "A", "B", "platinum", "2026-01-15", "2028-01-15", "SWG", "t"
            )

    def test_utc_timestamp_shape(self):
        self.assertRegex(utc_timestamp(), r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


class TestCredentialHash(unittest.TestCase):

    def test_known_hash(self):
        self.assertEqual(generate_credential_hash(make_payload()), CANONICAL_SHA256)
        self.assertEqual(
            generate_credential_hash(make_payload()),
            hashlib.sha256(CANONICAL.encode("utf-8")).hexdigest(),
        )

    def test_hash_changes_with_payload(self):
        self.assertNotEqual(
            generate_credential_hash(make_payload(verification_code="HXK4PQRC")),
            CANONICAL_SHA256,
        )

    def test_verify(self):
        self.assertTrue(verify_credential_hash(make_payload(), CANONICAL_SHA256))
        self.assertTrue(verify_credential_hash(make_payload(), CANONICAL_SHA256.upper()))
        self.assertFalse(verify_credential_hash(make_payload(), CANONICAL_SHA256[:-1] + "0"))
        self.assertFalse(verify_credential_hash(make_payload(), ""))
        self.assertFalse(verify_credential_hash(make_payload(), None))

    def test_verify_never_raises(self):
        self.assertFalse(verify_credential_hash({"credentialId": "x"}, CANONICAL_SHA256))
        for payload in (None, 7, [make_payload().to_dict()]):
            with self.subTest(payload=payload):
                self.assertFalse(verify_credential_hash(payload, CANONICAL_SHA256))

    def test_generate_non_object_payload(self):
        with self.assertRaises(ValueError) as ctx:
            generate_credential_hash(None)
        self.assertEqual(str(ctx.exception), "Signature payload must be an object")

    def test_incomplete_payload_raises_on_generate(self):
        with self.assertRaises(ValueError):
            generate_credential_hash({})


class TestEncodingHelpers(unittest.TestCase):

    def test_hex(self):
        self.assertEqual(bytes_to_hex(b"\x00\xab\xff"), "00abff")
        self.assertEqual(hex_to_bytes("00ABff"), b"\x00\xab\xff")
        with self.assertRaises(ValueError) as ctx:
            hex_to_bytes("abc")
        self.assertEqual(str(ctx.exception), "Invalid hex string")
        with self.assertRaises(ValueError) as ctx:
            hex_to_bytes("zz")
        self.assertEqual(str(ctx.exception), "Invalid hex character")

    def test_base64(self):
        self.assertEqual(bytes_to_base64(b"rscp"), "cnNjcA==")
        self.assertEqual(base64_to_bytes("cnNjcA=="), b"rscp")
        for bad in ("cnNjcA=", "cnNj*A==", "é"):
            with self.assertRaises(ValueError):
                base64_to_bytes(bad)


if __name__ == "__main__":
    unittest.main(verbosity=2)
