import json
import logging
import os
import re
import stat

import pytest

from rscp import config
from rscp.cli import main

CERT = "RS-2026-G-IN-SWG-000001-8"
SIGNATURE = "GLXnrnP8OlQ/H0GcTF26pd+C2GpiiNJLzCNDXi1biDI="
CREDENTIAL_HASH = "90b91aa650cb43cf6c11a32911740940f173ebb119768c10a3ff1033a697468d"


def payload():
    return {
        "credentialId": "urn:rscp:credential:swg:2026:000001",
        "certificateNumber": CERT,
        "verificationCode": "A3B7K9MD",
        "publicAttributes": {
            "givenName": "Ravi",
            "familyName": "Kumar",
            "level": "gold",
            "validFrom": "2026-01-15",
            "validUntil": "2028-01-15",
        },
        "issuerCode": "SWG",
        "issuedAt": "2026-01-15T10:30:00.000Z",
    }


@pytest.fixture(autouse=True)
def quiet_environment(monkeypatch):
    monkeypatch.setattr(config, "LOG_LEVEL", None)
    monkeypatch.setattr(config, "ENV", "dev")
    monkeypatch.delenv("RSCP_DEBUG", raising=False)


def write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def write_key(tmp_path, key):
    path = tmp_path / "key.hex"
    path.write_text(key + "\n", encoding="utf-8")
    return str(path)


# CLI-01: generate prints all identifiers
def test_generate(capsys):
    assert main(["generate", "-y", "2026", "-l", "gold", "-c", "IN", "-i", "SWG", "-s", "1"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["certificateNumber"] == CERT
    assert out["credentialId"] == "urn:rscp:credential:swg:2026:000001"
    assert len(out["verificationCode"]) == 8


def test_generate_rejects_bad_serial(capsys):
    assert main(["generate", "-y", "2026", "-l", "gold", "-c", "IN", "-i", "SWG", "-s", "0"]) == 1
    assert "serial" in capsys.readouterr().err


# CLI-02: validate exit codes
def test_validate(capsys):
    assert main(["validate", "--cert", CERT, "--code", "a3b7-k9md"]) == 0
    out = capsys.readouterr().out
    assert f"✓ certificate number {CERT}" in out
    assert "✓ verification code A3B7-K9MD" in out

    assert main(["validate", "--cert", "RS-2026-G-IN-SWG-000001-7"]) == 1
    assert main(["validate"]) == 2


# CLI-03: verify prints the result as JSON
def test_verify(capsys):
    assert main(["verify", "--cert", CERT, "--code", "A3B7K9MD"]) == 0
    captured = capsys.readouterr()
    assert json.loads(captured.out)["valid"] is True
    assert "VALID" in captured.err


def test_verify_expired_qr_file(tmp_path, capsys):
    qr = write_json(tmp_path / "qr.json", {"cert": CERT, "code": "A3B7K9MD", "validUntil": "2020-01-01"})
    assert main(["verify", "--cert", CERT, "--code", "A3B7K9MD", "--qr", qr]) == 1
    captured = capsys.readouterr()
    assert json.loads(captured.out)["expired"] is True
    assert "Certificate has expired" in captured.err


# CLI-04: the privacy gate from the command line
def test_enforce_rejects_private_data(tmp_path, capsys, valid_attributes):
    valid_attributes["email"] = "ravi@example.com"
    path = write_json(tmp_path / "attrs.json", valid_attributes)
    assert main(["enforce", "-f", path]) == 1
    captured = capsys.readouterr()
    assert "PROTOCOL_VIOLATION" in captured.err
    assert "ravi@example.com" not in captured.out


def test_enforce_drops_unknown_fields(tmp_path, capsys, valid_attributes):
    path = write_json(tmp_path / "attrs.json", dict(valid_attributes, nickname="RK"))
    assert main(["enforce", "-f", path]) == 0
    captured = capsys.readouterr()
    assert json.loads(captured.out) == valid_attributes
    assert "nickname" in captured.err


def test_enforce_rejects_non_object(tmp_path):
    assert main(["enforce", "-f", write_json(tmp_path / "attrs.json", [1, 2])]) == 1


# CLI-05: sign, verify-signature and hash agree with the library
def test_sign_and_verify(tmp_path, capsys, signing_key):
    key_file = write_key(tmp_path, signing_key)
    assert main(["sign", "-f", write_json(tmp_path / "payload.json", payload()), "-k", key_file]) == 0
    signed = json.loads(capsys.readouterr().out)
    assert signed["signature"] == SIGNATURE
    assert signed["signedAt"] == "2026-01-15T10:30:00.000Z"

    signed_path = write_json(tmp_path / "signed.json", signed)
    assert main(["verify-signature", "-f", signed_path, "-k", key_file]) == 0
    assert "✓ Signature valid" in capsys.readouterr().out

    signed["payload"]["publicAttributes"]["level"] = "bronze"
    tampered_path = write_json(tmp_path / "tampered.json", signed)
    assert main(["verify-signature", "-f", tampered_path, "-k", key_file]) == 1
    assert "Signature mismatch" in capsys.readouterr().out


def test_sign_with_environment_key(tmp_path, capsys, monkeypatch, signing_key):
    monkeypatch.setattr(config, "SIGNING_KEY", signing_key)
    assert main(["sign", "-f", write_json(tmp_path / "payload.json", payload())]) == 0
    assert json.loads(capsys.readouterr().out)["signature"] == SIGNATURE


def test_sign_without_key(tmp_path, capsys, monkeypatch):
    monkeypatch.setattr(config, "SIGNING_KEY", "")
    missing = str(tmp_path / "missing.hex")
    assert main(["sign", "-f", write_json(tmp_path / "payload.json", payload()), "-k", missing]) == 1
    assert "No signing key" in capsys.readouterr().err


def test_sign_with_malformed_key(tmp_path, capsys):
    key_file = write_key(tmp_path, "abc")
    assert main(["sign", "-f", write_json(tmp_path / "payload.json", payload()), "-k", key_file]) == 1
    assert "64 hex characters" in capsys.readouterr().err


def test_hash(tmp_path, capsys):
    assert main(["hash", "-f", write_json(tmp_path / "payload.json", payload())]) == 0
    assert capsys.readouterr().out.strip() == f"credential_hash: {CREDENTIAL_HASH}"

    signed = {"payload": payload(), "signature": SIGNATURE, "signedAt": "x"}
    assert main(["hash", "-f", write_json(tmp_path / "signed.json", signed)]) == 0
    assert CREDENTIAL_HASH in capsys.readouterr().out

    assert main(["hash", "-f", write_json(tmp_path / "bad.json", {"issuerCode": "SWG"})]) == 1


# CLI-06: keygen writes a private key file
def test_keygen_to_file(tmp_path, capsys):
    path = tmp_path / "secrets" / "rscp_signing_key.hex"
    assert main(["keygen", "-o", str(path)]) == 0
    key = path.read_text(encoding="utf-8").strip()
    assert len(key) == 64
    int(key, 16)
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600


def test_keygen_to_stdout(capsys):
    assert main(["keygen"]) == 0
    assert len(capsys.readouterr().out.strip()) == 64


# CLI-07: demo and help
def test_demo(capsys):
    assert main(["demo"]) == 0
    out = capsys.readouterr().out
    assert "Rejected: PROTOCOL_VIOLATION" in out
    assert "Checksums valid: True" in out
    assert "Signature valid: True" in out
    assert "Tampered signature: Signature mismatch" in out


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "usage: rscp" in capsys.readouterr().out


def test_log_level_configures_logging(capsys, preserved_root_logging):
    with preserved_root_logging():
        assert main(["--log-level", "INFO", "validate", "--cert", CERT]) == 0
    assert CERT in capsys.readouterr().out


# CLI-08: malformed files are reported, not raised
def test_hash_rejects_non_object(tmp_path, capsys):
    assert main(["hash", "-f", write_json(tmp_path / "list.json", [payload()])]) == 1
    assert "Expected a JSON object" in capsys.readouterr().err


def test_verify_signature_malformed_files(tmp_path, capsys, signing_key):
    key_file = write_key(tmp_path, signing_key)
    bad_payload = write_json(tmp_path / "bad.json", {"payload": 5, "signature": SIGNATURE})
    assert main(["verify-signature", "-f", bad_payload, "-k", key_file]) == 1
    assert "Signature payload must be an object" in capsys.readouterr().out

    as_list = write_json(tmp_path / "list.json", [])
    assert main(["verify-signature", "-f", as_list, "-k", key_file]) == 1
    assert "Signed credential must be an object" in capsys.readouterr().out


def test_sign_without_issued_at_stamps_signing_time(tmp_path, capsys, signing_key):
    data = dict(payload(), issuedAt=None)
    key_file = write_key(tmp_path, signing_key)
    assert main(["sign", "-f", write_json(tmp_path / "payload.json", data), "-k", key_file]) == 0
    signed = json.loads(capsys.readouterr().out)
    assert signed["signedAt"] is not None
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", signed["signedAt"])


# CLI-09: logging level from the environment
def test_environment_log_level(capsys, monkeypatch, preserved_root_logging):
    monkeypatch.setattr(config, "LOG_LEVEL", "warning")
    with preserved_root_logging() as root:
        assert main(["validate", "--cert", CERT]) == 0
        assert root.level == logging.WARNING


def test_debug_flag_forces_debug(capsys, monkeypatch, preserved_root_logging):
    monkeypatch.setattr(config, "LOG_LEVEL", "ERROR")
    monkeypatch.setenv("RSCP_DEBUG", "1")
    with preserved_root_logging() as root:
        assert main(["validate", "--cert", CERT]) == 0
        assert root.level == logging.DEBUG


def test_unknown_environment_log_level(capsys, monkeypatch, preserved_root_logging):
    monkeypatch.setattr(config, "LOG_LEVEL", "LOUD")
    with preserved_root_logging():
        assert main(["validate", "--cert", CERT]) == 2
    assert "Unknown log level: LOUD" in capsys.readouterr().err


def test_no_logging_configured_by_default(capsys, preserved_root_logging):
    with preserved_root_logging() as root:
        handlers = root.handlers[:]
        assert main(["validate", "--cert", CERT]) == 0
        assert root.handlers == handlers


# CLI-10: production keeps keys off stdout
def test_keygen_refuses_stdout_in_production(tmp_path, capsys, monkeypatch):
    monkeypatch.setattr(config, "ENV", "prod")
    assert main(["keygen"]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "pass --output" in captured.err

    path = tmp_path / "key.hex"
    assert main(["keygen", "-o", str(path)]) == 0
    assert len(path.read_text(encoding="utf-8").strip()) == 64
