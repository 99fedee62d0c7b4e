import base64
import hashlib
import hmac
import json

from fulfillment_bridge.signature import sign_body, verify_signature

SECRET = "shpss_test_secret"
BODY = json.dumps({"id": 123, "status": "fulfilled"}).encode()


def _reference_signature(body: bytes, secret: str) -> str:
    return base64.b64encode(hmac.new(secret.encode(), body, hashlib.sha256).digest()).decode()


def test_sign_body_matches_reference_hmac() -> None:
    assert sign_body(BODY, SECRET) == _reference_signature(BODY, SECRET)


def test_accepts_valid_signature() -> None:
    assert verify_signature(BODY, _reference_signature(BODY, SECRET), SECRET) is True


def test_rejects_invalid_signature() -> None:
    assert verify_signature(BODY, "not-a-real-signature", SECRET) is False


def test_rejects_every_single_byte_body_mutation() -> None:
    signature = sign_body(BODY, SECRET)
    for i in range(len(BODY)):
        mutated = bytearray(BODY)
        mutated[i] ^= 0x01
        assert verify_signature(bytes(mutated), signature, SECRET) is False


def test_rejects_every_single_character_signature_mutation() -> None:
    signature = sign_body(BODY, SECRET)
    for i in range(len(signature)):
        replacement = "A" if signature[i] != "A" else "B"
        mutated = signature[:i] + replacement + signature[i + 1 :]
        assert verify_signature(BODY, mutated, SECRET) is False


def test_rejects_reserialized_body() -> None:
    signature = sign_body(BODY, SECRET)
    reserialized = json.dumps(json.loads(BODY), separators=(",", ":")).encode()
    assert reserialized != BODY
    assert verify_signature(reserialized, signature, SECRET) is False


def test_rejects_wrong_secret() -> None:
    assert verify_signature(BODY, sign_body(BODY, "other-secret"), SECRET) is False


def test_missing_inputs_return_false() -> None:
    signature = sign_body(BODY, SECRET)
    assert verify_signature(None, signature, SECRET) is False
    assert verify_signature(BODY, None, SECRET) is False
    assert verify_signature(BODY, "", SECRET) is False
    assert verify_signature(BODY, signature, "") is False
    assert verify_signature(BODY, signature, None) is False


def test_accepts_signed_empty_body() -> None:
    assert verify_signature(b"", sign_body(b"", SECRET), SECRET) is True
    assert verify_signature(b"", sign_body(BODY, SECRET), SECRET) is False


def test_non_string_header_returns_false() -> None:
    signature = sign_body(BODY, SECRET)
    assert verify_signature(BODY, signature.encode(), SECRET) is False
    assert verify_signature(BODY, ["x"], SECRET) is False


def test_length_mismatch_returns_false() -> None:
    signature = sign_body(BODY, SECRET)
    assert verify_signature(BODY, signature + "=", SECRET) is False
    assert verify_signature(BODY, signature[:-1], SECRET) is False


def test_non_ascii_header_returns_false() -> None:
    signature = sign_body(BODY, SECRET)
    assert verify_signature(BODY, "é" * len(signature), SECRET) is False
