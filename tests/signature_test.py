import hashlib
import hmac

import pytest

from leadmagnet.signature import compute_signature, verify_signature

SECRET = "whsec_test_secret"
BODY = b'{"event":"payment.captured","payload":{"payment":{"entity":{"id":"pay_1"}}}}'


def test_compute_signature_is_hex_hmac_sha256():
    expected = hmac.new(SECRET.encode(), BODY, hashlib.sha256).hexdigest()
    assert compute_signature(BODY, SECRET) == expected


def test_compute_signature_accepts_str_body():
    assert compute_signature(BODY.decode("utf-8"), SECRET) == compute_signature(BODY, SECRET)


def test_verify_signature_accepts_matching_signature():
    assert verify_signature(BODY, compute_signature(BODY, SECRET), SECRET) is True


@pytest.mark.parametrize(
    "signature, secret",
    [
        (None, SECRET),
        ("", SECRET),
        ("abc", None),
        ("abc", ""),
    ],
)
def test_verify_signature_rejects_missing_values(signature, secret):
    assert verify_signature(BODY, signature, secret) is False


def test_verify_signature_rejects_other_secret():
    signature = compute_signature(BODY, "another_secret")
    assert verify_signature(BODY, signature, SECRET) is False


def test_verify_signature_rejects_modified_body():
    signature = compute_signature(BODY, SECRET)
    # Re-serializing changes the bytes, so the signature no longer matches
    tampered = BODY.replace(b'"pay_1"', b'"pay_2"')
    assert verify_signature(tampered, signature, SECRET) is False


def test_verify_signature_rejects_any_single_character_change():
    signature = compute_signature(BODY, SECRET)
    for i, char in enumerate(signature):
        replacement = "0" if char != "0" else "1"
        mutated = signature[:i] + replacement + signature[i + 1 :]
        assert verify_signature(BODY, mutated, SECRET) is False


def test_verify_signature_is_case_sensitive():
    signature = compute_signature(BODY, SECRET)
    assert any(c.isalpha() for c in signature)
    assert verify_signature(BODY, signature.upper(), SECRET) is False


def test_verify_signature_rejects_non_ascii_header():
    assert verify_signature(BODY, "é" * 64, SECRET) is False


def test_verify_signature_rejects_non_bytes_body():
    assert verify_signature({"event": "payment.captured"}, "abc", SECRET) is False
