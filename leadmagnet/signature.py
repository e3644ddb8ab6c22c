"""HMAC-SHA256 signatures for payment provider callbacks.

Both functions work on the exact bytes received. Parsing and re-serializing a
body before verifying it changes the bytes and invalidates the signature.
"""

import hashlib
import hmac


def _to_bytes(value: bytes | str) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def compute_signature(raw_body: bytes | str, secret: str) -> str:
    """Compute the hex encoded HMAC-SHA256 of a body.

    Parameters
    ----------
    raw_body : bytes | str
        The body exactly as sent over the wire.
    secret : str
        The shared secret.

    Returns
    -------
    str
        Lowercase hex digest.
    """
    return hmac.new(_to_bytes(secret), _to_bytes(raw_body), hashlib.sha256).hexdigest()


def verify_signature(raw_body: bytes | str, signature: str | None, secret: str | None) -> bool:
    """Check a signature header against a body and a shared secret.

    Returns False, never raises, for a missing signature or secret.

    Parameters
    ----------
    raw_body : bytes | str
        The body exactly as received.
    signature : str
        The value of the signature header.
    secret : str
        The shared secret.

    Returns
    -------
    bool
        True if the signature matches.
    """
    if not signature or not secret:
        return False
    if not isinstance(raw_body, (bytes, str)):
        return False

    expected = compute_signature(raw_body, secret)
    return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))
