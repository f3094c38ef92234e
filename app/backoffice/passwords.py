"""Credential Verifier: thin wrapper over werkzeug's salted password hashing."""
from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash


def hash_password(plaintext: str) -> str:
    return generate_password_hash(plaintext)


def verify_password(digest: str | None, plaintext: str | None) -> bool:
    """False on mismatch or on a malformed/unknown digest; never raises for bad input."""
    if not digest or plaintext is None:
        return False
    try:
        return check_password_hash(digest, plaintext)
    except ValueError:
        # Unknown hash method embedded in the digest.
        return False
