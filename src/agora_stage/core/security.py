"""Password hashing built on libsodium's argon2id primitives."""
from __future__ import annotations

from nacl import pwhash
from nacl.exceptions import CryptoError


def hash_password(password: str) -> str:
    """Return a salted argon2id hash of the provided password.

    The returned string embeds the salt and cost parameters, so it is the only
    value that needs to be stored.
    """
    return pwhash.str(password.encode("utf-8")).decode("ascii")


def verify_password(password_hash: str, password: str) -> bool:
    """Check a password against a stored hash.

    Args:
        password_hash: Value previously produced by `hash_password`.
        password: Candidate password supplied by the client.

    Returns:
        True if the password matches; False otherwise.
    """
    try:
        return pwhash.verify(password_hash.encode("ascii"), password.encode("utf-8"))
    except (CryptoError, ValueError, UnicodeEncodeError):
        return False
