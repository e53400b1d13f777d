from __future__ import annotations

import bcrypt

BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")
BCRYPT_MAX_BYTES = 72


def _normalize_password_for_bcrypt(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes and newer releases refuse longer input.
    return (password or "").encode("utf-8")[:BCRYPT_MAX_BYTES]


def password_looks_hashed(value: str) -> bool:
    return bool(value) and value.startswith(BCRYPT_PREFIXES)


def hash_password(password: str) -> str:
    hashed = bcrypt.hashpw(_normalize_password_for_bcrypt(password), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time check of ``password`` against a stored bcrypt hash.

    Plaintext values left over from older data never match.
    """
    if not password_looks_hashed(password_hash or ""):
        return False
    try:
        return bcrypt.checkpw(_normalize_password_for_bcrypt(password), password_hash.encode("utf-8"))
    except ValueError:
        return False
