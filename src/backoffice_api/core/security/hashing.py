"""Password hashing helpers (scrypt-backed)."""

from __future__ import annotations

import base64
import hashlib
import os
import secrets

_SALT_BYTES = 16
_KEY_LEN = 32
_SCRYPT_N = 2**14
_SCRYPT_R = 8
_SCRYPT_P = 1
_TEST_FAST_N = 2**10
_SCHEME = "scrypt"


def _b64(value: bytes) -> str:
    return base64.urlsafe_b64encode(value).decode("ascii").rstrip("=")


def _unb64(value: str) -> bytes:
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))


def _work_factor() -> int:
    return _TEST_FAST_N if os.getenv("BACKOFFICE_TEST_FAST_HASH") else _SCRYPT_N


def hash_password(password: str) -> str:
    """Hash ``password`` with scrypt and a random salt.

    The result is ``scrypt$N$r$p$salt$key`` so parameters can change without
    invalidating stored hashes.
    """

    if not password or not password.strip():
        msg = "Password must not be empty"
        raise ValueError(msg)

    n_factor = _work_factor()
    salt = secrets.token_bytes(_SALT_BYTES)
    key = hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt,
        n=n_factor,
        r=_SCRYPT_R,
        p=_SCRYPT_P,
        dklen=_KEY_LEN,
    )
    return "$".join(
        (_SCHEME, str(n_factor), str(_SCRYPT_R), str(_SCRYPT_P), _b64(salt), _b64(key))
    )


def verify_password(password: str, hashed: str | None) -> bool:
    """Return ``True`` if ``password`` matches ``hashed``."""

    if not hashed or not password:
        return False
    try:
        scheme, n_str, r_str, p_str, salt_b64, key_b64 = hashed.split("$", 5)
        if scheme != _SCHEME:
            return False
        salt = _unb64(salt_b64)
        expected = _unb64(key_b64)
        candidate = hashlib.scrypt(
            password.encode("utf-8"),
            salt=salt,
            n=int(n_str),
            r=int(r_str),
            p=int(p_str),
            dklen=len(expected),
        )
    except (ValueError, TypeError):
        return False

    return secrets.compare_digest(candidate, expected)


__all__ = ["hash_password", "verify_password"]
