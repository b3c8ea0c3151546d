"""Security primitives for hashing and token handling."""

from .hashing import hash_password, verify_password
from .tokens import SESSION_TOKEN_TYPE, create_session_token, decode_token, encode_token

__all__ = [
    "hash_password",
    "verify_password",
    "SESSION_TOKEN_TYPE",
    "create_session_token",
    "decode_token",
    "encode_token",
]
