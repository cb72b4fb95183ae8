"""Credential hashing with scrypt.

Stored format: ``scrypt$<n>$<r>$<p>$<salt hex>$<key hex>``.
"""
import secrets
from typing import Final

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

SCHEME: Final[str] = "scrypt"
N: Final[int] = 2**14
R: Final[int] = 8
P: Final[int] = 1
KEY_LENGTH: Final[int] = 32
SALT_BYTES: Final[int] = 16


def _kdf(salt: bytes, n: int = N, r: int = R, p: int = P) -> Scrypt:
    return Scrypt(salt=salt, length=KEY_LENGTH, n=n, r=r, p=p)


def hash_password(password: str) -> str:
    salt = secrets.token_bytes(SALT_BYTES)
    key = _kdf(salt).derive(password.encode())
    return f"{SCHEME}${N}${R}${P}${salt.hex()}${key.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        scheme, n, r, p, salt_hex, key_hex = stored.split("$")
    except ValueError:
        return False
    if scheme != SCHEME:
        return False
    try:
        _kdf(bytes.fromhex(salt_hex), int(n), int(r), int(p)).verify(
            password.encode(), bytes.fromhex(key_hex)
        )
    except InvalidKey:
        return False
    return True
