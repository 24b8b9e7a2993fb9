"""Blob encryption: scrypt + AES-256-GCM, payload stored as a small JSON object."""
import base64
import hashlib
import os
from typing import Any, Optional

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

PAYLOAD_VERSION = 1
KEY_LEN = 32
SALT_LEN = 16
IV_LEN = 12
TAG_LEN = 16
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1


def _derive_key(password: str, salt: bytes) -> bytes:
    return hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt,
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=KEY_LEN,
    )


def encrypt(plain: bytes, password: str, associated_data: Optional[bytes] = None) -> dict[str, Any]:
    """Encrypt `plain` with password. Returns payload (version, salt, iv, tag, data).

    `associated_data` is authenticated but not stored; decrypt must be given
    the same bytes.
    """
    salt = os.urandom(SALT_LEN)
    iv = os.urandom(IV_LEN)
    key = _derive_key(password, salt)
    ct_with_tag = AESGCM(key).encrypt(iv, plain, associated_data)
    return {
        "version": PAYLOAD_VERSION,
        "salt": salt.hex(),
        "iv": iv.hex(),
        "tag": ct_with_tag[-TAG_LEN:].hex(),
        "data": base64.b64encode(ct_with_tag[:-TAG_LEN]).decode("ascii"),
    }


def decrypt(payload: dict[str, Any], password: str, associated_data: Optional[bytes] = None) -> bytes:
    """Decrypt payload with password. Raises on wrong password or tampering."""
    salt = bytes.fromhex(payload["salt"])
    iv = bytes.fromhex(payload["iv"])
    tag = bytes.fromhex(payload["tag"])
    if len(salt) != SALT_LEN:
        raise ValueError(f"Invalid salt length: expected {SALT_LEN}, got {len(salt)}")
    if len(iv) != IV_LEN:
        raise ValueError(f"Invalid iv length: expected {IV_LEN}, got {len(iv)}")
    if len(tag) != TAG_LEN:
        raise ValueError(f"Invalid tag length: expected {TAG_LEN}, got {len(tag)}")
    ciphertext = base64.b64decode(payload["data"]) + tag
    key = _derive_key(password, salt)
    return AESGCM(key).decrypt(iv, ciphertext, associated_data)


def is_encrypted_payload(obj: Any) -> bool:
    """Return True if obj looks like an encrypted payload (version, salt, iv, tag, data)."""
    if not isinstance(obj, dict):
        return False
    return (
        obj.get("version") == PAYLOAD_VERSION
        and isinstance(obj.get("salt"), str)
        and isinstance(obj.get("iv"), str)
        and isinstance(obj.get("tag"), str)
        and isinstance(obj.get("data"), str)
    )
