"""Identity encryption and request signing helpers."""

import base64
import hashlib
import json
import os
import time
from typing import Any, Optional

import jwt
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from filestore_client.common.constants import JWT_ALGORITHM

IV_LENGTH_BYTES = 16


def serialize(data: Any) -> str:
    """Compact JSON serialisation used for both ciphertexts and checksums."""
    return json.dumps(data, separators=(',', ':'))


def _derive_key(key: str) -> bytes:
    return hashlib.sha256(key.encode('utf-8')).digest()


def encrypt(key: str, data: Any, iv: Optional[bytes] = None) -> str:
    """
    Encrypt JSON-serialisable data with AES-256-CTR.

    Args:
        key: Shared secret; the AES key is its SHA-256 digest
        data: Value to encrypt
        iv: Optional 16 byte IV, random if omitted

    Returns:
        base64 of IV followed by ciphertext
    """
    if iv is None:
        iv = os.urandom(IV_LENGTH_BYTES)
    if len(iv) != IV_LENGTH_BYTES:
        raise ValueError(f"IV must be {IV_LENGTH_BYTES} bytes")

    encryptor = Cipher(algorithms.AES(_derive_key(key)), modes.CTR(iv)).encryptor()
    ciphertext = encryptor.update(serialize(data).encode('utf-8')) + encryptor.finalize()
    return base64.b64encode(iv + ciphertext).decode('ascii')


def decrypt(key: str, payload: str) -> Any:
    """
    Reverse encrypt().

    Raises:
        ValueError: If the payload is not valid base64 or does not hold JSON
    """
    raw = base64.b64decode(payload, validate=True)
    if len(raw) < IV_LENGTH_BYTES:
        raise ValueError("Encrypted payload is too short")

    iv, ciphertext = raw[:IV_LENGTH_BYTES], raw[IV_LENGTH_BYTES:]
    decryptor = Cipher(algorithms.AES(_derive_key(key)), modes.CTR(iv)).decryptor()
    plaintext = decryptor.update(ciphertext) + decryptor.finalize()
    return json.loads(plaintext.decode('utf-8'))


def generate_access_token(data: Any, service_token: str, now: Optional[float] = None) -> str:
    """
    Create the signed JWT sent in the access token header.

    The token binds the request payload through a SHA-256 checksum so the
    payload itself never travels in the header.

    Args:
        data: Request payload (JSON body or GET payload)
        service_token: Key used to sign the token
        now: Optional epoch seconds for the iat claim

    Returns:
        Encoded HS256 JWT
    """
    checksum = hashlib.sha256(serialize(data).encode('utf-8')).hexdigest()
    issued_at = int(now if now is not None else time.time())
    return jwt.encode({'checksum': checksum, 'iat': issued_at}, service_token, algorithm=JWT_ALGORITHM)
