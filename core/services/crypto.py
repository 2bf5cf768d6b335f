"""
Per-author field encryption for consultation content.

Each value is encrypted with AES-256-GCM under a key derived from the
server secret and a key context (the authoring professional's id).  The
stored form is two hex strings: the ciphertext with the 16 byte GCM tag
appended, and the 16 byte IV.  Only the same key context can decrypt, so
there is no delegated access and no key rotation.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import NamedTuple, Optional

from Crypto.Cipher import AES
from Crypto.Hash import SHA256
from Crypto.Protocol.KDF import PBKDF2
from Crypto.Random import get_random_bytes
from django.conf import settings

from core.exceptions import DecryptionError

logger = logging.getLogger(__name__)

KEY_LENGTH = 32
IV_LENGTH = 16
TAG_LENGTH = 16
KDF_ITERATIONS = 10000


class EncryptedValue(NamedTuple):
    encrypted_text: Optional[str]
    iv: Optional[str]


EMPTY = EncryptedValue(None, None)


@lru_cache(maxsize=256)
def _derive_key(secret: str, key_context: str) -> bytes:
    password = f"user-{key_context}-key-{secret}".encode('utf-8')
    salt = f"{secret}-{key_context}".encode('utf-8')
    return PBKDF2(password, salt, dkLen=KEY_LENGTH, count=KDF_ITERATIONS, hmac_hash_module=SHA256)


class FieldCipher:
    """Encrypt/decrypt text for a single owner identified by ``key_context``."""

    def __init__(self, secret: str):
        if not secret:
            raise ValueError('encryption secret must not be empty')
        self._secret = secret

    def _key(self, key_context) -> bytes:
        return _derive_key(self._secret, str(key_context))

    def encrypt(self, text: Optional[str], key_context) -> EncryptedValue:
        if not text:
            return EMPTY
        iv = get_random_bytes(IV_LENGTH)
        cipher = AES.new(self._key(key_context), AES.MODE_GCM, nonce=iv)
        ciphertext, tag = cipher.encrypt_and_digest(text.encode('utf-8'))
        return EncryptedValue((ciphertext + tag).hex(), iv.hex())

    def decrypt(self, encrypted_text: Optional[str], iv: Optional[str], key_context) -> Optional[str]:
        if not encrypted_text or not iv:
            return None
        try:
            raw = bytes.fromhex(encrypted_text)
            nonce = bytes.fromhex(iv)
        except ValueError as exc:
            raise DecryptionError('stored value is not valid hex') from exc
        if len(raw) < TAG_LENGTH:
            raise DecryptionError('stored value is too short')
        ciphertext, tag = raw[:-TAG_LENGTH], raw[-TAG_LENGTH:]
        cipher = AES.new(self._key(key_context), AES.MODE_GCM, nonce=nonce)
        try:
            plain = cipher.decrypt_and_verify(ciphertext, tag)
        except ValueError as exc:
            logger.warning('field authentication failed for key context %s', key_context)
            raise DecryptionError('stored value failed authentication') from exc
        return plain.decode('utf-8')


def get_cipher() -> FieldCipher:
    return FieldCipher(settings.FIELD_ENCRYPTION_SECRET)
