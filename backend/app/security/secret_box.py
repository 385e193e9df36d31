# backend/app/security/secret_box.py
"""
Encryption at rest for stored provider API keys.

Uses Fernet (symmetric AES + HMAC) via the cryptography library.
"""
import base64
import hashlib
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from backend.app.core.config import Settings


def derive_fernet_key(secret_key: str) -> bytes:
    """Turn an arbitrary SECRET_KEY string into a valid Fernet key."""
    digest = hashlib.sha256(secret_key.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


class SecretCipher:
    def __init__(self, key: bytes):
        self._fernet = Fernet(key)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SecretCipher":
        if settings.SECRET_ENCRYPTION_KEY:
            return cls(settings.SECRET_ENCRYPTION_KEY.encode("utf-8"))
        return cls(derive_fernet_key(settings.SECRET_KEY))

    def encrypt(self, plain: str) -> str:
        return self._fernet.encrypt(plain.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: Optional[str]) -> Optional[str]:
        if ciphertext is None:
            return None
        try:
            return self._fernet.decrypt(ciphertext.encode("utf-8")).decode("utf-8")
        except InvalidToken:
            raise ValueError("Stored secret cannot be decrypted with the configured key")
