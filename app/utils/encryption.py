"""Fernet encryption for stored Instagram access tokens."""
import os
from cryptography.fernet import Fernet, InvalidToken


class TokenDecryptionError(Exception):
    """Stored token cannot be decrypted with the current ENCRYPTION_KEY."""


def _fernet() -> Fernet:
    key = os.getenv("ENCRYPTION_KEY")
    if not key:
        raise ValueError("ENCRYPTION_KEY environment variable not set")
    return Fernet(key.encode())


def encrypt_token(access_token: str) -> str:
    return _fernet().encrypt(access_token.encode()).decode()


def decrypt_token(encrypted_token: str) -> str:
    try:
        return _fernet().decrypt(encrypted_token.encode()).decode()
    except InvalidToken:
        # Key was rotated since the account was connected
        raise TokenDecryptionError("Access token could not be decrypted; reconnect the account")
