"""Tests for access token encryption."""

from __future__ import annotations

import pytest
from cryptography.fernet import Fernet

from app.utils.encryption import TokenDecryptionError, decrypt_token, encrypt_token


class TestTokenEncryption:

    def test_ciphertext_hides_token(self, monkeypatch):
        monkeypatch.setenv("ENCRYPTION_KEY", Fernet.generate_key().decode())
        encrypted = encrypt_token("IGQ-secret")
        assert "IGQ-secret" not in encrypted
        assert decrypt_token(encrypted) == "IGQ-secret"

    def test_rotated_key_raises_decryption_error(self, monkeypatch):
        monkeypatch.setenv("ENCRYPTION_KEY", Fernet.generate_key().decode())
        encrypted = encrypt_token("IGQ-secret")

        monkeypatch.setenv("ENCRYPTION_KEY", Fernet.generate_key().decode())
        with pytest.raises(TokenDecryptionError):
            decrypt_token(encrypted)

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("ENCRYPTION_KEY", raising=False)
        with pytest.raises(ValueError, match="ENCRYPTION_KEY"):
            encrypt_token("IGQ-secret")
