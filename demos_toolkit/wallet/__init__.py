"""
Wallet module for credential protection at rest.

This module provides:
- encrypt_secret: Encrypt a secret with AES-256-CBC + PBKDF2-HMAC-SHA256
- decrypt_secret: Decrypt a secret (raises DecryptionError on a wrong password)
- EncryptedSecret: The portable {encrypted, salt, iv, mac} blob
"""

from .security import (
    DecryptionError,
    EncryptedSecret,
    decrypt_secret,
    encrypt_secret,
)

__all__ = [
    # Encryption/Decryption
    "encrypt_secret",
    "decrypt_secret",
    "DecryptionError",
    # Models
    "EncryptedSecret",
]
