"""
AES-CBC helpers for encrypting and decrypting the wallet credential at rest.

The key is derived from a password with PBKDF2-HMAC-SHA256. Blobs carry an
HMAC-SHA256 tag over ``iv || ciphertext`` so a wrong password fails loudly
instead of yielding garbage. Blobs written without a tag (older config files)
are still accepted and checked by padding and UTF-8 validity only; for those a
wrong password is rejected with high probability but not deterministically,
since random bytes can pass both checks by chance.
"""

import base64
import binascii
import os
from typing import Optional, Tuple

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from pydantic import BaseModel, ConfigDict, Field

_SALT_BYTES = 32
_IV_BYTES = 16
_KEY_BYTES = 32
_KDF_ITERATIONS = 100_000


class DecryptionError(ValueError):
    """Raised when a secret cannot be decrypted (wrong password or corrupted blob)."""


class EncryptedSecret(BaseModel):
    """Portable form of one encrypted secret as stored in the config file."""

    model_config = ConfigDict(frozen=True)

    encrypted: str = Field(description="base64 AES-256-CBC ciphertext")
    salt: str = Field(description="hex PBKDF2 salt")
    iv: str = Field(description="hex CBC initialisation vector")
    mac: Optional[str] = Field(default=None, description="hex HMAC-SHA256 over iv||ciphertext")


def _derive_keys(password: str, salt: bytes) -> Tuple[bytes, bytes]:
    """Derive (cipher key, mac key) from the password using PBKDF2-HMAC-SHA256."""
    if not password:
        raise ValueError("Password is required to derive encryption key.")

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=_KEY_BYTES * 2,
        salt=salt,
        iterations=_KDF_ITERATIONS,
    )
    material = kdf.derive(password.encode("utf-8"))
    # The first block matches a 32-byte derivation, so untagged blobs still decrypt.
    return material[:_KEY_BYTES], material[_KEY_BYTES:]


def _mac(mac_key: bytes, iv: bytes, ciphertext: bytes) -> hmac.HMAC:
    h = hmac.HMAC(mac_key, hashes.SHA256())
    h.update(iv + ciphertext)
    return h


def encrypt_secret(plaintext: str, password: str) -> EncryptedSecret:
    """
    Encrypt a secret with a password-derived AES-256 key.

    A fresh salt and IV are generated on every call, so encrypting the same
    plaintext twice never produces the same blob.
    """
    if not plaintext:
        raise ValueError("plaintext is required for encryption.")
    if not password:
        raise ValueError("password is required for encryption.")

    salt = os.urandom(_SALT_BYTES)
    iv = os.urandom(_IV_BYTES)
    cipher_key, mac_key = _derive_keys(password, salt)

    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
    encryptor = Cipher(algorithms.AES(cipher_key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()

    return EncryptedSecret(
        encrypted=base64.b64encode(ciphertext).decode("ascii"),
        salt=salt.hex(),
        iv=iv.hex(),
        mac=_mac(mac_key, iv, ciphertext).finalize().hex(),
    )


def _decode_blob(secret: EncryptedSecret) -> Tuple[bytes, bytes, bytes, Optional[bytes]]:
    try:
        salt = bytes.fromhex(secret.salt)
        iv = bytes.fromhex(secret.iv)
        ciphertext = base64.b64decode(secret.encrypted, validate=True)
        mac = bytes.fromhex(secret.mac) if secret.mac else None
    except (ValueError, binascii.Error) as exc:
        raise DecryptionError("Encrypted secret is malformed.") from exc

    if not salt or len(iv) != _IV_BYTES:
        raise DecryptionError("Encrypted secret has an invalid salt or IV.")
    if not ciphertext or len(ciphertext) % _IV_BYTES:
        raise DecryptionError("Encrypted secret is truncated.")
    return salt, iv, ciphertext, mac


def decrypt_secret(secret: EncryptedSecret, password: str) -> str:
    """
    Decrypt a blob produced by `encrypt_secret`.

    Raises:
        DecryptionError: wrong password, failed integrity check, or malformed blob.
    """
    if not password:
        raise DecryptionError("Password is required to decrypt the secret.")

    salt, iv, ciphertext, mac = _decode_blob(secret)
    cipher_key, mac_key = _derive_keys(password, salt)

    if mac is not None:
        try:
            _mac(mac_key, iv, ciphertext).verify(mac)
        except InvalidSignature as exc:
            raise DecryptionError("Failed to decrypt secret; verify the password.") from exc

    try:
        decryptor = Cipher(algorithms.AES(cipher_key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        plaintext = unpadder.update(padded) + unpadder.finalize()
        return plaintext.decode("utf-8")
    except (ValueError, UnicodeDecodeError) as exc:
        raise DecryptionError("Failed to decrypt secret; verify the password.") from exc
