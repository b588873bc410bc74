import base64

import pytest
from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from demos_toolkit.wallet.security import (
    DecryptionError,
    EncryptedSecret,
    decrypt_secret,
    encrypt_secret,
)

MNEMONIC = "abandon ability able about above absent absorb abstract absurd abuse access accident"


@pytest.mark.parametrize(
    "plaintext, password",
    [
        (MNEMONIC, "hunter2"),
        ("0x" + "1" * 64, "correct horse battery staple"),
        ("ключ-秘密-🔑", "pässwörd"),
        ("x", "p"),
    ],
)
def test_decrypt_returns_original_plaintext(plaintext, password):
    secret = encrypt_secret(plaintext, password)

    assert decrypt_secret(secret, password) == plaintext


def test_wrong_password_raises_decryption_error():
    secret = encrypt_secret(MNEMONIC, "hunter2")

    for wrong in ("hunter3", "Hunter2", "hunter2 ", "x" * 64):
        with pytest.raises(DecryptionError):
            decrypt_secret(secret, wrong)


def test_decryption_error_keeps_value_error_contract():
    secret = encrypt_secret(MNEMONIC, "hunter2")

    with pytest.raises(ValueError):
        decrypt_secret(secret, "nope")


def test_each_encryption_uses_fresh_salt_and_iv():
    first = encrypt_secret(MNEMONIC, "hunter2")
    second = encrypt_secret(MNEMONIC, "hunter2")

    assert first.salt != second.salt
    assert first.iv != second.iv
    assert first.encrypted != second.encrypted


def test_blob_encoding_sizes():
    secret = encrypt_secret(MNEMONIC, "hunter2")

    assert len(bytes.fromhex(secret.salt)) == 32
    assert len(bytes.fromhex(secret.iv)) == 16
    assert len(bytes.fromhex(secret.mac)) == 32
    assert len(base64.b64decode(secret.encrypted)) % 16 == 0


def test_tampered_ciphertext_is_rejected():
    secret = encrypt_secret(MNEMONIC, "hunter2")
    raw = bytearray(base64.b64decode(secret.encrypted))
    raw[0] ^= 0x01
    tampered = secret.model_copy(update={"encrypted": base64.b64encode(bytes(raw)).decode()})

    with pytest.raises(DecryptionError):
        decrypt_secret(tampered, "hunter2")


@pytest.mark.parametrize(
    "update",
    [
        {"salt": "not-hex"},
        {"iv": "abcd"},
        {"encrypted": "%%%not base64%%%"},
        {"encrypted": base64.b64encode(b"short").decode()},
        {"mac": "zz"},
    ],
)
def test_malformed_blob_raises_decryption_error(update):
    secret = encrypt_secret(MNEMONIC, "hunter2").model_copy(update=update)

    with pytest.raises(DecryptionError):
        decrypt_secret(secret, "hunter2")


def test_empty_password_is_rejected():
    with pytest.raises(ValueError):
        encrypt_secret(MNEMONIC, "")

    secret = encrypt_secret(MNEMONIC, "hunter2")
    with pytest.raises(DecryptionError):
        decrypt_secret(secret, "")


def test_untagged_blob_from_older_config_still_decrypts():
    salt = bytes(range(32))
    iv = bytes(range(16))
    key = PBKDF2HMAC(algorithm=hashes.SHA256(), length=32, salt=salt, iterations=100_000).derive(b"hunter2")
    padder = padding.PKCS7(128).padder()
    padded = padder.update(MNEMONIC.encode()) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()

    legacy = EncryptedSecret(
        encrypted=base64.b64encode(ciphertext).decode(),
        salt=salt.hex(),
        iv=iv.hex(),
    )

    assert legacy.mac is None
    assert decrypt_secret(legacy, "hunter2") == MNEMONIC
