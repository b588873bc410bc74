"""
Access to the resolved PRIVATE_KEY, with on-demand decryption.

Security model:
- Plaintext sources (command line, environment, plaintext config file) are
  returned directly and never trigger a prompt.
- An encrypted config file prompts for its password on first access only. The
  password is cached in memory for the life of the process; it is never
  written to disk, logged, or included in ``repr``.
- A wrong password raises `DecryptionError` and drops the cached password.
  There is no automatic retry; the command fails and the user re-runs it.
"""

from __future__ import annotations

import getpass
import logging
import os
from typing import Optional, Protocol

from demos_toolkit.config.errors import MissingCredentialError, PasswordMismatchError, PasswordUnavailableError
from demos_toolkit.config.models import DEFAULT_RPC_URL
from demos_toolkit.config.resolver import ResolvedConfig
from demos_toolkit.wallet.security import DecryptionError, decrypt_secret

logger = logging.getLogger(__name__)

MASTER_PASSWORD_ENV = "DEMOS_MASTER_PWD"


class PasswordProvider(Protocol):
    """Source of passwords; stub it in tests instead of reading a terminal."""

    def get_password(self, prompt: str, *, confirm: bool = False) -> str:
        ...


class GetpassPasswordProvider:
    """
    Read passwords with `getpass` (no echo).

    ``DEMOS_MASTER_PWD``, when set, is used instead of prompting so scripted
    runs work without a terminal. With no terminal and no env var, prompting
    raises `PasswordUnavailableError`.
    """

    def __init__(self, env_var: Optional[str] = MASTER_PASSWORD_ENV):
        self.env_var = env_var

    def get_password(self, prompt: str, *, confirm: bool = False) -> str:
        if self.env_var:
            pwd = os.getenv(self.env_var)
            if pwd:
                return pwd

        try:
            password = getpass.getpass(prompt)
            if confirm:
                again = getpass.getpass("Confirm password: ")
                if password != again:
                    raise PasswordMismatchError("Passwords do not match.")
        except EOFError as e:
            raise PasswordUnavailableError(self.env_var or MASTER_PASSWORD_ENV) from e
        return password


class SecretAccessGate:
    """Owns the session password cache; everything else is read from `ResolvedConfig`."""

    def __init__(self, resolved: ResolvedConfig, password_provider: Optional[PasswordProvider] = None):
        self.resolved = resolved
        self.password_provider = password_provider or GetpassPasswordProvider()
        self._password: Optional[str] = None

    def get_credential(self) -> str:
        """
        Return PRIVATE_KEY, decrypting the config file entry if needed.

        Raises:
            MissingCredentialError: no source supplies PRIVATE_KEY.
            DecryptionError: the entered password does not open the config file.
        """
        settings = self.resolved.settings
        if settings.private_key:
            return settings.private_key

        secret = self.resolved.encrypted_credential
        if secret is None:
            raise MissingCredentialError()

        if self._password is None:
            logger.info("🔐 Config file is encrypted. Please enter your password:")
            self._password = self.password_provider.get_password("Password: ")

        try:
            return decrypt_secret(secret, self._password)
        except DecryptionError:
            self._password = None
            logger.error("❌ Failed to decrypt private key. Wrong password?")
            raise

    def get_endpoint(self) -> str:
        return self.resolved.settings.demos_rpc or DEFAULT_RPC_URL

    def get_referral_code(self) -> Optional[str]:
        return self.resolved.settings.referral_code

    @property
    def has_cached_password(self) -> bool:
        return self._password is not None

    def forget_password(self) -> None:
        self._password = None

    def __repr__(self) -> str:
        return f"<SecretAccessGate deferred={self.resolved.credential_deferred} unlocked={self.has_cached_password}>"
