"""
One-shot transitions between the ways PRIVATE_KEY can be stored.

- `apply_env_to_encrypted`: fold ``.env`` into an encrypted config file, then
  delete ``.env``. The env file is only removed after the config write has
  succeeded, so a failed write leaves both files as they were.
- `prefer_file_over_env`: back ``.env`` up to ``.env.backup`` and remove it,
  so the config file is what the next run resolves.
- `initialize_config`: write a plaintext config file from the current values.

Each operation raises a `ConfigError` subclass (or `DecryptionError`) when it
cannot proceed; callers turn those into a failed command result.
"""

import logging
import shutil
from pathlib import Path
from typing import Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from demos_toolkit.config.errors import ConfigIOError, PreconditionError
from demos_toolkit.config.gate import PasswordProvider, SecretAccessGate
from demos_toolkit.config.models import (
    DEFAULT_RPC_URL,
    SETTING_KEYS,
    EncryptedConfig,
    PlainConfig,
    Settings,
)
from demos_toolkit.config.resolver import DEFAULT_ENV_FILE, ResolvedConfig, load_environment, resolve
from demos_toolkit.config.store import ConfigStore

logger = logging.getLogger(__name__)

ENV_BACKUP_SUFFIX = ".backup"


class MigrationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    config_path: Path
    encrypted: bool = Field(default=False)
    removed_env_file: Optional[Path] = Field(default=None)
    backup_path: Optional[Path] = Field(default=None)
    kept_encrypted_credential: bool = Field(default=False)


def _existing_settings(store: ConfigStore, password_provider: PasswordProvider, need_credential: bool) -> Settings:
    """Current file values; an encrypted PRIVATE_KEY is only opened when it would otherwise be lost."""
    stored = store.read_raw()
    if isinstance(stored, PlainConfig):
        return stored.settings
    if isinstance(stored, EncryptedConfig):
        settings = stored.plain_settings
        if need_credential and stored.credential is not None:
            logger.info("🔐 Existing config file is encrypted; its password is needed to keep PRIVATE_KEY.")
            gate = SecretAccessGate(resolve(stored, {}, {}), password_provider)
            settings = settings.merged(private_key=gate.get_credential())
        return settings
    return Settings()


def apply_env_to_encrypted(
    store: ConfigStore,
    password_provider: PasswordProvider,
    env_file: Union[str, Path] = DEFAULT_ENV_FILE,
    environ: Optional[Mapping[str, str]] = None,
) -> MigrationResult:
    """
    Merge the environment over the config file, encrypt, write, then delete ``.env``.

    Raises:
        PreconditionError: no env file, or it supplies none of the three settings.
        ConfigIOError: the config file could not be written (``.env`` is untouched),
            or ``.env`` could not be removed afterwards.
        DecryptionError: the existing encrypted config could not be opened.
        PasswordMismatchError: the new password was not confirmed.
    """
    env_path = Path(env_file)
    logger.info("📋 Applying .env settings to config file...")

    if not env_path.is_file():
        raise PreconditionError(f"No .env file found at {env_path}")

    env_values = load_environment(env_path, environ)
    if not env_values:
        raise PreconditionError(
            f"No relevant settings found in {env_path} (expected one of {', '.join(SETTING_KEYS.values())})"
        )

    env_settings = Settings.from_keys(env_values)
    current = _existing_settings(store, password_provider, need_credential=env_settings.private_key is None)
    merged = current.merged(**env_settings.model_dump())
    if not merged.demos_rpc:
        merged = merged.merged(demos_rpc=DEFAULT_RPC_URL)

    logger.info("🔐 Encrypting private key...")
    password = password_provider.get_password("New config password: ", confirm=True)
    if not password:
        raise PreconditionError("A password is required to encrypt the config file")

    store.write_encrypted(merged, password)

    logger.info("🗑️  Removing .env file...")
    try:
        env_path.unlink()
    except OSError as e:
        raise ConfigIOError(env_path, "Encrypted config written but could not remove env file", cause=e) from e

    logger.info("✅ Successfully applied .env to encrypted config and removed .env file")
    return MigrationResult(config_path=store.path, encrypted=True, removed_env_file=env_path)


def prefer_file_over_env(
    store: ConfigStore,
    env_file: Union[str, Path] = DEFAULT_ENV_FILE,
) -> MigrationResult:
    """
    Make the config file win by moving ``.env`` out of the way.

    The config file itself is not touched.

    Raises:
        PreconditionError: there is no config file to fall back to.
        ConfigIOError: ``.env`` could not be backed up or removed.
    """
    env_path = Path(env_file)
    logger.info("📋 Using config file over .env...")

    if not store.exists():
        raise PreconditionError(f"No config file found at {store.path}. Run: demostools config init")

    backup_path = None
    if env_path.is_file():
        backup_path = env_path.with_name(env_path.name + ENV_BACKUP_SUFFIX)
        logger.info(f"📁 Backing up {env_path.name} as {backup_path.name}...")
        try:
            shutil.copyfile(env_path, backup_path)
        except OSError as e:
            raise ConfigIOError(backup_path, "Could not back up env file", cause=e) from e
        try:
            env_path.unlink()
        except OSError as e:
            raise ConfigIOError(env_path, "Backed up but could not remove env file", cause=e) from e

    logger.info("✅ Config file will now take precedence")
    return MigrationResult(
        config_path=store.path,
        encrypted=isinstance(store.read_raw(), EncryptedConfig),
        removed_env_file=env_path if backup_path else None,
        backup_path=backup_path,
    )


def initialize_config(store: ConfigStore, resolved: ResolvedConfig) -> MigrationResult:
    """
    Write the config file from the currently resolved values.

    Missing values become empty placeholders and DEMOS_RPC falls back to the
    default node. If the existing file is encrypted, its PRIVATE_KEY blob is
    kept as-is and a plaintext key from another source is not written to disk.
    """
    settings = resolved.settings
    if not settings.demos_rpc:
        settings = settings.merged(demos_rpc=DEFAULT_RPC_URL)

    if resolved.is_file_encrypted:
        if settings.private_key:
            logger.warning(
                "Config file is encrypted; not writing the plaintext PRIVATE_KEY from "
                "another source. Use 'demostools config apply-env' to re-encrypt it."
            )
        store.write_stored(
            EncryptedConfig(
                demos_rpc=settings.demos_rpc,
                referral_code=settings.referral_code,
                credential=resolved.encrypted_credential,
            )
        )
        return MigrationResult(config_path=store.path, encrypted=True, kept_encrypted_credential=True)

    store.write_plain(settings, include_empty=True)
    return MigrationResult(config_path=store.path)
