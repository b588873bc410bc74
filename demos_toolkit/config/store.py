"""
On-disk representation of the Demos config file.

The file lives at ``<user-config-dir>/demos/config.json`` and is either a plain
JSON object of settings, or the encrypted shape::

    {
      "DEMOS_RPC": "https://node2.demos.sh",
      "REFERRAL_CODE": "...",
      "encrypted": true,
      "PRIVATE_KEY": {"encrypted": "...", "salt": "...", "iv": "...", "mac": "..."}
    }

Writes go to a temporary file in the same directory and are moved into place
with ``os.replace`` so an interrupted write never leaves a half-written config.
There is no file locking: concurrent writers race and the last one wins.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from demos_toolkit.config.errors import ConfigFileCorrupt, ConfigIOError
from demos_toolkit.config.models import (
    SECRET_FIELD,
    SETTING_KEYS,
    EncryptedConfig,
    PlainConfig,
    Settings,
    StoredConfig,
)
from demos_toolkit.wallet.security import EncryptedSecret, encrypt_secret

logger = logging.getLogger(__name__)

ENCRYPTED_FLAG = "encrypted"
_SECRET_KEY = SETTING_KEYS[SECRET_FIELD]


def default_config_path() -> Path:
    """``$XDG_CONFIG_HOME/demos/config.json``, falling back to ``~/.config/demos/config.json``."""
    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / "demos" / "config.json"


def _string_fields(path: Path, data: Dict[str, Any], keys) -> Dict[str, str]:
    values = {}
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise ConfigFileCorrupt(path, f"{key} must be a string")
        values[key] = value
    return values


def parse_stored_config(path: Path, data: Any) -> StoredConfig:
    """Turn decoded JSON into a `StoredConfig`; unknown keys are ignored."""
    if not isinstance(data, dict):
        raise ConfigFileCorrupt(path, "top-level value must be a JSON object")

    secret = data.get(_SECRET_KEY)
    if data.get(ENCRYPTED_FLAG) is True and not isinstance(secret, str):
        plain = _string_fields(path, data, ("DEMOS_RPC", "REFERRAL_CODE"))
        credential = None
        if secret is not None:
            try:
                credential = EncryptedSecret.model_validate(secret)
            except ValidationError as exc:
                raise ConfigFileCorrupt(path, f"{_SECRET_KEY} is not a valid encrypted secret") from exc
        return EncryptedConfig(
            demos_rpc=plain.get("DEMOS_RPC") or None,
            referral_code=plain.get("REFERRAL_CODE") or None,
            credential=credential,
        )

    return PlainConfig(settings=Settings.from_keys(_string_fields(path, data, SETTING_KEYS.values())))


def serialize_stored_config(stored: StoredConfig, include_empty: bool = False) -> Dict[str, Any]:
    if isinstance(stored, EncryptedConfig):
        payload: Dict[str, Any] = stored.plain_settings.to_keys()
        payload[ENCRYPTED_FLAG] = True
        if stored.credential is not None:
            payload[_SECRET_KEY] = stored.credential.model_dump(exclude_none=True)
        return payload
    payload = stored.settings.to_keys()
    if include_empty:
        payload = {key: payload.get(key, "") for key in SETTING_KEYS.values()}
    return payload


class ConfigStore:
    """Reads and writes the single Demos config file."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else default_config_path()

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Optional[StoredConfig]:
        """
        Parse the config file.

        Returns:
            The stored config, or None when the file does not exist.

        Raises:
            ConfigFileCorrupt: the file is not valid JSON or has an unexpected shape.
            ConfigIOError: the file exists but cannot be read.
        """
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as e:
            raise ConfigFileCorrupt(self.path, f"invalid JSON ({e})") from e
        except UnicodeDecodeError as e:
            raise ConfigFileCorrupt(self.path, "not UTF-8 text") from e
        except OSError as e:
            raise ConfigIOError(self.path, "Could not read config file", cause=e) from e
        return parse_stored_config(self.path, data)

    def read_raw(self) -> Optional[StoredConfig]:
        """Like `load`, but a corrupt or unreadable file logs a warning and counts as absent."""
        try:
            return self.load()
        except (ConfigFileCorrupt, ConfigIOError) as e:
            logger.warning(f"Warning: {e}; ignoring config file")
            return None

    def write_plain(self, settings: Settings, include_empty: bool = False) -> None:
        """Write all settings in plaintext (no `encrypted` flag); `include_empty` writes unset keys as "" for hand editing."""
        self.write_stored(PlainConfig(settings=settings), include_empty=include_empty)
        logger.info(f"Config file created: {self.path}")

    def write_encrypted(self, settings: Settings, password: str) -> None:
        """Encrypt PRIVATE_KEY with `password`; DEMOS_RPC and REFERRAL_CODE stay plaintext."""
        credential = encrypt_secret(settings.private_key, password) if settings.private_key else None
        self.write_stored(
            EncryptedConfig(
                demos_rpc=settings.demos_rpc,
                referral_code=settings.referral_code,
                credential=credential,
            )
        )
        logger.info(f"Encrypted config file created: {self.path}")

    def write_stored(self, stored: StoredConfig, include_empty: bool = False) -> None:
        """Atomically replace the config file with `stored`."""
        payload = json.dumps(serialize_stored_config(stored, include_empty), indent=2)
        self._atomic_write(payload)

    def _atomic_write(self, payload: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigIOError(self.path.parent, "Could not create config directory", cause=e) from e

        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=".config-", suffix=".tmp", dir=self.path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ConfigIOError(self.path, "Failed to write config file", cause=e) from e
