"""
Merge the config file, the environment and ``--config`` overrides into one view.

Precedence is fixed: command line > environment (.env) > config file.
Resolution is a pure function of its three inputs; it never prompts and never
decrypts. An encrypted PRIVATE_KEY from the file is carried along unopened and
only decrypted later by `SecretAccessGate`.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field

from demos_toolkit.config.models import (
    OVERRIDE_ALIASES,
    SECRET_FIELD,
    SETTING_KEYS,
    EncryptedConfig,
    PlainConfig,
    ProvenanceRecord,
    Settings,
    Source,
    StoredConfig,
)
from demos_toolkit.config.store import ConfigStore
from demos_toolkit.wallet.security import EncryptedSecret

logger = logging.getLogger(__name__)

CONFIG_FLAG = "--config"
DEFAULT_ENV_FILE = Path(".env")


class ConfigOverrides(BaseModel):
    """``--config key=value`` pairs pulled out of argv, plus what is left over."""

    model_config = ConfigDict(frozen=True)

    values: Dict[str, str] = Field(default_factory=dict)
    remaining: List[str] = Field(default_factory=list)
    unknown: List[str] = Field(default_factory=list)


def _split_pair(pair: str) -> Tuple[str, Optional[str]]:
    key, sep, value = pair.partition("=")
    return key.strip().lower(), (value if sep else None)


def parse_config_overrides(argv: Sequence[str]) -> ConfigOverrides:
    """
    Extract every ``--config key=value`` (or ``--config=key=value``) from argv.

    Keys are matched case-insensitively against the accepted aliases; the
    value is everything after the first ``=``. Unknown keys, pairs without a
    value and empty values produce a warning and are otherwise ignored. When a
    field is given more than once the last occurrence wins.
    """
    values: Dict[str, str] = {}
    remaining: List[str] = []
    unknown: List[str] = []

    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == CONFIG_FLAG:
            if i + 1 >= len(argv):
                logger.warning(f"Warning: {CONFIG_FLAG} expects key=value")
                break
            pair = argv[i + 1]
            i += 2
        elif arg.startswith(CONFIG_FLAG + "="):
            pair = arg[len(CONFIG_FLAG) + 1:]
            i += 1
        else:
            remaining.append(arg)
            i += 1
            continue

        key, value = _split_pair(pair)
        field = OVERRIDE_ALIASES.get(key)
        if field is None:
            logger.warning(f"Warning: Unknown config key: {key}")
            unknown.append(key)
        elif value is None:
            logger.warning(f"Warning: Ignoring --config {key} without a value (expected {key}=value)")
        elif not value:
            logger.warning(f"Warning: Ignoring empty value for config key: {key}")
        else:
            values[field] = value

    return ConfigOverrides(values=values, remaining=remaining, unknown=unknown)


def load_environment(
    env_file: Union[str, Path] = DEFAULT_ENV_FILE,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Snapshot the three recognised variables from the dotenv file and the process.

    Values already present in the process environment win over the dotenv
    file, matching ``load_dotenv(override=False)``. Empty values are dropped.
    A dotenv file that cannot be read or decoded logs a warning and
    contributes nothing.
    """
    environ = os.environ if environ is None else environ
    merged: Dict[str, Optional[str]] = {}
    env_path = Path(env_file)
    if env_path.is_file():
        try:
            merged.update(dotenv_values(env_path))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Warning: Could not read {env_path} ({e}); ignoring env file")
    merged.update({k: v for k, v in environ.items() if k in SETTING_KEYS.values()})
    return {key: merged[key] for key in SETTING_KEYS.values() if merged.get(key)}


class ResolvedConfig(BaseModel):
    """Effective settings plus the inputs they were folded from."""

    model_config = ConfigDict(frozen=True)

    settings: Settings
    encrypted_credential: Optional[EncryptedSecret] = Field(default=None)
    file_settings: Settings = Field(default_factory=Settings)
    environment: Dict[str, str] = Field(default_factory=dict)
    overrides: Dict[str, str] = Field(default_factory=dict)
    config_path: Optional[Path] = Field(default=None)

    @property
    def credential_deferred(self) -> bool:
        """True when PRIVATE_KEY can only come from decrypting the config file."""
        return self.settings.private_key is None and self.encrypted_credential is not None

    @property
    def is_file_encrypted(self) -> bool:
        return self.encrypted_credential is not None

    def __repr__(self) -> str:
        return (
            f"ResolvedConfig(settings={self.settings!r}, "
            f"credential_deferred={self.credential_deferred}, config_path={self.config_path!r})"
        )


def resolve(
    stored: Optional[StoredConfig],
    environment: Mapping[str, str],
    overrides: Mapping[str, str],
    config_path: Optional[Path] = None,
) -> ResolvedConfig:
    """Fold file -> environment -> command line, last write wins per field."""
    encrypted_credential = None
    if isinstance(stored, EncryptedConfig):
        file_settings = stored.plain_settings
        encrypted_credential = stored.credential
    elif isinstance(stored, PlainConfig):
        file_settings = stored.settings
    else:
        file_settings = Settings()

    env_values = {field: environment.get(key) for field, key in SETTING_KEYS.items()}
    settings = file_settings.merged(**env_values).merged(**dict(overrides))

    return ResolvedConfig(
        settings=settings,
        encrypted_credential=encrypted_credential,
        file_settings=file_settings,
        environment={k: v for k, v in environment.items() if k in SETTING_KEYS.values() and v},
        overrides=dict(overrides),
        config_path=config_path,
    )


def compute_provenance(resolved: ResolvedConfig) -> Dict[str, ProvenanceRecord]:
    """
    Report, per field, the source that supplied the effective value.

    Each field is re-checked independently rather than replayed from the fold:
    an override always reports the command line even if the environment holds
    the same string, and an environment value equal to the file's still
    reports the environment.
    """
    records: Dict[str, ProvenanceRecord] = {}
    for field, key in SETTING_KEYS.items():
        value = getattr(resolved.settings, field)
        env_value = resolved.environment.get(key)

        if field in resolved.overrides:
            source = Source.COMMAND_LINE
        elif env_value and env_value == value:
            source = Source.ENVIRONMENT
        elif value or (field == SECRET_FIELD and resolved.credential_deferred):
            source = Source.CONFIG_FILE
        else:
            source = Source.UNSET

        records[field] = ProvenanceRecord(key=key, source=source, value=value)
    return records


def load_resolved_config(
    argv: Sequence[str],
    store: Optional[ConfigStore] = None,
    env_file: Union[str, Path] = DEFAULT_ENV_FILE,
    environ: Optional[Mapping[str, str]] = None,
) -> Tuple[ResolvedConfig, List[str]]:
    """
    Read all three sources once at process start.

    Returns:
        The resolved config and argv with the ``--config`` pairs removed.
    """
    store = store or ConfigStore()
    overrides = parse_config_overrides(argv)
    resolved = resolve(
        store.read_raw(),
        load_environment(env_file, environ),
        overrides.values,
        config_path=store.path,
    )
    return resolved, list(overrides.remaining)
