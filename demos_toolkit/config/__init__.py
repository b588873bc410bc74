"""
Layered configuration for demostools.

Settings are resolved from three sources, highest priority first:

1. Command line: ``--config key=value``
2. Environment: process environment and ``./.env``
3. Config file: ``~/.config/demos/config.json`` (optionally with an encrypted PRIVATE_KEY)
"""

from .errors import (
    ConfigError,
    ConfigFileCorrupt,
    ConfigIOError,
    MissingCredentialError,
    PasswordMismatchError,
    PasswordUnavailableError,
    PreconditionError,
)
from .gate import GetpassPasswordProvider, PasswordProvider, SecretAccessGate
from .migrations import MigrationResult, apply_env_to_encrypted, initialize_config, prefer_file_over_env
from .models import (
    DEFAULT_RPC_URL,
    EncryptedConfig,
    PlainConfig,
    ProvenanceRecord,
    Settings,
    Source,
    StoredConfig,
)
from .resolver import (
    ConfigOverrides,
    ResolvedConfig,
    compute_provenance,
    load_environment,
    load_resolved_config,
    parse_config_overrides,
    resolve,
)
from .store import ConfigStore, default_config_path

__all__ = [
    # Errors
    "ConfigError",
    "ConfigFileCorrupt",
    "ConfigIOError",
    "MissingCredentialError",
    "PasswordMismatchError",
    "PasswordUnavailableError",
    "PreconditionError",
    # Models
    "DEFAULT_RPC_URL",
    "Settings",
    "Source",
    "PlainConfig",
    "EncryptedConfig",
    "StoredConfig",
    "ProvenanceRecord",
    # Store
    "ConfigStore",
    "default_config_path",
    # Resolution
    "ConfigOverrides",
    "ResolvedConfig",
    "parse_config_overrides",
    "load_environment",
    "resolve",
    "compute_provenance",
    "load_resolved_config",
    # Secret access
    "PasswordProvider",
    "GetpassPasswordProvider",
    "SecretAccessGate",
    # Migrations
    "MigrationResult",
    "apply_env_to_encrypted",
    "prefer_file_over_env",
    "initialize_config",
]
