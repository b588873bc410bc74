"""Data model for the layered configuration: settings, stored shapes and provenance."""

from enum import Enum
from typing import Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from demos_toolkit.wallet.security import EncryptedSecret

DEFAULT_RPC_URL = "https://node2.demos.sh"

# Settings field -> key used in the config file and the environment
SETTING_KEYS: Dict[str, str] = {
    "private_key": "PRIVATE_KEY",
    "demos_rpc": "DEMOS_RPC",
    "referral_code": "REFERRAL_CODE",
}

# Accepted --config key spellings (lower-cased) -> Settings field
OVERRIDE_ALIASES: Dict[str, str] = {
    "private_key": "private_key",
    "demos_rpc": "demos_rpc",
    "demos_rpc_url": "demos_rpc",
    "referral_code": "referral_code",
}

SECRET_FIELD = "private_key"


class Source(str, Enum):
    COMMAND_LINE = "command line"
    ENVIRONMENT = "environment (.env)"
    CONFIG_FILE = "config file"
    UNSET = "not set"


class Settings(BaseModel):
    """The effective values of the three recognised settings."""

    model_config = ConfigDict(frozen=True)

    private_key: Optional[str] = Field(default=None)
    demos_rpc: Optional[str] = Field(default=None)
    referral_code: Optional[str] = Field(default=None)

    @field_validator("private_key", "demos_rpc", "referral_code")
    @classmethod
    def _empty_is_unset(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    @classmethod
    def from_keys(cls, raw: Dict[str, str]) -> "Settings":
        """Build from a mapping keyed by PRIVATE_KEY / DEMOS_RPC / REFERRAL_CODE."""
        return cls(**{field: raw.get(key) for field, key in SETTING_KEYS.items()})

    def to_keys(self) -> Dict[str, str]:
        """Inverse of `from_keys`; unset fields are omitted."""
        return {
            key: getattr(self, field)
            for field, key in SETTING_KEYS.items()
            if getattr(self, field) is not None
        }

    def merged(self, **values: Optional[str]) -> "Settings":
        """Return a copy with every non-empty value in `values` applied on top."""
        return self.model_copy(update={k: v for k, v in values.items() if v})

    def __repr__(self) -> str:
        hidden = "***hidden***" if self.private_key else None
        return f"Settings(private_key={hidden!r}, demos_rpc={self.demos_rpc!r}, referral_code={self.referral_code!r})"

    __str__ = __repr__


class PlainConfig(BaseModel):
    """Config file whose fields are all stored in plaintext."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["plain"] = "plain"
    settings: Settings = Field(default_factory=Settings)


class EncryptedConfig(BaseModel):
    """Config file whose PRIVATE_KEY is an `EncryptedSecret`; the other fields are plaintext."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["encrypted"] = "encrypted"
    demos_rpc: Optional[str] = Field(default=None)
    referral_code: Optional[str] = Field(default=None)
    credential: Optional[EncryptedSecret] = Field(default=None)

    @property
    def plain_settings(self) -> Settings:
        return Settings(demos_rpc=self.demos_rpc, referral_code=self.referral_code)


StoredConfig = Union[PlainConfig, EncryptedConfig]


class ProvenanceRecord(BaseModel):
    """Which source supplied the effective value of one field."""

    model_config = ConfigDict(frozen=True)

    key: str
    source: Source
    value: Optional[str] = Field(default=None)

    @property
    def display_value(self) -> str:
        if self.source is Source.UNSET:
            return "not set"
        if self.key == SETTING_KEYS[SECRET_FIELD]:
            return "***hidden***"
        return self.value or "not set"
