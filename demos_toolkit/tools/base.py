import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from demos_toolkit.config.errors import ConfigError
from demos_toolkit.config.gate import SecretAccessGate
from demos_toolkit.config.resolver import DEFAULT_ENV_FILE, ResolvedConfig
from demos_toolkit.config.store import ConfigStore
from demos_toolkit.ledger import LedgerClient
from demos_toolkit.wallet.security import DecryptionError


class ToolFailure(Exception):
    """Exception to indicate a tool execution failure."""
    def __init__(self, message: str, *, cause: Exception = None):
        super().__init__(message)
        self.cause = cause


class ToolResult(BaseModel):
    output: Any = Field(default=None)
    error: Optional[str] = Field(default=None)

    @property
    def success(self) -> bool:
        return self.error is None

    def __str__(self) -> str:
        return f"Error: {self.error}" if self.error else f"Output: {self.output}"


class ToolContext(BaseModel):
    """Everything a tool needs from the configuration layer, built once per process."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    store: ConfigStore
    resolved: ResolvedConfig
    gate: SecretAccessGate
    env_file: Path = Field(default=DEFAULT_ENV_FILE)
    environ: Optional[Dict[str, str]] = Field(default=None)


class DemosTool(ABC):
    """Base class for demostools commands: argument checks, error capture, config access."""

    name: str = "tool"
    usage: str = ""

    def __init__(self, context: ToolContext):
        self.context = context
        self.logger = logging.getLogger(f"demos_toolkit.tools.{self.name}")

    def load_private_key(self) -> str:
        """PRIVATE_KEY from configuration; prompts once if the config file is encrypted."""
        self.logger.debug("Loading private key from configuration")
        private_key = self.context.gate.get_credential()
        self.logger.debug("Private key loaded successfully")
        return private_key

    def get_rpc_url(self) -> str:
        rpc_url = self.context.gate.get_endpoint()
        self.logger.debug(f"Using RPC URL: {rpc_url}")
        return rpc_url

    def connect_wallet(self, client: LedgerClient) -> LedgerClient:
        """Connect `client` to the configured node and unlock it with the configured key."""
        client.connect(self.get_rpc_url())
        client.connect_wallet(self.load_private_key())
        return client

    def show_usage(self) -> None:
        for line in self.usage.strip("\n").splitlines():
            self.logger.error(line)

    @abstractmethod
    def validate_args(self, args: List[str]) -> bool:
        ...

    @abstractmethod
    def execute(self, args: List[str]) -> ToolResult:
        raise NotImplementedError("Subclasses must implement this method")

    def run(self, args: List[str]) -> ToolResult:
        """Validate, execute, and capture known failures as a failed `ToolResult`."""
        self.logger.debug(f"Tool {self.name} started")
        if not self.validate_args(args):
            self.show_usage()
            return ToolResult(error="Invalid arguments")

        try:
            result = self.execute(args)
        except (ConfigError, DecryptionError, ToolFailure) as e:
            return ToolResult(error=str(e))

        if result.success:
            self.logger.debug(f"Tool {self.name} completed successfully")
        else:
            self.logger.debug(f"Tool {self.name} failed: {result.error}")
        return result


def require_args(args: List[str], min_count: int, tool_name: str, logger: logging.Logger) -> bool:
    if len(args) < min_count:
        logger.error(f"❌ {tool_name} requires at least {min_count} argument(s)")
        return False
    return True
