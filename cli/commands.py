import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import HTML as PromptHTML
from prompt_toolkit.styles import Style

from demos_toolkit import __version__
from demos_toolkit.config.gate import PasswordProvider, SecretAccessGate
from demos_toolkit.config.resolver import DEFAULT_ENV_FILE, load_resolved_config
from demos_toolkit.config.store import ConfigStore
from demos_toolkit.ledger import LedgerClientFactory
from demos_toolkit.tools import CheckBalanceTool, ConfigTool, DemosTool, HashDataTool, ToolContext, ToolResult

# Set up basic logging configuration
logging.basicConfig(level=logging.INFO, format='%(message)s')
logger = logging.getLogger("cli")

# Disable logs from third-party libraries by setting them to ERROR level or higher
logging.getLogger("dotenv.main").setLevel(logging.ERROR)

STATUS_STYLE = Style.from_dict({
    "error": "ansired bold",
})

HELP_TEXT = """
🔧 Demos SDK Toolkit - Command Line Interface

Usage: demostools [--config key=value ...] <command> [options...]

🔧 Configuration:
  config show                                  Show current configuration and sources
  config init                                  Create initial config file
  config apply-env                             Apply .env to encrypted config (removes .env)
  config use-config                            Use config file over .env (backs up .env)

🌐 Network Operations:
  check-balance [address]                      Check balance (needs a ledger SDK client)

🔐 Cryptographic Operations:
  hash <hash|verify> <data> <algorithm> ...    Hash/verify data (sha256, sha3_512)

🔧 General:
  help, --help, -h                             Show this help message
  version, --version, -v                       Show version information

📋 Setup:
  Option 1 - Config file: demostools config init
  Option 2 - Environment: Create .env file with:
    PRIVATE_KEY="your twelve word mnemonic phrase"
    DEMOS_RPC="https://node2.demos.sh"
  Option 3 - Command line: --config private_key="..." --config demos_rpc="..."
"""


class ToolCommand:
    name: str
    description: str
    factory: Callable[[ToolContext], DemosTool]
    aliases: List[str] = []

    def __init__(self, name: str, description: str, factory: Callable[[ToolContext], DemosTool], aliases: List[str] = []):
        self.name = name
        self.description = description
        self.factory = factory
        self.aliases = aliases


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="demostools", description="Demos SDK Toolkit", add_help=False)
    parser.add_argument("-h", "--help", action="store_true", help="Show help")
    parser.add_argument("-v", "--version", action="store_true", help="Show version")
    parser.add_argument("command", nargs="?", help="Command to run")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="Command arguments")
    return parser


class DemosToolsCLI:
    """One-shot dispatcher: resolve config once, run one command, map the result to an exit code."""

    def __init__(
        self,
        store: Optional[ConfigStore] = None,
        env_file: Path = DEFAULT_ENV_FILE,
        environ: Optional[Mapping[str, str]] = None,
        password_provider: Optional[PasswordProvider] = None,
        ledger_factory: Optional[LedgerClientFactory] = None,
    ):
        self.store = store or ConfigStore()
        self.env_file = Path(env_file)
        self.environ = os.environ if environ is None else environ
        self.password_provider = password_provider
        self.ledger_factory = ledger_factory
        self.commands: Dict[str, ToolCommand] = {}
        self._init_commands()

    def _init_commands(self):

        # Config Command
        self.add_command(ToolCommand(
            name="config",
            description="Manage configuration settings",
            factory=ConfigTool,
            aliases=["cfg"]
        ))

        # Hash Command
        self.add_command(ToolCommand(
            name="hash",
            description="Hash or verify data",
            factory=HashDataTool
        ))

        # Balance Command, only with a ledger SDK available
        if self.ledger_factory is not None:
            ledger_factory = self.ledger_factory
            self.add_command(ToolCommand(
                name="check-balance",
                description="Check balance for an address",
                factory=lambda context: CheckBalanceTool(context, ledger_factory),
                aliases=["balance"]
            ))

    def add_command(self, command: ToolCommand):
        self.commands[command.name] = command
        for alias in command.aliases:
            self.commands[alias] = command

    def _help(self):
        for line in HELP_TEXT.strip("\n").splitlines():
            logger.info(line)

    def _version(self):
        logger.info(f"Demos SDK Toolkit v{__version__}")

    def build_context(self, argv: List[str]) -> Tuple[ToolContext, List[str]]:
        resolved, remaining = load_resolved_config(argv, self.store, self.env_file, self.environ)
        gate = SecretAccessGate(resolved, self.password_provider)
        return ToolContext(store=self.store, resolved=resolved, gate=gate, env_file=self.env_file, environ=dict(self.environ)), remaining

    def run(self, argv: List[str]) -> int:
        """Run one command; returns the process exit code."""
        context, remaining = self.build_context(list(argv))
        namespace = build_parser().parse_args(remaining)

        if namespace.version or namespace.command == "version":
            self._version()
            return 0
        if namespace.help or namespace.command in (None, "help"):
            self._help()
            return 0

        command = self.commands.get(namespace.command)
        if command is None:
            self._report_error(f"Unknown command: {namespace.command}")
            logger.info("Run 'demostools help' to see available commands")
            return 1

        try:
            result = command.factory(context).run(list(namespace.args))
        except KeyboardInterrupt:
            self._report_error("Interrupted")
            return 130
        return self._exit_code(result)

    def _exit_code(self, result: ToolResult) -> int:
        if result.success:
            return 0
        self._report_error(result.error)
        return 1

    def _report_error(self, message: str):
        print_formatted_text(PromptHTML("<error>❌ {}</error>").format(message), style=STATUS_STYLE, file=sys.stderr)
