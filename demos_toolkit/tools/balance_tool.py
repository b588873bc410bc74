from typing import List

from demos_toolkit.config.errors import ConfigError
from demos_toolkit.ledger import LedgerClientFactory
from demos_toolkit.tools.base import DemosTool, ToolContext, ToolFailure, ToolResult
from demos_toolkit.wallet.security import DecryptionError


class CheckBalanceTool(DemosTool):
    """Balance lookup through the ledger SDK; defaults to the configured wallet's own address."""

    name = "check-balance"
    usage = """
Usage: demostools check-balance [address]

Arguments:
  address     Address to check (defaults to the configured wallet)

Examples:
  demostools check-balance
  demostools check-balance demo1abc123...
"""

    def __init__(self, context: ToolContext, client_factory: LedgerClientFactory):
        super().__init__(context)
        self.client_factory = client_factory

    def validate_args(self, args: List[str]) -> bool:
        if len(args) > 1:
            self.logger.error("❌ check-balance takes at most one address")
            return False
        if args and not (args[0].startswith("demo1") or args[0].startswith("0x")):
            self.logger.error(f"❌ Invalid address: {args[0]}")
            return False
        return True

    def execute(self, args: List[str]) -> ToolResult:
        try:
            client = self.connect_wallet(self.client_factory())
            address = args[0] if args else client.get_address()
            balance = client.get_balance(address)
        except (ConfigError, DecryptionError):
            raise
        except Exception as exc:
            raise ToolFailure(f"Ledger call failed: {exc}", cause=exc) from exc

        self.logger.info("💰 Balance Information:")
        self.logger.info(f"   Address: {address}")
        self.logger.info(f"   Balance: {balance}")
        return ToolResult(output={"address": address, "balance": balance})
