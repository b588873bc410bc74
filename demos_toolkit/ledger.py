"""
Call boundary of the Demos ledger SDK.

The SDK is an external collaborator: connection handling, signing,
broadcasting and balance lookups all happen on its side. The toolkit only
hands it the resolved RPC endpoint and the wallet credential.
"""

from typing import Any, Callable, Protocol


class LedgerClient(Protocol):
    def connect(self, rpc_url: str) -> Any:
        ...

    def connect_wallet(self, credential: str) -> Any:
        ...

    def get_address(self) -> str:
        ...

    def get_balance(self, address: str) -> Any:
        ...

    def sign(self, message: str) -> Any:
        ...

    def broadcast(self, transaction: Any) -> Any:
        ...


LedgerClientFactory = Callable[[], LedgerClient]
