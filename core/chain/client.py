"""
Chain Client

Defines the capability set the pipeline consumes from a chain client.
Clients are constructed outside the pipeline and handed in; live
networks are served by factories registered by the embedding
application.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Protocol, TYPE_CHECKING, runtime_checkable

from core.schemas.chain import Event, Transaction, TxHandle, TxReceipt
from core.schemas.errors import ConfigurationException

if TYPE_CHECKING:
    from core.config import NetworkEntry
    from core.schemas.network import NetworkContext


logger = logging.getLogger(__name__)


@runtime_checkable
class ChainClient(Protocol):
    """
    Protocol for a chain client.

    Implementations raise ConfirmationTimeoutException from
    ``wait_for_confirmations`` when the depth is not reached in time and
    return a receipt with ``status == 0`` for reverted transactions.
    """

    def accounts(self) -> list[str]:
        """Accounts the client can send from; index 0 is the deployer."""
        ...

    def submit_transaction(self, tx: Transaction) -> TxHandle:
        """Submit a transaction without waiting for it to be mined."""
        ...

    def wait_for_confirmations(
        self,
        handle: TxHandle,
        confirmations: int,
        timeout_s: float,
    ) -> TxReceipt:
        """Block until the transaction has ``confirmations`` blocks on top."""
        ...

    def read_effect_log(self, receipt: TxReceipt) -> list[Event]:
        """Decoded events emitted by a confirmed transaction."""
        ...

    def call_static(self, address: str, method: str, args: Optional[list[Any]] = None) -> Any:
        """Read-only contract call."""
        ...

    def get_events(
        self,
        address: str,
        event_name: str,
        from_block: int = 0,
    ) -> list[Event]:
        """Events with the given name emitted by ``address`` since ``from_block``."""
        ...

    def get_code(self, address: str) -> Optional[str]:
        """Deployed code at ``address``, or None when nothing is deployed there."""
        ...

    def block_number(self) -> int:
        """Current head block number."""
        ...


ClientFactory = Callable[["NetworkContext", Optional["NetworkEntry"]], ChainClient]


class ChainClientFactory:
    """
    Registry of chain client factories keyed by network name.

    Usage:
        factories = ChainClientFactory()
        factories.register("rinkeby", lambda network, entry: MyRpcClient(entry.rpc_url))
        client = factories.create(network, entry)
    """

    def __init__(self) -> None:
        self._factories: dict[str, ClientFactory] = {}

    def register(self, network_name: str, factory: ClientFactory) -> None:
        self._factories[network_name] = factory

    def unregister(self, network_name: str) -> None:
        self._factories.pop(network_name, None)

    def has(self, network_name: str) -> bool:
        return network_name in self._factories

    def create(
        self,
        network: "NetworkContext",
        entry: Optional["NetworkEntry"] = None,
    ) -> ChainClient:
        factory = self._factories.get(network.name)
        if factory is None:
            raise ConfigurationException(
                f"No chain client registered for network '{network.name}'",
                details={"network": network.name, "registered": sorted(self._factories)},
            )
        logger.debug("Creating chain client for %s (%s)", network.name, network.id)
        return factory(network, entry)


_default_factory: Optional[ChainClientFactory] = None


def get_client_factory() -> ChainClientFactory:
    """Get the process-wide client factory registry."""
    global _default_factory
    if _default_factory is None:
        _default_factory = ChainClientFactory()
    return _default_factory
