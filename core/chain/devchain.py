"""
In-Process Development Chain

A deterministic, in-memory ChainClient standing in for a local
development node. Every submitted transaction is mined into its own
block; reverted transactions roll back all state they touched.

Hosts minimal stand-ins for the three contracts the pipeline deploys.
They reproduce only the externally observable behavior the pipeline
relies on (balances, request/fulfill/finalize, emitted events), not the
contracts' business logic.

Failure injection for tests:
    chain.inject_revert("finishMint", reason="not ready")
    chain.inject_stall("transfer")   # never confirms
"""

from __future__ import annotations

import base64
import copy
import hashlib
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from core.schemas.chain import Event, Transaction, TxHandle, TxReceipt
from core.schemas.errors import ConfirmationTimeoutException, TransactionException
from core.schemas.network import LOCAL_CHAIN_ID


logger = logging.getLogger(__name__)


ZERO_ADDRESS = "0x" + "0" * 40


def _hex_digest(*parts: Any, length: int = 64) -> str:
    data = "|".join(str(p) for p in parts).encode("utf-8")
    return "0x" + hashlib.sha256(data).hexdigest()[:length]


class Revert(Exception):
    """Raised inside a stand-in contract to revert the whole transaction."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


# =============================================================================
# Execution Environment
# =============================================================================

@dataclass
class _CallEnv:
    """Per-call execution context; nested calls share the event buffer."""
    chain: "DevChain"
    origin: str
    sender: str
    events: list[dict[str, Any]] = field(default_factory=list)

    def emit(self, address: str, name: str, **args: Any) -> None:
        self.events.append({"address": address, "name": name, "args": args})

    def call(self, caller: str, to: str, method: str, args: list[Any]) -> Any:
        target = self.chain._contract(to)
        child = _CallEnv(chain=self.chain, origin=self.origin, sender=caller, events=self.events)
        return target.execute(child, method, args)

    def view(self, to: str, method: str, args: list[Any]) -> Any:
        return self.chain._contract(to).view(method, args)


# =============================================================================
# Contract Stand-Ins
# =============================================================================

class _Contract:
    """
    Base for stand-in contracts.

    State-changing methods are named ``tx_<method>``; read-only methods
    are named ``view_<method>``.
    """

    contract_name = ""

    def __init__(self, address: str) -> None:
        self.address = address

    def setup(self, env: _CallEnv, args: list[Any]) -> None:
        pass

    def execute(self, env: _CallEnv, method: str, args: list[Any]) -> Any:
        fn = getattr(self, f"tx_{method}", None)
        if fn is None:
            raise Revert(f"{self.contract_name}: unknown method {method}")
        return fn(env, *args)

    def view(self, method: str, args: list[Any]) -> Any:
        fn = getattr(self, f"view_{method}", None)
        if fn is None:
            raise Revert(f"{self.contract_name}: unknown view {method}")
        return fn(*args)


class LinkTokenStandIn(_Contract):
    """Fee token; the deployer receives the whole supply."""

    contract_name = "LinkToken"
    TOTAL_SUPPLY = 10 ** 27

    def setup(self, env: _CallEnv, args: list[Any]) -> None:
        self.balances: dict[str, int] = {env.sender: self.TOTAL_SUPPLY}

    def tx_transfer(self, env: _CallEnv, to: str, value: int) -> bool:
        balance = self.balances.get(env.sender, 0)
        if balance < value:
            raise Revert("ERC20: transfer amount exceeds balance")
        self.balances[env.sender] = balance - value
        self.balances[to] = self.balances.get(to, 0) + value
        env.emit(self.address, "Transfer", **{"from": env.sender, "to": to, "value": value})
        return True

    def view_balanceOf(self, owner: str) -> int:
        return self.balances.get(owner, 0)


class VRFCoordinatorStandIn(_Contract):
    """Randomness coordinator whose callback is triggered explicitly."""

    contract_name = "VRFCoordinatorMock"

    def setup(self, env: _CallEnv, args: list[Any]) -> None:
        if not args:
            raise Revert("VRFCoordinatorMock: link token address required")
        self.link = args[0]
        self.nonce = 0

    def tx_requestRandomness(self, env: _CallEnv, key_hash: str, fee: int) -> str:
        self.nonce += 1
        request_id = _hex_digest(key_hash, env.sender, self.nonce)
        env.emit(
            self.address, "RandomnessRequest",
            sender=env.sender, keyHash=key_hash, seed=self.nonce, requestId=request_id,
        )
        return request_id

    def tx_callBackWithRandomness(
        self, env: _CallEnv, request_id: str, randomness: int, consumer: str,
    ) -> None:
        env.call(self.address, consumer, "rawFulfillRandomness", [request_id, randomness])
        env.emit(
            self.address, "RandomnessRequestFulfilled",
            requestId=request_id, output=randomness,
        )


class PixelPackFactoryStandIn(_Contract):
    """Randomness consumer that mints a token per request."""

    contract_name = "PixelPackFactory"

    def setup(self, env: _CallEnv, args: list[Any]) -> None:
        if len(args) < 4:
            raise Revert("PixelPackFactory: constructor expects vrf, link, keyHash, fee")
        self.vrf, self.link, self.key_hash, self.fee = args[:4]
        self.odds = list(args[4]) if len(args) > 4 else []
        self.next_token = 0
        self.owners: dict[int, str] = {}
        self.request_to_token: dict[str, int] = {}
        self.token_to_request: dict[int, str] = {}
        self.randomness: dict[int, int] = {}
        self.uris: dict[int, str] = {}

    def tx_generatePixelPack(self, env: _CallEnv) -> int:
        if env.view(self.link, "balanceOf", [self.address]) < self.fee:
            raise Revert("Not enough LINK - fill contract with faucet")
        env.call(self.address, self.link, "transfer", [self.vrf, self.fee])
        request_id = env.call(self.address, self.vrf, "requestRandomness", [self.key_hash, self.fee])

        token_id = self.next_token
        self.next_token += 1
        self.owners[token_id] = env.origin
        self.request_to_token[request_id] = token_id
        self.token_to_request[token_id] = request_id

        env.emit(self.address, "Transfer", **{"from": ZERO_ADDRESS, "to": env.origin, "tokenId": token_id})
        env.emit(self.address, "RandomnessRequested", requestId=request_id, tokenId=token_id)
        return token_id

    def tx_rawFulfillRandomness(self, env: _CallEnv, request_id: str, randomness: int) -> None:
        if env.sender != self.vrf:
            raise Revert("Only VRFCoordinator can fulfill")
        if request_id not in self.request_to_token:
            raise Revert("Unknown request")
        self.randomness[self.request_to_token[request_id]] = randomness

    def tx_finishMint(self, env: _CallEnv, token_id: int) -> None:
        if token_id not in self.token_to_request:
            raise Revert("Unknown token")
        if token_id in self.uris:
            raise Revert("Mint already finished")
        if token_id not in self.randomness:
            raise Revert("Randomness not yet fulfilled")
        self.uris[token_id] = self._token_uri(token_id)
        env.emit(self.address, "PixelPackFinished", tokenId=token_id, tokenURI=self.uris[token_id])

    def view_tokenURI(self, token_id: int) -> str:
        return self.uris.get(token_id, "")

    def view_requestIdForToken(self, token_id: int) -> Optional[str]:
        return self.token_to_request.get(token_id)

    def view_ownerOf(self, token_id: int) -> Optional[str]:
        return self.owners.get(token_id)

    def _token_uri(self, token_id: int) -> str:
        metadata = {
            "name": f"Pixel Pack #{token_id}",
            "attributes": [{"trait_type": "seed", "value": self.randomness[token_id]}],
        }
        encoded = base64.b64encode(json.dumps(metadata, sort_keys=True).encode("utf-8"))
        return "data:application/json;base64," + encoded.decode("ascii")


CONTRACTS: dict[str, type[_Contract]] = {
    cls.contract_name: cls
    for cls in (LinkTokenStandIn, VRFCoordinatorStandIn, PixelPackFactoryStandIn)
}


# =============================================================================
# Chain
# =============================================================================

class DevChain:
    """
    In-memory chain implementing the ChainClient protocol.

    Usage:
        chain = DevChain()
        deployer = chain.accounts()[0]
        receipt = transact(chain, Transaction.deploy(deployer, "LinkToken"))
    """

    def __init__(self, chain_id: str = LOCAL_CHAIN_ID, account_count: int = 10) -> None:
        self.chain_id = chain_id
        self._accounts = [_hex_digest("account", i, length=40) for i in range(account_count)]
        self._contracts: dict[str, _Contract] = {}
        self._nonces: dict[str, int] = {}
        self._block = 0
        self._logs: list[Event] = []
        self._receipts: dict[str, TxReceipt] = {}
        self._stalled: set[str] = set()
        self._revert_injections: dict[str, list[str]] = {}
        self._stall_injections: dict[str, int] = {}
        self.transactions: list[Transaction] = []

    # -------------------------------------------------------------------------
    # ChainClient protocol
    # -------------------------------------------------------------------------

    def accounts(self) -> list[str]:
        return list(self._accounts)

    def submit_transaction(self, tx: Transaction) -> TxHandle:
        self.transactions.append(tx)
        tx_hash = _hex_digest("tx", self.chain_id, len(self.transactions), tx.sender)
        handle = TxHandle(tx_hash=tx_hash, transaction=tx)

        key = self._injection_key(tx)
        if self._stall_injections.get(key, 0) > 0:
            self._stall_injections[key] -= 1
            self._stalled.add(tx_hash)
            logger.debug("Stalling %s (%s)", tx_hash, key)
            return handle

        self._receipts[tx_hash] = self._mine(tx, tx_hash)
        return handle

    def wait_for_confirmations(
        self,
        handle: TxHandle,
        confirmations: int,
        timeout_s: float,
    ) -> TxReceipt:
        if handle.tx_hash in self._stalled:
            raise ConfirmationTimeoutException(handle.tx_hash, confirmations, timeout_s)
        receipt = self._receipts.get(handle.tx_hash)
        if receipt is None:
            raise TransactionException(f"Unknown transaction {handle.tx_hash}", tx_hash=handle.tx_hash)
        missing = receipt.block_number + confirmations - 1 - self._block
        if missing > 0:
            self.mine(missing)
        return receipt

    def read_effect_log(self, receipt: TxReceipt) -> list[Event]:
        return list(receipt.events)

    def call_static(self, address: str, method: str, args: Optional[list[Any]] = None) -> Any:
        try:
            return self._contract(address).view(method, list(args or []))
        except Revert as e:
            raise TransactionException(f"Call to {method} failed: {e.reason}") from e

    def get_events(self, address: str, event_name: str, from_block: int = 0) -> list[Event]:
        return [
            e for e in self._logs
            if e.name == event_name
            and e.address.lower() == address.lower()
            and e.block_number >= from_block
        ]

    def get_code(self, address: str) -> Optional[str]:
        contract = self._contracts.get(address)
        return contract.contract_name if contract else None

    def block_number(self) -> int:
        return self._block

    # -------------------------------------------------------------------------
    # Test helpers
    # -------------------------------------------------------------------------

    def mine(self, blocks: int = 1) -> None:
        self._block += blocks

    def inject_revert(self, key: str, reason: str = "injected revert", times: int = 1) -> None:
        """Revert the next ``times`` transactions calling method (or deploying contract) ``key``."""
        self._revert_injections.setdefault(key, []).extend([reason] * times)

    def inject_stall(self, key: str, times: int = 1) -> None:
        """Never confirm the next ``times`` transactions for ``key``."""
        self._stall_injections[key] = self._stall_injections.get(key, 0) + times

    def deployments(self) -> list[Transaction]:
        return [tx for tx in self.transactions if tx.is_deployment]

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    @staticmethod
    def _injection_key(tx: Transaction) -> str:
        return (tx.contract if tx.is_deployment else tx.method) or ""

    def _contract(self, address: Optional[str]) -> _Contract:
        contract = self._contracts.get(address or "")
        if contract is None:
            raise Revert(f"No contract at {address}")
        return contract

    def _next_address(self, sender: str) -> str:
        nonce = self._nonces.get(sender, 0)
        self._nonces[sender] = nonce + 1
        return _hex_digest("create", sender, nonce, length=40)

    def _mine(self, tx: Transaction, tx_hash: str) -> TxReceipt:
        snapshot = copy.deepcopy(self._contracts)
        nonces = dict(self._nonces)
        env = _CallEnv(chain=self, origin=tx.sender, sender=tx.sender)
        block = self._block + 1
        contract_address: Optional[str] = None
        revert_reason: Optional[str] = None

        try:
            injected = self._revert_injections.get(self._injection_key(tx))
            if injected:
                raise Revert(injected.pop(0))
            if tx.is_deployment:
                cls = CONTRACTS.get(tx.contract or "")
                if cls is None:
                    raise Revert(f"Unknown contract {tx.contract}")
                contract_address = self._next_address(tx.sender)
                contract = cls(contract_address)
                contract.setup(env, list(tx.args))
                self._contracts[contract_address] = contract
            else:
                self._contract(tx.to).execute(env, tx.method or "", list(tx.args))
            status = 1
        except Revert as e:
            self._contracts = snapshot
            self._nonces = nonces
            env.events.clear()
            contract_address = None
            revert_reason = e.reason
            status = 0

        self._block = block
        events = [
            Event(
                address=raw["address"],
                name=raw["name"],
                args=raw["args"],
                log_index=i,
                block_number=block,
                tx_hash=tx_hash,
            )
            for i, raw in enumerate(env.events)
        ]
        self._logs.extend(events)
        if revert_reason:
            logger.debug("Transaction %s reverted: %s", tx_hash, revert_reason)

        return TxReceipt(
            tx_hash=tx_hash,
            status=status,
            block_number=block,
            contract_address=contract_address,
            events=events,
            revert_reason=revert_reason,
        )
