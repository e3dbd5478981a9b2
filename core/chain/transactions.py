"""
Transaction Helpers

Submit-and-confirm in one call: every submitted transaction is awaited
to its confirmation depth before its effects are read.
"""

from __future__ import annotations

import logging

from core.schemas.chain import Transaction, TxReceipt
from core.schemas.errors import TransactionRevertedException

from .client import ChainClient


logger = logging.getLogger(__name__)


def describe(tx: Transaction) -> str:
    if tx.is_deployment:
        return f"deploy {tx.contract}"
    return f"{tx.method}() on {tx.to}"


def transact(
    client: ChainClient,
    tx: Transaction,
    *,
    confirmations: int = 1,
    timeout_s: float = 120.0,
) -> TxReceipt:
    """
    Submit a transaction and wait until it is confirmed.

    Args:
        client: Chain client to submit through
        tx: Transaction to send
        confirmations: Blocks required on top of the inclusion block
        timeout_s: Upper bound on the confirmation wait

    Returns:
        The confirmed, successful receipt

    Raises:
        TransactionRevertedException: If the transaction reverted
        ConfirmationTimeoutException: Propagated from the client
    """
    handle = client.submit_transaction(tx)
    logger.debug("Submitted %s: %s", describe(tx), handle.tx_hash)

    receipt = client.wait_for_confirmations(handle, confirmations, timeout_s)
    if not receipt.succeeded:
        raise TransactionRevertedException(
            f"Transaction reverted: {describe(tx)}"
            + (f" ({receipt.revert_reason})" if receipt.revert_reason else ""),
            tx_hash=receipt.tx_hash,
            details={"reason": receipt.revert_reason, "method": tx.method, "contract": tx.contract},
        )

    logger.debug(
        "Confirmed %s in block %d (%d confirmation(s))",
        handle.tx_hash, receipt.block_number, confirmations,
    )
    return receipt
