"""
Transaction Submission - Send signed requests and wait for inclusion.

Uses eth-account for signing plain transactions and the httpx-based
endpoint for sending. Nothing here retries except the receipt poller,
which keeps asking while the node reports the receipt as not found.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional

from eth_account.signers.local import LocalAccount

from ..config import DEFAULT_DEPLOY_GAS, POLL_INTERVAL, RECEIPT_TIMEOUT
from ..errors import ReceiptNotFound, ReceiptTimeoutError, ReceiptWaitCancelled
from ..utils import to_hex
from .ccr import SignedEnvelope
from .receipt import Receipt

logger = logging.getLogger(__name__)


def submit_request(endpoint, envelope: SignedEnvelope) -> str:
    """
    Send a signed confidential request in a single RPC call.

    The envelope and the confidential input go as two positional params.
    Errors from the node are returned to the caller as raised, no retry.

    Returns:
        Transaction hash (0x-prefixed hex)
    """
    tx_hash = endpoint.send_raw_transaction(
        envelope.raw_hex,
        to_hex(envelope.confidential_inputs),
    )
    logger.debug("submitted request %s (local hash %s)", tx_hash, envelope.hash)
    return tx_hash


def wait_for_receipt(
    endpoint,
    tx_hash: str,
    timeout: float = RECEIPT_TIMEOUT,
    poll_interval: float = POLL_INTERVAL,
    cancel: Optional[threading.Event] = None,
    clock: Callable[[], float] = time.monotonic,
) -> Receipt:
    """
    Wait for a transaction receipt.

    Every iteration waits ``poll_interval``, checks the deadline, then asks
    the node once. "Not found" keeps waiting; anything else ends the wait.

    Args:
        endpoint: Object with ``get_transaction_receipt(tx_hash)``
        tx_hash: Transaction hash
        timeout: Maximum wait time in seconds
        poll_interval: Polling interval in seconds
        cancel: Optional event; setting it stops the wait
        clock: Monotonic time source

    Returns:
        The parsed receipt

    Raises:
        ReceiptTimeoutError: If no receipt appeared within ``timeout``
        ReceiptWaitCancelled: If ``cancel`` was set
        TransportError: If a query fails for any other reason
    """
    cancel = cancel or threading.Event()
    deadline = clock() + timeout
    polls = 0

    while True:
        if cancel.wait(poll_interval):
            raise ReceiptWaitCancelled(f"wait for {tx_hash} cancelled after {polls} poll(s)")
        if clock() >= deadline:
            raise ReceiptTimeoutError(tx_hash, timeout)

        polls += 1
        try:
            raw = endpoint.get_transaction_receipt(tx_hash)
        except ReceiptNotFound:
            continue

        if raw is not None:
            logger.debug("receipt for %s found after %d poll(s)", tx_hash, polls)
            return raw if isinstance(raw, Receipt) else Receipt.from_rpc(raw)


class TransactionResult:
    """A submitted transaction whose receipt can be awaited once and cached."""

    def __init__(
        self,
        endpoint,
        tx_hash: str,
        timeout: float = RECEIPT_TIMEOUT,
        poll_interval: float = POLL_INTERVAL,
    ):
        self.endpoint = endpoint
        self.hash = tx_hash
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.receipt: Optional[Receipt] = None

    def wait(
        self,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Receipt:
        if self.receipt is None:
            self.receipt = wait_for_receipt(
                self.endpoint,
                self.hash,
                timeout=self.timeout if timeout is None else timeout,
                poll_interval=self.poll_interval,
                cancel=cancel,
            )
        return self.receipt

    def __repr__(self) -> str:
        return f"TransactionResult(hash={self.hash!r})"


def build_deploy_tx(
    bytecode: bytes,
    nonce: int,
    gas_price: int,
    chain_id: int,
    gas_limit: int = DEFAULT_DEPLOY_GAS,
) -> dict[str, Any]:
    """Unsigned contract creation transaction (no ``to``)."""
    return {
        "data": to_hex(bytecode),
        "value": 0,
        "nonce": nonce,
        "gas": gas_limit,
        "gasPrice": gas_price,
        "chainId": chain_id,
    }


def sign_and_send(endpoint, tx: dict[str, Any], account: LocalAccount) -> str:
    """
    Sign a plain transaction and send it.

    Returns:
        Transaction hash (0x-prefixed hex)
    """
    signed = account.sign_transaction(tx)
    return endpoint.send_raw_transaction(to_hex(signed.raw_transaction))
