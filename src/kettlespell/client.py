"""
Kettle client session.

Binds an endpoint, a signing account and a kettle address together, so
callers can send confidential requests and deployments without repeating
resolution steps.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from eth_account.signers.local import LocalAccount

from .config import (
    DEFAULT_CONFIDENTIAL_GAS,
    DEFAULT_DEPLOY_GAS,
    POLL_INTERVAL,
    RECEIPT_TIMEOUT,
    DevKey,
    SpellConfig,
)
from .pneuma.abi import CallEncoder, EventDescriptor
from .pneuma.ccr import SignedEnvelope, build_request, sign_request
from .pneuma.events import describe_logs
from .pneuma.kettle import resolve_kettle_address
from .pneuma.receipt import Receipt
from .pneuma.tx import TransactionResult, build_deploy_tx, sign_and_send, submit_request
from .sigil.eth import resolve_account

logger = logging.getLogger(__name__)


class KettleClient:
    """
    One session against one kettle.

    Args:
        endpoint: JSON-RPC endpoint (``RpcEndpoint`` or compatible)
        account: Account signing every request
        kettle_address: Kettle that must execute confidential requests
        chain_id: Chain id for signatures; queried from the endpoint if None
        receipt_timeout: Default receipt wait for this session
        poll_interval: Receipt poll interval for this session
    """

    def __init__(
        self,
        endpoint,
        account: LocalAccount,
        kettle_address: str,
        chain_id: Optional[int] = None,
        receipt_timeout: float = RECEIPT_TIMEOUT,
        poll_interval: float = POLL_INTERVAL,
    ):
        self.endpoint = endpoint
        self.account = account
        self.kettle_address = kettle_address
        self._chain_id = chain_id
        self.receipt_timeout = receipt_timeout
        self.poll_interval = poll_interval

    @classmethod
    def connect(
        cls,
        endpoint,
        kettle_address: Optional[str] = None,
        private_key: Optional[str] = None,
        dev_key: Optional[DevKey] = None,
        **kwargs,
    ) -> "KettleClient":
        """
        Resolve kettle and key, then open a session.

        Raises:
            NoKettleFoundError, NoKeyConfiguredError, InvalidKeyError
        """
        kettle = resolve_kettle_address(endpoint, kettle_address)
        account = resolve_account(private_key, kettle, dev_key=dev_key)
        logger.debug("session for %s on kettle %s", account.address, kettle)
        return cls(endpoint, account, kettle, **kwargs)

    @classmethod
    def from_config(cls, endpoint, config: SpellConfig) -> "KettleClient":
        return cls.connect(
            endpoint,
            kettle_address=config.kettle_address,
            private_key=config.private_key,
            dev_key=config.dev_key,
            receipt_timeout=config.receipt_timeout,
            poll_interval=config.poll_interval,
        )

    @property
    def address(self) -> str:
        return self.account.address

    @property
    def chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = self.endpoint.chain_id()
        return self._chain_id

    def _result(self, tx_hash: str) -> TransactionResult:
        return TransactionResult(
            self.endpoint,
            tx_hash,
            timeout=self.receipt_timeout,
            poll_interval=self.poll_interval,
        )

    def sign_confidential_request(
        self,
        contract: str,
        calldata: bytes,
        confidential_inputs: bytes = b"",
        gas: int = DEFAULT_CONFIDENTIAL_GAS,
    ) -> SignedEnvelope:
        """Build and sign a request with a freshly queried nonce and gas price."""
        nonce = self.endpoint.pending_nonce(self.address)
        gas_price = self.endpoint.gas_price()
        request = build_request(
            to=contract,
            data=calldata,
            kettle_address=self.kettle_address,
            nonce=nonce,
            gas_price=gas_price,
            confidential_inputs=confidential_inputs,
            gas=gas,
            chain_id=self.chain_id,
        )
        return sign_request(request, self.account)

    def confidential_request(
        self,
        contract: str,
        calldata: bytes,
        confidential_inputs: bytes = b"",
        gas: int = DEFAULT_CONFIDENTIAL_GAS,
    ) -> TransactionResult:
        envelope = self.sign_confidential_request(contract, calldata, confidential_inputs, gas)
        logger.info("Sending offchain confidential compute request to kettle %s", self.kettle_address)
        return self._result(submit_request(self.endpoint, envelope))

    def confidential_call(
        self,
        contract: str,
        encoder: CallEncoder,
        values: Sequence[Any] = (),
        confidential_inputs: bytes = b"",
        gas: int = DEFAULT_CONFIDENTIAL_GAS,
    ) -> TransactionResult:
        """Encode ``values`` with ``encoder`` and send them as a confidential request."""
        return self.confidential_request(contract, encoder.encode(values), confidential_inputs, gas)

    def deploy(self, bytecode: bytes, gas_limit: int = DEFAULT_DEPLOY_GAS) -> TransactionResult:
        tx = build_deploy_tx(
            bytecode,
            nonce=self.endpoint.pending_nonce(self.address),
            gas_price=self.endpoint.gas_price(),
            chain_id=self.chain_id,
            gas_limit=gas_limit,
        )
        return self._result(sign_and_send(self.endpoint, tx, self.account))


def report_receipt(receipt: Receipt, descriptors: Sequence[EventDescriptor] = ()) -> list[str]:
    """
    Summarize a successful receipt and its logs.

    Raises:
        TransactionFailedError: If the receipt reports a failed status
    """
    receipt.ensure_success()
    lines = [f"Transaction mined status={receipt.status} blockNum={receipt.block_number}"]
    if receipt.logs:
        lines.append(f"Logs emitted in the onchain transaction numLogs={len(receipt.logs)}")
        lines.extend(describe_logs(receipt.logs, descriptors))
    return lines
