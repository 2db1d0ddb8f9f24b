"""Shared fixtures: a scripted in-memory endpoint, accounts and artifacts."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest
from eth_account import Account
from eth_account.signers.local import LocalAccount

from kettlespell.errors import ReceiptNotFound
from kettlespell.utils import hex_to_bytes, keccak256, to_hex

KETTLE_A = "0x" + "11" * 20

TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"

BID_EVENT_ABI = {
    "type": "event",
    "name": "BidEvent",
    "anonymous": False,
    "inputs": [
        {"name": "bidId", "type": "bytes16", "indexed": False, "internalType": "Suave.BidId"},
        {"name": "decryptionCondition", "type": "uint64", "indexed": False},
        {"name": "allowedPeekers", "type": "address[]", "indexed": False},
    ],
}

TRANSFER_EVENT_ABI = {
    "type": "event",
    "name": "Transfer",
    "anonymous": False,
    "inputs": [
        {"name": "from", "type": "address", "indexed": True},
        {"name": "to", "type": "address", "indexed": True},
        {"name": "value", "type": "uint256", "indexed": False},
    ],
}


class FakeEndpoint:
    """
    Scripted stand-in for ``RpcEndpoint``.

    ``receipts`` is consumed one item per receipt query: None means "not
    found yet", an exception is raised, anything else is returned.
    """

    def __init__(
        self,
        receipts: list[Any] | None = None,
        kettles: tuple[str, ...] = (KETTLE_A,),
        nonce: int = 5,
        gas_price: int = 10,
        chain_id: int = 1337,
    ):
        self.receipts = list(receipts or [])
        self.kettles = kettles
        self.nonce = nonce
        self.price = gas_price
        self.chain = chain_id
        self.sent: list[tuple[str, ...]] = []
        self.receipt_polls = 0
        self.calls: list[str] = []
        self.closed = False

    def __enter__(self) -> "FakeEndpoint":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.closed = True

    def kettle_addresses(self) -> list[str]:
        self.calls.append("eth_kettleAddress")
        return list(self.kettles)

    def chain_id(self) -> int:
        self.calls.append("eth_chainId")
        return self.chain

    def pending_nonce(self, address: str) -> int:
        self.calls.append("eth_getTransactionCount")
        return self.nonce

    def gas_price(self) -> int:
        self.calls.append("eth_gasPrice")
        return self.price

    def send_raw_transaction(self, raw_tx: str, *extra: str) -> str:
        self.calls.append("eth_sendRawTransaction")
        self.sent.append((raw_tx, *extra))
        return to_hex(keccak256(hex_to_bytes(raw_tx)))

    def get_transaction_receipt(self, tx_hash: str) -> Any:
        self.calls.append("eth_getTransactionReceipt")
        self.receipt_polls += 1
        item = self.receipts.pop(0) if self.receipts else None
        if isinstance(item, Exception):
            raise item
        if item is None:
            raise ReceiptNotFound(tx_hash)
        return item


@pytest.fixture()
def make_endpoint() -> Callable[..., FakeEndpoint]:
    return FakeEndpoint


@pytest.fixture()
def account() -> LocalAccount:
    return Account.from_key(TEST_PRIVATE_KEY)


@pytest.fixture()
def artifacts_dir(tmp_path: Path) -> Path:
    """A Foundry-style out/ folder with two artifacts and a build-info file."""
    out = tmp_path / "out"
    (out / "MevShare.sol").mkdir(parents=True)
    (out / "Token.sol").mkdir(parents=True)
    (out / "build-info").mkdir(parents=True)

    (out / "MevShare.sol" / "MevShare.json").write_text(
        json.dumps({
            "abi": [
                BID_EVENT_ABI,
                {"type": "function", "name": "emitBid", "inputs": [{"name": "x", "type": "uint256"}], "outputs": []},
            ],
            "bytecode": {"object": "0x6080604052"},
        }),
        encoding="utf-8",
    )
    (out / "Token.sol" / "Token.json").write_text(
        json.dumps({"abi": [TRANSFER_EVENT_ABI], "bytecode": {"object": "0x"}}),
        encoding="utf-8",
    )
    (out / "build-info" / "abc123.json").write_text(
        json.dumps({"id": "abc123", "solcVersion": "0.8.19"}),
        encoding="utf-8",
    )
    return out


@pytest.fixture()
def receipt_rpc() -> Callable[..., dict[str, Any]]:
    """Build a JSON-RPC shaped receipt."""

    def _build(status: int = 1, logs: list[dict[str, Any]] | None = None, **extra: Any) -> dict[str, Any]:
        receipt = {
            "transactionHash": "0x" + "ab" * 32,
            "status": hex(status),
            "blockNumber": hex(42),
            "contractAddress": None,
            "logs": logs or [],
        }
        receipt.update(extra)
        return receipt

    return _build
