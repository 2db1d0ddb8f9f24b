"""Receipts and log entries as reported by the node."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..errors import TransactionFailedError, TransportError
from ..utils import hex_to_bytes, hex_to_int

RECEIPT_STATUS_SUCCESSFUL = 1


@dataclass(frozen=True)
class LogEntry:
    address: str
    topics: tuple[bytes, ...]
    data: bytes = b""

    @classmethod
    def from_rpc(cls, raw: dict[str, Any]) -> "LogEntry":
        return cls(
            address=raw.get("address", ""),
            topics=tuple(hex_to_bytes(t) for t in raw.get("topics") or []),
            data=hex_to_bytes(raw.get("data") or "0x"),
        )


@dataclass(frozen=True)
class Receipt:
    transaction_hash: str
    status: int
    block_number: int
    contract_address: Optional[str] = None
    logs: tuple[LogEntry, ...] = ()

    @classmethod
    def from_rpc(cls, raw: dict[str, Any]) -> "Receipt":
        """
        Parse a node receipt.

        A missing ``blockNumber`` or ``contractAddress`` is tolerated; a
        missing ``status`` is not.

        Raises:
            TransportError: If the receipt has no status or holds malformed hex
        """
        tx_hash = raw.get("transactionHash", "")
        if raw.get("status") is None:
            raise TransportError(f"receipt for {tx_hash} has no status")
        try:
            return cls(
                transaction_hash=tx_hash,
                status=hex_to_int(raw["status"]),
                block_number=hex_to_int(raw.get("blockNumber")),
                contract_address=raw.get("contractAddress") or None,
                logs=tuple(LogEntry.from_rpc(entry) for entry in raw.get("logs") or []),
            )
        except (ValueError, TypeError, AttributeError) as exc:
            raise TransportError(f"unparseable receipt for {tx_hash}: {exc}") from exc

    @property
    def succeeded(self) -> bool:
        return self.status == RECEIPT_STATUS_SUCCESSFUL

    def ensure_success(self) -> "Receipt":
        """
        Raises:
            TransactionFailedError: If the receipt reports a failed status
        """
        if not self.succeeded:
            raise TransactionFailedError(self)
        return self
