"""
JSON-RPC endpoint for a kettle-speaking node.

Lightweight alternative to web3.py: uses httpx for HTTP. One
``RpcEndpoint`` is opened per session and closed by its owner.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Optional

import httpx

from ..config import RPC_TIMEOUT
from ..errors import ReceiptNotFound, RpcError, TransportError
from ..utils import checksum, hex_to_int

logger = logging.getLogger(__name__)


class RpcEndpoint:
    """
    A JSON-RPC 2.0 client bound to one URL.

    Args:
        url: HTTP endpoint of the node
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
    """

    def __init__(
        self,
        url: str,
        timeout: float = RPC_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url
        self._ids = itertools.count(1)
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def __enter__(self) -> "RpcEndpoint":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def call(self, method: str, *params: Any) -> Any:
        """
        Make a JSON-RPC call.

        Returns:
            Result field from the RPC response

        Raises:
            TransportError: If the HTTP exchange fails or the reply is not a JSON object
            RpcError: If the node answers with an error object
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": list(params),
            "id": next(self._ids),
        }
        logger.debug("rpc -> %s %s", method, self.url)

        try:
            response = self._client.post(self.url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise TransportError(f"RPC {method} failed: {exc}") from exc
        except ValueError as exc:
            raise TransportError(f"RPC {method} returned invalid JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise TransportError(f"RPC {method} returned a non-object reply")

        if "error" in data:
            error = data["error"] or {}
            if isinstance(error, dict):
                raise RpcError(
                    f"RPC error: {error.get('message', error)}",
                    code=error.get("code"),
                    data=error.get("data"),
                )
            raise RpcError(f"RPC error: {error}")

        return data.get("result")

    # ============ Queries ============

    def kettle_addresses(self) -> list[str]:
        result = self.call("eth_kettleAddress")
        return [checksum(addr) for addr in result or []]

    def _quantity(self, method: str, *params: Any) -> int:
        result = self.call(method, *params)
        if result is None:
            raise TransportError(f"RPC {method} returned no result")
        return hex_to_int(result)

    def chain_id(self) -> int:
        return self._quantity("eth_chainId")

    def pending_nonce(self, address: str) -> int:
        return self._quantity("eth_getTransactionCount", address, "pending")

    def gas_price(self) -> int:
        return self._quantity("eth_gasPrice")

    def send_raw_transaction(self, raw_tx: str, *extra: str) -> str:
        """
        Send a signed raw transaction.

        Confidential requests pass the hex-encoded confidential input as
        a second positional parameter.

        Returns:
            Transaction hash (0x-prefixed hex)
        """
        return self.call("eth_sendRawTransaction", raw_tx, *extra)

    def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any]:
        """
        Fetch a receipt.

        Raises:
            ReceiptNotFound: If the node does not know the receipt yet
        """
        receipt = self.call("eth_getTransactionReceipt", tx_hash)
        if receipt is None:
            raise ReceiptNotFound(tx_hash)
        return receipt
