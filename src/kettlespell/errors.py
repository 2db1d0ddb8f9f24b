"""
Error taxonomy for kettlespell.

Every error carries an ``exit_code`` so the CLI can map a failure to a
process status without inspecting messages.
"""

from __future__ import annotations

from typing import Any, Optional


class KettleError(RuntimeError):
    exit_code: int = 1


# ============ Configuration ============


class ConfigurationError(KettleError):
    exit_code = 2


class NoKettleFoundError(ConfigurationError):
    pass


class NoKeyConfiguredError(ConfigurationError):
    pass


class InvalidKeyError(ConfigurationError):
    pass


class ArtifactError(ConfigurationError):
    pass


class InvalidRecordError(ConfigurationError):
    """A confidential compute record failed validation before signing."""


class EncodingError(ConfigurationError):
    """Call arguments could not be encoded against the method signature."""


# ============ Transport ============


class TransportError(KettleError):
    exit_code = 3


class RpcError(TransportError):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.code = code
        self.data = data


class ReceiptNotFound(KettleError):
    """The node has no receipt for the hash yet. Only the poller sees this."""


# ============ Waiting ============


class ReceiptTimeoutError(KettleError, TimeoutError):
    exit_code = 4

    def __init__(self, tx_hash: str, timeout: float):
        super().__init__(f"Transaction {tx_hash} not mined within {timeout:g}s")
        self.tx_hash = tx_hash
        self.timeout = timeout


class ReceiptWaitCancelled(KettleError):
    exit_code = 4


# ============ Results ============


class TransactionFailedError(KettleError):
    exit_code = 5

    def __init__(self, receipt: Any):
        super().__init__(f"the txn did not succeed: {receipt.transaction_hash}")
        self.receipt = receipt


class DecodeWarning(KettleError):
    """A log matched an event but could not be unpacked against it."""
