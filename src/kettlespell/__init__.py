__version__ = "0.1.0"

__all__ = [
    # Session
    "KettleClient",
    "report_receipt",
    # Requests
    "ConfidentialComputeRecord",
    "ConfidentialComputeRequest",
    "SignedEnvelope",
    "build_request",
    "sign_request",
    "recover_signer",
    "verify_envelope",
    "decode_envelope",
    # Transport
    "RpcEndpoint",
    "resolve_kettle_address",
    "submit_request",
    "wait_for_receipt",
    "TransactionResult",
    "Receipt",
    "LogEntry",
    # Keys
    "DevKey",
    "resolve_account",
    # Artifacts and events
    "EventDescriptor",
    "MethodEncoder",
    "load_event_descriptors",
    "resolve_artifact",
    "decode_log",
    "describe_logs",
    "render_raw_log",
    # Errors
    "KettleError",
    "ConfigurationError",
    "NoKettleFoundError",
    "NoKeyConfiguredError",
    "InvalidKeyError",
    "InvalidRecordError",
    "TransportError",
    "RpcError",
    "ReceiptTimeoutError",
    "ReceiptWaitCancelled",
    "TransactionFailedError",
]

from .client import KettleClient, report_receipt
from .config import DevKey
from .errors import (
    ConfigurationError,
    InvalidKeyError,
    InvalidRecordError,
    KettleError,
    NoKeyConfiguredError,
    NoKettleFoundError,
    ReceiptTimeoutError,
    ReceiptWaitCancelled,
    RpcError,
    TransactionFailedError,
    TransportError,
)
from .pneuma.abi import EventDescriptor, MethodEncoder, load_event_descriptors, resolve_artifact
from .pneuma.ccr import (
    ConfidentialComputeRecord,
    ConfidentialComputeRequest,
    SignedEnvelope,
    build_request,
    decode_envelope,
    recover_signer,
    sign_request,
    verify_envelope,
)
from .pneuma.events import decode_log, describe_logs, render_raw_log
from .pneuma.kettle import resolve_kettle_address
from .pneuma.receipt import LogEntry, Receipt
from .pneuma.rpc import RpcEndpoint
from .pneuma.tx import TransactionResult, submit_request, wait_for_receipt
from .sigil.eth import resolve_account
