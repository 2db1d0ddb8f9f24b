"""
Confidential Compute Requests - build, sign and serialize.

A request is a public record plus a confidential input. Only the record
(with the keccak256 of the input) is signed and serialized; the input
itself travels next to it in the same RPC call and is never put on chain.

The record is signed as EIP-712 typed data. The kettle address is part of
the signed struct, so a signature made for one kettle recovers to a
different signer when the record is replayed against another.

Wire form::

    0x42 || rlp([nonce, gasPrice, gas, to, value, data,
                 kettleAddress, confidentialInputsHash, chainId, v, r, s])
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import rlp
from rlp.exceptions import DecodingError as RLPDecodingError
from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data
from eth_account.signers.local import LocalAccount

from ..config import DEFAULT_CHAIN_ID, DEFAULT_CONFIDENTIAL_GAS
from ..errors import InvalidRecordError
from ..utils import checksum, hex_to_bytes, is_zero_address, keccak256, to_hex

CONFIDENTIAL_COMPUTE_RECORD_TX_TYPE = 0x42

EIP712_DOMAIN_NAME = "ConfidentialRecord"

UINT64_MAX = 2**64 - 1
UINT256_MAX = 2**256 - 1

EIP712_TYPES: dict[str, list[dict[str, str]]] = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "chainId", "type": "uint256"},
    ],
    "ConfidentialRecord": [
        {"name": "nonce", "type": "uint64"},
        {"name": "gasPrice", "type": "uint256"},
        {"name": "gas", "type": "uint64"},
        {"name": "to", "type": "address"},
        {"name": "value", "type": "uint256"},
        {"name": "data", "type": "bytes"},
        {"name": "kettleAddress", "type": "address"},
        {"name": "confidentialInputsHash", "type": "bytes32"},
    ],
}


def hash_confidential_inputs(confidential_inputs: bytes) -> bytes:
    return keccak256(confidential_inputs)


def _address_field(name: str, value: str) -> str:
    try:
        address = checksum(value)
    except ValueError as exc:
        raise InvalidRecordError(f"{name}: {exc}") from exc
    if is_zero_address(address):
        raise InvalidRecordError(f"{name} must not be the zero address")
    return address


def _uint_field(name: str, value: int, limit: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRecordError(f"{name} must be an integer, got {type(value).__name__}")
    if not 0 <= value <= limit:
        raise InvalidRecordError(f"{name} out of range: {value}")
    return value


@dataclass(frozen=True)
class ConfidentialComputeRecord:
    """
    The public half of a confidential compute request.

    Attributes:
        to: Destination contract (creation records are not supported)
        nonce: Sender account nonce
        gas: Gas limit
        gas_price: Gas price in wei
        data: ABI-encoded call data
        kettle_address: Kettle that must execute the request
        value: Wei attached to the call
        confidential_inputs_hash: keccak256 of the confidential input
        chain_id: EIP-712 domain chain id
    """

    to: str
    nonce: int
    gas: int
    gas_price: int
    data: bytes
    kettle_address: str
    value: int = 0
    confidential_inputs_hash: bytes = field(default_factory=lambda: hash_confidential_inputs(b""))
    chain_id: int = DEFAULT_CHAIN_ID

    def __post_init__(self) -> None:
        # frozen: normalize through object.__setattr__
        object.__setattr__(self, "to", _address_field("to", self.to))
        object.__setattr__(self, "kettle_address", _address_field("kettle_address", self.kettle_address))
        _uint_field("nonce", self.nonce, UINT64_MAX)
        _uint_field("gas", self.gas, UINT64_MAX)
        _uint_field("gas_price", self.gas_price, UINT256_MAX)
        _uint_field("value", self.value, UINT256_MAX)
        _uint_field("chain_id", self.chain_id, UINT256_MAX)
        if not isinstance(self.data, (bytes, bytearray)):
            raise InvalidRecordError("data must be bytes")
        object.__setattr__(self, "data", bytes(self.data))
        if len(self.confidential_inputs_hash) != 32:
            raise InvalidRecordError("confidential_inputs_hash must be 32 bytes")

    def typed_data(self) -> dict[str, Any]:
        """The EIP-712 structure that gets signed."""
        return {
            "types": EIP712_TYPES,
            "primaryType": "ConfidentialRecord",
            "domain": {"name": EIP712_DOMAIN_NAME, "chainId": self.chain_id},
            "message": {
                "nonce": self.nonce,
                "gasPrice": self.gas_price,
                "gas": self.gas,
                "to": self.to,
                "value": self.value,
                "data": self.data,
                "kettleAddress": self.kettle_address,
                "confidentialInputsHash": self.confidential_inputs_hash,
            },
        }

    def signable(self) -> SignableMessage:
        return encode_typed_data(full_message=self.typed_data())


@dataclass(frozen=True)
class ConfidentialComputeRequest:
    record: ConfidentialComputeRecord
    confidential_inputs: bytes = b""


@dataclass(frozen=True)
class SignedEnvelope:
    """A signed request. ``v`` is the y-parity (0 or 1)."""

    request: ConfidentialComputeRequest
    v: int
    r: int
    s: int

    @property
    def record(self) -> ConfidentialComputeRecord:
        return self.request.record

    @property
    def confidential_inputs(self) -> bytes:
        return self.request.confidential_inputs

    def encode(self) -> bytes:
        """Canonical wire bytes. The confidential input is not included."""
        rec = self.record
        fields = [
            rec.nonce,
            rec.gas_price,
            rec.gas,
            hex_to_bytes(rec.to),
            rec.value,
            rec.data,
            hex_to_bytes(rec.kettle_address),
            rec.confidential_inputs_hash,
            rec.chain_id,
            self.v,
            self.r,
            self.s,
        ]
        return bytes([CONFIDENTIAL_COMPUTE_RECORD_TX_TYPE]) + rlp.encode(fields)

    @property
    def raw_hex(self) -> str:
        return to_hex(self.encode())

    @property
    def hash(self) -> str:
        """keccak256 of the wire bytes, the id the node reports back."""
        return to_hex(keccak256(self.encode()))

    @property
    def signature(self) -> bytes:
        """65-byte r || s || v signature (v in 27/28 form)."""
        return self.r.to_bytes(32, "big") + self.s.to_bytes(32, "big") + bytes([self.v + 27])


def build_request(
    to: str,
    data: bytes,
    kettle_address: str,
    nonce: int,
    gas_price: int,
    confidential_inputs: bytes = b"",
    gas: int = DEFAULT_CONFIDENTIAL_GAS,
    value: int = 0,
    chain_id: int = DEFAULT_CHAIN_ID,
) -> ConfidentialComputeRequest:
    """
    Assemble a confidential compute request.

    ``nonce`` and ``gas_price`` should be queried right before building;
    nothing re-validates them before signing.

    Raises:
        InvalidRecordError: If a record field is malformed
    """
    record = ConfidentialComputeRecord(
        to=to,
        nonce=nonce,
        gas=gas,
        gas_price=gas_price,
        data=data,
        kettle_address=kettle_address,
        value=value,
        confidential_inputs_hash=hash_confidential_inputs(confidential_inputs),
        chain_id=chain_id,
    )
    return ConfidentialComputeRequest(record=record, confidential_inputs=bytes(confidential_inputs))


def sign_request(request: ConfidentialComputeRequest, account: LocalAccount) -> SignedEnvelope:
    """Sign the request's record with ``account`` (RFC 6979, deterministic)."""
    signed = account.sign_message(request.record.signable())
    return SignedEnvelope(request=request, v=signed.v - 27, r=signed.r, s=signed.s)


def recover_signer(envelope: SignedEnvelope) -> str:
    """Address that produced the envelope's signature over its record."""
    return Account.recover_message(
        envelope.record.signable(),
        vrs=(envelope.v + 27, envelope.r, envelope.s),
    )


def verify_envelope(envelope: SignedEnvelope, address: str) -> bool:
    return recover_signer(envelope).lower() == address.lower()


def decode_envelope(raw: bytes) -> SignedEnvelope:
    """
    Parse wire bytes back into an envelope.

    The confidential input is not part of the wire form, so the returned
    request carries an empty one.

    Raises:
        InvalidRecordError: If the bytes are not a well-formed envelope
    """
    if not raw or raw[0] != CONFIDENTIAL_COMPUTE_RECORD_TX_TYPE:
        raise InvalidRecordError("not a confidential compute record envelope")

    try:
        items = rlp.decode(raw[1:])
    except RLPDecodingError as exc:
        raise InvalidRecordError(f"malformed envelope: {exc}") from exc

    if not isinstance(items, list) or len(items) != 12:
        raise InvalidRecordError("malformed envelope: unexpected field count")
    if not all(isinstance(item, bytes) for item in items):
        raise InvalidRecordError("malformed envelope: nested list field")

    (nonce, gas_price, gas, to, value, data,
     kettle_address, inputs_hash, chain_id, v, r, s) = items

    def as_int(item: bytes) -> int:
        return int.from_bytes(item, "big")

    record = ConfidentialComputeRecord(
        to=to_hex(to),
        nonce=as_int(nonce),
        gas=as_int(gas),
        gas_price=as_int(gas_price),
        data=data,
        kettle_address=to_hex(kettle_address),
        value=as_int(value),
        confidential_inputs_hash=inputs_hash,
        chain_id=as_int(chain_id),
    )
    return SignedEnvelope(
        request=ConfidentialComputeRequest(record=record),
        v=as_int(v),
        r=as_int(r),
        s=as_int(s),
    )
