from __future__ import annotations

from eth_hash.auto import keccak
from eth_utils import is_address, to_checksum_address

ZERO_ADDRESS = "0x" + "00" * 20


def keccak256(data: bytes) -> bytes:
    # NOTE: Keccak-256 != SHA3-256 (NIST). Never use hashlib.sha3_256 here.
    return keccak(data)


def to_hex(data: bytes) -> str:
    return "0x" + bytes(data).hex()


def hex_to_bytes(value: str) -> bytes:
    if value.startswith(("0x", "0X")):
        value = value[2:]
    return bytes.fromhex(value)


def hex_to_int(value: str | int | None) -> int:
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    return int(value, 16)


def checksum(address: str) -> str:
    """Validate an address and return it in EIP-55 form.

    Mixed-case input is not checksum-verified, only normalized.
    """
    if not isinstance(address, str) or not is_address(address.lower()):
        raise ValueError(f"Invalid address: {address!r}")
    return to_checksum_address(address)


def same_address(a: str, b: str) -> bool:
    return hex_to_bytes(a) == hex_to_bytes(b)


def is_zero_address(address: str) -> bool:
    return same_address(address, ZERO_ADDRESS)


def parse_confidential_input(raw: str | None) -> bytes:
    """
    Interpret a confidential input given on the command line.

    ``0x``-prefixed strings are hex-decoded; anything else is taken
    literally as UTF-8 bytes. None or empty means no input.
    """
    if not raw:
        return b""
    if raw.startswith("0x"):
        return hex_to_bytes(raw)
    return raw.encode("utf-8")
