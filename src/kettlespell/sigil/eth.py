"""
ECDSA / secp256k1 key resolution for confidential requests.

The signing key comes from explicit configuration (flag, environment or
``~/.kettlespell/.env``). When none is configured, a caller-supplied
``DevKey`` may stand in, but only for the exact kettle it is bound to.

Dependencies: eth-account (no full web3.py needed)
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from eth_account import Account
from eth_account.signers.local import LocalAccount

from ..config import ENV_PRIVATE_KEY, KETTLESPELL_ENV, DevKey
from ..errors import InvalidKeyError, NoKeyConfiguredError
from ..utils import same_address

logger = logging.getLogger(__name__)

# secp256k1 group order
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


def parse_private_key(private_key: str) -> LocalAccount:
    """
    Parse a hex-encoded private key, with or without ``0x``.

    Raises:
        InvalidKeyError: If the string is not a valid secp256k1 scalar
    """
    value = private_key.strip()
    if not _KEY_RE.match(value):
        raise InvalidKeyError("private key must be 32 bytes of hex")

    scalar = int(value[2:] if value.startswith("0x") else value, 16)
    if not 0 < scalar < SECP256K1_N:
        raise InvalidKeyError("private key is outside the secp256k1 range")

    return Account.from_key(scalar.to_bytes(32, "big"))


def load_private_key(env_path: Optional[Path] = None) -> Optional[str]:
    """
    Load the private key from the environment or an env file.

    Args:
        env_path: Path to .env file (default: ~/.kettlespell/.env)

    Returns:
        The configured key string, or None if nothing is configured
    """
    env_path = env_path or KETTLESPELL_ENV

    if env_path.exists():
        load_dotenv(env_path, override=False)

    return os.environ.get(ENV_PRIVATE_KEY) or None


def resolve_account(
    private_key: Optional[str],
    kettle_address: str,
    dev_key: Optional[DevKey] = None,
) -> LocalAccount:
    """
    Resolve the account that signs requests for ``kettle_address``.

    Args:
        private_key: Explicitly configured hex key, if any
        kettle_address: The resolved kettle address
        dev_key: Optional development key, bound to a single kettle

    Raises:
        InvalidKeyError: If the explicit key (or dev key) is malformed
        NoKeyConfiguredError: If no key applies to this kettle
    """
    if private_key:
        return parse_private_key(private_key)

    if dev_key is not None and same_address(dev_key.kettle_address, kettle_address):
        logger.info("Running with local devchain settings")
        return parse_private_key(dev_key.private_key)

    raise NoKeyConfiguredError("no private key set")
