"""
Configuration defaults and environment loading.

Values come from (in order) explicit arguments, the process environment,
and ``~/.kettlespell/.env``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


# ============ Defaults ============

DEFAULT_RPC_URL = "http://localhost:8545"
DEFAULT_ARTIFACTS_DIR = "out"

DEFAULT_CONFIDENTIAL_GAS = 10_000_000
DEFAULT_DEPLOY_GAS = 3_000_000

RECEIPT_TIMEOUT = 5 * 60.0
POLL_INTERVAL = 0.1

RPC_TIMEOUT = 30.0

# Used for the EIP-712 domain when the endpoint is not asked for its chain id.
DEFAULT_CHAIN_ID = 1337

# Well-known local devchain identity. Not a secret: it is the funded
# account of the development genesis and must only ever sign for the
# devchain kettle.
DEVCHAIN_KETTLE_ADDRESS = "0xB5fEAfbDD752ad52Afb7e1bD2E40432A485bBB7F"
DEVCHAIN_PRIVATE_KEY = "91ab9a7e53c220e6210460b65a7a3bb2ca181412a8a7b43ff336b3df1737ce12"

# ============ Environment ============

ENV_RPC = "KETTLE_RPC"
ENV_KETTLE_ADDRESS = "KETTLE_ADDRESS"
ENV_PRIVATE_KEY = "PRIVATE_KEY"
ENV_ARTIFACTS = "KETTLE_ARTIFACTS"

KETTLESPELL_DIR = Path.home() / ".kettlespell"
KETTLESPELL_ENV = KETTLESPELL_DIR / ".env"


@dataclass(frozen=True)
class DevKey:
    """A fallback signing key bound to exactly one kettle address."""

    kettle_address: str
    private_key: str


DEVCHAIN_DEV_KEY = DevKey(
    kettle_address=DEVCHAIN_KETTLE_ADDRESS,
    private_key=DEVCHAIN_PRIVATE_KEY,
)


def load_env(env_path: Optional[Path] = None) -> Optional[Path]:
    """
    Load an env file into ``os.environ`` without overriding set variables.

    Returns:
        The path that was loaded, or None if it does not exist.
    """
    env_path = env_path or KETTLESPELL_ENV
    if not env_path.exists():
        return None
    load_dotenv(env_path, override=False)
    return env_path


@dataclass(frozen=True)
class SpellConfig:
    rpc_url: str = DEFAULT_RPC_URL
    kettle_address: Optional[str] = None
    private_key: Optional[str] = None
    artifacts_dir: Path = Path(DEFAULT_ARTIFACTS_DIR)
    receipt_timeout: float = RECEIPT_TIMEOUT
    poll_interval: float = POLL_INTERVAL
    dev_key: Optional[DevKey] = DEVCHAIN_DEV_KEY

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None) -> "SpellConfig":
        load_env(env_path)
        return cls(
            rpc_url=os.environ.get(ENV_RPC, DEFAULT_RPC_URL),
            kettle_address=os.environ.get(ENV_KETTLE_ADDRESS) or None,
            private_key=os.environ.get(ENV_PRIVATE_KEY) or None,
            artifacts_dir=Path(os.environ.get(ENV_ARTIFACTS, DEFAULT_ARTIFACTS_DIR)),
        )


# ============ Logging ============

LOG_FORMAT = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"


def setup_logging(level: int = logging.INFO, logger_name: str = "kettlespell") -> logging.Logger:
    """Attach a single console handler to the package logger."""
    logger = logging.getLogger(logger_name)
    logger.setLevel(level)

    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger
