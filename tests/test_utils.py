"""Tests for kettlespell.utils and kettlespell.config."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from kettlespell.config import (
    DEFAULT_RPC_URL,
    DEVCHAIN_DEV_KEY,
    POLL_INTERVAL,
    RECEIPT_TIMEOUT,
    SpellConfig,
    load_env,
    setup_logging,
)
from kettlespell.utils import (
    checksum,
    hex_to_bytes,
    hex_to_int,
    is_zero_address,
    keccak256,
    parse_confidential_input,
    same_address,
    to_hex,
)


class TestHex:
    def test_roundtrip(self) -> None:
        assert to_hex(b"\x01\xff") == "0x01ff"
        assert hex_to_bytes("0x01ff") == b"\x01\xff"
        assert hex_to_bytes("0X01ff") == b"\x01\xff"
        assert hex_to_bytes("01ff") == b"\x01\xff"

    @pytest.mark.parametrize("value,expected", [(None, 0), (7, 7), ("0x0", 0), ("0x539", 1337)])
    def test_hex_to_int(self, value, expected: int) -> None:
        assert hex_to_int(value) == expected

    def test_keccak_is_not_sha3(self) -> None:
        assert keccak256(b"").hex() == "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"


class TestAddresses:
    def test_checksum(self) -> None:
        assert checksum("0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed") == "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"

    def test_checksum_does_not_verify_mixed_case(self) -> None:
        assert checksum("0x5AAeb6053f3e94c9b9a09f33669435e7ef1beaed") == "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"

    @pytest.mark.parametrize("value", ["", "0x12", "hello", None])
    def test_invalid(self, value) -> None:
        with pytest.raises(ValueError, match="Invalid address"):
            checksum(value)

    def test_same_address_ignores_case(self) -> None:
        assert same_address("0x" + "ab" * 20, "0x" + "AB" * 20)
        assert not same_address("0x" + "ab" * 20, "0x" + "ab" * 19 + "ac")

    def test_zero_address(self) -> None:
        assert is_zero_address("0x" + "00" * 20)
        assert not is_zero_address("0x" + "00" * 19 + "01")


class TestParseConfidentialInput:
    def test_empty(self) -> None:
        assert parse_confidential_input(None) == b""
        assert parse_confidential_input("") == b""

    def test_hex(self) -> None:
        assert parse_confidential_input("0xdeadbeef") == b"\xde\xad\xbe\xef"

    def test_literal_text(self) -> None:
        assert parse_confidential_input("my secret bid") == b"my secret bid"

    def test_bad_hex(self) -> None:
        with pytest.raises(ValueError):
            parse_confidential_input("0xzz")


class TestConfig:
    def test_load_env_missing(self, tmp_path: Path) -> None:
        assert load_env(tmp_path / "nope.env") is None

    def test_load_env_does_not_override(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("KETTLE_RPC=http://from-file:8545\nKETTLE_ADDRESS=0xabc\n", encoding="utf-8")

        with patch.dict(os.environ, {"KETTLE_RPC": "http://from-env:8545"}, clear=True):
            assert load_env(env_file) == env_file
            assert os.environ["KETTLE_RPC"] == "http://from-env:8545"
            assert os.environ["KETTLE_ADDRESS"] == "0xabc"

    def test_spell_config_defaults(self, tmp_path: Path) -> None:
        with patch.dict(os.environ, {}, clear=True):
            config = SpellConfig.from_env(tmp_path / "nope.env")

        assert config.rpc_url == DEFAULT_RPC_URL
        assert config.kettle_address is None
        assert config.private_key is None
        assert config.artifacts_dir == Path("out")
        assert config.receipt_timeout == RECEIPT_TIMEOUT == 300.0
        assert config.poll_interval == POLL_INTERVAL == 0.1
        assert config.dev_key == DEVCHAIN_DEV_KEY

    def test_spell_config_from_env(self, tmp_path: Path) -> None:
        env = {
            "KETTLE_RPC": "http://node:8545",
            "KETTLE_ADDRESS": "0x" + "11" * 20,
            "PRIVATE_KEY": "0x" + "01" * 32,
            "KETTLE_ARTIFACTS": "build/out",
        }
        with patch.dict(os.environ, env, clear=True):
            config = SpellConfig.from_env(tmp_path / "nope.env")

        assert config.rpc_url == "http://node:8545"
        assert config.kettle_address == "0x" + "11" * 20
        assert config.private_key == "0x" + "01" * 32
        assert config.artifacts_dir == Path("build/out")

    def test_setup_logging_is_idempotent(self) -> None:
        logger = setup_logging(logging.DEBUG, logger_name="kettlespell.test")
        setup_logging(logging.DEBUG, logger_name="kettlespell.test")
        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
