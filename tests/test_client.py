"""KettleClient session tests against a scripted endpoint."""

from __future__ import annotations

import pytest
from eth_abi import encode
from eth_account import Account

from kettlespell.client import KettleClient, report_receipt
from kettlespell.config import DevKey, SpellConfig
from kettlespell.errors import NoKeyConfiguredError, TransactionFailedError
from kettlespell.pneuma.abi import EventDescriptor, MethodEncoder
from kettlespell.pneuma.ccr import decode_envelope, recover_signer
from kettlespell.pneuma.receipt import Receipt
from kettlespell.utils import hex_to_bytes, keccak256, to_hex

TEST_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
CONTRACT = "0x" + "aa" * 20
KETTLE = "0x" + "11" * 20

BID_EVENT = {
    "type": "event",
    "name": "BidEvent",
    "inputs": [
        {"name": "bidId", "type": "bytes16"},
        {"name": "decryptionCondition", "type": "uint64"},
        {"name": "allowedPeekers", "type": "address[]"},
    ],
}


class TestConnect:
    def test_resolves_kettle_and_key(self, make_endpoint) -> None:
        endpoint = make_endpoint(kettles=(KETTLE,))
        client = KettleClient.connect(endpoint, private_key=TEST_KEY)

        assert client.kettle_address == KETTLE
        assert client.address == Account.from_key(TEST_KEY).address

    def test_dev_key_only_for_its_kettle(self, make_endpoint) -> None:
        dev = DevKey(kettle_address="0x" + "22" * 20, private_key=TEST_KEY)
        with pytest.raises(NoKeyConfiguredError):
            KettleClient.connect(make_endpoint(kettles=(KETTLE,)), dev_key=dev)

        client = KettleClient.connect(make_endpoint(kettles=("0x" + "22" * 20,)), dev_key=dev)
        assert client.address == Account.from_key(TEST_KEY).address

    def test_from_config(self, make_endpoint) -> None:
        config = SpellConfig(private_key=TEST_KEY, receipt_timeout=12.0, poll_interval=0.5, dev_key=None)
        client = KettleClient.from_config(make_endpoint(), config)

        assert client.receipt_timeout == 12.0
        assert client.poll_interval == 0.5

    def test_chain_id_is_queried_once(self, make_endpoint, account) -> None:
        endpoint = make_endpoint(chain_id=16813125)
        client = KettleClient(endpoint, account, KETTLE)

        assert client.chain_id == 16813125
        assert client.chain_id == 16813125
        assert endpoint.calls.count("eth_chainId") == 1


class TestConfidentialRequest:
    def test_signs_with_fresh_nonce_and_gas_price(self, make_endpoint, account) -> None:
        endpoint = make_endpoint(nonce=9, gas_price=33)
        client = KettleClient(endpoint, account, KETTLE)

        envelope = client.sign_confidential_request(CONTRACT, b"\x01\x02", b"secret")

        assert envelope.record.nonce == 9
        assert envelope.record.gas_price == 33
        assert envelope.record.gas == 10_000_000
        assert envelope.record.chain_id == 1337
        assert envelope.record.confidential_inputs_hash == keccak256(b"secret")
        assert recover_signer(envelope) == account.address

    def test_submits_envelope_and_input_together(self, make_endpoint, account) -> None:
        endpoint = make_endpoint()
        client = KettleClient(endpoint, account, KETTLE)

        result = client.confidential_request(CONTRACT, b"\x01", b"secret")

        assert len(endpoint.sent) == 1
        raw_hex, inputs_hex = endpoint.sent[0]
        assert inputs_hex == to_hex(b"secret")
        assert result.hash == to_hex(keccak256(hex_to_bytes(raw_hex)))

        decoded = decode_envelope(hex_to_bytes(raw_hex))
        assert decoded.record.to.lower() == CONTRACT
        assert decoded.record.kettle_address.lower() == KETTLE
        assert recover_signer(decoded) == account.address

    def test_confidential_call_with_any_encoder(self, make_endpoint, account) -> None:
        class FixedEncoder:
            def encode(self, values=()):
                return b"\xca\xfe" + bytes(values)

        endpoint = make_endpoint()
        client = KettleClient(endpoint, account, KETTLE)
        client.confidential_call(CONTRACT, FixedEncoder(), [1, 2])

        decoded = decode_envelope(hex_to_bytes(endpoint.sent[0][0]))
        assert decoded.record.data == b"\xca\xfe\x01\x02"

    def test_confidential_call_with_method_encoder(self, make_endpoint, account) -> None:
        endpoint = make_endpoint()
        client = KettleClient(endpoint, account, KETTLE)
        encoder = MethodEncoder.from_signature("emitBid(uint256)")
        client.confidential_call(CONTRACT, encoder, ["7"])

        decoded = decode_envelope(hex_to_bytes(endpoint.sent[0][0]))
        assert decoded.record.data == encoder.selector + (7).to_bytes(32, "big")

    def test_result_uses_session_poll_settings(self, make_endpoint, account, receipt_rpc) -> None:
        endpoint = make_endpoint(receipts=[None, receipt_rpc()])
        client = KettleClient(endpoint, account, KETTLE, receipt_timeout=5, poll_interval=0.001)

        result = client.confidential_request(CONTRACT, b"")
        assert result.timeout == 5
        assert result.poll_interval == 0.001
        assert result.wait().succeeded
        assert endpoint.receipt_polls == 2


class TestDeploy:
    def test_sends_signed_creation_tx(self, make_endpoint, account) -> None:
        endpoint = make_endpoint(nonce=1, gas_price=7)
        client = KettleClient(endpoint, account, KETTLE)

        result = client.deploy(bytes.fromhex("6080604052"), gas_limit=500_000)

        assert len(endpoint.sent) == 1
        (raw_hex,) = endpoint.sent[0]
        assert result.hash == to_hex(keccak256(hex_to_bytes(raw_hex)))
        assert Account.recover_transaction(raw_hex) == account.address


class TestReportReceipt:
    def test_without_logs(self) -> None:
        receipt = Receipt(transaction_hash="0x01", status=1, block_number=12)
        assert report_receipt(receipt) == ["Transaction mined status=1 blockNum=12"]

    def test_with_logs(self) -> None:
        descriptor = EventDescriptor.from_abi(BID_EVENT)
        data = encode(["bytes16", "uint64", "address[]"], [b"\x02" * 16, 3, []])
        receipt = Receipt.from_rpc({
            "transactionHash": "0x01",
            "status": "0x1",
            "blockNumber": "0xc",
            "logs": [
                {"address": CONTRACT, "topics": [to_hex(descriptor.topic)], "data": to_hex(data)},
                {"address": CONTRACT, "topics": [], "data": "0x"},
            ],
        })

        lines = report_receipt(receipt, [descriptor])

        assert lines[0] == "Transaction mined status=1 blockNum=12"
        assert lines[1] == "Logs emitted in the onchain transaction numLogs=2"
        assert lines[2] == f"BidEvent(bytes16,uint64,address[]) bidId=0x{'02' * 16} decryptionCondition=3 allowedPeekers=[]"
        assert lines[3] == f"address={CONTRACT} numTopics=0 topic1=<none>"

    def test_failed_receipt(self) -> None:
        receipt = Receipt(transaction_hash="0xdead", status=0, block_number=12)
        with pytest.raises(TransactionFailedError, match="0xdead"):
            report_receipt(receipt)
