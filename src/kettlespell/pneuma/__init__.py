"""
Pneuma - Kettle interaction layer.

JSON-RPC endpoint, confidential compute request construction and
signing, submission, receipt polling, and event decoding.

Uses httpx + eth-account + eth-abi instead of the heavyweight web3.py.
"""
