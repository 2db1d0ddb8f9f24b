"""
Sigil - Signing identity for kettlespell.

Resolves the secp256k1 account that signs confidential requests.
"""
