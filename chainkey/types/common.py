"""Common type definitions for chainkey."""

from typing import NewType, Union

__all__ = [
    "HexStr",
    "Address",
    "ChecksumAddress",
    "Hash32",
    "Wei",
    "ChainId",
    "PrivateKeyBytes",
    "PublicKeyBytes",
    "HexOrBytes",
]

# Basic types
HexStr = NewType("HexStr", str)
"""Hexadecimal string representation."""

Wei = NewType("Wei", int)
"""Native currency amount in its smallest unit."""

ChainId = NewType("ChainId", int)
"""EIP-155 chain identifier."""

# Identifiers
Address = NewType("Address", str)
"""0x-prefixed 40 hex character account address."""

ChecksumAddress = NewType("ChecksumAddress", str)
"""Address in EIP-55 mixed-case checksum form."""

Hash32 = NewType("Hash32", bytes)
"""32-byte digest."""

# Crypto types
PrivateKeyBytes = NewType("PrivateKeyBytes", bytes)
"""32-byte private key."""

PublicKeyBytes = NewType("PublicKeyBytes", bytes)
"""33 or 65 byte public key."""

# Type aliases
HexOrBytes = Union[HexStr, str, bytes]
"""Raw bytes or their hex encoding."""
