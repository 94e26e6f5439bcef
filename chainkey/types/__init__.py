"""Type definitions for chainkey."""

# Common types
from ..types.common import (
    HexStr,
    Wei,
    ChainId,
    Address,
    ChecksumAddress,
    Hash32,
    PrivateKeyBytes,
    PublicKeyBytes,
    HexOrBytes,
)

# Transaction types
from ..types.transaction import (
    AccessListEntry,
    LegacyTransaction,
    AccessListTransaction,
    FeeMarketTransaction,
    UnsignedTransaction,
    SignedTransaction,
    transaction_from_dict,
)

__all__ = [
    # Common
    "HexStr",
    "Wei",
    "ChainId",
    "Address",
    "ChecksumAddress",
    "Hash32",
    "PrivateKeyBytes",
    "PublicKeyBytes",
    "HexOrBytes",

    # Transaction
    "AccessListEntry",
    "LegacyTransaction",
    "AccessListTransaction",
    "FeeMarketTransaction",
    "UnsignedTransaction",
    "SignedTransaction",
    "transaction_from_dict",
]
