"""
chainkey

Key management and transaction signing core for EVM-style chains: BIP39
mnemonics, BIP32/BIP44 key trees, checksummed addresses, encrypted keystores
and deterministic transaction signing.
"""

from .constants import TransactionType
from .exceptions import (
    ChainKeyError,
    ValidationError,
    CryptoError,
    TransactionError,
    WalletError,
    SerializationError,
    InvalidEntropyLength,
    InvalidMnemonic,
    InvalidChecksum,
    InvalidSeed,
    InvalidDerivationPath,
    HardenedFromPublicOnly,
    InvalidChildKey,
    InvalidPublicKey,
    InvalidAddress,
    KeystoreDecryptionFailed,
    UnsupportedTransactionType,
    SigningError,
)
from .registry import CoinInfo, CoinRegistry, DEFAULT_REGISTRY
from .crypto import (
    SecretBytes,
    PrivateKey,
    PublicKey,
    Mnemonic,
    DerivationPath,
    ExtendedKey,
    Keystore,
    KeystoreLayout,
    Signature,
    address_from_public_key,
    sign_transaction,
)
from .modules import HDWallet, LocalAccount, KeystoreAccount
from .types import (
    LegacyTransaction,
    AccessListTransaction,
    FeeMarketTransaction,
    SignedTransaction,
    transaction_from_dict,
)

__version__ = "1.0.0"

__all__ = [
    # Wallets
    "HDWallet",
    "LocalAccount",
    "KeystoreAccount",

    # Registry
    "CoinInfo",
    "CoinRegistry",
    "DEFAULT_REGISTRY",

    # Exceptions
    "ChainKeyError",
    "ValidationError",
    "CryptoError",
    "TransactionError",
    "WalletError",
    "SerializationError",
    "InvalidEntropyLength",
    "InvalidMnemonic",
    "InvalidChecksum",
    "InvalidSeed",
    "InvalidDerivationPath",
    "HardenedFromPublicOnly",
    "InvalidChildKey",
    "InvalidPublicKey",
    "InvalidAddress",
    "KeystoreDecryptionFailed",
    "UnsupportedTransactionType",
    "SigningError",

    # Crypto
    "SecretBytes",
    "PrivateKey",
    "PublicKey",
    "Mnemonic",
    "DerivationPath",
    "ExtendedKey",
    "Keystore",
    "KeystoreLayout",
    "Signature",
    "address_from_public_key",
    "sign_transaction",

    # Types
    "TransactionType",
    "LegacyTransaction",
    "AccessListTransaction",
    "FeeMarketTransaction",
    "SignedTransaction",
    "transaction_from_dict",
]
