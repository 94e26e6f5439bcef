"""Protocol constants for chainkey."""

from enum import IntEnum

__all__ = [
    "SECP256K1_ORDER",
    "SECP256K1_HALF_ORDER",
    "HARDENED_OFFSET",
    "MAX_CHILD_INDEX",
    "BIP32_SEED_KEY",
    "BIP44_PURPOSE",
    "MIN_SEED_LENGTH",
    "MAX_SEED_LENGTH",
    "ExtendedKeyVersion",
    "BIP39_ENTROPY_BITS",
    "BIP39_WORD_COUNTS",
    "BIP39_PBKDF2_ROUNDS",
    "BIP39_SALT_PREFIX",
    "SEED_LENGTH",
    "DEFAULT_LANGUAGE",
    "ADDRESS_LENGTH",
    "LATTICE_ADDRESS_PREFIX",
    "LATTICE_ADDRESS_VERSION",
    "KEYSTORE_VERSION",
    "KEYSTORE_CIPHER",
    "SCRYPT_DEFAULT_N",
    "SCRYPT_DEFAULT_R",
    "SCRYPT_DEFAULT_P",
    "PBKDF2_DEFAULT_ITERATIONS",
    "KEYSTORE_DKLEN",
    "KEYSTORE_SALT_SIZE",
    "KEYSTORE_IV_SIZE",
    "TransactionType",
    "EIP155_CHAIN_ID_OFFSET",
    "LEGACY_V_OFFSET",
    "PERSONAL_MESSAGE_PREFIX",
]

# secp256k1 group order
SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECP256K1_HALF_ORDER = SECP256K1_ORDER // 2

# BIP32
HARDENED_OFFSET = 0x80000000
MAX_CHILD_INDEX = HARDENED_OFFSET - 1
BIP32_SEED_KEY = b"Bitcoin seed"
MIN_SEED_LENGTH = 16
MAX_SEED_LENGTH = 64


class ExtendedKeyVersion(IntEnum):
    """Version bytes of serialized extended keys."""
    MAINNET_PRIVATE = 0x0488ADE4  # xprv
    MAINNET_PUBLIC = 0x0488B21E   # xpub
    TESTNET_PRIVATE = 0x04358394  # tprv
    TESTNET_PUBLIC = 0x043587CF   # tpub


# BIP44
BIP44_PURPOSE = 44

# BIP39
BIP39_ENTROPY_BITS = (128, 160, 192, 224, 256)
BIP39_WORD_COUNTS = (12, 15, 18, 21, 24)
BIP39_PBKDF2_ROUNDS = 2048
BIP39_SALT_PREFIX = "mnemonic"
SEED_LENGTH = 64
DEFAULT_LANGUAGE = "english"

# Addresses
ADDRESS_LENGTH = 20
LATTICE_ADDRESS_PREFIX = "zltc_"
LATTICE_ADDRESS_VERSION = 0x01

# Keystore (Web3 Secret Storage v3)
KEYSTORE_VERSION = 3
KEYSTORE_CIPHER = "aes-128-ctr"
SCRYPT_DEFAULT_N = 262144
SCRYPT_DEFAULT_R = 8
SCRYPT_DEFAULT_P = 1
PBKDF2_DEFAULT_ITERATIONS = 262144
KEYSTORE_DKLEN = 32
KEYSTORE_SALT_SIZE = 32
KEYSTORE_IV_SIZE = 16


class TransactionType(IntEnum):
    """Transaction envelope type tags."""
    LEGACY = 0x00
    ACCESS_LIST = 0x01   # EIP-2930
    FEE_MARKET = 0x02    # EIP-1559


# EIP-155 replay protection: v = recovery_id + chain_id * 2 + 35
EIP155_CHAIN_ID_OFFSET = 35
# Pre-EIP-155 legacy signatures: v = recovery_id + 27
LEGACY_V_OFFSET = 27

# EIP-191 version 0x45
PERSONAL_MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n"
