"""Cryptographic primitives for chainkey."""

from ..crypto.address import (
    address_from_public_key,
    address_to_bytes,
    from_lattice_address,
    is_checksum_address,
    to_checksum_address,
    to_lattice_address,
    validate_address,
)
from ..crypto.bip39 import Mnemonic, from_entropy, from_words, generate, is_valid_mnemonic, to_seed
from ..crypto.hd import ExtendedKey, derive_child, derive_path, master_from_seed
from ..crypto.keys import PrivateKey, PublicKey
from ..crypto.keystore import (
    CipherParams,
    Keystore,
    KeystoreLayout,
    Pbkdf2Params,
    ScryptParams,
    decrypt,
    decrypt_async,
    encrypt,
    encrypt_async,
)
from ..crypto.path import DerivationPath, PathSegment, coin_path, format_path, parse_path, standard_path
from ..crypto.secret import SecretBytes
from ..crypto.signature import (
    Signature,
    hash_message,
    recover_message_signer,
    recover_public_key,
    sign_hash,
    sign_message,
    verify_signature,
)
from ..crypto.transaction_signing import (
    decode_signed_transaction,
    recover_sender,
    serialize_unsigned,
    sign_transaction,
    signing_hash,
)

__all__ = [
    # Secrets and keys
    "SecretBytes",
    "PrivateKey",
    "PublicKey",

    # Mnemonic
    "Mnemonic",
    "generate",
    "from_entropy",
    "from_words",
    "to_seed",
    "is_valid_mnemonic",

    # Paths and key tree
    "PathSegment",
    "DerivationPath",
    "parse_path",
    "format_path",
    "standard_path",
    "coin_path",
    "ExtendedKey",
    "master_from_seed",
    "derive_child",
    "derive_path",

    # Addresses
    "address_from_public_key",
    "address_to_bytes",
    "to_checksum_address",
    "is_checksum_address",
    "validate_address",
    "to_lattice_address",
    "from_lattice_address",

    # Keystore
    "ScryptParams",
    "Pbkdf2Params",
    "CipherParams",
    "Keystore",
    "KeystoreLayout",
    "encrypt",
    "decrypt",
    "encrypt_async",
    "decrypt_async",

    # Signing
    "Signature",
    "sign_hash",
    "recover_public_key",
    "verify_signature",
    "hash_message",
    "sign_message",
    "recover_message_signer",
    "serialize_unsigned",
    "signing_hash",
    "sign_transaction",
    "decode_signed_transaction",
    "recover_sender",
]
