"""Account address derivation for chainkey."""

from typing import Optional, Union

from ..constants import ADDRESS_LENGTH, LATTICE_ADDRESS_PREFIX, LATTICE_ADDRESS_VERSION
from ..exceptions import InvalidAddress, ValidationError
from ..registry import AddressFormat, CoinInfo, ETHEREUM
from ..types.common import Address
from ..utils.encoding import (
    decode_base58_check,
    encode_base58_check,
    hex_to_bytes,
    keccak256,
    sha256,
)
from ..utils.validation import (
    is_checksum_address,
    is_valid_address,
    to_checksum_address,
    validate_address,
    validate_address_bytes,
)
from .keys import PublicKey

__all__ = [
    "address_from_public_key",
    "address_to_bytes",
    "to_checksum_address",
    "is_checksum_address",
    "is_valid_address",
    "validate_address",
    "to_lattice_address",
    "from_lattice_address",
]

_HASHERS = {
    "keccak256": keccak256,
    "sha256": sha256,
}


def address_from_public_key(
    public_key: Union[PublicKey, bytes, str],
    checksum: bool = True,
    coin: Optional[CoinInfo] = None
) -> str:
    """
    Derive the account address of a public key.

    The uncompressed key minus its 0x04 prefix is hashed with the coin's
    address hash and the trailing 20 bytes form the address.

    Args:
        public_key: PublicKey, or its bytes/hex in any SEC1 encoding
        checksum: Apply EIP-55 mixed-case checksum (EVM format only)
        coin: Registry entry selecting hash and text format (default: ethereum)

    Returns:
        0x-prefixed hex address, or zltc_ address for the lattice format

    Raises:
        InvalidPublicKey: If the public key is malformed
    """
    if not isinstance(public_key, PublicKey):
        public_key = PublicKey(public_key)
    coin = coin or ETHEREUM

    digest = _HASHERS[coin.address_hash](public_key.uncompressed[1:])
    address_bytes = digest[-ADDRESS_LENGTH:]

    if coin.address_format == AddressFormat.LATTICE:
        return to_lattice_address(address_bytes)

    address = Address("0x" + address_bytes.hex())
    if checksum:
        return to_checksum_address(address)
    return address


def address_to_bytes(address: str) -> bytes:
    """
    Validate an address and return its 20 raw bytes.

    Raises:
        InvalidAddress: If the address is malformed or has a bad checksum
    """
    if address.startswith(LATTICE_ADDRESS_PREFIX):
        return from_lattice_address(address)
    return hex_to_bytes(validate_address(address))


def to_lattice_address(address: Union[bytes, str]) -> str:
    """
    Encode a 20-byte address in the lattice text format.

    Format: ``zltc_`` + Base58Check(0x01 || address).
    """
    if isinstance(address, str):
        address = address_to_bytes(address)
    validate_address_bytes(address)
    return LATTICE_ADDRESS_PREFIX + encode_base58_check(bytes([LATTICE_ADDRESS_VERSION]) + address)


def from_lattice_address(address: str) -> bytes:
    """
    Decode a lattice address to its 20 raw bytes.

    Raises:
        InvalidAddress: If prefix, version, length or checksum is wrong
    """
    if not address.startswith(LATTICE_ADDRESS_PREFIX):
        raise InvalidAddress(f"Lattice address must start with {LATTICE_ADDRESS_PREFIX}")
    try:
        payload = decode_base58_check(address[len(LATTICE_ADDRESS_PREFIX):])
    except ValidationError as e:
        raise InvalidAddress(f"Invalid lattice address: {e.message}") from e
    if not payload or payload[0] != LATTICE_ADDRESS_VERSION:
        raise InvalidAddress("Invalid lattice address version")
    return validate_address_bytes(payload[1:])
