"""Validation utilities for chainkey."""

import re
from typing import Union

from ..constants import ADDRESS_LENGTH, SECP256K1_ORDER
from ..exceptions import InvalidAddress, InvalidPublicKey, ValidationError
from ..types.common import Address, ChecksumAddress
from ..utils.encoding import keccak256

__all__ = [
    "is_valid_address",
    "validate_address",
    "to_checksum_address",
    "is_checksum_address",
    "is_valid_private_key",
    "validate_private_key",
    "is_valid_public_key",
    "validate_public_key",
    "validate_hex",
    "validate_address_bytes",
]

# Regex patterns
HEX_PATTERN = re.compile(r"[0-9a-fA-F]*")
ADDRESS_PATTERN = re.compile(r"0[xX][0-9a-fA-F]{40}")


def validate_hex(value: Union[str, bytes], name: str = "value") -> bytes:
    """
    Accept bytes or a hex string (optionally 0x-prefixed) and return bytes.

    Raises:
        ValidationError: If the string is not even-length hexadecimal
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be bytes or hex string")
    if value[:2] in ("0x", "0X"):
        value = value[2:]
    if not HEX_PATTERN.fullmatch(value) or len(value) % 2:
        raise ValidationError(f"{name} must be hexadecimal")
    try:
        return bytes.fromhex(value)
    except ValueError as e:
        raise ValidationError(f"{name} must be hexadecimal") from e


def to_checksum_address(address: str) -> ChecksumAddress:
    """
    Apply EIP-55 mixed-case checksum to an address.

    Each hex letter is upper-cased when the matching nibble of
    keccak256(lowercase hex address) is 8 or more.

    Args:
        address: Address in any case

    Returns:
        Checksummed address

    Raises:
        InvalidAddress: If address is malformed
    """
    if not isinstance(address, str) or not ADDRESS_PATTERN.fullmatch(address):
        raise InvalidAddress(f"Invalid address: {address!r}")
    lower = address[2:].lower()
    digest = keccak256(lower.encode("ascii")).hex()
    checksummed = "".join(
        char.upper() if int(nibble, 16) >= 8 else char
        for char, nibble in zip(lower, digest)
    )
    return ChecksumAddress("0x" + checksummed)


def is_checksum_address(address: str) -> bool:
    """Check that an address carries a correct EIP-55 checksum."""
    try:
        return to_checksum_address(address) == address
    except InvalidAddress:
        return False


def validate_address(address: str) -> Address:
    """
    Validate address and return normalized (lowercase) form.

    All-lowercase and all-uppercase addresses carry no checksum and are
    accepted as-is; mixed-case addresses must match their EIP-55 checksum.

    Args:
        address: Address to validate

    Returns:
        0x-prefixed lowercase address

    Raises:
        InvalidAddress: If address is invalid
    """
    if not address:
        raise InvalidAddress("Address cannot be empty")
    if not isinstance(address, str) or not ADDRESS_PATTERN.fullmatch(address):
        raise InvalidAddress(f"Invalid address: {address!r}")

    body = address[2:]
    if body != body.lower() and body != body.upper():
        if to_checksum_address(address) != "0x" + body:
            raise InvalidAddress(f"Invalid address checksum: {address}")

    return Address("0x" + body.lower())


def is_valid_address(address: str) -> bool:
    """
    Check if address format (and checksum, when mixed-case) is valid.

    Args:
        address: Address to validate

    Returns:
        True if valid, False otherwise
    """
    try:
        validate_address(address)
        return True
    except InvalidAddress:
        return False


def is_valid_private_key(key: Union[str, bytes]) -> bool:
    """
    Check if private key is valid.

    Args:
        key: Private key as hex string or bytes

    Returns:
        True if valid, False otherwise
    """
    try:
        validate_private_key(key)
        return True
    except ValidationError:
        return False


def validate_private_key(key: Union[str, bytes]) -> bytes:
    """
    Validate private key and return as bytes.

    Args:
        key: Private key as hex string or bytes

    Returns:
        Private key bytes (32 bytes)

    Raises:
        ValidationError: If private key is invalid
    """
    if isinstance(key, str):
        key = validate_hex(key, "Private key")
    elif isinstance(key, (bytes, bytearray)):
        key = bytes(key)
    else:
        raise ValidationError("Private key must be bytes or hex string")

    if len(key) != 32:
        raise ValidationError(f"Private key must be 32 bytes, got {len(key)}")

    key_int = int.from_bytes(key, "big")

    if key_int == 0:
        raise ValidationError("Private key cannot be zero")
    if key_int >= SECP256K1_ORDER:
        raise ValidationError("Private key exceeds curve order")

    return key


def is_valid_public_key(key: Union[str, bytes]) -> bool:
    """
    Check if public key format is valid.

    Args:
        key: Public key as hex string or bytes

    Returns:
        True if valid, False otherwise
    """
    try:
        validate_public_key(key)
        return True
    except ValidationError:
        return False


def validate_public_key(key: Union[str, bytes]) -> bytes:
    """
    Validate public key encoding and return as bytes.

    Raw 64-byte keys (uncompressed without the 0x04 prefix) are returned with
    the prefix restored. Curve membership is checked when the key is loaded.

    Args:
        key: Public key as hex string or bytes

    Returns:
        Public key bytes (33 or 65 bytes)

    Raises:
        InvalidPublicKey: If public key is invalid
    """
    try:
        key = validate_hex(key, "Public key")
    except ValidationError as e:
        raise InvalidPublicKey(e.message) from e

    if len(key) == 64:
        key = b"\x04" + key
    if len(key) == 33:
        if key[0] not in (0x02, 0x03):
            raise InvalidPublicKey("Compressed public key must start with 0x02 or 0x03")
    elif len(key) == 65:
        if key[0] != 0x04:
            raise InvalidPublicKey("Uncompressed public key must start with 0x04")
    else:
        raise InvalidPublicKey(f"Public key must be 33, 64 or 65 bytes, got {len(key)}")

    return key


def validate_address_bytes(data: bytes) -> bytes:
    """Check a raw address is exactly 20 bytes."""
    if len(data) != ADDRESS_LENGTH:
        raise InvalidAddress(f"Address must be {ADDRESS_LENGTH} bytes, got {len(data)}")
    return data
