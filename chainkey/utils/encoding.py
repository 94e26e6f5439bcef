"""Encoding and hashing utilities for chainkey."""

import hashlib
import re
from typing import List, Sequence, Union

import rlp
from Crypto.Hash import RIPEMD160, keccak
from rlp.exceptions import DecodingError, RLPException

from ..exceptions import SerializationError, ValidationError
from ..types.common import HexStr

__all__ = [
    "hex_to_bytes",
    "bytes_to_hex",
    "bytes_to_int",
    "int_to_big_endian",
    "keccak256",
    "sha256",
    "double_sha256",
    "hash160",
    "encode_base58",
    "decode_base58",
    "encode_base58_check",
    "decode_base58_check",
    "rlp_encode",
    "rlp_decode",
    "RLPItem",
]

# Constants
_HEX_DIGITS = re.compile(r"[0-9a-fA-F]*")
BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

RLPItem = Union[bytes, List["RLPItem"]]
"""Decoded RLP value: a byte string or a list of RLP values."""


def hex_to_bytes(hex_str: Union[HexStr, str]) -> bytes:
    """
    Convert hex string to bytes.

    Args:
        hex_str: Hex string with or without 0x prefix

    Returns:
        Decoded bytes

    Raises:
        ValidationError: If hex string is invalid
    """
    try:
        if hex_str[:2] in ("0x", "0X"):
            hex_str = hex_str[2:]
        if not _HEX_DIGITS.fullmatch(hex_str):
            raise ValueError("non-hexadecimal characters")
        return bytes.fromhex(hex_str)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"Invalid hex string: {hex_str!r}") from e


def bytes_to_hex(data: bytes, prefix: bool = False) -> HexStr:
    """
    Convert bytes to hex string.

    Args:
        data: Bytes to encode
        prefix: Add 0x prefix

    Returns:
        Hex string
    """
    hex_str = bytes(data).hex()
    if prefix:
        hex_str = f"0x{hex_str}"
    return HexStr(hex_str)


def bytes_to_int(
    data: bytes,
    byteorder: str = "big",
    signed: bool = False
) -> int:
    """Convert bytes to integer."""
    return int.from_bytes(data, byteorder=byteorder, signed=signed)


def int_to_big_endian(value: int) -> bytes:
    """Minimal big-endian encoding; zero encodes as the empty string."""
    if value < 0:
        raise SerializationError(f"Cannot encode negative integer: {value}")
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def keccak256(data: bytes) -> bytes:
    """Original Keccak-256 (not NIST SHA3-256)."""
    return keccak.new(digest_bits=256, data=bytes(data)).digest()


def sha256(data: bytes) -> bytes:
    """Single SHA256."""
    return hashlib.sha256(data).digest()


def double_sha256(data: bytes) -> bytes:
    """Perform double SHA256 hash."""
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def hash160(data: bytes) -> bytes:
    """Perform RIPEMD160(SHA256(data))."""
    return RIPEMD160.new(hashlib.sha256(data).digest()).digest()


def encode_base58(data: bytes) -> str:
    """
    Encode bytes as Base58 string.

    Args:
        data: Bytes to encode

    Returns:
        Base58 encoded string
    """
    n = bytes_to_int(data, byteorder="big")

    encoded = ""
    while n:
        n, remainder = divmod(n, 58)
        encoded = BASE58_ALPHABET[remainder] + encoded

    # Leading zero bytes map to leading '1's
    for byte in data:
        if byte == 0:
            encoded = "1" + encoded
        else:
            break

    return encoded


def decode_base58(string: str) -> bytes:
    """
    Decode Base58 string to bytes.

    Args:
        string: Base58 string

    Returns:
        Decoded bytes

    Raises:
        ValidationError: If string contains invalid characters
    """
    n = 0
    for char in string:
        try:
            n = n * 58 + BASE58_ALPHABET.index(char)
        except ValueError:
            raise ValidationError(f"Invalid Base58 character: {char}") from None

    leading_zeros = len(string) - len(string.lstrip("1"))
    return b"\x00" * leading_zeros + int_to_big_endian(n)


def encode_base58_check(data: bytes) -> str:
    """
    Encode bytes as Base58Check (with checksum).

    Args:
        data: Bytes to encode

    Returns:
        Base58Check encoded string
    """
    checksum = double_sha256(data)[:4]
    return encode_base58(data + checksum)


def decode_base58_check(string: str) -> bytes:
    """
    Decode Base58Check string.

    Args:
        string: Base58Check string

    Returns:
        Decoded data (without checksum)

    Raises:
        ValidationError: If checksum is invalid
    """
    data = decode_base58(string)
    if len(data) < 4:
        raise ValidationError("Invalid Base58Check string: too short")

    payload, checksum = data[:-4], data[-4:]
    expected_checksum = double_sha256(payload)[:4]

    if checksum != expected_checksum:
        raise ValidationError("Invalid Base58Check checksum")

    return payload


def rlp_encode(item: Union[bytes, bytearray, int, Sequence]) -> bytes:
    """
    Encode a value with Recursive Length Prefix encoding.

    Args:
        item: Bytes, non-negative int (minimal big-endian) or a list/tuple
            of such items

    Returns:
        RLP-encoded bytes

    Raises:
        SerializationError: If the item type cannot be encoded
    """
    if isinstance(item, bool):
        raise SerializationError("Cannot RLP-encode bool")
    try:
        return rlp.encode(item)
    except (RLPException, TypeError) as e:
        raise SerializationError(f"Cannot RLP-encode {type(item).__name__}: {e}") from e


def rlp_decode(data: bytes) -> RLPItem:
    """
    Decode RLP bytes, enforcing canonical encoding.

    Args:
        data: RLP-encoded bytes holding exactly one item

    Returns:
        Decoded bytes or nested list of bytes

    Raises:
        SerializationError: If the input is malformed or has trailing bytes
    """
    try:
        return rlp.decode(bytes(data), strict=True)
    except DecodingError as e:
        raise SerializationError(f"Invalid RLP: {e}") from e
