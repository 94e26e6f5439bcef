"""Hierarchical Deterministic key derivation (BIP32) for chainkey."""

import hashlib
import hmac
import logging
from typing import Optional, Union

from ..constants import (
    BIP32_SEED_KEY,
    HARDENED_OFFSET,
    MAX_SEED_LENGTH,
    MIN_SEED_LENGTH,
    SECP256K1_ORDER,
    ExtendedKeyVersion,
)
from ..exceptions import (
    CryptoError,
    HardenedFromPublicOnly,
    InvalidChildKey,
    InvalidPublicKey,
    InvalidSeed,
    SerializationError,
    ValidationError,
)
from ..utils.encoding import decode_base58_check, encode_base58_check, hash160
from .keys import PrivateKey, PublicKey
from .path import DerivationPath, PathSegment, format_path, parse_path
from .secret import SecretBytes

__all__ = [
    "ExtendedKey",
    "master_from_seed",
    "derive_child",
    "derive_path",
]

logger = logging.getLogger(__name__)

SERIALIZED_LENGTH = 78
ZERO_FINGERPRINT = b"\x00\x00\x00\x00"

_PRIVATE_VERSIONS = {
    ExtendedKeyVersion.MAINNET_PRIVATE: False,
    ExtendedKeyVersion.TESTNET_PRIVATE: True,
}
_PUBLIC_VERSIONS = {
    ExtendedKeyVersion.MAINNET_PUBLIC: False,
    ExtendedKeyVersion.TESTNET_PUBLIC: True,
}


def _hmac_sha512(key: bytes, data: bytes) -> SecretBytes:
    return SecretBytes.take(bytearray(hmac.new(key, data, hashlib.sha512).digest()))


class ExtendedKey:
    """
    BIP32 extended key (HD node).

    Holds either a private key (from which the public key follows) or only a
    public key. Public-only keys derive normal children and nothing else.
    """

    def __init__(
        self,
        key: Union[PrivateKey, PublicKey],
        chain_code: Union[bytes, SecretBytes],
        depth: int = 0,
        parent_fingerprint: bytes = ZERO_FINGERPRINT,
        child_number: int = 0,
        testnet: bool = False
    ) -> None:
        if len(chain_code) != 32:
            raise CryptoError("Chain code must be 32 bytes")
        if not 0 <= depth <= 255:
            raise CryptoError(f"Depth out of range: {depth}")
        if len(parent_fingerprint) != 4:
            raise CryptoError("Parent fingerprint must be 4 bytes")

        if isinstance(key, PrivateKey):
            self._private_key: Optional[PrivateKey] = key
            self._public_key = key.public_key()
        else:
            self._private_key = None
            self._public_key = PublicKey(key)

        self._chain_code = SecretBytes(chain_code)
        self.depth = depth
        self.parent_fingerprint = bytes(parent_fingerprint)
        self.child_number = child_number
        self.testnet = testnet

    @classmethod
    def from_seed(cls, seed: Union[bytes, SecretBytes]) -> "ExtendedKey":
        return master_from_seed(seed)

    @classmethod
    def parse(cls, text: str) -> "ExtendedKey":
        """
        Parse a serialized extended key (xprv, xpub, tprv or tpub).

        Raises:
            SerializationError: If the string is not a valid extended key
        """
        try:
            payload = decode_base58_check(text)
        except ValidationError as e:
            raise SerializationError(f"Invalid extended key encoding: {e.message}") from e
        if len(payload) != SERIALIZED_LENGTH:
            raise SerializationError(
                f"Extended key must be {SERIALIZED_LENGTH} bytes, got {len(payload)}"
            )

        version = int.from_bytes(payload[0:4], "big")
        depth = payload[4]
        parent_fingerprint = payload[5:9]
        child_number = int.from_bytes(payload[9:13], "big")
        chain_code = payload[13:45]
        key_data = payload[45:78]

        if depth == 0 and (parent_fingerprint != ZERO_FINGERPRINT or child_number != 0):
            raise SerializationError("Master key must have zero parent fingerprint and index")

        if version in _PRIVATE_VERSIONS:
            if key_data[0] != 0:
                raise SerializationError("Private extended key must pad the key with 0x00")
            try:
                key: Union[PrivateKey, PublicKey] = PrivateKey(key_data[1:])
            except ValidationError as e:
                raise SerializationError("Extended key holds an invalid private key") from e
            testnet = _PRIVATE_VERSIONS[version]
        elif version in _PUBLIC_VERSIONS:
            if key_data[0] not in (0x02, 0x03):
                raise SerializationError("Public extended key must hold a compressed key")
            try:
                key = PublicKey(key_data)
            except InvalidPublicKey as e:
                raise SerializationError("Extended key holds an invalid public key") from e
            testnet = _PUBLIC_VERSIONS[version]
        else:
            raise SerializationError(f"Unknown extended key version: {version:#010x}")

        return cls(
            key,
            chain_code,
            depth=depth,
            parent_fingerprint=parent_fingerprint,
            child_number=child_number,
            testnet=testnet,
        )

    @property
    def is_private(self) -> bool:
        return self._private_key is not None

    @property
    def private_key(self) -> Optional[PrivateKey]:
        return self._private_key

    @property
    def public_key(self) -> PublicKey:
        return self._public_key

    @property
    def chain_code(self) -> SecretBytes:
        return self._chain_code

    @property
    def identifier(self) -> bytes:
        """HASH160 of the compressed public key."""
        return hash160(self._public_key.compressed)

    @property
    def fingerprint(self) -> bytes:
        return self.identifier[:4]

    @property
    def address(self) -> str:
        return self._public_key.checksum_address()

    def derive_child(self, index: int, hardened: bool = False) -> "ExtendedKey":
        return derive_child(self, index, hardened)

    def derive_path(self, path: Union[str, DerivationPath]) -> "ExtendedKey":
        return derive_path(self, path)

    def neuter(self) -> "ExtendedKey":
        """Public-only copy of this key."""
        return ExtendedKey(
            self._public_key,
            self._chain_code,
            depth=self.depth,
            parent_fingerprint=self.parent_fingerprint,
            child_number=self.child_number,
            testnet=self.testnet,
        )

    def _serialize(self, version: int, key_data: bytes) -> str:
        payload = (
            version.to_bytes(4, "big")
            + bytes([self.depth])
            + self.parent_fingerprint
            + self.child_number.to_bytes(4, "big")
            + bytes(self._chain_code)
            + key_data
        )
        return encode_base58_check(payload)

    def to_extended_private(self, testnet: Optional[bool] = None) -> str:
        """
        Serialize as xprv (or tprv).

        Raises:
            CryptoError: If this is a public-only key
        """
        if self._private_key is None:
            raise CryptoError("Public-only extended key has no private serialization")
        testnet = self.testnet if testnet is None else testnet
        version = ExtendedKeyVersion.TESTNET_PRIVATE if testnet else ExtendedKeyVersion.MAINNET_PRIVATE
        return self._serialize(version, b"\x00" + bytes(self._private_key.secret))

    def to_extended_public(self, testnet: Optional[bool] = None) -> str:
        """Serialize as xpub (or tpub)."""
        testnet = self.testnet if testnet is None else testnet
        version = ExtendedKeyVersion.TESTNET_PUBLIC if testnet else ExtendedKeyVersion.MAINNET_PUBLIC
        return self._serialize(version, self._public_key.compressed)

    def wipe(self) -> None:
        """Erase the private key and chain code."""
        if self._private_key is not None:
            self._private_key.wipe()
        self._chain_code.wipe()

    def __enter__(self) -> "ExtendedKey":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.wipe()

    def __repr__(self) -> str:
        kind = "private" if self.is_private else "public"
        return (
            f"ExtendedKey({kind}, depth={self.depth}, "
            f"fingerprint={self.fingerprint.hex()}, child={self.child_number:#x})"
        )


def master_from_seed(seed: Union[bytes, SecretBytes]) -> ExtendedKey:
    """
    Create the master extended key from a seed.

    Args:
        seed: 16 to 64 byte seed (usually the 64-byte BIP39 seed)

    Returns:
        Private master ExtendedKey

    Raises:
        InvalidSeed: If the seed length is wrong or the master scalar is
            zero or not below the curve order
    """
    if not MIN_SEED_LENGTH <= len(seed) <= MAX_SEED_LENGTH:
        raise InvalidSeed(
            f"Seed must be between {MIN_SEED_LENGTH} and {MAX_SEED_LENGTH} bytes, got {len(seed)}"
        )

    with _hmac_sha512(BIP32_SEED_KEY, bytes(seed)) as digest:
        try:
            private_key = PrivateKey(SecretBytes(digest[:32]))
        except ValidationError as e:
            raise InvalidSeed("Seed produces an invalid master key") from e
        return ExtendedKey(private_key, digest[32:])


def derive_child(parent: ExtendedKey, index: int, hardened: bool = False) -> ExtendedKey:
    """
    Derive one child key (CKDpriv, or CKDpub for public-only parents).

    Args:
        parent: Parent extended key
        index: Child index below 2^31, or a full child number >= 2^31
        hardened: Derive the hardened child of ``index``

    Returns:
        Child ExtendedKey, private if the parent is private

    Raises:
        InvalidDerivationPath: If the index is out of range
        HardenedFromPublicOnly: If a hardened child of a public-only key is requested
        InvalidChildKey: If the tweak or resulting key is outside the group
    """
    if not hardened and index >= HARDENED_OFFSET:
        segment = PathSegment.from_child_number(index)
    else:
        segment = PathSegment(index, hardened)
    child_number = segment.child_number
    depth = parent.depth + 1

    private_key = parent.private_key
    if segment.hardened:
        if private_key is None:
            raise HardenedFromPublicOnly(depth)
        data = b"\x00" + bytes(private_key.secret) + child_number.to_bytes(4, "big")
    else:
        data = parent.public_key.compressed + child_number.to_bytes(4, "big")

    with _hmac_sha512(bytes(parent.chain_code), data) as digest:
        tweak = digest[:32]
        if int.from_bytes(tweak, "big") >= SECP256K1_ORDER:
            raise InvalidChildKey(depth, child_number)

        if private_key is not None:
            scalar = (int.from_bytes(tweak, "big") + private_key.to_int()) % SECP256K1_ORDER
            if scalar == 0:
                raise InvalidChildKey(depth, child_number)
            buffer = bytearray(scalar.to_bytes(32, "big"))
            key: Union[PrivateKey, PublicKey] = PrivateKey(SecretBytes.take(buffer))
        else:
            try:
                key = parent.public_key.add_tweak(tweak)
            except CryptoError as e:
                raise InvalidChildKey(depth, child_number) from e

        return ExtendedKey(
            key,
            digest[32:],
            depth=depth,
            parent_fingerprint=parent.fingerprint,
            child_number=child_number,
            testnet=parent.testnet,
        )


def derive_path(root: ExtendedKey, path: Union[str, DerivationPath]) -> ExtendedKey:
    """
    Derive the key at a path below ``root``.

    Intermediate keys are wiped as soon as the next level exists. The first
    failing segment aborts the walk; its error carries the failing depth.

    Raises:
        InvalidDerivationPath: If the path text is malformed
        HardenedFromPublicOnly: If a hardened segment meets a public-only key
        InvalidChildKey: If a segment lands outside the group
    """
    if isinstance(path, str):
        path = parse_path(path)

    logger.debug(f"Deriving {format_path(path)} from depth {root.depth}")

    node = root
    for segment in path:
        try:
            child = derive_child(node, segment.index, segment.hardened)
        finally:
            if node is not root:
                node.wipe()
        node = child
    return node
