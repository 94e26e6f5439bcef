"""Key management for chainkey."""

import secrets
from typing import Optional, Union

from coincurve import PrivateKey as SecpPrivateKey, PublicKey as SecpPublicKey

from ..exceptions import CryptoError, InvalidPublicKey, SigningError, ValidationError
from ..types.common import Address, ChecksumAddress, PublicKeyBytes
from ..utils.encoding import hash160
from ..utils.validation import to_checksum_address, validate_private_key, validate_public_key
from .secret import SecretBytes

__all__ = ["PrivateKey", "PublicKey"]


class PrivateKey:
    """
    secp256k1 private key.

    The scalar is held in a SecretBytes buffer; wipe() (or leaving a ``with``
    block) erases it and the key becomes unusable.
    """

    def __init__(self, key: Union[bytes, bytearray, str, SecretBytes, "PrivateKey"]) -> None:
        """
        Initialize private key.

        Args:
            key: Private key as 32 bytes, hex string, SecretBytes or another
                PrivateKey

        Raises:
            ValidationError: If key is zero, out of range or malformed
        """
        if isinstance(key, PrivateKey):
            key = key._secret
        if isinstance(key, SecretBytes):
            self._secret = SecretBytes(validate_private_key(bytes(key)))
        else:
            self._secret = SecretBytes(validate_private_key(key))

        self._key = SecpPrivateKey(bytes(self._secret))
        self._public_key: Optional["PublicKey"] = None

    @classmethod
    def create(cls) -> "PrivateKey":
        """
        Create new random private key.

        Returns:
            New PrivateKey instance
        """
        while True:
            key_bytes = bytearray(secrets.token_bytes(32))
            try:
                return cls(SecretBytes.take(key_bytes))
            except ValidationError:
                # Zero or above the curve order; astronomically rare
                continue

    @property
    def secret(self) -> SecretBytes:
        """Private scalar buffer (owned by this key)."""
        if self._secret.wiped:
            raise CryptoError("Private key has been wiped")
        return self._secret

    @property
    def wiped(self) -> bool:
        return self._secret.wiped

    def to_int(self) -> int:
        return int.from_bytes(self.secret[:], "big")

    def public_key(self) -> "PublicKey":
        """Get corresponding public key."""
        if self._public_key is None:
            self._public_key = PublicKey(self._key.public_key.format(compressed=False))
        return self._public_key

    @property
    def address(self) -> Address:
        """Account address of this key."""
        return self.public_key().address()

    def sign_recoverable(self, message_hash: bytes) -> bytes:
        """
        Create recoverable RFC 6979 deterministic signature.

        Args:
            message_hash: 32-byte hash to sign

        Returns:
            65-byte signature: r (32) || s (32) || recovery id (1)

        Raises:
            SigningError: If signing fails
        """
        if len(message_hash) != 32:
            raise SigningError("Message hash must be 32 bytes")
        if self._secret.wiped:
            raise SigningError("Private key has been wiped")

        try:
            return self._key.sign_recoverable(bytes(message_hash), hasher=None)
        except Exception as e:
            raise SigningError(f"Recoverable signing failed: {e}") from e

    def wipe(self) -> None:
        """Erase the private scalar."""
        self._secret.wipe()
        self._key = None

    def __enter__(self) -> "PrivateKey":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.wipe()

    def __eq__(self, other: object) -> bool:
        """Check equality."""
        if not isinstance(other, PrivateKey):
            return False
        return self._secret == other._secret

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """String representation without key material."""
        if self._secret.wiped:
            return "PrivateKey(<wiped>)"
        return f"PrivateKey({self.address})"


class PublicKey:
    """
    secp256k1 public key.

    Accepts compressed (33 bytes), uncompressed (65 bytes) or raw (64 bytes)
    encodings and checks the point is on the curve.
    """

    def __init__(self, key: Union[bytes, str, "PublicKey"]) -> None:
        """
        Initialize public key.

        Args:
            key: Public key as bytes, hex string, or another PublicKey

        Raises:
            InvalidPublicKey: If key format is invalid or not on the curve
        """
        if isinstance(key, PublicKey):
            self._key = key._key
            return

        key_bytes = validate_public_key(key)
        try:
            self._key = SecpPublicKey(key_bytes)
        except Exception as e:
            raise InvalidPublicKey("Public key is not a valid curve point") from e

    @classmethod
    def from_signature_and_hash(cls, signature: bytes, message_hash: bytes) -> "PublicKey":
        """
        Recover the signer's public key.

        Args:
            signature: 65-byte r || s || recovery id signature
            message_hash: 32-byte signed hash

        Raises:
            CryptoError: If no key can be recovered
        """
        if len(signature) != 65 or len(message_hash) != 32:
            raise CryptoError("Recovery needs a 65-byte signature and 32-byte hash")
        try:
            recovered = SecpPublicKey.from_signature_and_message(
                bytes(signature), bytes(message_hash), hasher=None
            )
        except Exception as e:
            raise CryptoError(f"Public key recovery failed: {e}") from e
        return cls(recovered.format(compressed=False))

    @property
    def compressed(self) -> PublicKeyBytes:
        """33-byte SEC1 compressed encoding."""
        return PublicKeyBytes(self._key.format(compressed=True))

    @property
    def uncompressed(self) -> PublicKeyBytes:
        """65-byte SEC1 uncompressed encoding (0x04 prefix)."""
        return PublicKeyBytes(self._key.format(compressed=False))

    def hex(self, compressed: bool = False) -> str:
        """Get public key as hex string."""
        return (self.compressed if compressed else self.uncompressed).hex()

    def fingerprint(self) -> bytes:
        """BIP32 key fingerprint: first 4 bytes of HASH160(compressed key)."""
        return hash160(self.compressed)[:4]

    def add_tweak(self, tweak: bytes) -> "PublicKey":
        """
        Return self + tweak*G.

        Raises:
            CryptoError: If the tweak is out of range or the sum is infinity
        """
        try:
            return PublicKey(self._key.add(bytes(tweak)).format(compressed=False))
        except Exception as e:
            raise CryptoError(f"Public key tweak failed: {e}") from e

    def address(self) -> Address:
        """Lowercase 0x-prefixed keccak-256 account address."""
        from .address import address_from_public_key
        return Address(address_from_public_key(self, checksum=False))

    def checksum_address(self) -> ChecksumAddress:
        """EIP-55 checksummed account address."""
        return to_checksum_address(self.address())

    def __eq__(self, other: object) -> bool:
        """Check equality."""
        if not isinstance(other, PublicKey):
            return False
        return self.compressed == other.compressed

    def __hash__(self) -> int:
        return hash(self.compressed)

    def __repr__(self) -> str:
        """String representation."""
        return f"PublicKey({self.address()})"
