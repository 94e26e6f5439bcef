"""Recoverable ECDSA signatures and personal message signing for chainkey."""

from dataclasses import dataclass
from typing import Union

from ..constants import LEGACY_V_OFFSET, PERSONAL_MESSAGE_PREFIX, SECP256K1_HALF_ORDER, SECP256K1_ORDER
from ..exceptions import CryptoError, SigningError, ValidationError
from ..types.common import ChecksumAddress
from ..utils.encoding import keccak256
from .keys import PrivateKey, PublicKey
from .secret import SecretBytes

__all__ = [
    "Signature",
    "sign_hash",
    "recover_public_key",
    "verify_signature",
    "hash_message",
    "sign_message",
    "recover_message_signer",
]


@dataclass(frozen=True)
class Signature:
    """secp256k1 signature with its public key recovery id."""
    r: int
    s: int
    recovery_id: int

    def __post_init__(self) -> None:
        if not 0 < self.r < SECP256K1_ORDER or not 0 < self.s < SECP256K1_ORDER:
            raise CryptoError("Signature values out of range")
        if self.recovery_id not in (0, 1):
            raise CryptoError(f"Invalid recovery id: {self.recovery_id}")

    @classmethod
    def from_bytes(cls, data: bytes) -> "Signature":
        """
        Parse a 65-byte r || s || v signature.

        The last byte may be a raw recovery id (0/1) or carry the legacy
        offset of 27 (27/28).
        """
        if len(data) != 65:
            raise CryptoError(f"Signature must be 65 bytes, got {len(data)}")
        v = data[64]
        if v >= LEGACY_V_OFFSET:
            v -= LEGACY_V_OFFSET
        return cls(
            r=int.from_bytes(data[0:32], "big"),
            s=int.from_bytes(data[32:64], "big"),
            recovery_id=v,
        )

    @property
    def is_low_s(self) -> bool:
        return self.s <= SECP256K1_HALF_ORDER

    @property
    def v(self) -> int:
        """Recovery id with the legacy offset (27/28)."""
        return self.recovery_id + LEGACY_V_OFFSET

    def to_bytes(self, v_offset: int = 0) -> bytes:
        """65-byte r || s || (recovery id + v_offset)."""
        return (
            self.r.to_bytes(32, "big")
            + self.s.to_bytes(32, "big")
            + bytes([self.recovery_id + v_offset])
        )

    def hex(self, v_offset: int = LEGACY_V_OFFSET) -> str:
        return "0x" + self.to_bytes(v_offset).hex()


def sign_hash(
    private_key: Union[PrivateKey, SecretBytes, bytes, str],
    message_hash: bytes
) -> Signature:
    """
    Sign a 32-byte hash deterministically (RFC 6979).

    The result is always in low-s form; when s is flipped to n - s the
    recovery id is flipped with it. A key built here from raw bytes is
    wiped before returning.

    Raises:
        SigningError: If the key is invalid or signing fails
    """
    owned = not isinstance(private_key, PrivateKey)
    if owned:
        try:
            key = PrivateKey(private_key)
        except (ValidationError, ValueError) as e:
            raise SigningError(f"Invalid signing key: {e}") from e
    else:
        key = private_key

    try:
        raw = key.sign_recoverable(message_hash)
    finally:
        if owned:
            key.wipe()

    r = int.from_bytes(raw[0:32], "big")
    s = int.from_bytes(raw[32:64], "big")
    recovery_id = raw[64]

    if s > SECP256K1_HALF_ORDER:
        s = SECP256K1_ORDER - s
        recovery_id ^= 1

    return Signature(r=r, s=s, recovery_id=recovery_id)


def recover_public_key(message_hash: bytes, signature: Union[Signature, bytes]) -> PublicKey:
    """
    Recover the public key that produced a signature.

    Raises:
        CryptoError: If the signature is malformed or recovery fails
    """
    if not isinstance(signature, Signature):
        signature = Signature.from_bytes(signature)
    return PublicKey.from_signature_and_hash(signature.to_bytes(), message_hash)


def verify_signature(
    public_key: Union[PublicKey, bytes, str],
    message_hash: bytes,
    signature: Union[Signature, bytes]
) -> bool:
    """Check that ``signature`` over ``message_hash`` was made by ``public_key``."""
    if not isinstance(public_key, PublicKey):
        public_key = PublicKey(public_key)
    try:
        return recover_public_key(message_hash, signature) == public_key
    except CryptoError:
        return False


def hash_message(message: Union[str, bytes]) -> bytes:
    """
    EIP-191 personal message hash.

    keccak256("\\x19Ethereum Signed Message:\\n" + len(message) + message)
    """
    if isinstance(message, str):
        message = message.encode("utf-8")
    return keccak256(PERSONAL_MESSAGE_PREFIX + str(len(message)).encode("ascii") + message)


def sign_message(private_key: Union[PrivateKey, SecretBytes, bytes, str], message: Union[str, bytes]) -> Signature:
    """Sign a personal message (EIP-191 version 0x45)."""
    return sign_hash(private_key, hash_message(message))


def recover_message_signer(
    message: Union[str, bytes],
    signature: Union[Signature, bytes]
) -> ChecksumAddress:
    """Recover the checksummed address that signed a personal message."""
    return recover_public_key(hash_message(message), signature).checksum_address()
