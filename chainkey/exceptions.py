"""chainkey exceptions hierarchy."""

from typing import Any, Optional

__all__ = [
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
]


class ChainKeyError(Exception):
    """Base exception for all chainkey errors."""

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        data: Optional[Any] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ValidationError(ChainKeyError):
    """Raised when validation fails."""
    pass


class CryptoError(ChainKeyError):
    """Raised when cryptographic operation fails."""
    pass


class TransactionError(ChainKeyError):
    """Raised when transaction operation fails."""
    pass


class WalletError(ChainKeyError):
    """Raised when wallet or keystore operation fails."""
    pass


class SerializationError(ChainKeyError):
    """Raised when serialization/deserialization fails."""
    pass


class InvalidEntropyLength(ValidationError):
    """Raised when mnemonic entropy is not 128-256 bits in steps of 32."""

    def __init__(self, bits: int) -> None:
        super().__init__(
            f"Entropy must be 128, 160, 192, 224 or 256 bits, got {bits}",
            data={"bits": bits},
        )
        self.bits = bits


class InvalidMnemonic(ValidationError):
    """Raised when a mnemonic has a bad word count or an unknown word."""
    pass


class InvalidChecksum(InvalidMnemonic):
    """Raised when the mnemonic checksum bits do not match its entropy."""
    pass


class InvalidSeed(CryptoError):
    """Raised when a seed cannot produce a valid master key."""
    pass


class InvalidDerivationPath(ValidationError):
    """Raised when a derivation path or child index is malformed."""
    pass


class HardenedFromPublicOnly(CryptoError):
    """Raised when hardened derivation is requested from a public-only key."""

    def __init__(self, depth: int) -> None:
        super().__init__(
            f"Cannot derive hardened child at depth {depth} from a public-only key",
            data={"depth": depth},
        )
        self.depth = depth


class InvalidChildKey(CryptoError):
    """Raised when a derived tweak or child key falls outside the curve group."""

    def __init__(self, depth: int, index: int) -> None:
        super().__init__(
            f"Invalid child key at depth {depth}, index {index:#x}",
            data={"depth": depth, "index": index},
        )
        self.depth = depth
        self.index = index


class InvalidPublicKey(ValidationError):
    """Raised when public key bytes are malformed or not on the curve."""
    pass


class InvalidAddress(ValidationError):
    """Raised when an address has a bad length, characters or checksum."""
    pass


class KeystoreDecryptionFailed(WalletError):
    """Raised when a keystore MAC does not verify."""

    def __init__(self, message: str = "Keystore decryption failed: MAC mismatch") -> None:
        super().__init__(message)


class UnsupportedTransactionType(TransactionError):
    """Raised for unknown transaction type tags."""

    def __init__(self, tx_type: Any) -> None:
        super().__init__(f"Unsupported transaction type: {tx_type!r}", data={"type": tx_type})
        self.tx_type = tx_type


class SigningError(CryptoError):
    """Raised when the curve signing operation fails."""
    pass
