"""BIP39 mnemonic implementation for chainkey."""

import hashlib
import secrets
import unicodedata
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, Sequence, Tuple, Union

from mnemonic import Mnemonic as _ReferenceWordlists

from ..constants import (
    BIP39_ENTROPY_BITS,
    BIP39_PBKDF2_ROUNDS,
    BIP39_SALT_PREFIX,
    BIP39_WORD_COUNTS,
    DEFAULT_LANGUAGE,
    SEED_LENGTH,
)
from ..exceptions import InvalidChecksum, InvalidEntropyLength, InvalidMnemonic, ValidationError
from .secret import SecretBytes

__all__ = [
    "Mnemonic",
    "generate",
    "from_entropy",
    "from_words",
    "to_seed",
    "is_valid_mnemonic",
    "get_wordlist",
]


def _nfkd(text: str) -> str:
    return unicodedata.normalize("NFKD", text)


@lru_cache(maxsize=None)
def _load_wordlist(language: str) -> Tuple[Tuple[str, ...], Dict[str, int]]:
    try:
        words = tuple(_ReferenceWordlists(language).wordlist)
    except Exception as e:
        raise ValidationError(f"Unsupported wordlist language: {language}") from e
    if len(words) != 2048:
        raise ValidationError(f"Wordlist for {language} has {len(words)} words, expected 2048")
    return words, {_nfkd(word): i for i, word in enumerate(words)}


def get_wordlist(language: str = DEFAULT_LANGUAGE) -> Tuple[str, ...]:
    """Get the 2048-word BIP39 wordlist for a language."""
    return _load_wordlist(language)[0]


@dataclass(frozen=True)
class Mnemonic:
    """Validated BIP39 mnemonic. The words never appear in repr()."""
    words: Tuple[str, ...] = field(repr=False)
    language: str = DEFAULT_LANGUAGE

    @property
    def entropy_bits(self) -> int:
        return len(self.words) * 11 * 32 // 33

    @property
    def phrase(self) -> str:
        """Words joined by single spaces."""
        return " ".join(self.words)

    def to_entropy(self) -> bytes:
        """Recover the entropy bytes the mnemonic encodes."""
        entropy, _ = _split_words(self.words, self.language)
        return entropy

    def __str__(self) -> str:
        return f"Mnemonic({len(self.words)} words, {self.language})"


def _entropy_to_words(entropy: bytes, wordlist: Sequence[str]) -> Tuple[str, ...]:
    bits = len(entropy) * 8
    checksum_length = bits // 32
    checksum = hashlib.sha256(entropy).digest()[0] >> (8 - checksum_length)

    combined = (int.from_bytes(entropy, "big") << checksum_length) | checksum
    word_count = (bits + checksum_length) // 11

    # Split into 11-bit groups, most significant first
    return tuple(
        wordlist[(combined >> (11 * (word_count - 1 - i))) & 0x7FF]
        for i in range(word_count)
    )


def _split_words(words: Sequence[str], language: str) -> Tuple[bytes, int]:
    """Map words back to (entropy, checksum) after validating count and words."""
    if len(words) not in BIP39_WORD_COUNTS:
        raise InvalidMnemonic(
            f"Mnemonic must have 12, 15, 18, 21 or 24 words, got {len(words)}"
        )
    _, index = _load_wordlist(language)

    combined = 0
    for position, word in enumerate(words):
        try:
            combined = (combined << 11) | index[_nfkd(word)]
        except KeyError:
            raise InvalidMnemonic(f"Unknown word at position {position + 1}") from None

    total_bits = len(words) * 11
    checksum_length = total_bits // 33
    entropy_bits = total_bits - checksum_length
    entropy = (combined >> checksum_length).to_bytes(entropy_bits // 8, "big")
    checksum = combined & ((1 << checksum_length) - 1)
    return entropy, checksum


def from_entropy(entropy: bytes, language: str = DEFAULT_LANGUAGE) -> Mnemonic:
    """
    Encode entropy as a mnemonic.

    Raises:
        InvalidEntropyLength: If entropy is not 16, 20, 24, 28 or 32 bytes
    """
    if len(entropy) * 8 not in BIP39_ENTROPY_BITS:
        raise InvalidEntropyLength(len(entropy) * 8)
    return Mnemonic(words=_entropy_to_words(bytes(entropy), get_wordlist(language)), language=language)


def generate(entropy_bits: int = 128, language: str = DEFAULT_LANGUAGE) -> Mnemonic:
    """Generate BIP39 mnemonic from fresh random entropy."""
    if entropy_bits not in BIP39_ENTROPY_BITS:
        raise InvalidEntropyLength(entropy_bits)

    entropy = bytearray(secrets.token_bytes(entropy_bits // 8))
    try:
        return from_entropy(bytes(entropy), language)
    finally:
        for i in range(len(entropy)):
            entropy[i] = 0


def from_words(
    words: Union[str, Sequence[str]],
    language: str = DEFAULT_LANGUAGE
) -> Mnemonic:
    """
    Parse and validate a mnemonic.

    Args:
        words: Phrase (any whitespace between words) or sequence of words
        language: Wordlist language

    Returns:
        Mnemonic

    Raises:
        InvalidMnemonic: If word count is wrong or a word is unknown
        InvalidChecksum: If checksum bits do not match the entropy
    """
    if isinstance(words, str):
        words = _nfkd(words).split()
    words = tuple(words)

    entropy, checksum = _split_words(words, language)
    checksum_length = len(words) * 11 // 33
    expected = hashlib.sha256(entropy).digest()[0] >> (8 - checksum_length)
    if checksum != expected:
        raise InvalidChecksum("Mnemonic checksum mismatch")

    # Canonical spelling from the wordlist
    wordlist = get_wordlist(language)
    _, index = _load_wordlist(language)
    return Mnemonic(words=tuple(wordlist[index[_nfkd(word)]] for word in words), language=language)


def is_valid_mnemonic(words: Union[str, Sequence[str]], language: str = DEFAULT_LANGUAGE) -> bool:
    """
    Check word count, words and checksum.

    Raises:
        ValidationError: If the language has no wordlist; that is a caller
            error, not an invalid mnemonic
    """
    try:
        from_words(words, language)
        return True
    except InvalidMnemonic:
        return False


def to_seed(mnemonic: Union[Mnemonic, str], passphrase: str = "") -> SecretBytes:
    """
    Stretch mnemonic and passphrase into the 64-byte BIP39 seed.

    PBKDF2-HMAC-SHA512, 2048 rounds, salt "mnemonic" + passphrase, both
    NFKD-normalized. A plain string is used as given, without wordlist checks.

    Returns:
        Seed in a SecretBytes buffer; wipe it once the root key is derived
    """
    phrase = mnemonic.phrase if isinstance(mnemonic, Mnemonic) else " ".join(_nfkd(mnemonic).split())
    seed = hashlib.pbkdf2_hmac(
        "sha512",
        _nfkd(phrase).encode("utf-8"),
        _nfkd(BIP39_SALT_PREFIX + passphrase).encode("utf-8"),
        BIP39_PBKDF2_ROUNDS,
        dklen=SEED_LENGTH,
    )
    return SecretBytes(seed)
