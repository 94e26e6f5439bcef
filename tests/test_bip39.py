import pytest

from chainkey.crypto import bip39
from chainkey.crypto.secret import SecretBytes
from chainkey.exceptions import InvalidChecksum, InvalidEntropyLength, InvalidMnemonic, ValidationError

ABANDON = "abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon about"
TREZOR_SEED = (
    "c55257c360c07c72029aebc1b53c05ed0362ada38ead3e3e9efa3708e53495531f09a6987599d18264c1e1c92f2cf141630c7a3c4ab7c81b2f001698e7463b04"
)


def test_zero_entropy_vector():
    mnemonic = bip39.from_entropy(b"\x00" * 16)
    assert mnemonic.phrase == ABANDON
    assert mnemonic.entropy_bits == 128


def test_reference_entropy_vectors():
    assert bip39.from_entropy(b"\x7f" * 16).phrase == (
        "legal winner thank year wave sausage worth useful legal winner thank yellow"
    )
    assert bip39.from_entropy(b"\xff" * 16).phrase == " ".join(["zoo"] * 11 + ["wrong"])


def test_seed_matches_reference_vector():
    with bip39.to_seed(bip39.from_words(ABANDON), "TREZOR") as seed:
        assert isinstance(seed, SecretBytes)
        assert seed.hex() == TREZOR_SEED


def test_seed_is_deterministic():
    first = bip39.to_seed(ABANDON, "pass")
    second = bip39.to_seed(ABANDON, "pass")
    assert first == second
    assert first != bip39.to_seed(ABANDON, "other")
    assert len(first) == 64


@pytest.mark.parametrize("bits", [128, 160, 192, 224, 256])
def test_generate_roundtrip(bits):
    mnemonic = bip39.generate(bits)
    assert len(mnemonic.words) == bits // 32 * 3
    restored = bip39.from_words(mnemonic.phrase)
    assert restored.to_entropy() == mnemonic.to_entropy()
    assert len(restored.to_entropy()) == bits // 8


def test_generate_rejects_bad_length():
    with pytest.raises(InvalidEntropyLength):
        bip39.generate(100)
    with pytest.raises(InvalidEntropyLength):
        bip39.from_entropy(b"\x00" * 15)


def test_from_words_checks_checksum():
    with pytest.raises(InvalidChecksum):
        bip39.from_words(["abandon"] * 12)
    assert not bip39.is_valid_mnemonic(["abandon"] * 12)


def test_from_words_rejects_unknown_word_and_count():
    with pytest.raises(InvalidMnemonic):
        bip39.from_words(ABANDON.replace("about", "aboot"))
    with pytest.raises(InvalidMnemonic):
        bip39.from_words(["abandon"] * 11)


def test_from_words_normalizes_whitespace():
    assert bip39.from_words("  " + ABANDON.replace(" ", "\t ") + "\n").phrase == ABANDON


def test_mnemonic_repr_hides_words():
    mnemonic = bip39.from_words(ABANDON)
    assert "abandon" not in repr(mnemonic)
    assert "abandon" not in str(mnemonic)


def test_unsupported_language():
    with pytest.raises(ValidationError):
        bip39.generate(128, language="klingon")


def test_is_valid_mnemonic_language_errors_propagate():
    assert bip39.is_valid_mnemonic(ABANDON)
    assert not bip39.is_valid_mnemonic(["abandon"] * 12)
    assert not bip39.is_valid_mnemonic("abandon zzzz")
    with pytest.raises(ValidationError):
        bip39.is_valid_mnemonic(ABANDON, language="klingon")
