import pytest

from chainkey.exceptions import InvalidAddress, InvalidPublicKey, ValidationError
from chainkey.utils import validation as v

CHECKSUMMED = [
    "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
    "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359",
    "0xdbF03B407c01E7cD3CBea99509d93f8DDDC8C6FB",
    "0xD1220A0cf47c7B9Be7A2E6BA89F429762e7b9aDb",
]


@pytest.mark.parametrize("address", CHECKSUMMED)
def test_eip55_checksum(address):
    assert v.to_checksum_address(address.lower()) == address
    assert v.is_checksum_address(address)
    assert v.validate_address(address) == address.lower()


def test_address_accepts_single_case_forms():
    lower = CHECKSUMMED[0].lower()
    upper = "0x" + CHECKSUMMED[0][2:].upper()
    assert v.validate_address(lower) == lower
    assert v.validate_address(upper) == lower
    assert not v.is_checksum_address(lower)


def test_address_rejects_bad_checksum():
    bad = CHECKSUMMED[0][:-1] + CHECKSUMMED[0][-1].swapcase()
    with pytest.raises(InvalidAddress):
        v.validate_address(bad)
    assert not v.is_valid_address(bad)


@pytest.mark.parametrize("address", ["", "0x123", "5aaeb6053f3e94c9b9a09f33669435e7ef1beaed",
                                     "0x" + "g" * 40, "0x" + "a" * 42])
def test_address_rejects_malformed(address):
    with pytest.raises(InvalidAddress):
        v.validate_address(address)


def test_private_key_validation():
    assert v.validate_private_key("0x" + "01" * 32) == b"\x01" * 32
    assert v.is_valid_private_key(b"\x01" * 32)
    with pytest.raises(ValidationError):
        v.validate_private_key(b"\x00" * 32)
    with pytest.raises(ValidationError):
        v.validate_private_key(b"\xff" * 32)
    with pytest.raises(ValidationError):
        v.validate_private_key(b"\x01" * 31)


def test_public_key_validation():
    raw = b"\x11" * 64
    assert v.validate_public_key(raw) == b"\x04" + raw
    assert v.is_valid_public_key("02" + "11" * 32)
    with pytest.raises(InvalidPublicKey):
        v.validate_public_key(b"\x05" + b"\x11" * 32)
    with pytest.raises(InvalidPublicKey):
        v.validate_public_key(b"\x04" * 10)
    assert not v.is_valid_public_key("zz")


@pytest.mark.parametrize("suffix", ["\n", " ", "\t"])
def test_trailing_whitespace_rejected(suffix):
    address = "0x" + "ab" * 20 + suffix
    with pytest.raises(InvalidAddress):
        v.validate_address(address)
    assert not v.is_valid_address(address)
    with pytest.raises(ValidationError):
        v.to_checksum_address(address)
    with pytest.raises(ValidationError):
        v.validate_private_key("46" * 32 + suffix)
    with pytest.raises(InvalidPublicKey):
        v.validate_public_key("04" + "11" * 64 + suffix)


def test_hex_with_inner_whitespace_rejected():
    with pytest.raises(ValidationError):
        v.validate_hex("ab cd")
