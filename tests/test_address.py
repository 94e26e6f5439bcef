from enum import Enum

import pytest

from chainkey.crypto.address import (
    address_from_public_key, address_to_bytes, from_lattice_address, to_lattice_address,
)
from chainkey.crypto.keys import PrivateKey
from chainkey.exceptions import InvalidAddress, InvalidPublicKey, ValidationError
from chainkey.registry import DEFAULT_REGISTRY, LATTICE, AddressFormat, CoinInfo, CoinRegistry

LATTICE_HEX = "0x5f2be9a02b43f748ee460bf36eed24fafa109920"
LATTICE_TEXT = "zltc_Z1pnS94bP4hQSYLs4aP4UwBP9pH8bEvhi"


def test_address_from_public_key_forms():
    pub = PrivateKey("46" * 32).public_key()
    assert address_from_public_key(pub) == "0x9d8A62f656a8d1615C1294fd71e9CFb3E4855A4F"
    assert address_from_public_key(pub, checksum=False) == "0x9d8a62f656a8d1615c1294fd71e9cfb3e4855a4f"
    assert address_from_public_key(pub.compressed) == address_from_public_key(pub.uncompressed)


def test_address_from_malformed_public_key():
    with pytest.raises(InvalidPublicKey):
        address_from_public_key(b"\x04" + b"\x00" * 10)


def test_lattice_address_vector():
    assert to_lattice_address(LATTICE_HEX) == LATTICE_TEXT
    assert from_lattice_address(LATTICE_TEXT).hex() == LATTICE_HEX[2:]
    assert address_to_bytes(LATTICE_TEXT) == address_to_bytes(LATTICE_HEX)


def test_lattice_address_rejects_corruption():
    with pytest.raises(InvalidAddress):
        from_lattice_address(LATTICE_TEXT.replace("zltc_", "zltx_"))
    with pytest.raises(InvalidAddress):
        from_lattice_address(LATTICE_TEXT[:-1] + "j")


def test_lattice_coin_format():
    pub = PrivateKey("46" * 32).public_key()
    address = address_from_public_key(pub, coin=DEFAULT_REGISTRY["lattice"])
    assert address.startswith("zltc_")
    assert len(from_lattice_address(address)) == 20


def test_registry_lookup_and_injection():
    assert DEFAULT_REGISTRY.coin_type("ethereum") == 60
    assert DEFAULT_REGISTRY.coin_type("Ethereum-Classic") == 61
    assert "testnet" in DEFAULT_REGISTRY
    assert DEFAULT_REGISTRY.get("nope") is None
    with pytest.raises(ValidationError):
        DEFAULT_REGISTRY["nope"]

    registry = DEFAULT_REGISTRY.copy()
    registry.register(CoinInfo(name="devnet", coin_type=1337))
    assert "devnet" in registry
    assert "devnet" not in DEFAULT_REGISTRY


def test_coin_info_validation():
    with pytest.raises(ValidationError):
        CoinInfo(name="bad", coin_type=2 ** 31)
    with pytest.raises(ValidationError):
        CoinInfo(name="bad", coin_type=1, address_hash="md5")
    assert isinstance(CoinRegistry(), CoinRegistry)


def test_address_rejects_trailing_newline():
    address = "0x" + "ab" * 20 + "\n"
    with pytest.raises(InvalidAddress):
        address_to_bytes(address)
    with pytest.raises(InvalidPublicKey):
        address_from_public_key("04" + "11" * 64 + "\n")


def test_address_format_is_an_enum():
    coin = CoinInfo(name="x", coin_type=1, address_format="evm")
    assert coin.address_format is AddressFormat.EVM
    assert isinstance(AddressFormat.LATTICE, Enum)
    assert LATTICE.address_format is AddressFormat.LATTICE
    with pytest.raises(ValidationError):
        CoinInfo(name="x", coin_type=1, address_format="bech32")
