import pytest

from chainkey.constants import TransactionType
from chainkey.crypto.keys import PrivateKey
from chainkey.crypto.secret import SecretBytes
from chainkey.crypto.transaction_signing import (
    decode_signed_transaction, recover_sender, serialize_unsigned, sign_transaction, signing_hash,
)
from chainkey.exceptions import (
    SerializationError, SigningError, TransactionError, UnsupportedTransactionType,
)
from chainkey.types.transaction import (
    AccessListEntry, AccessListTransaction, FeeMarketTransaction, LegacyTransaction,
    transaction_from_dict,
)

KEY_HEX = "46" * 32
SENDER = "0x9d8A62f656a8d1615C1294fd71e9CFb3E4855A4F"
RECIPIENT = "0x" + "35" * 20
# m/44'/60'/0'/0/0 of the "abandon ... about" mnemonic
ABANDON_KEY = "1ab42cc412b618bdea3a599e3c9bae199ebf030895b039e9db1e30dafb12b727"
ABANDON_ADDRESS = "0x9858EfFD232B4033E47d90003D41EC34EcaEda94"

EIP155_TX = LegacyTransaction(
    nonce=9,
    gas_price=20 * 10 ** 9,
    gas=21000,
    to=RECIPIENT,
    value=10 ** 18,
    data=b"",
    chain_id=1,
)
EIP155_PREIMAGE = "ec098504a817c800825208943535353535353535353535353535353535353535880de0b6b3a764000080018080"
EIP155_HASH = "daf5a779ae972f972197303d7b574746c7ef83eadac0f2791ad23db92e4c8e53"
EIP155_SIGNED = (
    "f86c098504a817c800825208943535353535353535353535353535353535353535880de0b6b3a76400008025a0"
    "28ef61340bd939bc2195fe537567866003e1a15d3c71ff63e1590620aa636276a067cbe9d8997f761aecb70330"
    "4b3800ccf555c9f3dc64214b297fb1966a3b6d83"
)


def _fee_market_tx(**overrides):
    fields = dict(
        chain_id=1,
        nonce=3,
        max_priority_fee_per_gas=2 * 10 ** 9,
        max_fee_per_gas=50 * 10 ** 9,
        gas=21000,
        to=RECIPIENT,
        value=1,
        data=b"\x12\x34",
    )
    fields.update(overrides)
    return FeeMarketTransaction(**fields)


def test_eip155_reference_vector():
    assert serialize_unsigned(EIP155_TX).hex() == EIP155_PREIMAGE
    assert signing_hash(EIP155_TX).hex() == EIP155_HASH

    signed = sign_transaction(KEY_HEX, EIP155_TX)
    assert signed.v == 37
    assert signed.r == 0x28ef61340bd939bc2195fe537567866003e1a15d3c71ff63e1590620aa636276
    assert signed.s == 0x67cbe9d8997f761aecb703304b3800ccf555c9f3dc64214b297fb1966a3b6d83
    assert signed.raw_transaction.hex() == EIP155_SIGNED
    assert signed.sender == SENDER


def test_signing_is_deterministic():
    key = PrivateKey(KEY_HEX)
    tx = _fee_market_tx()
    assert sign_transaction(key, tx).raw_transaction == sign_transaction(key, tx).raw_transaction
    assert not key.wiped


def test_key_passed_as_bytes_is_accepted():
    with SecretBytes(bytes.fromhex(KEY_HEX)) as secret:
        signed = sign_transaction(secret, EIP155_TX)
    assert signed.raw_transaction.hex() == EIP155_SIGNED


def test_pre_eip155_legacy_v():
    tx = LegacyTransaction(nonce=0, gas_price=1, gas=21000, to=RECIPIENT)
    signed = sign_transaction(KEY_HEX, tx)
    assert signed.v in (27, 28)
    assert signed.chain_id is None
    assert recover_sender(signed) == SENDER


def test_fee_market_envelope():
    signed = sign_transaction(KEY_HEX, _fee_market_tx())
    assert signed.raw_transaction[0] == 0x02
    assert signed.v in (0, 1)
    assert serialize_unsigned(_fee_market_tx())[0] == 0x02
    decoded = decode_signed_transaction(signed.hex())
    assert decoded.transaction == _fee_market_tx()
    assert decoded.sender == SENDER
    assert decoded.hash == signed.hash


def test_access_list_envelope():
    tx = AccessListTransaction(
        chain_id=5,
        nonce=0,
        gas_price=10 ** 9,
        gas=50000,
        to=None,
        data="0x6000",
        access_list=[{"address": RECIPIENT, "storageKeys": ["0x" + "00" * 31 + "01"]}],
    )
    signed = sign_transaction(KEY_HEX, tx)
    assert signed.raw_transaction[0] == 0x01
    decoded = decode_signed_transaction(signed.raw_transaction)
    assert decoded.tx_type == TransactionType.ACCESS_LIST
    assert decoded.transaction.access_list == (
        AccessListEntry(address=RECIPIENT, storage_keys=(b"\x00" * 31 + b"\x01",)),
    )
    assert decoded.transaction.to is None
    assert decoded.sender == SENDER


def test_decode_legacy_vector():
    decoded = decode_signed_transaction("0x" + EIP155_SIGNED)
    assert decoded.transaction == EIP155_TX
    assert decoded.chain_id == 1
    assert decoded.recovery_id == 0
    assert decoded.sender == SENDER


def test_decode_rejects_unknown_envelope():
    with pytest.raises(UnsupportedTransactionType):
        decode_signed_transaction(b"\x05\xc0")
    with pytest.raises(SerializationError):
        decode_signed_transaction(b"")
    with pytest.raises(SerializationError):
        decode_signed_transaction(bytes.fromhex(EIP155_SIGNED) + b"\x00")


def test_unsupported_transaction_object():
    with pytest.raises(UnsupportedTransactionType):
        sign_transaction(KEY_HEX, {"nonce": 0})


def test_invalid_key_raises_signing_error():
    with pytest.raises(SigningError):
        sign_transaction(b"\x00" * 32, EIP155_TX)


def test_caller_transaction_unchanged():
    tx = _fee_market_tx()
    before = tx.to_dict()
    sign_transaction(KEY_HEX, tx)
    assert tx.to_dict() == before


def test_transaction_field_validation():
    with pytest.raises(TransactionError):
        LegacyTransaction(nonce=-1, gas_price=1, gas=1)
    with pytest.raises(TransactionError):
        _fee_market_tx(max_priority_fee_per_gas=10 ** 12)
    with pytest.raises(TransactionError):
        AccessListEntry(address=RECIPIENT, storage_keys=(b"\x01",))


def test_transaction_from_dict():
    tx = transaction_from_dict({
        "chainId": "0x1",
        "nonce": 3,
        "maxPriorityFeePerGas": 2 * 10 ** 9,
        "maxFeePerGas": hex(50 * 10 ** 9),
        "gas": 21000,
        "to": RECIPIENT,
        "value": 1,
        "data": "0x1234",
    })
    assert tx == _fee_market_tx()
    assert isinstance(transaction_from_dict({"nonce": 0, "gas": 1, "gasPrice": 1}), LegacyTransaction)
    with pytest.raises(UnsupportedTransactionType):
        transaction_from_dict({"type": "0x7f", "nonce": 0, "gas": 1})
    with pytest.raises(TransactionError):
        transaction_from_dict({"nonce": 0, "gasPrice": 1})


def test_bip44_account_signs_legacy_transfer():
    tx = LegacyTransaction(
        nonce=0,
        gas_price=20 * 10 ** 9,
        gas=21000,
        to=RECIPIENT,
        value=10 ** 18,
        data=b"",
        chain_id=1,
    )
    assert serialize_unsigned(tx).hex() == (
        "ec808504a817c800825208943535353535353535353535353535353535353535880de0b6b3a764000080018080"
    )

    signed = sign_transaction(ABANDON_KEY, tx)
    assert signed.v in (37, 38)
    assert signed.sender == ABANDON_ADDRESS
    assert signed.raw_transaction == sign_transaction(ABANDON_KEY, tx).raw_transaction

    decoded = decode_signed_transaction(signed.raw_transaction)
    assert decoded.transaction == tx
    assert decoded.sender == ABANDON_ADDRESS
    assert (decoded.v, decoded.r, decoded.s) == (signed.v, signed.r, signed.s)
