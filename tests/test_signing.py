import pytest

from chainkey.constants import SECP256K1_HALF_ORDER, SECP256K1_ORDER
from chainkey.crypto import signature
from chainkey.crypto.keys import PrivateKey
from chainkey.crypto.signature import (
    Signature, hash_message, recover_message_signer, recover_public_key, sign_hash,
    sign_message, verify_signature,
)
from chainkey.exceptions import CryptoError, SigningError

KEY = PrivateKey("46" * 32)


def test_sign_hash_is_deterministic_and_low_s():
    digest = b"\x11" * 32
    first = sign_hash(KEY, digest)
    assert first == sign_hash(KEY, digest)
    assert first.is_low_s
    assert recover_public_key(digest, first) == KEY.public_key()
    assert verify_signature(KEY.public_key(), digest, first)
    assert not verify_signature(PrivateKey("01" * 32).public_key(), digest, first)


def test_signature_bytes_roundtrip():
    signature = sign_hash(KEY, b"\x22" * 32)
    raw = signature.to_bytes(27)
    assert raw[64] in (27, 28)
    assert Signature.from_bytes(raw) == signature
    assert Signature.from_bytes(signature.to_bytes()) == signature
    assert signature.v == signature.recovery_id + 27


def test_high_s_signature_verifies_after_flip():
    digest = b"\x33" * 32
    low = sign_hash(KEY, digest)
    high = Signature(r=low.r, s=SECP256K1_ORDER - low.s, recovery_id=low.recovery_id ^ 1)
    assert not high.is_low_s
    assert high.s > SECP256K1_HALF_ORDER
    assert recover_public_key(digest, high) == KEY.public_key()


def test_signature_rejects_out_of_range():
    with pytest.raises(CryptoError):
        Signature(r=0, s=1, recovery_id=0)
    with pytest.raises(CryptoError):
        Signature(r=1, s=SECP256K1_ORDER, recovery_id=0)
    with pytest.raises(CryptoError):
        Signature(r=1, s=1, recovery_id=2)
    with pytest.raises(CryptoError):
        Signature.from_bytes(b"\x01" * 64)


def test_sign_hash_rejects_bad_input():
    with pytest.raises(SigningError):
        sign_hash(b"\x00" * 32, b"\x11" * 32)
    with pytest.raises(SigningError):
        sign_hash(KEY, b"\x11" * 31)


def test_personal_message_roundtrip():
    assert hash_message("hello") == hash_message(b"hello")
    assert hash_message("hello") != hash_message("hello!")
    signature = sign_message(KEY, "hello")
    assert recover_message_signer("hello", signature) == KEY.public_key().checksum_address()
    assert recover_message_signer("hello", signature.to_bytes(27)) == KEY.public_key().checksum_address()
    assert recover_message_signer("goodbye", signature) != KEY.public_key().checksum_address()


def _track_built_keys(monkeypatch):
    built = []

    class TrackedKey(PrivateKey):
        def __init__(self, key):
            super().__init__(key)
            built.append(self)

    monkeypatch.setattr(signature, "PrivateKey", TrackedKey)
    return built


def test_key_built_from_bytes_is_wiped(monkeypatch):
    built = _track_built_keys(monkeypatch)
    result = sign_message(b"\x46" * 32, "hi")
    assert recover_message_signer("hi", result) == KEY.public_key().checksum_address()
    assert len(built) == 1 and built[0].wiped


def test_key_built_from_hex_is_wiped_on_failure(monkeypatch):
    built = _track_built_keys(monkeypatch)
    with pytest.raises(SigningError):
        sign_hash("46" * 32, b"\x11" * 31)
    assert len(built) == 1 and built[0].wiped


def test_caller_key_is_not_wiped():
    key = PrivateKey("46" * 32)
    sign_message(key, "hi")
    assert not key.wiped
