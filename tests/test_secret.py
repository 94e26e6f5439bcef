import copy
import pickle

import pytest

from chainkey.crypto.secret import SecretBytes


def test_wipe_zeroes_buffer():
    secret = SecretBytes(b"\x01\x02\x03")
    buffer = secret._buffer
    secret.wipe()
    assert secret.wiped
    assert bytes(buffer) == b"\x00\x00\x00"
    with pytest.raises(ValueError):
        bytes(secret)
    secret.wipe()


def test_context_manager_wipes_on_error():
    with pytest.raises(RuntimeError):
        with SecretBytes(b"\xaa" * 4) as secret:
            raise RuntimeError("boom")
    assert secret.wiped


def test_take_wipes_source():
    source = bytearray(b"\x05" * 8)
    secret = SecretBytes.take(source)
    assert source == bytearray(8)
    assert bytes(secret) == b"\x05" * 8


def test_repr_is_redacted():
    secret = SecretBytes(b"topsecret")
    assert "topsecret" not in repr(secret)
    assert "9 bytes" in repr(secret)


def test_copy_and_pickle_refused():
    secret = SecretBytes(b"\x01")
    with pytest.raises(TypeError):
        copy.copy(secret)
    with pytest.raises(TypeError):
        copy.deepcopy(secret)
    with pytest.raises(TypeError):
        pickle.dumps(secret)


def test_equality_and_slicing():
    secret = SecretBytes(b"\x01\x02\x03\x04")
    assert secret == b"\x01\x02\x03\x04"
    assert secret == SecretBytes(b"\x01\x02\x03\x04")
    assert secret[1:3] == b"\x02\x03"
    assert len(secret) == 4
