"""Zeroizing buffer for key material."""

import hmac
from typing import Any, Union

__all__ = ["SecretBytes"]


class SecretBytes:
    """
    Owned, wipeable byte buffer for seeds, private scalars and derived keys.

    The bytes live in a private bytearray that is overwritten with zeros by
    wipe(), on leaving a ``with`` block (including on exceptions) and when the
    object is finalized. Copying and pickling are refused so a secret has a
    single owner, and repr() never shows the contents.

    Immutable ``bytes`` handed out by ``bytes(secret)`` cannot be wiped; keep
    them short-lived and prefer passing the SecretBytes itself.
    """

    __slots__ = ("_buffer", "_wiped")

    def __init__(self, data: Union[bytes, bytearray, memoryview, "SecretBytes"]) -> None:
        if isinstance(data, SecretBytes):
            data = data._view()
        self._buffer = bytearray(data)
        self._wiped = False

    @classmethod
    def take(cls, buffer: bytearray) -> "SecretBytes":
        """Copy a bytearray into a new SecretBytes and wipe the source."""
        secret = cls(buffer)
        for i in range(len(buffer)):
            buffer[i] = 0
        return secret

    def _view(self) -> bytearray:
        if self._wiped:
            raise ValueError("Secret has been wiped")
        return self._buffer

    @property
    def wiped(self) -> bool:
        return self._wiped

    def wipe(self) -> None:
        """Overwrite every byte with zero. Idempotent."""
        buffer = getattr(self, "_buffer", None)
        if buffer is None:
            return
        for i in range(len(buffer)):
            buffer[i] = 0
        self._wiped = True

    def hex(self) -> str:
        return self._view().hex()

    def __bytes__(self) -> bytes:
        return bytes(self._view())

    def __len__(self) -> int:
        return len(self._buffer)

    def __getitem__(self, key: Any) -> bytes:
        return bytes(self._view()[key])

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SecretBytes):
            other = other._view()
        if not isinstance(other, (bytes, bytearray)):
            return NotImplemented
        return hmac.compare_digest(bytes(self._view()), bytes(other))

    __hash__ = None  # type: ignore[assignment]

    def __enter__(self) -> "SecretBytes":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.wipe()

    def __del__(self) -> None:
        self.wipe()

    def __copy__(self) -> "SecretBytes":
        raise TypeError("SecretBytes cannot be copied")

    def __deepcopy__(self, memo: Any) -> "SecretBytes":
        raise TypeError("SecretBytes cannot be copied")

    def __reduce__(self) -> Any:
        raise TypeError("SecretBytes cannot be pickled")

    def __repr__(self) -> str:
        state = "wiped" if self._wiped else f"{len(self._buffer)} bytes"
        return f"SecretBytes(<{state}>)"
