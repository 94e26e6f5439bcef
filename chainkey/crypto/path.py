"""BIP44 derivation paths for chainkey."""

import re
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple, Union

from ..constants import BIP44_PURPOSE, HARDENED_OFFSET, MAX_CHILD_INDEX
from ..exceptions import InvalidDerivationPath
from ..registry import CoinRegistry, DEFAULT_REGISTRY

__all__ = [
    "PathSegment",
    "DerivationPath",
    "parse_path",
    "format_path",
    "standard_path",
    "coin_path",
]

SEGMENT_PATTERN = re.compile(r"([0-9]+)(['hH]?)")


@dataclass(frozen=True)
class PathSegment:
    """One path step: a 31-bit index plus the hardened flag."""
    index: int
    hardened: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.index, int) or isinstance(self.index, bool):
            raise InvalidDerivationPath("Path index must be an integer")
        if not 0 <= self.index <= MAX_CHILD_INDEX:
            raise InvalidDerivationPath(f"Path index out of range: {self.index}")

    @classmethod
    def from_child_number(cls, child_number: int) -> "PathSegment":
        """Split a 32-bit BIP32 child number into index and hardened flag."""
        if not 0 <= child_number < 2 * HARDENED_OFFSET:
            raise InvalidDerivationPath(f"Child number out of range: {child_number}")
        if child_number >= HARDENED_OFFSET:
            return cls(child_number - HARDENED_OFFSET, hardened=True)
        return cls(child_number)

    @property
    def child_number(self) -> int:
        """Index with the hardened offset applied."""
        return self.index + HARDENED_OFFSET if self.hardened else self.index

    def __str__(self) -> str:
        return f"{self.index}'" if self.hardened else str(self.index)


@dataclass(frozen=True)
class DerivationPath:
    """Sequence of segments below the master key."""
    segments: Tuple[PathSegment, ...] = ()

    @classmethod
    def parse(cls, text: str) -> "DerivationPath":
        return parse_path(text)

    @property
    def depth(self) -> int:
        return len(self.segments)

    def child(self, index: int, hardened: bool = False) -> "DerivationPath":
        """Path extended by one segment."""
        return DerivationPath(self.segments + (PathSegment(index, hardened),))

    def __iter__(self) -> Iterator[PathSegment]:
        return iter(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    def __str__(self) -> str:
        return format_path(self)


def parse_path(text: str) -> DerivationPath:
    """
    Parse a derivation path such as ``m/44'/60'/0'/0/0``.

    ``'``, ``h`` and ``H`` all mark a hardened segment. ``m`` alone is the
    root path.

    Args:
        text: Path text

    Returns:
        DerivationPath

    Raises:
        InvalidDerivationPath: If the path does not start with ``m``, a
            segment is malformed or an index does not fit in 31 bits
    """
    if not isinstance(text, str):
        raise InvalidDerivationPath("Derivation path must be a string")

    parts = text.strip().split("/")
    if parts[0] != "m":
        raise InvalidDerivationPath(f"Derivation path must start with 'm': {text!r}")

    segments = []
    for position, part in enumerate(parts[1:], start=1):
        match = SEGMENT_PATTERN.fullmatch(part)
        if not match:
            raise InvalidDerivationPath(f"Malformed segment {part!r} at position {position}")
        index = int(match.group(1))
        if index > MAX_CHILD_INDEX:
            raise InvalidDerivationPath(f"Index {index} at position {position} exceeds 2^31 - 1")
        segments.append(PathSegment(index, hardened=bool(match.group(2))))

    return DerivationPath(tuple(segments))


def format_path(path: Union[DerivationPath, Tuple[PathSegment, ...]]) -> str:
    """Render a path in canonical text form (``'`` for hardened)."""
    segments = path.segments if isinstance(path, DerivationPath) else path
    return "/".join(["m"] + [str(segment) for segment in segments])


def standard_path(
    coin_type: int,
    account: int = 0,
    change: int = 0,
    address_index: int = 0
) -> DerivationPath:
    """Build ``m/44'/coin'/account'/change/address_index``."""
    return DerivationPath((
        PathSegment(BIP44_PURPOSE, hardened=True),
        PathSegment(coin_type, hardened=True),
        PathSegment(account, hardened=True),
        PathSegment(change),
        PathSegment(address_index),
    ))


def coin_path(
    coin: str,
    account: int = 0,
    change: int = 0,
    address_index: int = 0,
    registry: Optional[CoinRegistry] = None
) -> DerivationPath:
    """BIP44 path for a coin looked up by name in the registry."""
    registry = registry if registry is not None else DEFAULT_REGISTRY
    return standard_path(registry.coin_type(coin), account, change, address_index)
