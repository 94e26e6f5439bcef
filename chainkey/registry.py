"""Coin registry mapping coin names to BIP44 coin types and address rules."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Mapping, Optional

from .exceptions import ValidationError

__all__ = [
    "AddressFormat",
    "CoinInfo",
    "CoinRegistry",
    "DEFAULT_REGISTRY",
    "ETHEREUM",
    "LATTICE",
]

logger = logging.getLogger(__name__)


class AddressFormat(str, Enum):
    """Address text formats."""
    EVM = "evm"
    LATTICE = "lattice"


_HASHES = ("keccak256", "sha256")


@dataclass(frozen=True)
class CoinInfo:
    """Registry entry for one chain family."""
    name: str
    coin_type: int
    symbol: str = ""
    address_hash: str = "keccak256"
    address_format: AddressFormat = AddressFormat.EVM

    def __post_init__(self) -> None:
        if not 0 <= self.coin_type < 0x80000000:
            raise ValidationError(f"Coin type out of range: {self.coin_type}")
        if self.address_hash not in _HASHES:
            raise ValidationError(f"Unsupported address hash: {self.address_hash}")
        try:
            object.__setattr__(self, "address_format", AddressFormat(self.address_format))
        except ValueError:
            raise ValidationError(f"Unsupported address format: {self.address_format}") from None


class CoinRegistry(Mapping[str, CoinInfo]):
    """
    Name-keyed collection of CoinInfo entries.

    Registries are plain values: pass one explicitly to the path and address
    helpers to support additional chain families or synthetic test chains.
    """

    def __init__(self, coins: Optional[Mapping[str, CoinInfo]] = None) -> None:
        self._coins: Dict[str, CoinInfo] = {}
        for coin in (coins or {}).values():
            self.register(coin)

    def register(self, coin: CoinInfo) -> None:
        """Add or replace an entry."""
        self._coins[coin.name.lower()] = coin
        logger.debug(f"Registered coin {coin.name} (type {coin.coin_type})")

    def coin_type(self, name: str) -> int:
        """Get the BIP44 coin type for a coin name."""
        return self[name].coin_type

    def get(self, name: str, default: Optional[CoinInfo] = None) -> Optional[CoinInfo]:
        return self._coins.get(name.lower(), default)

    def copy(self) -> "CoinRegistry":
        """Return an independent registry with the same entries."""
        return CoinRegistry(self._coins)

    def __getitem__(self, name: str) -> CoinInfo:
        try:
            return self._coins[name.lower()]
        except KeyError:
            raise ValidationError(f"Unknown coin: {name}") from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._coins)

    def __len__(self) -> int:
        return len(self._coins)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._coins

    def __repr__(self) -> str:
        return f"CoinRegistry({sorted(self._coins)})"


ETHEREUM = CoinInfo(name="ethereum", coin_type=60, symbol="ETH")

LATTICE = CoinInfo(
    name="lattice",
    coin_type=60,
    symbol="LTC",
    address_hash="sha256",
    address_format=AddressFormat.LATTICE,
)

DEFAULT_REGISTRY = CoinRegistry({
    "ethereum": ETHEREUM,
    "ethereum-classic": CoinInfo(name="ethereum-classic", coin_type=61, symbol="ETC"),
    "testnet": CoinInfo(name="testnet", coin_type=1, symbol="TEST"),
    "lattice": LATTICE,
})
