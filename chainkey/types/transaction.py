"""Transaction type definitions for chainkey."""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Union

from ..constants import TransactionType
from ..exceptions import TransactionError, UnsupportedTransactionType
from ..types.common import Address, ChainId, HexStr, Wei
from ..utils.encoding import bytes_to_hex, hex_to_bytes, keccak256
from ..utils.validation import validate_address

__all__ = [
    "AccessListEntry",
    "LegacyTransaction",
    "AccessListTransaction",
    "FeeMarketTransaction",
    "UnsignedTransaction",
    "SignedTransaction",
    "transaction_from_dict",
]


def _check_uint(name: str, value: Any) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise TransactionError(f"{name} must be a non-negative integer, got {value!r}")


def _normalize_data(value: Union[bytes, bytearray, str]) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return hex_to_bytes(value)
    raise TransactionError(f"data must be bytes or hex string, got {type(value).__name__}")


@dataclass(frozen=True)
class AccessListEntry:
    """EIP-2930 access list item: an address and the storage slots it touches."""
    address: Address
    storage_keys: Tuple[bytes, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", validate_address(self.address))
        keys = tuple(_normalize_data(key) for key in self.storage_keys)
        for key in keys:
            if len(key) != 32:
                raise TransactionError(f"Storage key must be 32 bytes, got {len(key)}")
        object.__setattr__(self, "storage_keys", keys)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "storageKeys": [bytes_to_hex(key, prefix=True) for key in self.storage_keys],
        }


@dataclass(frozen=True)
class _BaseTransaction:
    """Fields and checks shared by every transaction type."""

    tx_type: ClassVar[TransactionType]
    _uint_fields: ClassVar[Tuple[str, ...]] = ("nonce", "gas", "value")

    def __post_init__(self) -> None:
        for name in self._uint_fields:
            _check_uint(name, getattr(self, name))
        chain_id = getattr(self, "chain_id")
        if chain_id is not None:
            _check_uint("chain_id", chain_id)
        if self.to is not None:
            object.__setattr__(self, "to", validate_address(self.to))
        object.__setattr__(self, "data", _normalize_data(self.data))
        access_list = getattr(self, "access_list", None)
        if access_list is not None:
            object.__setattr__(self, "access_list", tuple(
                entry if isinstance(entry, AccessListEntry) else _access_entry_from_dict(entry)
                for entry in access_list
            ))

    @property
    def is_contract_creation(self) -> bool:
        """True when the transaction has no recipient."""
        return self.to is None


@dataclass(frozen=True)
class LegacyTransaction(_BaseTransaction):
    """
    Pre-EIP-2718 transaction.

    With a chain_id the signature is EIP-155 replay protected; without one it
    is a plain Homestead signature.
    """
    nonce: int
    gas_price: Wei
    gas: int
    to: Optional[Address] = None
    value: Wei = Wei(0)
    data: bytes = b""
    chain_id: Optional[ChainId] = None

    tx_type: ClassVar[TransactionType] = TransactionType.LEGACY
    _uint_fields: ClassVar[Tuple[str, ...]] = ("nonce", "gas_price", "gas", "value")

    def to_dict(self) -> Dict[str, Any]:
        result = _common_dict(self)
        result["gasPrice"] = self.gas_price
        if self.chain_id is not None:
            result["chainId"] = self.chain_id
        return result


@dataclass(frozen=True)
class AccessListTransaction(_BaseTransaction):
    """EIP-2930 transaction (type 0x01)."""
    chain_id: ChainId
    nonce: int
    gas_price: Wei
    gas: int
    to: Optional[Address] = None
    value: Wei = Wei(0)
    data: bytes = b""
    access_list: Tuple[AccessListEntry, ...] = field(default_factory=tuple)

    tx_type: ClassVar[TransactionType] = TransactionType.ACCESS_LIST
    _uint_fields: ClassVar[Tuple[str, ...]] = ("nonce", "gas_price", "gas", "value")

    def to_dict(self) -> Dict[str, Any]:
        result = _common_dict(self)
        result.update({
            "chainId": self.chain_id,
            "gasPrice": self.gas_price,
            "accessList": [entry.to_dict() for entry in self.access_list],
        })
        return result


@dataclass(frozen=True)
class FeeMarketTransaction(_BaseTransaction):
    """EIP-1559 transaction (type 0x02)."""
    chain_id: ChainId
    nonce: int
    max_priority_fee_per_gas: Wei
    max_fee_per_gas: Wei
    gas: int
    to: Optional[Address] = None
    value: Wei = Wei(0)
    data: bytes = b""
    access_list: Tuple[AccessListEntry, ...] = field(default_factory=tuple)

    tx_type: ClassVar[TransactionType] = TransactionType.FEE_MARKET
    _uint_fields: ClassVar[Tuple[str, ...]] = (
        "nonce", "max_priority_fee_per_gas", "max_fee_per_gas", "gas", "value",
    )

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.max_priority_fee_per_gas > self.max_fee_per_gas:
            raise TransactionError("max_priority_fee_per_gas exceeds max_fee_per_gas")

    def to_dict(self) -> Dict[str, Any]:
        result = _common_dict(self)
        result.update({
            "chainId": self.chain_id,
            "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
            "maxFeePerGas": self.max_fee_per_gas,
            "accessList": [entry.to_dict() for entry in self.access_list],
        })
        return result


UnsignedTransaction = Union[LegacyTransaction, AccessListTransaction, FeeMarketTransaction]
"""Any transaction the signer accepts."""


@dataclass(frozen=True)
class SignedTransaction:
    """Signed transaction with its canonical wire encoding."""
    transaction: UnsignedTransaction
    v: int
    r: int
    s: int
    raw_transaction: bytes
    sender: Optional[Address] = None

    @property
    def tx_type(self) -> TransactionType:
        return self.transaction.tx_type

    @property
    def chain_id(self) -> Optional[int]:
        return self.transaction.chain_id

    @property
    def hash(self) -> bytes:
        """Transaction hash (keccak-256 of the raw transaction)."""
        return keccak256(self.raw_transaction)

    @property
    def recovery_id(self) -> int:
        """Raw 0/1 public key recovery parity, whatever the v encoding."""
        if self.tx_type != TransactionType.LEGACY:
            return self.v
        if self.v in (27, 28):
            return self.v - 27
        return (self.v - 35) % 2

    def hex(self) -> HexStr:
        """Raw transaction as 0x-prefixed hex, ready for eth_sendRawTransaction."""
        return bytes_to_hex(self.raw_transaction, prefix=True)

    def __repr__(self) -> str:
        return (
            f"SignedTransaction(type={self.tx_type.name}, chain_id={self.chain_id}, "
            f"hash={bytes_to_hex(self.hash, prefix=True)})"
        )


def _common_dict(tx: UnsignedTransaction) -> Dict[str, Any]:
    return {
        "type": int(tx.tx_type),
        "nonce": tx.nonce,
        "gas": tx.gas,
        "to": tx.to,
        "value": tx.value,
        "data": bytes_to_hex(tx.data, prefix=True),
    }


def _access_entry_from_dict(entry: Any) -> AccessListEntry:
    if isinstance(entry, Mapping):
        return AccessListEntry(
            address=entry["address"],
            storage_keys=tuple(entry.get("storageKeys", entry.get("storage_keys", ()))),
        )
    if isinstance(entry, (tuple, list)) and len(entry) == 2:
        return AccessListEntry(address=entry[0], storage_keys=tuple(entry[1]))
    raise TransactionError(f"Invalid access list entry: {entry!r}")


def _to_int(value: Union[int, str]) -> int:
    if isinstance(value, str):
        try:
            return int(value, 16) if value.lower().startswith("0x") else int(value)
        except ValueError as e:
            raise TransactionError(f"Invalid integer field: {value!r}") from e
    return value


def _detect_type(tx: Mapping[str, Any]) -> Any:
    if "type" in tx and tx["type"] is not None:
        raw = tx["type"]
        try:
            return TransactionType(_to_int(raw))
        except (ValueError, TransactionError):
            raise UnsupportedTransactionType(raw) from None
    if "maxFeePerGas" in tx or "maxPriorityFeePerGas" in tx:
        return TransactionType.FEE_MARKET
    if "accessList" in tx:
        return TransactionType.ACCESS_LIST
    return TransactionType.LEGACY


def transaction_from_dict(tx: Mapping[str, Any]) -> UnsignedTransaction:
    """
    Build a typed transaction from a JSON-RPC style mapping.

    Args:
        tx: Mapping with camelCase keys (nonce, gas, gasPrice, maxFeePerGas,
            maxPriorityFeePerGas, to, value, data or input, chainId,
            accessList, type). Integers may be ints or hex strings.

    Returns:
        LegacyTransaction, AccessListTransaction or FeeMarketTransaction

    Raises:
        UnsupportedTransactionType: If the type tag is unknown
        TransactionError: If a required field is missing or malformed
    """
    tx_type = _detect_type(tx)

    def required(key: str) -> int:
        if key not in tx:
            raise TransactionError(f"Missing transaction field: {key}")
        return _to_int(tx[key])

    common: Dict[str, Any] = {
        "nonce": required("nonce"),
        "gas": required("gas"),
        "to": tx.get("to") or None,
        "value": _to_int(tx.get("value", 0)),
        "data": tx.get("data", tx.get("input", b"")) or b"",
    }
    access_list: List[AccessListEntry] = [
        _access_entry_from_dict(entry) for entry in tx.get("accessList", [])
    ]

    if tx_type == TransactionType.LEGACY:
        chain_id = tx.get("chainId")
        return LegacyTransaction(
            gas_price=required("gasPrice"),
            chain_id=_to_int(chain_id) if chain_id is not None else None,
            **common,
        )
    if tx_type == TransactionType.ACCESS_LIST:
        return AccessListTransaction(
            chain_id=required("chainId"),
            gas_price=required("gasPrice"),
            access_list=tuple(access_list),
            **common,
        )
    return FeeMarketTransaction(
        chain_id=required("chainId"),
        max_priority_fee_per_gas=required("maxPriorityFeePerGas"),
        max_fee_per_gas=required("maxFeePerGas"),
        access_list=tuple(access_list),
        **common,
    )
