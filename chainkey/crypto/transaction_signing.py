"""Transaction serialization and signing for chainkey."""

import logging
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, Union

from ..constants import EIP155_CHAIN_ID_OFFSET, LEGACY_V_OFFSET, TransactionType
from ..exceptions import (
    ChainKeyError,
    CryptoError,
    SerializationError,
    SigningError,
    UnsupportedTransactionType,
    ValidationError,
)
from ..types.common import Address, ChecksumAddress
from ..types.transaction import (
    AccessListEntry,
    AccessListTransaction,
    FeeMarketTransaction,
    LegacyTransaction,
    SignedTransaction,
    UnsignedTransaction,
)
from ..utils.encoding import bytes_to_int, hex_to_bytes, keccak256, rlp_decode, rlp_encode
from .keys import PrivateKey
from .secret import SecretBytes
from .signature import Signature, recover_public_key, sign_hash

__all__ = [
    "serialize_unsigned",
    "signing_hash",
    "sign_transaction",
    "decode_signed_transaction",
    "recover_sender",
]

logger = logging.getLogger(__name__)


def _to_field(to: Optional[str]) -> bytes:
    return b"" if to is None else hex_to_bytes(to)


def _access_list_field(access_list: Tuple[AccessListEntry, ...]) -> List[Any]:
    return [[hex_to_bytes(entry.address), list(entry.storage_keys)] for entry in access_list]


def _legacy_fields(tx: LegacyTransaction) -> List[Any]:
    return [tx.nonce, tx.gas_price, tx.gas, _to_field(tx.to), tx.value, tx.data]


def _access_list_fields(tx: AccessListTransaction) -> List[Any]:
    return [
        tx.chain_id, tx.nonce, tx.gas_price, tx.gas,
        _to_field(tx.to), tx.value, tx.data, _access_list_field(tx.access_list),
    ]


def _fee_market_fields(tx: FeeMarketTransaction) -> List[Any]:
    return [
        tx.chain_id, tx.nonce, tx.max_priority_fee_per_gas, tx.max_fee_per_gas, tx.gas,
        _to_field(tx.to), tx.value, tx.data, _access_list_field(tx.access_list),
    ]


_FIELD_BUILDERS: Dict[Type[Any], Callable[[Any], List[Any]]] = {
    LegacyTransaction: _legacy_fields,
    AccessListTransaction: _access_list_fields,
    FeeMarketTransaction: _fee_market_fields,
}


def _fields_for(tx: Any) -> List[Any]:
    builder = _FIELD_BUILDERS.get(type(tx))
    if builder is None:
        raise UnsupportedTransactionType(getattr(tx, "tx_type", type(tx).__name__))
    return builder(tx)


def _envelope(tx_type: TransactionType, fields: List[Any]) -> bytes:
    if tx_type == TransactionType.LEGACY:
        return rlp_encode(fields)
    return bytes([tx_type]) + rlp_encode(fields)


def serialize_unsigned(tx: UnsignedTransaction) -> bytes:
    """
    Serialize a transaction into its signing pre-image.

    Legacy: rlp([nonce, gasPrice, gas, to, value, data]) with
    [chainId, 0, 0] appended when a chain id is set (EIP-155).
    Typed: type byte || rlp(payload) (EIP-2718).

    Raises:
        UnsupportedTransactionType: If tx is not a known transaction type
    """
    fields = _fields_for(tx)
    if isinstance(tx, LegacyTransaction) and tx.chain_id is not None:
        fields += [tx.chain_id, 0, 0]
    return _envelope(tx.tx_type, fields)


def signing_hash(tx: UnsignedTransaction) -> bytes:
    """Keccak-256 of the signing pre-image."""
    return keccak256(serialize_unsigned(tx))


def _legacy_v(recovery_id: int, chain_id: Optional[int]) -> int:
    if chain_id is None:
        return LEGACY_V_OFFSET + recovery_id
    return recovery_id + chain_id * 2 + EIP155_CHAIN_ID_OFFSET


def sign_transaction(
    private_key: Union[PrivateKey, SecretBytes, bytes, str],
    tx: UnsignedTransaction
) -> SignedTransaction:
    """
    Sign a transaction.

    Args:
        private_key: Signing key; keys built here from raw bytes are wiped
            before returning
        tx: Legacy, access-list or fee-market transaction

    Returns:
        SignedTransaction with v, r, s and the broadcastable raw bytes

    Raises:
        UnsupportedTransactionType: If tx is not a known transaction type
        SigningError: If the key is invalid or the curve operation fails
    """
    fields = _fields_for(tx)

    owned = not isinstance(private_key, PrivateKey)
    if owned:
        try:
            key = PrivateKey(private_key)
        except (ValidationError, ValueError) as e:
            raise SigningError(f"Invalid signing key: {e}") from e
    else:
        key = private_key

    try:
        signature = sign_hash(key, signing_hash(tx))
        sender = key.public_key().checksum_address()
    finally:
        if owned:
            key.wipe()

    if isinstance(tx, LegacyTransaction):
        v = _legacy_v(signature.recovery_id, tx.chain_id)
    else:
        v = signature.recovery_id

    raw = _envelope(tx.tx_type, fields + [v, signature.r, signature.s])
    logger.debug(
        f"Signed {tx.tx_type.name} transaction nonce={tx.nonce} chain_id={tx.chain_id}"
    )
    return SignedTransaction(
        transaction=tx,
        v=v,
        r=signature.r,
        s=signature.s,
        raw_transaction=raw,
        sender=Address(sender),
    )


def _int_field(value: Any, name: str) -> int:
    if not isinstance(value, bytes):
        raise SerializationError(f"Field {name} must be a byte string")
    if value[:1] == b"\x00":
        raise SerializationError(f"Field {name} has leading zero bytes")
    return bytes_to_int(value)


def _bytes_field(value: Any, name: str) -> bytes:
    if not isinstance(value, bytes):
        raise SerializationError(f"Field {name} must be a byte string")
    return value


def _to_from_field(value: Any) -> Optional[Address]:
    to = _bytes_field(value, "to")
    if not to:
        return None
    if len(to) != 20:
        raise SerializationError(f"Recipient must be 20 bytes, got {len(to)}")
    return Address("0x" + to.hex())


def _access_list_from_field(value: Any) -> Tuple[AccessListEntry, ...]:
    if not isinstance(value, list):
        raise SerializationError("Access list must be an RLP list")
    entries = []
    for item in value:
        if not isinstance(item, list) or len(item) != 2 or not isinstance(item[1], list):
            raise SerializationError("Malformed access list entry")
        address = _bytes_field(item[0], "accessList.address")
        if len(address) != 20:
            raise SerializationError("Access list address must be 20 bytes")
        keys = tuple(_bytes_field(key, "accessList.storageKey") for key in item[1])
        entries.append(AccessListEntry(address=Address("0x" + address.hex()), storage_keys=keys))
    return tuple(entries)


def _decode_legacy(items: List[Any]) -> Tuple[UnsignedTransaction, List[Any]]:
    if len(items) != 9:
        raise SerializationError(f"Legacy transaction must have 9 fields, got {len(items)}")
    v = _int_field(items[6], "v")
    if v in (LEGACY_V_OFFSET, LEGACY_V_OFFSET + 1):
        chain_id = None
    elif v >= EIP155_CHAIN_ID_OFFSET:
        chain_id = (v - EIP155_CHAIN_ID_OFFSET) // 2
    else:
        raise SerializationError(f"Invalid legacy v value: {v}")
    tx = LegacyTransaction(
        nonce=_int_field(items[0], "nonce"),
        gas_price=_int_field(items[1], "gasPrice"),
        gas=_int_field(items[2], "gas"),
        to=_to_from_field(items[3]),
        value=_int_field(items[4], "value"),
        data=_bytes_field(items[5], "data"),
        chain_id=chain_id,
    )
    return tx, items[6:]


def _decode_access_list(items: List[Any]) -> Tuple[UnsignedTransaction, List[Any]]:
    if len(items) != 11:
        raise SerializationError(f"Access list transaction must have 11 fields, got {len(items)}")
    tx = AccessListTransaction(
        chain_id=_int_field(items[0], "chainId"),
        nonce=_int_field(items[1], "nonce"),
        gas_price=_int_field(items[2], "gasPrice"),
        gas=_int_field(items[3], "gas"),
        to=_to_from_field(items[4]),
        value=_int_field(items[5], "value"),
        data=_bytes_field(items[6], "data"),
        access_list=_access_list_from_field(items[7]),
    )
    return tx, items[8:]


def _decode_fee_market(items: List[Any]) -> Tuple[UnsignedTransaction, List[Any]]:
    if len(items) != 12:
        raise SerializationError(f"Fee market transaction must have 12 fields, got {len(items)}")
    tx = FeeMarketTransaction(
        chain_id=_int_field(items[0], "chainId"),
        nonce=_int_field(items[1], "nonce"),
        max_priority_fee_per_gas=_int_field(items[2], "maxPriorityFeePerGas"),
        max_fee_per_gas=_int_field(items[3], "maxFeePerGas"),
        gas=_int_field(items[4], "gas"),
        to=_to_from_field(items[5]),
        value=_int_field(items[6], "value"),
        data=_bytes_field(items[7], "data"),
        access_list=_access_list_from_field(items[8]),
    )
    return tx, items[9:]


_DECODERS = {
    TransactionType.ACCESS_LIST: _decode_access_list,
    TransactionType.FEE_MARKET: _decode_fee_market,
}


def decode_signed_transaction(raw: Union[bytes, str]) -> SignedTransaction:
    """
    Decode a raw signed transaction and recover its sender.

    Args:
        raw: Raw transaction bytes or hex string

    Returns:
        SignedTransaction

    Raises:
        UnsupportedTransactionType: If the envelope type byte is unknown
        SerializationError: If the encoding is malformed
        CryptoError: If no sender can be recovered from the signature
    """
    if isinstance(raw, str):
        raw = hex_to_bytes(raw)
    if not raw:
        raise SerializationError("Empty transaction")

    try:
        if raw[0] >= 0xc0:
            payload = rlp_decode(raw)
            if not isinstance(payload, list):
                raise SerializationError("Legacy transaction must be an RLP list")
            tx, signature_fields = _decode_legacy(payload)
        else:
            try:
                decoder = _DECODERS[TransactionType(raw[0])]
            except (ValueError, KeyError):
                raise UnsupportedTransactionType(raw[0]) from None
            payload = rlp_decode(raw[1:])
            if not isinstance(payload, list):
                raise SerializationError("Typed transaction payload must be an RLP list")
            tx, signature_fields = decoder(payload)
    except (SerializationError, UnsupportedTransactionType):
        raise
    except ChainKeyError as e:
        raise SerializationError(f"Invalid transaction field: {e.message}") from e

    signed = SignedTransaction(
        transaction=tx,
        v=_int_field(signature_fields[0], "v"),
        r=_int_field(signature_fields[1], "r"),
        s=_int_field(signature_fields[2], "s"),
        raw_transaction=bytes(raw),
    )
    return replace(signed, sender=Address(recover_sender(signed)))


def recover_sender(signed: SignedTransaction) -> ChecksumAddress:
    """
    Recover the checksummed sender address of a signed transaction.

    Raises:
        CryptoError: If the signature values are invalid
    """
    if not isinstance(signed.transaction, LegacyTransaction) and signed.v not in (0, 1):
        raise CryptoError(f"Typed transaction y-parity must be 0 or 1, got {signed.v}")
    signature = Signature(r=signed.r, s=signed.s, recovery_id=signed.recovery_id)
    return recover_public_key(signing_hash(signed.transaction), signature).checksum_address()
