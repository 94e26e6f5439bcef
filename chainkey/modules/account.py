"""Account module for chainkey."""

import logging
import os
from typing import Optional, Union

from ..crypto.address import address_from_public_key, to_checksum_address
from ..crypto.keys import PrivateKey, PublicKey
from ..crypto.keystore import KdfParams, Keystore, KeystoreLayout, Password, decrypt, encrypt, load
from ..crypto.secret import SecretBytes
from ..crypto.signature import Signature, sign_message
from ..crypto.transaction_signing import sign_transaction
from ..exceptions import WalletError
from ..registry import AddressFormat, CoinInfo, ETHEREUM, LATTICE
from ..types.transaction import SignedTransaction, UnsignedTransaction

__all__ = ["LocalAccount", "KeystoreAccount"]

logger = logging.getLogger(__name__)


class LocalAccount:
    """
    Account backed by an in-memory private key.

    The key is wiped by wipe() or on leaving a ``with`` block; the account
    cannot sign afterwards.
    """

    def __init__(
        self,
        private_key: Union[PrivateKey, SecretBytes, bytes, str],
        coin: Optional[CoinInfo] = None,
        path: Optional[str] = None,
        label: Optional[str] = None,
    ) -> None:
        """
        Initialize account.

        Args:
            private_key: Account private key; a PrivateKey is taken over, not copied
            coin: Registry entry used for the address format
            path: Derivation path the key came from, if any
            label: Account label
        """
        if not isinstance(private_key, PrivateKey):
            private_key = PrivateKey(private_key)
        self._private_key = private_key
        self._public_key = private_key.public_key()
        self.coin = coin or ETHEREUM
        self.path = path
        self.label = label
        self._address = address_from_public_key(self._public_key, coin=self.coin)

        self._logger = logging.getLogger(f"{__name__}.LocalAccount")

    @classmethod
    def create(cls, coin: Optional[CoinInfo] = None, label: Optional[str] = None) -> "LocalAccount":
        """Create account with a fresh random key."""
        account = cls(PrivateKey.create(), coin=coin, label=label)
        account._logger.info(f"Created account: {account.address}")
        return account

    @property
    def address(self) -> str:
        """Address in the coin's text format."""
        return self._address

    @property
    def public_key(self) -> PublicKey:
        return self._public_key

    @property
    def is_wiped(self) -> bool:
        return self._private_key.wiped

    def _key(self) -> PrivateKey:
        if self.is_wiped:
            raise WalletError(f"Account {self.address} has been wiped")
        return self._private_key

    def sign_transaction(self, tx: UnsignedTransaction) -> SignedTransaction:
        """Sign a transaction with this account's key."""
        signed = sign_transaction(self._key(), tx)
        self._logger.info(
            f"Signed {signed.tx_type.name} transaction {signed.hex()[:18]}... from {self.address}"
        )
        return signed

    def sign_message(self, message: Union[str, bytes]) -> Signature:
        """Sign an EIP-191 personal message."""
        return sign_message(self._key(), message)

    def encrypt(self, password: Password, kdf_params: Optional[KdfParams] = None) -> Keystore:
        """
        Export the key as a password-encrypted keystore.

        Lattice accounts are written in the Lattice FileKey layout, which
        requires scrypt.
        """
        if self.coin.address_format == AddressFormat.LATTICE:
            layout = KeystoreLayout.LATTICE
        else:
            layout = KeystoreLayout.WEB3
        keystore = encrypt(self._key(), password, kdf_params, layout=layout)
        self._logger.info(f"Exported keystore {keystore.id} for {self.address}")
        return keystore

    def wipe(self) -> None:
        """Erase the private key."""
        self._private_key.wipe()

    def __enter__(self) -> "LocalAccount":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.wipe()

    def __repr__(self) -> str:
        label = f", label={self.label!r}" if self.label else ""
        return f"LocalAccount({self.address}{label})"


class KeystoreAccount:
    """
    Account whose key stays encrypted at rest.

    Every signing call decrypts the key with the supplied password, signs and
    wipes the key again, whether or not signing succeeds.
    """

    def __init__(self, keystore: Keystore, label: Optional[str] = None) -> None:
        self.keystore = keystore
        self.label = label
        self._logger = logging.getLogger(f"{__name__}.KeystoreAccount")

    @classmethod
    def from_file(cls, path: Union[str, os.PathLike], label: Optional[str] = None) -> "KeystoreAccount":
        """Load account from a keystore file."""
        return cls(load(path), label=label)

    @property
    def address(self) -> Optional[str]:
        """Address recorded in the keystore (checksummed for EVM), if any."""
        if self.keystore.address is None:
            return None
        if self.keystore.layout == KeystoreLayout.LATTICE:
            return self.keystore.address
        return to_checksum_address("0x" + self.keystore.address)

    def _coin(self) -> CoinInfo:
        return LATTICE if self.keystore.layout == KeystoreLayout.LATTICE else ETHEREUM

    def unlock(self, password: Password) -> LocalAccount:
        """
        Decrypt into a LocalAccount.

        The caller owns the returned account and should wipe it.
        """
        with decrypt(self.keystore, password) as secret:
            account = LocalAccount(secret, coin=self._coin(), label=self.label)
        self._logger.info(f"Unlocked keystore {self.keystore.id}")
        return account

    def sign_transaction(self, password: Password, tx: UnsignedTransaction) -> SignedTransaction:
        """
        Decrypt, sign and wipe.

        Raises:
            KeystoreDecryptionFailed: If the password is wrong
            SigningError: If signing fails (the key is still wiped)
        """
        with self.unlock(password) as account:
            return account.sign_transaction(tx)

    def sign_message(self, password: Password, message: Union[str, bytes]) -> Signature:
        """Decrypt, sign an EIP-191 personal message and wipe."""
        with self.unlock(password) as account:
            return account.sign_message(message)

    def save(self, path: Union[str, os.PathLike]) -> None:
        self.keystore.save(path)

    def __repr__(self) -> str:
        return f"KeystoreAccount({self.address}, id={self.keystore.id})"
