"""HD wallet module for chainkey."""

import logging
from typing import List, Optional, Sequence, Union

from ..constants import DEFAULT_LANGUAGE
from ..crypto import bip39
from ..crypto.address import address_from_public_key
from ..crypto.bip39 import Mnemonic
from ..crypto.hd import ExtendedKey, derive_path, master_from_seed
from ..crypto.path import DerivationPath, coin_path, format_path, parse_path
from ..exceptions import WalletError
from ..modules.account import LocalAccount
from ..registry import CoinRegistry, DEFAULT_REGISTRY

__all__ = ["HDWallet"]

logger = logging.getLogger(__name__)


class HDWallet:
    """
    BIP39/BIP44 wallet.

    Holds the mnemonic (or, for watch-only wallets, an account-level xpub).
    The seed and root key are recomputed for each derivation and wiped
    straight after, so no long-lived copy of them exists.
    """

    def __init__(
        self,
        mnemonic: Optional[Mnemonic] = None,
        passphrase: str = "",
        registry: Optional[CoinRegistry] = None,
        watch_key: Optional[ExtendedKey] = None,
        coin: str = "ethereum",
    ) -> None:
        """
        Initialize wallet. Prefer create(), from_mnemonic() or watch_only().

        Args:
            mnemonic: Wallet mnemonic
            passphrase: Optional BIP39 passphrase
            registry: Coin registry used to resolve coin names
            watch_key: Account-level public extended key for watch-only wallets
            coin: Coin the watch-only key belongs to
        """
        if (mnemonic is None) == (watch_key is None):
            raise WalletError("Wallet needs exactly one of mnemonic or watch-only key")
        self._mnemonic = mnemonic
        self._passphrase = passphrase
        self._watch_key = watch_key.neuter() if watch_key is not None else None
        self.registry = registry if registry is not None else DEFAULT_REGISTRY
        self._watch_coin = self.registry[coin] if watch_key is not None else None
        self._logger = logging.getLogger(f"{__name__}.HDWallet")

    @classmethod
    def create(
        cls,
        entropy_bits: int = 128,
        passphrase: str = "",
        language: str = DEFAULT_LANGUAGE,
        registry: Optional[CoinRegistry] = None
    ) -> "HDWallet":
        """Create wallet with a freshly generated mnemonic."""
        wallet = cls(bip39.generate(entropy_bits, language), passphrase, registry)
        wallet._logger.info(f"Created wallet with {entropy_bits}-bit mnemonic")
        return wallet

    @classmethod
    def from_mnemonic(
        cls,
        words: Union[str, Sequence[str], Mnemonic],
        passphrase: str = "",
        language: str = DEFAULT_LANGUAGE,
        registry: Optional[CoinRegistry] = None
    ) -> "HDWallet":
        """
        Restore wallet from a mnemonic.

        Raises:
            InvalidMnemonic: If a word is unknown or the word count is wrong
            InvalidChecksum: If the checksum does not match
        """
        if not isinstance(words, Mnemonic):
            words = bip39.from_words(words, language)
        return cls(words, passphrase, registry)

    @classmethod
    def watch_only(
        cls,
        xpub: Union[str, ExtendedKey],
        coin: str = "ethereum",
        registry: Optional[CoinRegistry] = None
    ) -> "HDWallet":
        """
        Wallet that derives addresses from an account-level xpub.

        Only normal (non-hardened) children can be derived.
        """
        if isinstance(xpub, str):
            xpub = ExtendedKey.parse(xpub)
        return cls(registry=registry, watch_key=xpub, coin=coin)

    @property
    def is_watch_only(self) -> bool:
        return self._watch_key is not None

    @property
    def mnemonic(self) -> Mnemonic:
        if self._mnemonic is None:
            raise WalletError("Wallet has no mnemonic")
        return self._mnemonic

    def _root(self) -> ExtendedKey:
        with bip39.to_seed(self.mnemonic, self._passphrase) as seed:
            return master_from_seed(seed)

    def _derive(self, path: DerivationPath) -> ExtendedKey:
        root = self._root()
        if not path.segments:
            return root
        with root:
            return derive_path(root, path)

    def account(
        self,
        index: int = 0,
        account: int = 0,
        change: int = 0,
        coin: str = "ethereum"
    ) -> LocalAccount:
        """
        Derive the account at ``m/44'/coin'/account'/change/index``.

        Returns:
            LocalAccount; the caller owns its key and should wipe it
        """
        path = coin_path(coin, account, change, index, registry=self.registry)
        return self.account_at_path(path, coin=coin)

    def account_at_path(
        self,
        path: Union[str, DerivationPath],
        coin: str = "ethereum"
    ) -> LocalAccount:
        """Derive the account at an arbitrary path."""
        if isinstance(path, str):
            path = parse_path(path)

        with self._derive(path) as node:
            result = LocalAccount(
                node.private_key.secret,
                coin=self.registry[coin],
                path=format_path(path),
            )
        self._logger.debug(f"Derived {result.address} at {result.path}")
        return result

    def address(
        self,
        index: int = 0,
        account: int = 0,
        change: int = 0,
        coin: str = "ethereum"
    ) -> str:
        """
        Address at ``index`` without exposing a private key.

        For watch-only wallets ``account`` and ``coin`` are fixed by the xpub
        and only ``change`` and ``index`` are used.
        """
        if self._watch_key is not None:
            node = self._watch_key.derive_child(change).derive_child(index)
            return address_from_public_key(node.public_key, coin=self._watch_coin)

        path = coin_path(coin, account, change, index, registry=self.registry)
        with self._derive(path) as node:
            return address_from_public_key(node.public_key, coin=self.registry[coin])

    def addresses(
        self,
        count: int,
        start: int = 0,
        account: int = 0,
        change: int = 0,
        coin: str = "ethereum"
    ) -> List[str]:
        """Consecutive addresses starting at ``start``."""
        return [
            self.address(index, account=account, change=change, coin=coin)
            for index in range(start, start + count)
        ]

    def account_key(self, account: int = 0, coin: str = "ethereum") -> ExtendedKey:
        """Account-level extended key ``m/44'/coin'/account'`` (private)."""
        path = DerivationPath(coin_path(coin, account, registry=self.registry).segments[:3])
        return self._derive(path)

    def xpub(self, account: int = 0, coin: str = "ethereum", testnet: Optional[bool] = None) -> str:
        """
        Account-level xpub for handing to a watch-only wallet.

        For watch-only wallets this is the xpub the wallet was built from.
        """
        if self._watch_key is not None:
            return self._watch_key.to_extended_public(testnet=testnet)
        with self.account_key(account, coin) as node:
            return node.to_extended_public(testnet=testnet)

    def wipe(self) -> None:
        """Forget the mnemonic and erase the watch-only chain code."""
        self._mnemonic = None
        self._passphrase = ""
        if self._watch_key is not None:
            self._watch_key.wipe()

    def __repr__(self) -> str:
        kind = "watch-only" if self.is_watch_only else "full"
        return f"HDWallet({kind})"
