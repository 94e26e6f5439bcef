"""Wallet and account facades for chainkey."""

from ..modules.account import KeystoreAccount, LocalAccount
from ..modules.wallet import HDWallet

__all__ = [
    "LocalAccount",
    "KeystoreAccount",
    "HDWallet",
]
