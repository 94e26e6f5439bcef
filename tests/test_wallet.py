import pytest

from chainkey.crypto import keystore
from chainkey.crypto.keystore import Keystore, KeystoreLayout, ScryptParams
from chainkey.exceptions import (
    HardenedFromPublicOnly, InvalidChecksum, KeystoreDecryptionFailed, SigningError, WalletError,
)
from chainkey.modules.account import KeystoreAccount, LocalAccount
from chainkey.modules.wallet import HDWallet
from chainkey.registry import CoinInfo, CoinRegistry
from chainkey.types.transaction import LegacyTransaction
from chainkey.utils.encoding import keccak256

ABANDON = "abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon about"
HARDHAT = "test test test test test test test test test test test junk"
FAST_SCRYPT = ScryptParams(n=2 ** 4, r=8, p=1)
HARDHAT_PUBLIC_KEY = (
    "048318535b54105d4a7aae60c08fc45f9687181b4fdfc625bd1a753fa7397fed75"
    "3547f11ca8696646f2f3acb08e31016afac23e630c5d11f59f61fef57b0d2aa5"
)

TX = LegacyTransaction(nonce=0, gas_price=10 ** 9, gas=21000, to="0x" + "35" * 20, value=1, chain_id=1)


def test_reference_accounts():
    wallet = HDWallet.from_mnemonic(ABANDON)
    with wallet.account(0) as account:
        assert account.address == "0x9858EfFD232B4033E47d90003D41EC34EcaEda94"
        assert account.path == "m/44'/60'/0'/0/0"

    hardhat = HDWallet.from_mnemonic(HARDHAT)
    assert hardhat.addresses(2) == [
        "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266",
        "0x70997970C51812dc3A010C7d01b50e0d17dc79C8",
    ]


def test_account_at_path_matches_account():
    wallet = HDWallet.from_mnemonic(ABANDON)
    assert wallet.account_at_path("m/44'/60'/0'/0/3").address == wallet.account(3).address
    assert wallet.account(0, coin="ethereum-classic").path == "m/44'/61'/0'/0/0"


def test_passphrase_changes_accounts():
    plain = HDWallet.from_mnemonic(ABANDON)
    protected = HDWallet.from_mnemonic(ABANDON, passphrase="TREZOR")
    assert plain.address(0) != protected.address(0)


def test_invalid_mnemonic_rejected():
    with pytest.raises(InvalidChecksum):
        HDWallet.from_mnemonic(["abandon"] * 12)


def test_create_generates_usable_wallet():
    wallet = HDWallet.create(entropy_bits=256)
    assert len(wallet.mnemonic.words) == 24
    restored = HDWallet.from_mnemonic(wallet.mnemonic.phrase)
    assert restored.address(5) == wallet.address(5)


def test_watch_only_wallet_follows_full_wallet():
    wallet = HDWallet.from_mnemonic(HARDHAT)
    watcher = HDWallet.watch_only(wallet.xpub())
    assert watcher.is_watch_only
    assert watcher.addresses(3) == wallet.addresses(3)
    assert watcher.address(2, change=1) == wallet.address(2, change=1)
    assert watcher.xpub() == wallet.xpub()
    with pytest.raises(WalletError):
        watcher.account(0)
    with pytest.raises(HardenedFromPublicOnly):
        watcher._watch_key.derive_path("m/0'")


def test_custom_registry_coin():
    registry = CoinRegistry({"devnet": CoinInfo(name="devnet", coin_type=1337)})
    wallet = HDWallet.from_mnemonic(ABANDON, registry=registry)
    assert wallet.account(0, coin="devnet").path == "m/44'/1337'/0'/0/0"


def test_lattice_coin_addresses():
    wallet = HDWallet.from_mnemonic(ABANDON)
    assert wallet.address(0, coin="lattice").startswith("zltc_")


def test_local_account_signs_and_wipes():
    account = HDWallet.from_mnemonic(HARDHAT).account(0)
    signed = account.sign_transaction(TX)
    assert signed.sender == account.address
    assert account.sign_message("hi").recovery_id in (0, 1)
    account.wipe()
    assert account.is_wiped
    with pytest.raises(WalletError):
        account.sign_transaction(TX)
    assert "ac0974bec39a17e3" not in repr(account)


def test_keystore_account_roundtrip(tmp_path):
    local = LocalAccount("ac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80")
    path = tmp_path / "key.json"
    local.encrypt("pw", kdf_params=FAST_SCRYPT).save(path)

    account = KeystoreAccount.from_file(path)
    assert account.address == "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
    signed = account.sign_transaction("pw", TX)
    assert signed.raw_transaction == local.sign_transaction(TX).raw_transaction
    with pytest.raises(KeystoreDecryptionFailed):
        account.sign_transaction("wrong", TX)


def test_keystore_account_wipes_key_when_signing_fails(monkeypatch):
    record = keystore.encrypt("46" * 32, "pw", kdf_params=FAST_SCRYPT)
    account = KeystoreAccount(record)
    unlocked = []
    original_unlock = KeystoreAccount.unlock

    def tracking_unlock(self, password):
        local = original_unlock(self, password)
        unlocked.append(local)
        return local

    def failing_sign(self, tx):
        raise SigningError("curve failure")

    monkeypatch.setattr(KeystoreAccount, "unlock", tracking_unlock)
    monkeypatch.setattr(LocalAccount, "sign_transaction", failing_sign)

    with pytest.raises(SigningError):
        account.sign_transaction("pw", TX)
    assert unlocked and unlocked[0].is_wiped


def test_lattice_account_exports_file_key():
    local = HDWallet.from_mnemonic(ABANDON).account(0, coin="lattice")
    record = local.encrypt("pw", kdf_params=FAST_SCRYPT)
    assert record.layout == KeystoreLayout.LATTICE
    assert "isGM" in record.to_dict()

    account = KeystoreAccount(Keystore.from_json(record.to_json()))
    assert account.address == local.address
    assert account.address.startswith("zltc_")
    with account.unlock("pw") as unlocked:
        assert unlocked.address == local.address


def test_reference_public_keys():
    with HDWallet.from_mnemonic(HARDHAT).account(0) as account:
        assert account.public_key.hex() == HARDHAT_PUBLIC_KEY
        assert account.public_key.hex(compressed=True) == "03" + HARDHAT_PUBLIC_KEY[2:66]

    with HDWallet.from_mnemonic(ABANDON).account(0) as account:
        uncompressed = account.public_key.uncompressed
        assert keccak256(uncompressed[1:])[-20:].hex() == "9858effd232b4033e47d90003d41ec34ecaeda94"
