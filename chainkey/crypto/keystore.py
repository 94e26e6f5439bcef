"""Password-encrypted key storage (Web3 Secret Storage v3 and Lattice FileKey) for chainkey."""

import asyncio
import functools
import hashlib
import hmac
import json
import logging
import os
import secrets
import tempfile
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from Crypto.Cipher import AES
from Crypto.Protocol.KDF import scrypt
from Crypto.Util import Counter

from ..constants import (
    KEYSTORE_CIPHER,
    KEYSTORE_DKLEN,
    KEYSTORE_IV_SIZE,
    KEYSTORE_SALT_SIZE,
    KEYSTORE_VERSION,
    PBKDF2_DEFAULT_ITERATIONS,
    SCRYPT_DEFAULT_N,
    SCRYPT_DEFAULT_P,
    SCRYPT_DEFAULT_R,
)
from ..exceptions import (
    ChainKeyError,
    KeystoreDecryptionFailed,
    SerializationError,
    ValidationError,
)
from ..registry import LATTICE
from ..utils.encoding import keccak256, sha256
from .address import address_from_public_key
from .keys import PrivateKey
from .secret import SecretBytes

__all__ = [
    "KeystoreLayout",
    "ScryptParams",
    "Pbkdf2Params",
    "CipherParams",
    "Keystore",
    "encrypt",
    "decrypt",
    "encrypt_async",
    "decrypt_async",
    "save",
    "load",
]

logger = logging.getLogger(__name__)

Password = Union[str, bytes]


def _password_bytes(password: Password) -> bytes:
    if isinstance(password, str):
        return password.encode("utf-8")
    if isinstance(password, (bytes, bytearray)):
        return bytes(password)
    raise ValidationError("Password must be str or bytes")


@dataclass(frozen=True)
class ScryptParams:
    """scrypt cost factors. ``salt`` is drawn at encryption time when None."""
    n: int = SCRYPT_DEFAULT_N
    r: int = SCRYPT_DEFAULT_R
    p: int = SCRYPT_DEFAULT_P
    dklen: int = KEYSTORE_DKLEN
    salt: Optional[bytes] = field(default=None, repr=False)

    name = "scrypt"

    def __post_init__(self) -> None:
        if self.n < 2 or self.n & (self.n - 1):
            raise ValidationError(f"scrypt n must be a power of two above 1, got {self.n}")
        if self.r < 1 or self.p < 1:
            raise ValidationError("scrypt r and p must be positive")
        if self.dklen < KEYSTORE_DKLEN:
            raise ValidationError(f"dklen must be at least {KEYSTORE_DKLEN}")

    def with_salt(self, salt: bytes) -> "ScryptParams":
        return ScryptParams(n=self.n, r=self.r, p=self.p, dklen=self.dklen, salt=salt)

    def derive(self, password: bytes) -> SecretBytes:
        key = scrypt(password, self.salt, self.dklen, N=self.n, r=self.r, p=self.p)
        return SecretBytes(key)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dklen": self.dklen,
            "n": self.n,
            "r": self.r,
            "p": self.p,
            "salt": self.salt.hex() if self.salt is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScryptParams":
        return cls(
            n=int(data["n"]),
            r=int(data["r"]),
            p=int(data["p"]),
            dklen=int(data["dklen"]),
            salt=bytes.fromhex(data["salt"]),
        )


@dataclass(frozen=True)
class Pbkdf2Params:
    """PBKDF2-HMAC-SHA256 cost factors."""
    c: int = PBKDF2_DEFAULT_ITERATIONS
    dklen: int = KEYSTORE_DKLEN
    prf: str = "hmac-sha256"
    salt: Optional[bytes] = field(default=None, repr=False)

    name = "pbkdf2"

    def __post_init__(self) -> None:
        if self.c < 1:
            raise ValidationError("pbkdf2 iteration count must be positive")
        if self.prf != "hmac-sha256":
            raise ValidationError(f"Unsupported pbkdf2 prf: {self.prf}")
        if self.dklen < KEYSTORE_DKLEN:
            raise ValidationError(f"dklen must be at least {KEYSTORE_DKLEN}")

    def with_salt(self, salt: bytes) -> "Pbkdf2Params":
        return Pbkdf2Params(c=self.c, dklen=self.dklen, prf=self.prf, salt=salt)

    def derive(self, password: bytes) -> SecretBytes:
        key = hashlib.pbkdf2_hmac("sha256", password, self.salt, self.c, dklen=self.dklen)
        return SecretBytes(key)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "c": self.c,
            "dklen": self.dklen,
            "prf": self.prf,
            "salt": self.salt.hex() if self.salt is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Pbkdf2Params":
        return cls(
            c=int(data["c"]),
            dklen=int(data["dklen"]),
            prf=data.get("prf", "hmac-sha256"),
            salt=bytes.fromhex(data["salt"]),
        )


KdfParams = Union[ScryptParams, Pbkdf2Params]

_KDFS = {
    "scrypt": ScryptParams,
    "pbkdf2": Pbkdf2Params,
}


@dataclass(frozen=True)
class CipherParams:
    """Cipher selection. ``iv`` is drawn at encryption time when None."""
    cipher: str = KEYSTORE_CIPHER
    iv: Optional[bytes] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.cipher != KEYSTORE_CIPHER:
            raise ValidationError(f"Unsupported cipher: {self.cipher}")
        if self.iv is not None and len(self.iv) != KEYSTORE_IV_SIZE:
            raise ValidationError(f"IV must be {KEYSTORE_IV_SIZE} bytes")


class KeystoreLayout(str, Enum):
    """On-disk record layouts."""
    WEB3 = "web3"        # geth / web3.py / ethers, keccak-256 MAC, 0x address
    LATTICE = "lattice"  # Lattice FileKey, sha256 MAC, zltc_ address


_MAC_HASHERS = {
    KeystoreLayout.WEB3: keccak256,
    KeystoreLayout.LATTICE: sha256,
}


def _aes_128_ctr(key: bytes, iv: bytes, data: bytes) -> bytes:
    counter = Counter.new(128, initial_value=int.from_bytes(iv, "big"))
    return AES.new(key, AES.MODE_CTR, counter=counter).encrypt(data)


def _mac(derived_key: SecretBytes, ciphertext: bytes, layout: KeystoreLayout) -> bytes:
    return _MAC_HASHERS[layout](derived_key[16:32] + ciphertext)


def _record_address(key: PrivateKey, layout: KeystoreLayout) -> str:
    """Address as the layout stores it: bare lowercase hex, or zltc_ text."""
    if layout == KeystoreLayout.LATTICE:
        return address_from_public_key(key.public_key(), coin=LATTICE)
    return key.address[2:]


def _unhex(value: Any) -> bytes:
    if value[:2] in ("0x", "0X"):
        value = value[2:]
    return bytes.fromhex(value)


@dataclass(frozen=True)
class Keystore:
    """
    Encrypted key record.

    The WEB3 layout serializes to the JSON shared by geth, web3.py and
    ethers: ``{version, id, address, crypto: {cipher, cipherparams,
    ciphertext, kdf, kdfparams, mac}}``. The LATTICE layout serializes to
    the Lattice FileKey: ``{uuid, address, cipher: {aes, kdf, cipherText,
    mac}, isGM}``.
    """
    ciphertext: bytes
    iv: bytes
    kdf_params: KdfParams
    mac: bytes
    address: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    version: int = KEYSTORE_VERSION
    cipher: str = KEYSTORE_CIPHER
    layout: KeystoreLayout = KeystoreLayout.WEB3

    def __post_init__(self) -> None:
        if self.layout == KeystoreLayout.LATTICE and not isinstance(self.kdf_params, ScryptParams):
            raise ValidationError("Lattice keystores use scrypt")

    @property
    def kdf(self) -> str:
        return self.kdf_params.name

    def decrypt(self, password: Password) -> SecretBytes:
        return decrypt(self, password)

    def to_dict(self) -> Dict[str, Any]:
        """Record in this keystore's own layout."""
        if self.layout == KeystoreLayout.LATTICE:
            return self.to_file_key()
        result: Dict[str, Any] = {
            "version": self.version,
            "id": self.id,
            "crypto": {
                "cipher": self.cipher,
                "cipherparams": {"iv": self.iv.hex()},
                "ciphertext": self.ciphertext.hex(),
                "kdf": self.kdf,
                "kdfparams": self.kdf_params.to_dict(),
                "mac": self.mac.hex(),
            },
        }
        if self.address is not None:
            result["address"] = self.address
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Keystore":
        """
        Load a keystore record in either layout.

        Raises:
            SerializationError: If the record is malformed or not version 3
            ValidationError: If the cipher or KDF is not supported
        """
        if isinstance(data.get("cipher"), Mapping):
            return cls.from_file_key(data)
        try:
            version = int(data["version"])
            crypto = data.get("crypto") or data["Crypto"]
            cipher = crypto["cipher"]
            kdf = crypto["kdf"]
        except (KeyError, TypeError, ValueError) as e:
            raise SerializationError(f"Malformed keystore: {e}") from e

        if version != KEYSTORE_VERSION:
            raise SerializationError(f"Unsupported keystore version: {version}")
        if cipher != KEYSTORE_CIPHER:
            raise ValidationError(f"Unsupported cipher: {cipher}")
        if kdf not in _KDFS:
            raise ValidationError(f"Unsupported kdf: {kdf}")

        try:
            kdf_params = _KDFS[kdf].from_dict(crypto["kdfparams"])
            iv = bytes.fromhex(crypto["cipherparams"]["iv"])
            ciphertext = bytes.fromhex(crypto["ciphertext"])
            mac = bytes.fromhex(crypto["mac"])
        except (KeyError, TypeError, ValueError) as e:
            raise SerializationError(f"Malformed keystore: {e}") from e

        address = data.get("address")
        if address is not None:
            address = str(address).lower()
            if address.startswith("0x"):
                address = address[2:]

        return cls(
            ciphertext=ciphertext,
            iv=iv,
            kdf_params=kdf_params,
            mac=mac,
            address=address,
            id=str(data.get("id") or uuid.uuid4()),
            version=version,
            cipher=cipher,
        )

    def to_file_key(self) -> Dict[str, Any]:
        """
        Lattice FileKey record.

        Raises:
            SerializationError: If this keystore uses the WEB3 layout, whose
                MAC cannot be carried over
        """
        if self.layout != KeystoreLayout.LATTICE:
            raise SerializationError("Only lattice keystores have a FileKey form")
        params = self.kdf_params
        return {
            "uuid": self.id,
            "address": self.address,
            "cipher": {
                "aes": {"cipher": self.cipher, "iv": self.iv.hex()},
                "kdf": {
                    "kdf": params.name,
                    "kdfParams": {
                        "DKLen": params.dklen,
                        "n": params.n,
                        "p": params.p,
                        "r": params.r,
                        "salt": params.salt.hex(),
                    },
                },
                "cipherText": self.ciphertext.hex(),
                "mac": self.mac.hex(),
            },
            "isGM": False,
        }

    @classmethod
    def from_file_key(cls, data: Mapping[str, Any]) -> "Keystore":
        """
        Load a Lattice FileKey record (secp256k1 keys only).

        Raises:
            SerializationError: If the record is malformed
            ValidationError: If the record holds an SM2 key or uses an
                unsupported cipher or KDF
        """
        try:
            cipher = data["cipher"]
            aes = cipher["aes"]
            kdf = cipher["kdf"]
            cipher_name = aes["cipher"]
            kdf_name = kdf["kdf"]
            is_gm = bool(data.get("isGM", False))
        except (KeyError, TypeError) as e:
            raise SerializationError(f"Malformed file key: {e}") from e

        if is_gm:
            raise ValidationError("SM2 file keys are not supported")
        if cipher_name != KEYSTORE_CIPHER:
            raise ValidationError(f"Unsupported cipher: {cipher_name}")
        if kdf_name != ScryptParams.name:
            raise ValidationError(f"Unsupported kdf: {kdf_name}")

        try:
            params = kdf["kdfParams"]
            kdf_params = ScryptParams(
                n=int(params["n"]),
                r=int(params["r"]),
                p=int(params["p"]),
                dklen=int(params["DKLen"]),
                salt=_unhex(params["salt"]),
            )
            iv = _unhex(aes["iv"])
            ciphertext = _unhex(cipher["cipherText"])
            mac = _unhex(cipher["mac"])
        except (KeyError, TypeError, ValueError) as e:
            raise SerializationError(f"Malformed file key: {e}") from e

        address = data.get("address")
        return cls(
            ciphertext=ciphertext,
            iv=iv,
            kdf_params=kdf_params,
            mac=mac,
            address=str(address) if address is not None else None,
            id=str(data.get("uuid") or uuid.uuid4()),
            cipher=cipher_name,
            layout=KeystoreLayout.LATTICE,
        )

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "Keystore":
        try:
            data = json.loads(text)
        except ValueError as e:
            raise SerializationError(f"Keystore is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise SerializationError("Keystore JSON must be an object")
        return cls.from_dict(data)

    def save(self, path: Union[str, os.PathLike]) -> None:
        save(self, path)

    @classmethod
    def load(cls, path: Union[str, os.PathLike]) -> "Keystore":
        return load(path)

    def __repr__(self) -> str:
        return f"Keystore(id={self.id}, address={self.address}, kdf={self.kdf}, layout={self.layout.value})"


def encrypt(
    private_key: Union[PrivateKey, SecretBytes, bytes, str],
    password: Password,
    kdf_params: Optional[KdfParams] = None,
    cipher_params: Optional[CipherParams] = None,
    layout: KeystoreLayout = KeystoreLayout.WEB3
) -> Keystore:
    """
    Encrypt a private key under a password.

    Args:
        private_key: Key to protect
        password: Password (str is UTF-8 encoded)
        kdf_params: ScryptParams (default) or Pbkdf2Params; a missing salt
            is drawn at random
        cipher_params: Cipher and IV; a missing IV is drawn at random
        layout: Record layout; LATTICE requires scrypt

    Returns:
        Keystore record

    Raises:
        ValidationError: If the key or parameters are invalid
    """
    layout = KeystoreLayout(layout)
    kdf_params = kdf_params or ScryptParams()
    cipher_params = cipher_params or CipherParams()
    if layout == KeystoreLayout.LATTICE and not isinstance(kdf_params, ScryptParams):
        raise ValidationError("Lattice keystores use scrypt")
    if kdf_params.salt is None:
        kdf_params = kdf_params.with_salt(secrets.token_bytes(KEYSTORE_SALT_SIZE))
    iv = cipher_params.iv or secrets.token_bytes(KEYSTORE_IV_SIZE)

    owned = not isinstance(private_key, PrivateKey)
    key = PrivateKey(private_key) if owned else private_key
    try:
        address = _record_address(key, layout)
        with kdf_params.derive(_password_bytes(password)) as derived_key:
            ciphertext = _aes_128_ctr(derived_key[:16], iv, bytes(key.secret))
            mac = _mac(derived_key, ciphertext, layout)
    finally:
        if owned:
            key.wipe()

    logger.debug(f"Encrypted key for {address} with {kdf_params.name}")
    return Keystore(
        ciphertext=ciphertext,
        iv=iv,
        kdf_params=kdf_params,
        mac=mac,
        address=address,
        cipher=cipher_params.cipher,
        layout=layout,
    )


def decrypt(keystore: Union[Keystore, Mapping[str, Any]], password: Password) -> SecretBytes:
    """
    Decrypt a keystore.

    The MAC is checked in constant time before decryption. When the record
    carries an address it must match the decrypted key.

    Returns:
        32-byte private key; the caller owns it and must wipe it

    Raises:
        KeystoreDecryptionFailed: On a wrong password or tampered record
    """
    if not isinstance(keystore, Keystore):
        keystore = Keystore.from_dict(keystore)

    with keystore.kdf_params.derive(_password_bytes(password)) as derived_key:
        if not hmac.compare_digest(_mac(derived_key, keystore.ciphertext, keystore.layout), keystore.mac):
            raise KeystoreDecryptionFailed()
        plaintext = bytearray(_aes_128_ctr(derived_key[:16], keystore.iv, keystore.ciphertext))

    secret = SecretBytes.take(plaintext)
    if keystore.address is None:
        return secret

    try:
        with PrivateKey(secret) as key:
            matches = _record_address(key, keystore.layout) == keystore.address
    except ChainKeyError as e:
        secret.wipe()
        raise KeystoreDecryptionFailed("Keystore holds an invalid private key") from e
    if not matches:
        secret.wipe()
        raise KeystoreDecryptionFailed("Keystore address does not match decrypted key")
    return secret


async def encrypt_async(
    private_key: Union[PrivateKey, SecretBytes, bytes, str],
    password: Password,
    kdf_params: Optional[KdfParams] = None,
    cipher_params: Optional[CipherParams] = None,
    layout: KeystoreLayout = KeystoreLayout.WEB3
) -> Keystore:
    """Run encrypt() on the default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        None, functools.partial(encrypt, private_key, password, kdf_params, cipher_params, layout)
    )


async def decrypt_async(keystore: Union[Keystore, Mapping[str, Any]], password: Password) -> SecretBytes:
    """Run decrypt() on the default executor. Wrap in asyncio.wait_for to bound it."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(decrypt, keystore, password))


def save(keystore: Keystore, path: Union[str, os.PathLike]) -> None:
    """
    Write a keystore to disk atomically.

    The record goes to a temporary file in the target directory, is flushed
    and fsynced, then renamed over ``path``.
    """
    path = os.fspath(path)
    directory = os.path.dirname(os.path.abspath(path))
    fd, temp_path = tempfile.mkstemp(dir=directory, prefix=".keystore-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(keystore.to_json())
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except BaseException:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise

    if hasattr(os, "O_DIRECTORY"):
        dir_fd = os.open(directory, os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)

    logger.info(f"Keystore {keystore.id} saved to {path}")


def load(path: Union[str, os.PathLike]) -> Keystore:
    """Read a keystore file."""
    with open(path, "r", encoding="utf-8") as f:
        keystore = Keystore.from_json(f.read())
    logger.debug(f"Loaded keystore {keystore.id} from {os.fspath(path)}")
    return keystore
