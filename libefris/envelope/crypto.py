"""Crypto provider backed by the ``cryptography`` library.

* AES (``encryptCode`` 2): ECB mode with PKCS7 padding, the service's symmetric scheme.
* RSA (``encryptCode`` 1): PKCS#1 v1.5, processed in key-sized blocks.
* Signatures: RSA PKCS#1 v1.5 over the transmitted content, base64 encoded.
"""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, padding as sym_padding, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..errors import CryptoError

if TYPE_CHECKING:
    from ..config import CryptoConfig

logger = logging.getLogger(__name__)

RSA = "RSA"
AES = "AES"

# encryptCode values of dataDescription
ALGORITHMS: dict[str, str] = {"1": RSA, "2": AES}

# PKCS#1 v1.5 padding overhead in bytes
RSA_PADDING_OVERHEAD = 11


class CryptographyProvider:
    """
    Keys are held by reference name so the codec never touches key material.

    Args:
        symmetric_keys: Raw AES keys (16, 24 or 32 bytes).
        private_keys: Local RSA private keys, used to decrypt and sign.
        public_keys: Peer RSA public keys, used to encrypt and verify. A name
            missing here falls back to the public half of a private key with
            the same name.
        signature_hash: Digest used by signatures (``sha1`` on the wire).
    """

    def __init__(
        self,
        symmetric_keys: Mapping[str, bytes] | None = None,
        private_keys: Mapping[str, rsa.RSAPrivateKey] | None = None,
        public_keys: Mapping[str, rsa.RSAPublicKey] | None = None,
        signature_hash: str = "sha1",
    ):
        self.symmetric_keys = dict(symmetric_keys or {})
        self.private_keys = dict(private_keys or {})
        self.public_keys = dict(public_keys or {})
        self.signature_hash = signature_hash
        self._hash = _hash_algorithm(signature_hash)

    @classmethod
    def from_config(cls, config: CryptoConfig) -> CryptographyProvider:
        symmetric: dict[str, bytes] = {}
        private: dict[str, rsa.RSAPrivateKey] = {}
        public: dict[str, rsa.RSAPublicKey] = {}

        if config.session_key:
            symmetric[config.symmetric_key_ref] = decode_session_key(config.session_key)
        if config.private_key_file:
            password = config.private_key_password.encode() if config.private_key_password else None
            private[config.private_key_ref] = load_private_key(config.private_key_file, password)
        if config.peer_public_key_file:
            public[config.peer_key_ref] = load_public_key(config.peer_public_key_file)

        logger.debug(
            "crypto provider: %d symmetric, %d private, %d public keys", len(symmetric), len(private), len(public)
        )
        return cls(symmetric, private, public, signature_hash=config.signature_hash)

    def decrypt(self, ciphertext: bytes, key_ref: str, algorithm: str) -> bytes:
        if algorithm == AES:
            return self._aes_decrypt(ciphertext, self._symmetric(key_ref))
        if algorithm == RSA:
            return self._rsa_decrypt(ciphertext, self._private(key_ref))
        raise CryptoError(f"Unsupported algorithm {algorithm!r}")

    def encrypt(self, plaintext: bytes, key_ref: str, algorithm: str) -> bytes:
        if algorithm == AES:
            return self._aes_encrypt(plaintext, self._symmetric(key_ref))
        if algorithm == RSA:
            return self._rsa_encrypt(plaintext, self._public(key_ref))
        raise CryptoError(f"Unsupported algorithm {algorithm!r}")

    def sign(self, content: bytes, key_ref: str) -> str:
        signature = self._private(key_ref).sign(content, padding.PKCS1v15(), self._hash)
        return base64.b64encode(signature).decode("ascii")

    def verify_signature(self, content: bytes, signature: str, key_ref: str) -> bool:
        try:
            raw = base64.b64decode(signature, validate=True)
        except (binascii.Error, ValueError):
            logger.debug("signature is not valid base64")
            return False
        try:
            self._public(key_ref).verify(raw, content, padding.PKCS1v15(), self._hash)
        except InvalidSignature:
            return False
        return True

    def _symmetric(self, key_ref: str) -> bytes:
        try:
            return self.symmetric_keys[key_ref]
        except KeyError:
            raise CryptoError(f"No symmetric key named {key_ref!r}") from None

    def _private(self, key_ref: str) -> rsa.RSAPrivateKey:
        try:
            return self.private_keys[key_ref]
        except KeyError:
            raise CryptoError(f"No private key named {key_ref!r}") from None

    def _public(self, key_ref: str) -> rsa.RSAPublicKey:
        if key_ref in self.public_keys:
            return self.public_keys[key_ref]
        if key_ref in self.private_keys:
            return self.private_keys[key_ref].public_key()
        raise CryptoError(f"No public key named {key_ref!r}")

    @staticmethod
    def _aes_encrypt(plaintext: bytes, key: bytes) -> bytes:
        padder = sym_padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext) + padder.finalize()
        try:
            encryptor = Cipher(algorithms.AES(key), modes.ECB()).encryptor()
        except ValueError as exc:
            raise CryptoError(f"Invalid AES key: {exc}") from exc
        return encryptor.update(padded) + encryptor.finalize()

    @staticmethod
    def _aes_decrypt(ciphertext: bytes, key: bytes) -> bytes:
        try:
            decryptor = Cipher(algorithms.AES(key), modes.ECB()).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = sym_padding.PKCS7(algorithms.AES.block_size).unpadder()
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError as exc:
            raise CryptoError(f"AES decryption failed: {exc}") from exc

    @staticmethod
    def _rsa_encrypt(plaintext: bytes, key: rsa.RSAPublicKey) -> bytes:
        block = key.key_size // 8 - RSA_PADDING_OVERHEAD
        chunks = [plaintext[i : i + block] for i in range(0, len(plaintext), block)] or [b""]
        return b"".join(key.encrypt(chunk, padding.PKCS1v15()) for chunk in chunks)

    @staticmethod
    def _rsa_decrypt(ciphertext: bytes, key: rsa.RSAPrivateKey) -> bytes:
        block = key.key_size // 8
        if not ciphertext or len(ciphertext) % block:
            raise CryptoError("RSA ciphertext is not a whole number of blocks")
        try:
            return b"".join(
                key.decrypt(ciphertext[i : i + block], padding.PKCS1v15()) for i in range(0, len(ciphertext), block)
            )
        except ValueError as exc:
            raise CryptoError(f"RSA decryption failed: {exc}") from exc


def _hash_algorithm(name: str) -> hashes.HashAlgorithm:
    algorithm = getattr(hashes, name.upper().replace("-", ""), None)
    if algorithm is None:
        raise ValueError(f"Unknown signature hash {name!r}")
    return algorithm()


def decode_session_key(value: str) -> bytes:
    """Decode the base64 AES key; invalid keys raise ``CryptoError``."""
    try:
        key = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise CryptoError("Session key is not valid base64") from exc
    if len(key) not in (16, 24, 32):
        raise CryptoError(f"Session key has {len(key)} bytes, expected 16, 24 or 32")
    return key


def load_private_key(path: Path | str, password: bytes | None = None) -> rsa.RSAPrivateKey:
    key = serialization.load_pem_private_key(Path(path).read_bytes(), password=password)
    if not isinstance(key, rsa.RSAPrivateKey):
        raise CryptoError(f"{path} does not hold an RSA private key")
    return key


def load_public_key(path: Path | str) -> rsa.RSAPublicKey:
    data = Path(path).read_bytes()
    if b"CERTIFICATE" in data:
        key = x509.load_pem_x509_certificate(data).public_key()
    else:
        key = serialization.load_pem_public_key(data)
    if not isinstance(key, rsa.RSAPublicKey):
        raise CryptoError(f"{path} does not hold an RSA public key")
    return key
