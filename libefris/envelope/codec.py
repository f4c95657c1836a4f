"""Envelope codec.

Decoding order: parse, base64-decode, verify the signature over the
transmitted base64 text, decrypt (``codeType`` 1), gunzip (``zipCode`` 1),
parse the inner JSON. Encoding runs the same steps backwards.
"""

from __future__ import annotations

import base64
import binascii
import gzip
import json
import logging
import zlib
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, NamedTuple

from pydantic import ValidationError as PydanticValidationError

from ..collaborators import CryptoProvider
from ..errors import CryptoError, DecodeError, SignatureError
from ..utils import dumps, loads
from .crypto import ALGORITHMS
from .models import Data, DataDescription, Envelope, GlobalInfo, ReturnStateInfo

logger = logging.getLogger(__name__)

PLAIN = "0"
CIPHER = "1"
UNCOMPRESSED = "0"
COMPRESSED = "1"


@dataclass(frozen=True)
class EncryptionConfig:
    """How to wrap outgoing content: the three ``dataDescription`` flags."""

    code_type: str = PLAIN
    encrypt_code: str = "2"
    zip_code: str = UNCOMPRESSED

    def __post_init__(self) -> None:
        if self.code_type not in (PLAIN, CIPHER):
            raise ValueError(f"codeType must be 0 or 1, got {self.code_type!r}")
        if self.encrypt_code not in ALGORITHMS:
            raise ValueError(f"encryptCode must be 1 or 2, got {self.encrypt_code!r}")
        if self.zip_code not in (UNCOMPRESSED, COMPRESSED):
            raise ValueError(f"zipCode must be 0 or 1, got {self.zip_code!r}")

    @property
    def description(self) -> DataDescription:
        return DataDescription(code_type=self.code_type, encrypt_code=self.encrypt_code, zip_code=self.zip_code)


PLAIN_TEXT = EncryptionConfig()


class DecodedEnvelope(NamedTuple):
    global_info: GlobalInfo
    content: Any
    return_state: ReturnStateInfo
    encryption: EncryptionConfig = PLAIN_TEXT


class EnvelopeCodec:
    """
    Stateless encoder/decoder of the three-part envelope.

    Key material stays with the crypto provider; the codec only names which
    key to use: ``symmetric_key`` for AES, ``private_key`` to decrypt RSA
    content and to sign, ``peer_key`` to encrypt RSA content and to verify
    the peer's signatures.
    """

    def __init__(
        self,
        crypto: CryptoProvider | None = None,
        *,
        symmetric_key: str = "session",
        private_key: str = "client",
        peer_key: str = "server",
        verify_signatures: bool = True,
    ):
        self.crypto = crypto
        self.symmetric_key = symmetric_key
        self.private_key = private_key
        self.peer_key = peer_key
        self.verify_signatures = verify_signatures

    def parse(self, raw: str | bytes | Mapping[str, Any]) -> Envelope:
        """Parse the outer envelope without touching its content."""
        if isinstance(raw, Mapping):
            payload = raw
        else:
            try:
                payload = json.loads(raw)
            except (ValueError, TypeError) as exc:
                raise DecodeError(f"Envelope is not valid JSON: {exc}") from exc
        if not isinstance(payload, Mapping):
            raise DecodeError("Envelope must be a JSON object")
        try:
            return Envelope.model_validate(payload)
        except PydanticValidationError as exc:
            raise DecodeError(f"Malformed envelope: {_first_error(exc)}") from exc

    def decode(self, raw: str | bytes | Mapping[str, Any]) -> DecodedEnvelope:
        envelope = self.parse(raw)
        global_info = envelope.global_info
        data = envelope.data
        description = data.data_description
        logger.debug(
            "decode %s: codeType=%s encryptCode=%s zipCode=%s",
            global_info.interface_code,
            description.code_type,
            description.encrypt_code,
            description.zip_code,
        )

        if description.code_type not in (PLAIN, CIPHER):
            raise DecodeError(f"Unknown codeType {description.code_type!r}")
        if description.zip_code not in (UNCOMPRESSED, COMPRESSED):
            raise DecodeError(f"Unknown zipCode {description.zip_code!r}")

        encryption = EncryptionConfig(
            description.code_type,
            description.encrypt_code if description.encrypt_code in ALGORITHMS else PLAIN_TEXT.encrypt_code,
            description.zip_code,
        )
        if not data.content:
            return DecodedEnvelope(global_info, None, envelope.return_state_info, encryption)

        try:
            body = base64.b64decode(data.content, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DecodeError("content is not valid base64") from exc

        # the signature covers the base64 text, which is ASCII from here on
        self._verify(data, description)

        if description.code_type == CIPHER:
            algorithm = self._algorithm(description.encrypt_code)
            body = self._require_crypto().decrypt(body, self._key_for(description.encrypt_code, decrypt=True), algorithm)

        if description.zip_code == COMPRESSED:
            try:
                body = gzip.decompress(body)
            except (OSError, EOFError, zlib.error) as exc:
                raise DecodeError("content is not valid gzip data") from exc

        try:
            content = loads(body.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise DecodeError(f"content is not valid JSON: {exc}") from exc

        return DecodedEnvelope(global_info, content, envelope.return_state_info, encryption)

    def encode(
        self,
        global_info: GlobalInfo | Mapping[str, Any],
        content: Any,
        encryption: EncryptionConfig = PLAIN_TEXT,
        return_state: ReturnStateInfo | None = None,
    ) -> str:
        """Wrap ``content`` (text, bytes or a JSON-able structure) into envelope JSON text."""
        info = global_info if isinstance(global_info, GlobalInfo) else GlobalInfo.model_validate(global_info)
        data = Data(data_description=encryption.description)

        body = _content_bytes(content)
        if body:
            if encryption.zip_code == COMPRESSED:
                body = gzip.compress(body)
            if encryption.code_type == CIPHER:
                body = self._require_crypto().encrypt(
                    body, self._key_for(encryption.encrypt_code, decrypt=False), self._algorithm(encryption.encrypt_code)
                )
            data.content = base64.b64encode(body).decode("ascii")
            if self.crypto is not None and self._can_sign():
                data.signature = self.crypto.sign(data.content.encode("ascii"), self.private_key)

        envelope = Envelope(
            data=data,
            global_info=info,
            return_state_info=return_state or ReturnStateInfo(),
        )
        logger.debug("encoded %s: %d content characters", info.interface_code, len(data.content))
        return dumps(envelope.to_wire())

    def _verify(self, data: Data, description: DataDescription) -> None:
        if not self.verify_signatures:
            return
        if not data.signature:
            if description.code_type == CIPHER:
                raise SignatureError("Encrypted content must be signed")
            return
        crypto = self._require_crypto()
        if not crypto.verify_signature(data.content.encode("ascii"), data.signature, self.peer_key):
            raise SignatureError("Signature does not match the content")

    def _require_crypto(self) -> CryptoProvider:
        if self.crypto is None:
            raise CryptoError("No crypto provider configured")
        return self.crypto

    def _can_sign(self) -> bool:
        private_keys = getattr(self.crypto, "private_keys", None)
        return private_keys is None or self.private_key in private_keys

    def _algorithm(self, encrypt_code: str) -> str:
        try:
            return ALGORITHMS[encrypt_code]
        except KeyError:
            raise DecodeError(f"Unknown encryptCode {encrypt_code!r}") from None

    def _key_for(self, encrypt_code: str, *, decrypt: bool) -> str:
        if self._algorithm(encrypt_code) == "AES":
            return self.symmetric_key
        return self.private_key if decrypt else self.peer_key


def _content_bytes(content: Any) -> bytes:
    if content is None:
        return b""
    if isinstance(content, bytes):
        return content
    if isinstance(content, str):
        return content.encode("utf-8")
    return dumps(content).encode("utf-8")


def _first_error(exc: PydanticValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error.get('msg', 'invalid')}"
