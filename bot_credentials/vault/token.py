"""
Token codec — tagged representation of an encrypted secret and its wire format.

Two wire formats are understood:

- legacy (untagged): ``base64(iv):base64(ciphertext)``
  AES-256-CBC, 16-byte IV, PKCS#7 padding, no authentication tag.
- v1: ``v1:base64(nonce):base64(ciphertext || tag)``
  AES-256-GCM, 12-byte nonce, 16-byte tag.

The base64 alphabet has no ``:``, so a token splits unambiguously.
"""
import base64
import binascii
from typing import Optional

from pydantic import BaseModel, ConfigDict

from ..exceptions import TokenFormatError

SEPARATOR = ":"

VERSION_LEGACY: Optional[str] = None
VERSION_AEAD = "v1"
CURRENT_VERSION = VERSION_AEAD

IV_SIZE = 16  # AES block size, CBC
NONCE_SIZE = 12  # 96-bit nonce, GCM
TAG_SIZE = 16  # 128-bit GCM tag
BLOCK_SIZE = 16


class EncryptedSecret(BaseModel):
    """An encrypted secret as a tagged structure.

    ``version`` is ``None`` for legacy CBC tokens and ``"v1"`` for AES-GCM.
    """

    model_config = ConfigDict(frozen=True)

    version: Optional[str] = CURRENT_VERSION
    iv: bytes
    ciphertext: bytes

    @property
    def is_legacy(self) -> bool:
        return self.version is VERSION_LEGACY

    def serialize(self) -> str:
        """Render the secret in its wire format."""
        parts = [_b64encode(self.iv), _b64encode(self.ciphertext)]
        if self.version is not VERSION_LEGACY:
            parts.insert(0, self.version)
        return SEPARATOR.join(parts)

    def __str__(self) -> str:
        return self.serialize()


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _b64decode(segment: str, name: str) -> bytes:
    if not segment:
        raise TokenFormatError(f"Token {name} segment is empty")
    try:
        return base64.b64decode(segment, validate=True)
    except (binascii.Error, ValueError) as err:
        raise TokenFormatError(
            f"Token {name} segment is not valid base64"
        ) from err


def parse_token(token: str) -> EncryptedSecret:
    """Parse a serialized token into an :class:`EncryptedSecret`.

    Raises:
        TokenFormatError: on a missing separator, extra segments, invalid
            base64, an unknown version tag or impossible segment lengths.
    """
    if not isinstance(token, str):
        raise TokenFormatError(
            f"Token must be a string, got {type(token).__name__}"
        )
    parts = token.split(SEPARATOR)
    if len(parts) == 2:
        iv = _b64decode(parts[0], "iv")
        ciphertext = _b64decode(parts[1], "ciphertext")
        if len(iv) != IV_SIZE:
            raise TokenFormatError(
                f"Legacy token IV must be {IV_SIZE} bytes, got {len(iv)}"
            )
        if not ciphertext or len(ciphertext) % BLOCK_SIZE:
            raise TokenFormatError(
                "Legacy token ciphertext is not a whole number of blocks"
            )
        return EncryptedSecret(
            version=VERSION_LEGACY, iv=iv, ciphertext=ciphertext
        )
    if len(parts) == 3:
        version = parts[0]
        if version != VERSION_AEAD:
            raise TokenFormatError(f"Unsupported token version: {version!r}")
        nonce = _b64decode(parts[1], "nonce")
        ciphertext = _b64decode(parts[2], "ciphertext")
        if len(nonce) != NONCE_SIZE:
            raise TokenFormatError(
                f"Token nonce must be {NONCE_SIZE} bytes, got {len(nonce)}"
            )
        if len(ciphertext) < TAG_SIZE:
            raise TokenFormatError("Token ciphertext is shorter than its tag")
        return EncryptedSecret(version=version, iv=nonce, ciphertext=ciphertext)
    raise TokenFormatError(
        f"Token must have 2 or 3 '{SEPARATOR}'-separated segments, "
        f"got {len(parts)}"
    )
