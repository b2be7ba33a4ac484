"""
Credential Cipher — encryption and decryption of stored platform secrets.

New secrets are encrypted with AES-256-GCM (96-bit nonce, 128-bit tag) and
serialized as ``v1`` tokens. Untagged tokens written by the legacy services
(AES-256-CBC, PKCS#7, no MAC) are still decrypted so they can be migrated.

Security Note:
    Never log plaintext or ciphertext values.
    Legacy CBC tokens carry no authentication tag: a wrong key or a corrupted
    ciphertext is detected only when the padding happens to be invalid.
"""
import os
import logging
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..exceptions import DecryptionError
from .config import coerce_key, load_encryption_key, ENCRYPTION_KEY_ENV
from .token import (
    EncryptedSecret,
    parse_token,
    IV_SIZE,
    NONCE_SIZE,
    VERSION_AEAD,
    VERSION_LEGACY,
)

logger = logging.getLogger("bot_credentials.vault")


def _encode(plaintext: str) -> bytes:
    if not isinstance(plaintext, str):
        raise TypeError(
            f"plaintext must be str, got {type(plaintext).__name__}"
        )
    return plaintext.encode("utf-8")


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as err:
        raise DecryptionError("Decrypted secret is not valid UTF-8") from err


# ---------------------------------------------------------------------------
# Legacy layer (AES-256-CBC, untagged)
# ---------------------------------------------------------------------------

def encrypt_cbc(plaintext: str, key: bytes) -> EncryptedSecret:
    """Encrypt with AES-256-CBC and a random 16-byte IV.

    Produces the legacy, unauthenticated format. Kept for compatibility
    with stores written by the original services; use
    :meth:`CredentialCipher.encrypt` for new secrets.
    """
    iv = os.urandom(IV_SIZE)
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(_encode(plaintext)) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ct = encryptor.update(padded) + encryptor.finalize()
    return EncryptedSecret(version=VERSION_LEGACY, iv=iv, ciphertext=ct)


def decrypt_cbc(secret: EncryptedSecret, key: bytes) -> str:
    """Decrypt a legacy CBC secret.

    Raises:
        DecryptionError: If the padding or the UTF-8 payload is invalid.
    """
    decryptor = Cipher(algorithms.AES(key), modes.CBC(secret.iv)).decryptor()
    padded = decryptor.update(secret.ciphertext) + decryptor.finalize()
    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
    try:
        data = unpadder.update(padded) + unpadder.finalize()
    except ValueError as err:
        raise DecryptionError(
            "Invalid padding: wrong key or corrupted ciphertext"
        ) from err
    return _decode(data)


# ---------------------------------------------------------------------------
# Authenticated layer (AES-256-GCM, v1)
# ---------------------------------------------------------------------------

def encrypt_aead(plaintext: str, aead: AESGCM) -> EncryptedSecret:
    """Encrypt with AES-256-GCM and a random 96-bit nonce.

    Format: v1 token, ciphertext carries the 16-byte tag as its suffix.
    """
    nonce = os.urandom(NONCE_SIZE)
    ct = aead.encrypt(nonce, _encode(plaintext), None)
    return EncryptedSecret(version=VERSION_AEAD, iv=nonce, ciphertext=ct)


def decrypt_aead(secret: EncryptedSecret, aead: AESGCM) -> str:
    """Decrypt a v1 secret, verifying its tag.

    Raises:
        DecryptionError: If the tag does not verify.
    """
    try:
        data = aead.decrypt(secret.iv, secret.ciphertext, None)
    except InvalidTag as err:
        raise DecryptionError(
            "Authentication failed: wrong key or tampered token"
        ) from err
    return _decode(data)


# ---------------------------------------------------------------------------
# Cipher object
# ---------------------------------------------------------------------------

class CredentialCipher:
    """Process-wide credential cipher holding a single 32-byte key.

    The key is validated at construction; an instance is read-only afterwards
    and safe to share between concurrent requests. Build one at startup with
    :meth:`from_env` and hand it to the store and the handlers.
    """

    def __init__(self, key: bytes | str):
        self._key = coerce_key(key)
        self._aead = AESGCM(self._key)

    @classmethod
    def from_env(cls, env_var: str = ENCRYPTION_KEY_ENV) -> "CredentialCipher":
        """Build the cipher from the ENCRYPTION_KEY environment variable.

        Raises:
            ConfigurationError: If the variable is unset or mis-sized.
        """
        return cls(load_encryption_key(env_var))

    def __repr__(self) -> str:
        return "<CredentialCipher key=<redacted>>"

    def encrypt(self, plaintext: str) -> str:
        """Encrypt ``plaintext`` and return an opaque v1 token."""
        return encrypt_aead(plaintext, self._aead).serialize()

    def decrypt(self, token: str) -> str:
        """Decrypt a token produced by :meth:`encrypt` or a legacy service.

        Raises:
            TokenFormatError: If the token is malformed.
            DecryptionError: If the key does not match or the data is corrupt.
        """
        secret = parse_token(token)
        if secret.is_legacy:
            return decrypt_cbc(secret, self._key)
        return decrypt_aead(secret, self._aead)

    def needs_upgrade(self, token: str) -> bool:
        """Return True when ``token`` is in the legacy unauthenticated format."""
        return parse_token(token).is_legacy

    def reencrypt(self, token: str, source: Optional["CredentialCipher"] = None) -> str:
        """Decrypt ``token`` with ``source`` (or this cipher) and encrypt it anew."""
        plaintext = (source or self).decrypt(token)
        return self.encrypt(plaintext)
