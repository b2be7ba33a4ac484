"""Credential Vault — Encrypted at-rest storage of platform secrets.

Security Note (Threat Model):
    Secrets are decrypted in process memory only while a platform client
    is being built and used. Tokens written by the legacy services use
    AES-256-CBC without a MAC and only resist passive reads of the store;
    migrate them with ``rotate_encryption_key(pool, cipher, cipher)``.
"""

from .crypto import CredentialCipher
from .credential_store import CredentialStore
from .key_rotation import rotate_encryption_key
from .config import CipherConfig, load_encryption_key, generate_key
from .token import EncryptedSecret, parse_token
from .models import (
    TwitterAccount,
    TwitterCredentials,
    DiscordBot,
    DiscordCredentials,
)

__all__ = [
    "CredentialCipher",
    "CredentialStore",
    "rotate_encryption_key",
    "CipherConfig",
    "load_encryption_key",
    "generate_key",
    "EncryptedSecret",
    "parse_token",
    "TwitterAccount",
    "TwitterCredentials",
    "DiscordBot",
    "DiscordCredentials",
]
