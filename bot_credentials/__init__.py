"""Bot Credentials.

Encrypted at-rest storage of Twitter and Discord credentials, plus the
publishing flow that decrypts them right before building a platform client.
"""
from .version import __version__
from .exceptions import (
    CredentialError,
    ConfigurationError,
    TokenFormatError,
    DecryptionError,
    CorruptCredentialError,
    AccountNotFound,
    MediaValidationError,
    PublishError,
)
from .vault import CredentialCipher, CredentialStore, rotate_encryption_key
from .service import PublishingService

__all__ = [
    "__version__",
    "CredentialError",
    "ConfigurationError",
    "TokenFormatError",
    "DecryptionError",
    "CorruptCredentialError",
    "AccountNotFound",
    "MediaValidationError",
    "PublishError",
    "CredentialCipher",
    "CredentialStore",
    "rotate_encryption_key",
    "PublishingService",
]
