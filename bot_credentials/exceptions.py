"""Exceptions raised by the credential vault and the publishers."""
from typing import Any, Optional


class CredentialError(Exception):
    """Base class for every bot_credentials error."""


class ConfigurationError(CredentialError, RuntimeError):
    """Encryption key missing or of the wrong length. Fatal at startup."""


class TokenFormatError(CredentialError, ValueError):
    """Stored token does not have the expected serialized structure."""


class DecryptionError(CredentialError, ValueError):
    """Token is well formed but could not be decrypted with this key."""


class CorruptCredentialError(CredentialError):
    """A stored credential could not be decoded or decrypted.

    Persistent data corruption or key mismatch; callers must not retry.
    """

    def __init__(self, record_id: Any, field: str):
        self.record_id = record_id
        self.field = field
        super().__init__(
            f"Stored credential {field!r} of record {record_id} is corrupt"
        )


class AccountNotFound(CredentialError, LookupError):
    """No credentials stored under the requested id."""


class MediaValidationError(CredentialError, ValueError):
    """Invalid combination of media attachments."""


class PublishError(CredentialError):
    """Third-party platform rejected a publish request."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        details: Any = None
    ):
        self.status = status
        self.details = details
        super().__init__(message)
