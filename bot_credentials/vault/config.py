"""
Cipher Configuration — Encryption key loading and validated settings.

Reads the process-wide key from the environment:
    ENCRYPTION_KEY = <32-character string>

The key is used as its raw UTF-8 bytes, the same way the original Node
services did, so rows they wrote remain readable.

Security Note:
    Never log key material. Only log key lengths and variable names.
"""
import os
import secrets
import logging
from typing import Optional

from pydantic import BaseModel, field_validator

from ..exceptions import ConfigurationError

logger = logging.getLogger("bot_credentials.vault")

KEY_LENGTH = 32  # AES-256
ENCRYPTION_KEY_ENV = "ENCRYPTION_KEY"


def coerce_key(key: Optional[object]) -> bytes:
    """Return ``key`` as bytes after checking it is exactly 32 bytes long.

    Raises:
        ConfigurationError: If the key is missing, not str/bytes or mis-sized.
    """
    if key is None or key == "" or key == b"":
        raise ConfigurationError("Encryption key is not configured")
    if isinstance(key, str):
        key = key.encode("utf-8")
    if not isinstance(key, (bytes, bytearray)):
        raise ConfigurationError(
            f"Encryption key must be str or bytes, got {type(key).__name__}"
        )
    if len(key) != KEY_LENGTH:
        raise ConfigurationError(
            f"Encryption key must be exactly {KEY_LENGTH} bytes, "
            f"got {len(key)}"
        )
    return bytes(key)


def load_encryption_key(env_var: str = ENCRYPTION_KEY_ENV) -> bytes:
    """Load the encryption key from the environment.

    Args:
        env_var: Name of the environment variable holding the key.

    Returns:
        Raw 32-byte key.

    Raises:
        ConfigurationError: If the variable is unset or has the wrong length.
    """
    raw = os.environ.get(env_var)
    if raw is None:
        raise ConfigurationError(
            f"{env_var} environment variable is not set. "
            f"Set {env_var}=<{KEY_LENGTH}-character key>"
        )
    try:
        key = coerce_key(raw)
    except ConfigurationError as err:
        raise ConfigurationError(f"{env_var}: {err}") from err
    logger.debug("Loaded encryption key from %s", env_var)
    return key


def generate_key() -> str:
    """Generate a random 32-character key suitable for ENCRYPTION_KEY.

    This is a utility for operators to generate new keys.
    """
    # 24 random bytes render to exactly 32 url-safe characters
    return secrets.token_urlsafe(24)


class CipherConfig(BaseModel):
    """Validated cipher configuration."""

    key: bytes

    @field_validator("key", mode="before")
    @classmethod
    def validate_key(cls, v: object) -> bytes:
        """Ensure the key is present and exactly 32 bytes."""
        try:
            return coerce_key(v)
        except ConfigurationError as err:
            raise ValueError(str(err)) from err

    def __repr__(self) -> str:
        return "CipherConfig(key=<redacted>)"

    __str__ = __repr__

    @classmethod
    def from_env(cls, env_var: str = ENCRYPTION_KEY_ENV) -> "CipherConfig":
        """Create CipherConfig by loading the key from the environment."""
        return cls(key=load_encryption_key(env_var))
