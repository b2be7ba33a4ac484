"""Stored records and decrypted credential models.

Stored records carry only tokens. Decrypted credentials keep every secret
in a ``SecretStr`` so a repr, a log line or a JSON dump never shows it.
"""
from uuid import UUID
from datetime import datetime
from typing import Optional

import orjson
from pydantic import BaseModel, ConfigDict, SecretStr


class StoredRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    owner_user_id: str
    created_at: Optional[datetime] = None

    def to_json(self) -> bytes:
        """Serialize the record (tokens included, never plaintext)."""
        return orjson.dumps(self.model_dump(mode="json"))


class TwitterAccount(StoredRecord):
    """A row of ``twitter_accounts``; secret columns hold tokens."""

    twitter_api_key: str
    twitter_api_secret: str
    twitter_access_token: str
    twitter_access_secret: str


class DiscordBot(StoredRecord):
    """A row of ``discord_bots``; ``bot_token`` holds a token."""

    bot_token: str
    channel_id: str


class TwitterCredentials(BaseModel):
    """OAuth 1.0a user-context credentials for one Twitter account."""

    model_config = ConfigDict(frozen=True)

    account_id: UUID
    api_key: SecretStr
    api_secret: SecretStr
    access_token: SecretStr
    access_secret: SecretStr


class DiscordCredentials(BaseModel):
    """Bot token and target channel for one Discord bot."""

    model_config = ConfigDict(frozen=True)

    bot_id: UUID
    bot_token: SecretStr
    channel_id: str
