"""
CredentialStore — encrypted persistence of Twitter and Discord credentials.

Provides the public API used by the handlers:
- ``add_twitter_account(...)`` / ``add_discord_bot(...)`` — encrypt and insert
- ``list_twitter_accounts(owner)`` / ``list_discord_bots(owner)`` — stored rows
- ``get_twitter_credentials(id)`` / ``get_discord_credentials(id)`` — fetch
  and decrypt right before a platform client is built
- ``delete_twitter_account(id)`` / ``delete_discord_bot(id)``

Security Note:
    Never log plaintext or ciphertext values. Only log record ids,
    owner ids and column names.
"""
import uuid
import logging
from typing import Any

from ..exceptions import (
    AccountNotFound,
    CorruptCredentialError,
    DecryptionError,
    TokenFormatError,
)
from .crypto import CredentialCipher
from .models import (
    DiscordBot,
    DiscordCredentials,
    TwitterAccount,
    TwitterCredentials,
)

logger = logging.getLogger("bot_credentials.vault")

# Secret columns per table; everything else is stored in plaintext.
TWITTER_SECRET_COLUMNS = {
    "api_key": "twitter_api_key",
    "api_secret": "twitter_api_secret",
    "access_token": "twitter_access_token",
    "access_secret": "twitter_access_secret",
}
DISCORD_SECRET_COLUMNS = {
    "bot_token": "bot_token",
}
SECRET_COLUMNS = {
    "twitter_accounts": tuple(TWITTER_SECRET_COLUMNS.values()),
    "discord_bots": tuple(DISCORD_SECRET_COLUMNS.values()),
}

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_INSERT_TWITTER = """
INSERT INTO twitter_accounts (
    id, owner_user_id, twitter_api_key, twitter_api_secret,
    twitter_access_token, twitter_access_secret
)
VALUES ($1, $2, $3, $4, $5, $6)
RETURNING *
"""

_SELECT_TWITTER_BY_OWNER = """
SELECT * FROM twitter_accounts
WHERE owner_user_id = $1
ORDER BY created_at
"""

_SELECT_TWITTER_BY_ID = """
SELECT * FROM twitter_accounts WHERE id = $1
"""

_DELETE_TWITTER = """
DELETE FROM twitter_accounts WHERE id = $1
"""

_INSERT_DISCORD = """
INSERT INTO discord_bots (id, owner_user_id, bot_token, channel_id)
VALUES ($1, $2, $3, $4)
RETURNING *
"""

_SELECT_DISCORD_BY_OWNER = """
SELECT * FROM discord_bots
WHERE owner_user_id = $1
ORDER BY created_at
"""

_SELECT_DISCORD_BY_ID = """
SELECT * FROM discord_bots WHERE id = $1
"""

_DELETE_DISCORD = """
DELETE FROM discord_bots WHERE id = $1
"""


def _require(**fields: Any) -> None:
    if any(not value for value in fields.values()):
        raise ValueError("All credentials are required.")


def _deleted_rows(status: str) -> int:
    """Row count from an asyncpg command status such as ``'DELETE 1'``."""
    try:
        return int(str(status).rsplit(" ", 1)[-1])
    except ValueError:
        return 0


class CredentialStore:
    """Encrypted credential storage on top of an asyncpg-compatible pool.

    The cipher is injected; the store never sees the key and never keeps
    plaintext beyond the call that produced it.
    """

    def __init__(self, db_pool: Any, cipher: CredentialCipher):
        self._db = db_pool
        self._cipher = cipher

    @property
    def cipher(self) -> CredentialCipher:
        return self._cipher

    def _decrypt(self, record_id: Any, column: str, token: str) -> str:
        try:
            return self._cipher.decrypt(token)
        except (TokenFormatError, DecryptionError) as err:
            logger.warning(
                "Corrupt credential column=%s record=%s: %s",
                column, record_id, err,
            )
            raise CorruptCredentialError(record_id, column) from err

    async def _fetchrow(self, statement: str, record_id: Any) -> Any:
        async with self._db.acquire() as conn:
            return await conn.fetchrow(statement, record_id)

    async def _fetch(self, statement: str, owner_user_id: str) -> list:
        async with self._db.acquire() as conn:
            return await conn.fetch(statement, owner_user_id)

    async def _delete(self, statement: str, record_id: Any) -> None:
        async with self._db.acquire() as conn:
            status = await conn.execute(statement, record_id)
        if _deleted_rows(status) == 0:
            raise AccountNotFound(f"No credentials stored under id {record_id}")

    # ------------------------------------------------------------------
    # Twitter
    # ------------------------------------------------------------------

    async def add_twitter_account(
        self,
        owner_user_id: str,
        api_key: str,
        api_secret: str,
        access_token: str,
        access_secret: str,
    ) -> TwitterAccount:
        """Encrypt and store OAuth 1.0a credentials for a Twitter account.

        Raises:
            ValueError: If any field is missing or empty.
        """
        _require(
            owner_user_id=owner_user_id,
            api_key=api_key,
            api_secret=api_secret,
            access_token=access_token,
            access_secret=access_secret,
        )
        encrypt = self._cipher.encrypt
        async with self._db.acquire() as conn:
            row = await conn.fetchrow(
                _INSERT_TWITTER,
                uuid.uuid4(),
                owner_user_id,
                encrypt(api_key),
                encrypt(api_secret),
                encrypt(access_token),
                encrypt(access_secret),
            )
        account = TwitterAccount(**dict(row))
        logger.info(
            "Stored twitter account id=%s for owner=%s",
            account.id, owner_user_id,
        )
        return account

    async def list_twitter_accounts(self, owner_user_id: str) -> list[TwitterAccount]:
        rows = await self._fetch(_SELECT_TWITTER_BY_OWNER, owner_user_id)
        return [TwitterAccount(**dict(row)) for row in rows]

    async def get_twitter_credentials(self, account_id: Any) -> TwitterCredentials:
        """Fetch and decrypt the credentials of one Twitter account.

        Raises:
            AccountNotFound: If no account has this id.
            CorruptCredentialError: If a stored secret cannot be decrypted.
        """
        row = await self._fetchrow(_SELECT_TWITTER_BY_ID, account_id)
        if row is None:
            raise AccountNotFound(f"Bot credentials not found: {account_id}")
        account = TwitterAccount(**dict(row))
        secrets = {
            field: self._decrypt(account.id, column, getattr(account, column))
            for field, column in TWITTER_SECRET_COLUMNS.items()
        }
        logger.debug("Decrypted twitter credentials id=%s", account.id)
        return TwitterCredentials(account_id=account.id, **secrets)

    async def delete_twitter_account(self, account_id: Any) -> None:
        await self._delete(_DELETE_TWITTER, account_id)
        logger.info("Deleted twitter account id=%s", account_id)

    # ------------------------------------------------------------------
    # Discord
    # ------------------------------------------------------------------

    async def add_discord_bot(
        self,
        owner_user_id: str,
        bot_token: str,
        channel_id: str,
    ) -> DiscordBot:
        """Encrypt and store a Discord bot token with its target channel.

        Raises:
            ValueError: If any field is missing or empty.
        """
        _require(
            owner_user_id=owner_user_id,
            bot_token=bot_token,
            channel_id=channel_id,
        )
        async with self._db.acquire() as conn:
            row = await conn.fetchrow(
                _INSERT_DISCORD,
                uuid.uuid4(),
                owner_user_id,
                self._cipher.encrypt(bot_token),
                str(channel_id),
            )
        bot = DiscordBot(**dict(row))
        logger.info(
            "Stored discord bot id=%s for owner=%s", bot.id, owner_user_id,
        )
        return bot

    async def list_discord_bots(self, owner_user_id: str) -> list[DiscordBot]:
        rows = await self._fetch(_SELECT_DISCORD_BY_OWNER, owner_user_id)
        return [DiscordBot(**dict(row)) for row in rows]

    async def get_discord_credentials(self, bot_id: Any) -> DiscordCredentials:
        """Fetch and decrypt the token of one Discord bot.

        Raises:
            AccountNotFound: If no bot has this id.
            CorruptCredentialError: If the stored token cannot be decrypted.
        """
        row = await self._fetchrow(_SELECT_DISCORD_BY_ID, bot_id)
        if row is None:
            raise AccountNotFound(f"Bot credentials not found: {bot_id}")
        bot = DiscordBot(**dict(row))
        token = self._decrypt(bot.id, "bot_token", bot.bot_token)
        logger.debug("Decrypted discord credentials id=%s", bot.id)
        return DiscordCredentials(
            bot_id=bot.id, bot_token=token, channel_id=bot.channel_id,
        )

    async def delete_discord_bot(self, bot_id: Any) -> None:
        await self._delete(_DELETE_DISCORD, bot_id)
        logger.info("Deleted discord bot id=%s", bot_id)
