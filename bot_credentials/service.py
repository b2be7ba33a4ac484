"""
PublishingService — fetch, decrypt, build a platform client, publish.

Credentials are decrypted immediately before the client is constructed and
are not kept once the call returns. A corrupt stored credential raises
``CorruptCredentialError``; it is a persistent failure and is never retried.
"""
import logging
from collections.abc import Sequence
from typing import Any, Callable, Optional

from .publishers import DiscordPublisher, TwitterPublisher
from .vault.credential_store import CredentialStore

logger = logging.getLogger("bot_credentials.publish")


class PublishingService:
    """Publishes on behalf of stored accounts.

    Args:
        store: Credential store used to look up and decrypt secrets.
        twitter_factory: Builds a Twitter client from ``TwitterCredentials``.
        discord_factory: Builds a Discord client from ``DiscordCredentials``.
    """

    def __init__(
        self,
        store: CredentialStore,
        twitter_factory: Callable[..., Any] = TwitterPublisher,
        discord_factory: Callable[..., Any] = DiscordPublisher,
    ):
        self._store = store
        self._twitter_factory = twitter_factory
        self._discord_factory = discord_factory

    async def post_tweet(
        self,
        account_id: Any,
        text: str,
        images: Sequence[str] = (),
        video: Optional[str] = None,
    ) -> Any:
        """Post a tweet (optionally with images or one video) for an account.

        Raises:
            ValueError: If text is empty.
            AccountNotFound: If the account does not exist.
            CorruptCredentialError: If its stored secrets cannot be decrypted.
            MediaValidationError, PublishError: From the publisher.
        """
        if not text:
            raise ValueError("Tweet text is required")
        credentials = await self._store.get_twitter_credentials(account_id)
        publisher = self._twitter_factory(credentials)
        logger.debug("Posting tweet for account=%s", account_id)
        return await publisher.post(text, images=images, video=video)

    async def send_discord_message(self, bot_id: Any, content: str) -> Any:
        """Send a message to the channel registered for a Discord bot."""
        if not content:
            raise ValueError("Message content is required")
        credentials = await self._store.get_discord_credentials(bot_id)
        publisher = self._discord_factory(credentials)
        logger.debug("Sending discord message for bot=%s", bot_id)
        return await publisher.send_message(content)
