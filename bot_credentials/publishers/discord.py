"""Discord publisher — sends a message to a channel as a bot."""
import logging
from typing import Any, Optional

import aiohttp
import orjson

from ..exceptions import PublishError
from ..vault.models import DiscordCredentials

logger = logging.getLogger("bot_credentials.publish")

DISCORD_API_URL = "https://discord.com/api/v9"


class DiscordPublisher:
    """Sends messages through the Discord REST API with a bot token.

    An existing ``aiohttp.ClientSession`` may be shared; otherwise one is
    opened per call.
    """

    def __init__(
        self,
        credentials: DiscordCredentials,
        session: Optional[aiohttp.ClientSession] = None,
        api_url: str = DISCORD_API_URL,
    ):
        self.bot_id = credentials.bot_id
        self.channel_id = credentials.channel_id
        self._token = credentials.bot_token
        self._session = session
        self._api_url = api_url.rstrip("/")

    def __repr__(self) -> str:
        return f"<DiscordPublisher bot={self.bot_id} channel={self.channel_id}>"

    @property
    def url(self) -> str:
        return f"{self._api_url}/channels/{self.channel_id}/messages"

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bot {self._token.get_secret_value()}",
            "Content-Type": "application/json",
        }

    async def _send(self, session: aiohttp.ClientSession, content: str) -> Any:
        async with session.post(
            self.url,
            data=orjson.dumps({"content": content}),
            headers=self._headers(),
        ) as response:
            body = await response.read()
            try:
                payload = orjson.loads(body) if body else None
            except orjson.JSONDecodeError:
                payload = body.decode("utf-8", errors="replace")
            if response.status >= 400:
                raise PublishError(
                    "Failed to send message",
                    status=response.status,
                    details=payload,
                )
            return payload

    async def send_message(self, content: str) -> Any:
        """Send ``content`` to the configured channel.

        Returns:
            The message object returned by Discord.

        Raises:
            ValueError: If content is empty.
            PublishError: On a non-2xx response or a transport failure.
        """
        if not content:
            raise ValueError("Message content is required")
        try:
            if self._session is not None:
                message = await self._send(self._session, content)
            else:
                async with aiohttp.ClientSession() as session:
                    message = await self._send(session, content)
        except aiohttp.ClientError as err:
            raise PublishError("Failed to send message", details=str(err)) from err
        logger.info(
            "Message sent by bot=%s to channel=%s", self.bot_id, self.channel_id,
        )
        return message
