"""Tests for PublishingService: fetch, decrypt, build client, publish."""
import uuid

import pytest

from bot_credentials.exceptions import AccountNotFound, CorruptCredentialError
from bot_credentials.service import PublishingService


class RecordingPublisher:
    """Stands in for both publishers and remembers what it was built with."""

    built = []

    def __init__(self, credentials):
        self.credentials = credentials
        self.calls = []
        RecordingPublisher.built.append(self)

    async def post(self, text, images=(), video=None):
        self.calls.append((text, list(images), video))
        return {"id": "tweet-1", "text": text}

    async def send_message(self, content):
        self.calls.append(content)
        return {"id": "msg-1", "content": content}


@pytest.fixture(autouse=True)
def reset_recorder():
    RecordingPublisher.built = []


@pytest.fixture
def service(store):
    return PublishingService(
        store,
        twitter_factory=RecordingPublisher,
        discord_factory=RecordingPublisher,
    )


class TestPostTweet:

    @pytest.mark.asyncio
    async def test_builds_client_from_decrypted_credentials(self, store, service):
        account = await store.add_twitter_account("o", "k", "s", "t", "ts")
        tweet = await service.post_tweet(account.id, "hello", images=["a.png"])

        assert tweet == {"id": "tweet-1", "text": "hello"}
        (publisher,) = RecordingPublisher.built
        assert publisher.credentials.api_key.get_secret_value() == "k"
        assert publisher.credentials.access_secret.get_secret_value() == "ts"
        assert publisher.calls == [("hello", ["a.png"], None)]

    @pytest.mark.asyncio
    async def test_text_checked_before_lookup(self, service):
        with pytest.raises(ValueError):
            await service.post_tweet(uuid.uuid4(), "")
        assert RecordingPublisher.built == []

    @pytest.mark.asyncio
    async def test_unknown_account(self, service):
        with pytest.raises(AccountNotFound):
            await service.post_tweet(uuid.uuid4(), "hello")

    @pytest.mark.asyncio
    async def test_corrupt_credentials_never_reach_client(self, store, pool, service):
        account = await store.add_twitter_account("o", "k", "s", "t", "ts")
        pool.tables["twitter_accounts"][0]["twitter_api_secret"] = "corrupt"
        with pytest.raises(CorruptCredentialError):
            await service.post_tweet(account.id, "hello")
        assert RecordingPublisher.built == []


class TestSendDiscordMessage:

    @pytest.mark.asyncio
    async def test_send(self, store, service):
        bot = await store.add_discord_bot("o", "bot-token", "chan")
        message = await service.send_discord_message(bot.id, "ping")

        assert message == {"id": "msg-1", "content": "ping"}
        (publisher,) = RecordingPublisher.built
        assert publisher.credentials.bot_token.get_secret_value() == "bot-token"
        assert publisher.credentials.channel_id == "chan"

    @pytest.mark.asyncio
    async def test_content_required(self, service):
        with pytest.raises(ValueError):
            await service.send_discord_message(uuid.uuid4(), "")

    @pytest.mark.asyncio
    async def test_unknown_bot(self, service):
        with pytest.raises(AccountNotFound):
            await service.send_discord_message(uuid.uuid4(), "ping")
