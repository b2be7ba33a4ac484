"""
Twitter publisher — posts a tweet with optional images or a single video.

Media goes through the v1.1 upload endpoint, the tweet itself through the
v2 ``create_tweet`` endpoint, both via tweepy with OAuth 1.0a user context.
tweepy is blocking, so calls run in a worker thread.
"""
import asyncio
import logging
from collections.abc import Sequence
from typing import Any, Optional

import tweepy

from ..exceptions import MediaValidationError, PublishError
from ..vault.models import TwitterCredentials

logger = logging.getLogger("bot_credentials.publish")

MAX_IMAGES = 4


def validate_media(images: Sequence[str], video: Optional[str]) -> None:
    """Check the attachment combination a single tweet accepts.

    Raises:
        MediaValidationError: More than four images, or images and a video.
    """
    if len(images) > MAX_IMAGES:
        raise MediaValidationError(
            f"A tweet accepts at most {MAX_IMAGES} images, got {len(images)}"
        )
    if images and video:
        raise MediaValidationError(
            "Cannot upload both images and videos in a single tweet."
        )


class TwitterPublisher:
    """Posts on behalf of one Twitter account.

    ``api`` and ``client`` default to tweepy objects built from the
    credentials; they can be replaced for testing.
    """

    def __init__(
        self,
        credentials: TwitterCredentials,
        api: Any = None,
        client: Any = None,
    ):
        self.account_id = credentials.account_id
        keys = dict(
            consumer_key=credentials.api_key.get_secret_value(),
            consumer_secret=credentials.api_secret.get_secret_value(),
            access_token=credentials.access_token.get_secret_value(),
            access_token_secret=credentials.access_secret.get_secret_value(),
        )
        if api is None:
            api = tweepy.API(tweepy.OAuth1UserHandler(**keys))
        if client is None:
            client = tweepy.Client(**keys)
        self._api = api
        self._client = client

    def __repr__(self) -> str:
        return f"<TwitterPublisher account={self.account_id}>"

    def _upload_media(self, images: Sequence[str], video: Optional[str]) -> list:
        media_ids = []
        for path in images:
            media = self._api.media_upload(filename=path)
            media_ids.append(media.media_id)
        if video:
            logger.debug("Uploading video for account=%s", self.account_id)
            media = self._api.media_upload(
                filename=video,
                media_category="tweet_video",
                chunked=True,
            )
            media_ids.append(media.media_id)
        return media_ids

    def _post(self, text: str, images: Sequence[str], video: Optional[str]) -> Any:
        try:
            media_ids = self._upload_media(images, video)
            response = self._client.create_tweet(
                text=text, media_ids=media_ids or None,
            )
        except tweepy.HTTPException as err:
            raise PublishError(
                "Failed to post tweet",
                status=err.response.status_code,
                details=err.api_messages,
            ) from err
        except tweepy.TweepyException as err:
            raise PublishError("Failed to post tweet", details=str(err)) from err
        return response.data

    async def post(
        self,
        text: str,
        images: Sequence[str] = (),
        video: Optional[str] = None,
    ) -> Any:
        """Post a tweet.

        Args:
            text: Tweet text, required.
            images: Up to four image file paths.
            video: Path of one video file; excludes images.

        Returns:
            The created tweet as returned by the v2 API.

        Raises:
            ValueError: If text is empty.
            MediaValidationError: On an invalid media combination.
            PublishError: If Twitter rejects the upload or the tweet.
        """
        if not text:
            raise ValueError("Tweet text is required")
        images = list(images)
        validate_media(images, video)
        tweet = await asyncio.to_thread(self._post, text, images, video)
        logger.info("Tweet posted for account=%s", self.account_id)
        return tweet
