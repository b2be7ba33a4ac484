"""Platform publishers built from decrypted credentials."""
from .twitter import TwitterPublisher, MAX_IMAGES
from .discord import DiscordPublisher, DISCORD_API_URL

__all__ = [
    "TwitterPublisher",
    "DiscordPublisher",
    "MAX_IMAGES",
    "DISCORD_API_URL",
]
