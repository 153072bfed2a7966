import discord
from typing import AbstractSet, Optional
from shockbot.base import IncomingMessage
from shockbot.infra.logging import logger

WAIT_MESSAGE = "Wait {seconds} seconds..."


def discord_message_to_incoming(message: discord.Message) -> IncomingMessage:
    return IncomingMessage(
        text=message.content or "",
        author_id=message.author.id,
        mentioned_user_ids=frozenset(u.id for u in message.mentions),
        message_id=message.id,
        channel_id=getattr(message.channel, "id", None),
    )


def format_wait_message(seconds: int) -> str:
    return WAIT_MESSAGE.format(seconds=seconds)


def should_block(guild: Optional[discord.Guild], allowed_server_ids: AbstractSet[int]) -> bool:
    """Check if bot should ignore a message from this guild.

    An empty allow-list means every guild and DMs are served.
    """
    if not allowed_server_ids:
        return False
    if guild is None:
        # dm's are only served when no allow-list is configured
        logger.info("DM ignored, allow-list configured")
        return True
    if guild.id not in allowed_server_ids:
        logger.info(f"Guild {guild} not allowed")
        return True
    return False


async def reply(channel: discord.abc.Messageable, text: str) -> bool:
    """Send text to the channel. Returns False (after logging) if Discord refused."""
    try:
        await channel.send(text)
        return True
    except discord.HTTPException as e:
        logger.warning(f"[notify] send failed channel={getattr(channel, 'id', None)} error={e}")
        return False


__all__ = [
    'WAIT_MESSAGE',
    'discord_message_to_incoming',
    'format_wait_message',
    'should_block',
    'reply',
]
