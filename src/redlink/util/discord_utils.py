"""
discord_utils.py
================

Low-level Discord helpers for redlink: best-effort replies and deletions,
author filtering and channel slowmode. Nothing here keeps state; failures are
logged and reported through return values instead of raised.
"""

from typing import Any, Union

import discord

from redlink.util.logger import get_logger

logger = get_logger("discord_utils")


def is_ignored_author(author: Union[discord.User, discord.Member]) -> bool:
    """Return True for bot accounts, including this bot."""
    return bool(getattr(author, "bot", False))


async def safe_reply(message: discord.Message, content: str) -> bool:
    """
    Reply to a message, swallowing delivery failures.

    Args:
        message (discord.Message): The message to reply to.
        content (str): Reply text.

    Returns:
        bool: True if the reply was sent, False otherwise.
    """
    try:
        await message.reply(content)
        return True
    except discord.Forbidden:
        logger.warning("No permission to reply in channel %s", getattr(message.channel, "id", "?"))
    except discord.HTTPException as exc:
        logger.error("Error replying to message %s: %s", message.id, exc)
    return False


async def safe_delete_message(message: discord.Message) -> bool:
    """
    Attempt to delete a Discord message, suppressing recoverable errors.

    Args:
        message (discord.Message): The message to delete.

    Returns:
        bool: True if deletion succeeded, False otherwise.
    """
    try:
        await message.delete()
        return True
    except discord.NotFound:
        return False
    except discord.Forbidden:
        logger.warning(f"No permission to delete message {message.id}")
    except Exception as exc:
        logger.error(f"Error deleting message {message.id}: {exc}")
    return False


async def apply_slowmode(bot: Any, channel_id: int, seconds: int) -> bool:
    """
    Set the per-user slowmode of a text channel.

    Args:
        bot: Connected bot used to resolve the channel.
        channel_id (int): Channel to configure.
        seconds (int): Slowmode delay in seconds.

    Returns:
        bool: True if the slowmode was applied, False otherwise.
    """
    channel = bot.get_channel(channel_id)
    try:
        if channel is None:
            channel = await bot.fetch_channel(channel_id)
        if not isinstance(channel, discord.TextChannel) and not hasattr(channel, "slowmode_delay"):
            logger.warning("Could not apply slowmode: verify channel not found or not text-based.")
            return False
        await channel.edit(slowmode_delay=seconds)
    except discord.HTTPException as exc:
        logger.error("Failed to set slowmode on verify channel %s: %s", channel_id, exc)
        return False

    logger.info("Set slowmode for verify channel (%s) to %s seconds.", channel_id, seconds)
    return True
