"""Message listener Cog for redlink.

This cog handles the text commands and channel rules:

- ``!verify <reddit_username>`` in the verify channel runs a verification.
- ``!reddit [@member]`` in any channel but the modmail channel looks up a
  linked Reddit profile.
- Any other human message in the verify channel is deleted.
- Forwards arriving in the modmail channel are only logged; they are read back
  later by the history scan.
"""

import discord
from discord.ext import commands

from redlink.configuration.app_configuration import VerificationSettings
from redlink.ui import replies
from redlink.util import discord_utils
from redlink.util.logger import get_logger
from redlink.verification.service import clean_external_input, linked_reddit_name, lookup_profile, verify

logger = get_logger("message_listener_cog")


class MessageListenerCog(commands.Cog):
    """Cog responsible for text commands and verify-channel hygiene."""

    def __init__(self, discord_bot_instance, settings: VerificationSettings):
        """
        Initialize the message listener cog.

        Parameters
        ----------
        discord_bot_instance:
            The Discord bot instance to attach this cog to.
        settings:
            Runtime settings built at startup.
        """
        self.bot = discord_bot_instance
        self.settings = settings
        logger.info("Message listener cog loaded")

    def command_name(self, content: str) -> str | None:
        """Return the lower-cased command word of ``content`` (``"verify"``), if prefixed."""
        parts = content.split()
        if not parts:
            return None
        head = parts[0].lower()
        prefix = self.settings.command_prefix
        if not head.startswith(prefix):
            return None
        return head[len(prefix):]

    @commands.Cog.listener(name='on_message')
    async def on_message(self, message: discord.Message):
        """Route a new message to the command or channel rule it belongs to."""
        if discord_utils.is_ignored_author(message.author):
            return

        content = (message.content or "").strip()
        channel_id = getattr(message.channel, "id", None)

        if channel_id == self.settings.modmail_channel_id:
            logger.info("Modmail forward received (stored for verification scan).")
            return

        command = self.command_name(content)

        if command == "reddit":
            try:
                await self.handle_reddit_command(message)
            except Exception as exc:
                logger.exception("Error handling reddit lookup: %s", exc)
                await discord_utils.safe_reply(message, replies.GENERIC_LOOKUP_ERROR)
            return

        if channel_id != self.settings.verify_channel_id:
            return

        if command != "verify":
            if await discord_utils.safe_delete_message(message):
                logger.info(f"Deleted non-verify message from {message.author} in verify channel.")
            return

        try:
            await self.handle_verify_command(message, content)
        except Exception as exc:
            logger.exception("Error handling verify: %s", exc)
            await discord_utils.safe_reply(message, replies.GENERIC_VERIFY_ERROR)

    async def handle_verify_command(self, message: discord.Message, content: str) -> None:
        """Run ``!verify <reddit_username>`` for the message author."""
        args = content.split()
        reddit_input = clean_external_input(args[1]) if len(args) >= 2 else ""
        if not reddit_input:
            await discord_utils.safe_reply(message, replies.usage(self.settings.command_prefix))
            return

        await discord_utils.safe_reply(message, replies.searching(self.settings, reddit_input))

        outcome = await verify(self.bot, self.settings, reddit_input, message.author)
        await discord_utils.safe_reply(
            message,
            replies.render_outcome(outcome, self.settings, message.author, reddit_input),
        )

    async def handle_reddit_command(self, message: discord.Message) -> None:
        """Reply with the Reddit profile of the mentioned member, or of the author."""
        mentioned = list(getattr(message, "mentions", None) or [])
        target = mentioned[0] if mentioned else message.author

        if target is None:
            await discord_utils.safe_reply(message, replies.UNRESOLVED_USER)
            return

        url = lookup_profile(target, self.settings)
        if url is None:
            await discord_utils.safe_reply(message, replies.NOT_LINKED)
            return

        await discord_utils.safe_reply(
            message,
            replies.profile_reply(linked_reddit_name(target), url, target.display_name),
        )


def setup(discord_bot_instance, settings: VerificationSettings):
    """
    Register the MessageListenerCog with the bot.

    Parameters
    ----------
    discord_bot_instance:
        The Discord bot instance to add this cog to.
    settings:
        Runtime settings passed to the cog.
    """
    discord_bot_instance.add_cog(MessageListenerCog(discord_bot_instance, settings))
