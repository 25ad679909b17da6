"""
Verification cog: slash-command versions of ``!verify`` and ``!reddit``.

Both commands reply ephemerally and share the service layer with the text
commands, so a verification behaves the same whichever way it was started.

Quick usage example
    from redlink.bot.cogs import verification_cmds
    verification_cmds.setup(bot, settings)
"""

import discord
from discord import Option
from discord.ext import commands

from redlink.configuration.app_configuration import VerificationSettings
from redlink.ui import replies
from redlink.util.logger import get_logger
from redlink.verification.service import clean_external_input, linked_reddit_name, lookup_profile, verify

logger = get_logger("verification_cog")


class VerificationCog(commands.Cog):
    """Cog containing the ``/verify`` and ``/reddit`` slash commands."""

    def __init__(self, discord_bot_instance, settings: VerificationSettings):
        self.discord_bot_instance = discord_bot_instance
        self.settings = settings
        logger.info("Verification cog loaded")

    @commands.slash_command(name="verify", description="Link your Reddit account using a recent modmail.")
    async def verify_command(
        self,
        ctx: discord.ApplicationContext,
        reddit_username: Option(str, "Your Reddit username (with or without u/).", required=True),  # type: ignore
    ) -> None:
        """Verify the invoking member against the forwarded modmail."""
        await ctx.defer(ephemeral=True)

        if ctx.channel_id != self.settings.verify_channel_id:
            await ctx.send_followup(f"Please run this command in <#{self.settings.verify_channel_id}>.")
            return

        reddit_input = clean_external_input(reddit_username)
        try:
            outcome = await verify(self.discord_bot_instance, self.settings, reddit_input, ctx.author)
        except Exception as exc:
            logger.exception("Error handling /verify: %s", exc)
            await ctx.send_followup(replies.GENERIC_VERIFY_ERROR)
            return

        await ctx.send_followup(replies.render_outcome(outcome, self.settings, ctx.author, reddit_input))

    @commands.slash_command(name="reddit", description="Show the Reddit profile linked to a member.")
    async def reddit_command(
        self,
        ctx: discord.ApplicationContext,
        user: Option(discord.Member, "Member to look up (defaults to you).", required=False, default=None),  # type: ignore
    ) -> None:
        """Look up the Reddit profile from a member's verified nickname."""
        await ctx.defer(ephemeral=True)

        if ctx.channel_id == self.settings.modmail_channel_id:
            await ctx.send_followup("This command is not available in the modmail channel.")
            return

        target = user or ctx.author
        if target is None:
            await ctx.send_followup(replies.UNRESOLVED_USER)
            return

        url = lookup_profile(target, self.settings)
        if url is None:
            await ctx.send_followup(replies.NOT_LINKED)
            return

        await ctx.send_followup(replies.profile_reply(linked_reddit_name(target), url, target.display_name))


def setup(discord_bot_instance, settings: VerificationSettings):
    """Cog setup entry point."""
    discord_bot_instance.add_cog(VerificationCog(discord_bot_instance, settings))
