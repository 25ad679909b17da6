"""
Entry points used by the command layer.

``verify`` runs one complete verification attempt: it resolves the Discord
collaborators, scans the modmail channel, matches the newest record and
applies the role and nickname. ``lookup_profile`` derives a Reddit profile URL
from a nickname set by a previous verification.
"""

from __future__ import annotations

from contextlib import aclosing
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Tuple

import discord

from redlink.configuration.app_configuration import VerificationSettings
from redlink.datatypes.verification_datatypes import Outcome, OutcomeKind, VerificationQuery
from redlink.history.modmail_scanner import DiscordHistoryPageSource, HistoryPageSource, scan_modmail
from redlink.parsing.field_parser import ModmailParser, strip_identity_prefix
from redlink.util.logger import get_logger
from redlink.verification.matcher import VerificationMatcher
from redlink.verification.outcome import apply_outcome

logger = get_logger("verification_service")

DISPLAY_NAME_SEPARATOR = "|"


def clean_external_input(raw: str | None) -> str:
    """Turn ``u/Name`` or ``Name`` as typed by a user into ``Name``."""
    return strip_identity_prefix(raw or "")


def candidate_local_names(member: Any) -> Tuple[str, ...]:
    """Names the modmail may have used for ``member``: username, then global display name."""
    names = (getattr(member, "name", None), getattr(member, "global_name", None))
    return tuple(name for name in names if isinstance(name, str) and name.strip())


async def resolve_modmail_channel(bot: Any, settings: VerificationSettings) -> discord.abc.Messageable | None:
    """Return the modmail channel, or None when it cannot be resolved or is not text-based."""
    channel = bot.get_channel(settings.modmail_channel_id)
    if channel is None:
        try:
            channel = await bot.fetch_channel(settings.modmail_channel_id)
        except (discord.NotFound, discord.Forbidden, discord.InvalidData) as exc:
            logger.error("Modmail channel %s unavailable: %s", settings.modmail_channel_id, exc)
            return None
        except discord.HTTPException as exc:
            logger.error("Failed to fetch modmail channel %s: %s", settings.modmail_channel_id, exc)
            return None

    if not hasattr(channel, "history"):
        logger.error("Modmail channel %s is not text-based", settings.modmail_channel_id)
        return None
    return channel


async def resolve_guild(bot: Any, settings: VerificationSettings) -> discord.Guild | None:
    guild = bot.get_guild(settings.guild_id)
    if guild is not None:
        return guild
    try:
        return await bot.fetch_guild(settings.guild_id)
    except discord.HTTPException as exc:
        logger.error("Guild %s unavailable: %s", settings.guild_id, exc)
        return None


async def verify(
    bot: Any,
    settings: VerificationSettings,
    external_identity_input: str | None,
    member: discord.Member | None,
    now: datetime | None = None,
    page_source_factory: Callable[[Any], HistoryPageSource] = DiscordHistoryPageSource,
) -> Outcome:
    """Run one verification attempt for ``member`` claiming ``external_identity_input``.

    Parameters
    ----------
    bot:
        Connected bot used to resolve the guild and modmail channel.
    settings:
        Runtime settings built at startup.
    external_identity_input:
        Reddit name as typed by the user, with or without ``u/``.
    member:
        Guild member running the command.
    now:
        Reference time for the lookback window; defaults to the current UTC time.
    page_source_factory:
        Wraps the resolved channel into a history page source.

    Returns
    -------
    Outcome
        The attempt's result. Collaborator failures are reported as
        ``UNAVAILABLE`` before any history is read.
    """
    external_identity = clean_external_input(external_identity_input)
    if not external_identity:
        return Outcome(kind=OutcomeKind.INVALID_INPUT)

    if await resolve_guild(bot, settings) is None:
        return Outcome(kind=OutcomeKind.UNAVAILABLE, detail="guild")

    channel = await resolve_modmail_channel(bot, settings)
    if channel is None:
        return Outcome(kind=OutcomeKind.UNAVAILABLE, detail="modmail_channel")

    if member is None or not hasattr(member, "add_roles"):
        return Outcome(kind=OutcomeKind.UNAVAILABLE, detail="member")

    now = now or datetime.now(timezone.utc)
    query = VerificationQuery.build(
        external_identity_input=external_identity,
        candidate_local_names=candidate_local_names(member),
        lookback_cutoff=now - timedelta(hours=settings.lookback_hours),
        max_scanned=settings.max_scanned,
    )

    matcher = VerificationMatcher(query, banned_marker=settings.banned_marker)
    records = scan_modmail(
        page_source_factory(channel),
        cutoff=query.lookback_cutoff,
        max_scanned=query.max_scanned,
        page_size=settings.page_size,
        parser=ModmailParser(settings.parser),
    )
    async with aclosing(records):
        match = await matcher.find_match(records)

    if match is None and matcher.banned_match is not None:
        return Outcome(kind=OutcomeKind.BANNED, query=query, match=matcher.banned_match)

    outcome = await apply_outcome(member, match, settings.role_id, query=query)
    if outcome.succeeded:
        logger.info("Verified %s as u/%s (%s)", member, external_identity, outcome.kind)
    else:
        logger.warning("Verification of %s as u/%s failed: %s", member, external_identity, outcome.kind)
    return outcome


def linked_reddit_name(member: Any) -> str | None:
    """Return the Reddit name encoded in ``member``'s nickname, if any.

    Verified members carry a ``"RedditName | DiscordName"`` nickname; the part
    before the first ``|`` is the Reddit name.
    """
    display_name = getattr(member, "display_name", None) or ""
    if DISPLAY_NAME_SEPARATOR not in display_name:
        return None
    return strip_identity_prefix(display_name.split(DISPLAY_NAME_SEPARATOR, 1)[0]) or None


def lookup_profile(member: Any, settings: VerificationSettings) -> str | None:
    """Return the Reddit profile URL for ``member``, or None when the nickname is not linked."""
    reddit_name = linked_reddit_name(member)
    if reddit_name is None:
        return None
    return settings.profile_url(reddit_name)
