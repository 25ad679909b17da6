"""
Reply text rendered from verification outcomes.

Every user-visible string lives here so the cogs only decide *when* to reply.
"""

from __future__ import annotations

from typing import Any

from redlink.configuration.app_configuration import VerificationSettings
from redlink.datatypes.verification_datatypes import Outcome, OutcomeKind

GENERIC_VERIFY_ERROR = "⚠️ Something went wrong while verifying. Please try again or contact a mod."
GENERIC_LOOKUP_ERROR = "⚠️ Something went wrong while looking up Reddit profile."
UNRESOLVED_USER = "❌ Could not resolve that user."
NOT_LINKED = "❌ That user does not have a Reddit-linked nickname."

UNAVAILABLE_REPLIES = {
    "guild": "⚠️ I cannot find the guild. Please contact an admin.",
    "modmail_channel": "⚠️ Modmail channel is misconfigured. Please contact an admin.",
    "member": "⚠️ Could not resolve your member info. Try again or contact mods.",
}


def usage(prefix: str) -> str:
    return f"❌ Usage: `{prefix}verify <reddit_username>` or `{prefix}verify u/<reddit_username>`"


def format_hours(hours: float) -> str:
    return f"{hours:g}"


def searching(settings: VerificationSettings, reddit_name: str) -> str:
    return (
        f"🔎 Searching last **{format_hours(settings.lookback_hours)} hours** for a valid modmail "
        f"for **u/{reddit_name}** sent with your Discord name..."
    )


def no_match(settings: VerificationSettings, reddit_name: str, username: str) -> str:
    hours = format_hours(settings.lookback_hours)
    return (
        f"❌ I couldn't find a recent modmail that links **u/{reddit_name}** to "
        f"**your Discord username/global name** within the last **{hours} hours**.\n\n"
        f"Please:\n"
        f"1. Send a modmail in the exact format:\n"
        f"   `Register Discord with Discord ID: {username}`\n"
        f"2. If you use a global display name, you can also use that instead.\n"
        f"3. Wait a few minutes, then run `{settings.command_prefix}verify {reddit_name}` again in this channel."
    )


def render_outcome(outcome: Outcome, settings: VerificationSettings, member: Any, reddit_input: str) -> str:
    """Render the reply for ``outcome``.

    Parameters
    ----------
    outcome:
        Result returned by :func:`redlink.verification.service.verify`.
    settings:
        Runtime settings (lookback window, prefix, profile URL template).
    member:
        Member who ran the command; its username appears in guidance text.
    reddit_input:
        Reddit name the member typed, already stripped of ``u/``.
    """
    username = getattr(member, "name", None) or "your_username"

    if outcome.kind is OutcomeKind.INVALID_INPUT:
        return usage(settings.command_prefix)

    if outcome.kind is OutcomeKind.UNAVAILABLE:
        return UNAVAILABLE_REPLIES.get(outcome.detail or "", GENERIC_VERIFY_ERROR)

    if outcome.kind is OutcomeKind.NO_MATCH or outcome.match is None:
        return no_match(settings, reddit_input, username)

    record = outcome.match.record
    reddit_name = record.external_identity

    if outcome.kind is OutcomeKind.BANNED:
        return (
            f"🚫 There is a modmail entry for **u/{reddit_name}**, but the status is **{record.status}**.\n"
            f"Verification cannot proceed. Please contact the mod team if you believe this is a mistake."
        )

    if outcome.kind is OutcomeKind.ROLE_GRANT_FAILED:
        return (
            f"⚠️ I found a valid modmail for **u/{reddit_name}**, but I couldn't add the role "
            f"(missing permissions or role order issue).\nPlease contact a moderator."
        )

    lines = [
        f"✅ Successfully verified **u/{reddit_name}** ↔ **{outcome.match.local_name}**.",
        f"🔗 Reddit profile: <{settings.profile_url(reddit_name)}>",
        f"Modmail Discord ID on file: **{record.local_identity_claim}**",
    ]
    if outcome.kind is OutcomeKind.PARTIAL:
        lines.append(
            f"Role assigned, but I couldn't change your nickname to `{outcome.display_name}`. "
            f"A moderator can set it for you. Welcome!"
        )
    else:
        lines.append("Role assigned and nickname updated. Welcome!")
    return "\n".join(lines)


def profile_reply(reddit_name: str, reddit_url: str, display_name: str) -> str:
    return f"🔗 Reddit profile for **{reddit_name}** (looked up from nickname `{display_name}`):\n<{reddit_url}>"
