"""Apply the result of a verification attempt to the invoking member."""

from __future__ import annotations

import discord

from redlink.datatypes.verification_datatypes import MatchResult, Outcome, OutcomeKind, VerificationQuery
from redlink.util.logger import get_logger

logger = get_logger("outcome")

ROLE_REASON = "Reddit account verified through modmail"


def member_has_role(member: discord.Member, role_id: int) -> bool:
    return any(getattr(role, "id", None) == role_id for role in getattr(member, "roles", ()) or ())


async def grant_role(member: discord.Member, role_id: int) -> bool:
    """Give ``member`` the verification role; holding it already counts as success."""
    if member_has_role(member, role_id):
        logger.debug("%s already has role %s", member, role_id)
        return True
    try:
        await member.add_roles(discord.Object(id=role_id), reason=ROLE_REASON)
    except discord.Forbidden:
        logger.error("Missing permissions (or role order issue) adding role %s to %s", role_id, member)
        return False
    except discord.HTTPException as exc:
        logger.error("Failed to add role %s to %s: %s", role_id, member, exc)
        return False
    logger.info("Added role %s to %s", role_id, member)
    return True


async def set_display_name(member: discord.Member, nickname: str) -> bool:
    """Set the member's nickname, returning False when Discord refuses."""
    try:
        await member.edit(nick=nickname, reason=ROLE_REASON)
    except discord.Forbidden:
        logger.warning("Missing permissions to set nickname of %s", member)
        return False
    except discord.HTTPException as exc:
        logger.warning("Failed to set nickname of %s: %s", member, exc)
        return False
    logger.info("Set nickname of %s -> %s", member, nickname)
    return True


async def apply_outcome(
    member: discord.Member,
    match: MatchResult | None,
    role_id: int,
    query: VerificationQuery | None = None,
) -> Outcome:
    """Grant the role and rename ``member`` for a match, or report that nothing matched.

    The role grant decides success: when it fails the nickname is left
    untouched and the attempt fails. A nickname failure after a granted role
    yields a ``PARTIAL`` outcome and the role is kept.

    Parameters
    ----------
    member:
        Guild member who ran the verification.
    match:
        Newest matching record, or ``None``.
    role_id:
        Snowflake of the verification role.
    query:
        Query that produced ``match``; carried into the outcome for reply rendering.

    Returns
    -------
    Outcome
        ``VERIFIED``, ``PARTIAL``, ``ROLE_GRANT_FAILED`` or ``NO_MATCH``.
    """
    if match is None:
        return Outcome(kind=OutcomeKind.NO_MATCH, query=query)

    display_name = match.canonical_display_name

    if not await grant_role(member, role_id):
        return Outcome(
            kind=OutcomeKind.ROLE_GRANT_FAILED,
            query=query,
            match=match,
            display_name=display_name,
            detail=f"role {role_id}",
        )

    if not await set_display_name(member, display_name):
        return Outcome(
            kind=OutcomeKind.PARTIAL,
            query=query,
            match=match,
            display_name=display_name,
            detail="nickname",
        )

    return Outcome(kind=OutcomeKind.VERIFIED, query=query, match=match, display_name=display_name)
