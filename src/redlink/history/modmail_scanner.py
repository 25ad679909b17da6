"""
Lazy, newest-first scan over a channel's message history.

History is read one page at a time through a :class:`HistoryPageSource`; the
next page is only requested once the previous one has been consumed. The scan
stops at the first message older than the cutoff, after ``max_scanned``
messages, or when the channel runs out of history.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, AsyncIterator, List, Protocol, Sequence

import discord

from redlink.datatypes.verification_datatypes import ScannedRecord
from redlink.parsing.field_parser import ModmailParser
from redlink.parsing.text_extractor import extract_text
from redlink.util.logger import get_logger

logger = get_logger("modmail_scanner")

DEFAULT_PAGE_SIZE = 100
DEFAULT_MAX_SCANNED = 500


class HistoryPageSource(Protocol):
    """Anything that can return a newest-first page of messages older than ``before``."""

    async def fetch_page(self, before: Any | None, limit: int) -> Sequence[Any]:
        ...


class DiscordHistoryPageSource:
    """Page source backed by ``TextChannel.history``."""

    def __init__(self, channel: discord.abc.Messageable) -> None:
        self.channel = channel

    async def fetch_page(self, before: Any | None, limit: int) -> List[discord.Message]:
        page: List[discord.Message] = []
        async for msg in self.channel.history(limit=limit, before=before):
            page.append(msg)
        return page


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with Discord timestamps."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def scan_modmail(
    source: HistoryPageSource,
    cutoff: datetime,
    max_scanned: int = DEFAULT_MAX_SCANNED,
    page_size: int = DEFAULT_PAGE_SIZE,
    parser: ModmailParser | None = None,
) -> AsyncIterator[ScannedRecord]:
    """Yield parsed modmail records, newest first.

    Parameters
    ----------
    source:
        Page source for the modmail channel.
    cutoff:
        Messages created strictly before this instant end the scan.
    max_scanned:
        Upper bound on inspected messages, parsable or not.
    page_size:
        Number of messages requested per page.
    parser:
        Parser applied to each message's normalized text.

    Yields
    ------
    ScannedRecord
        Each parsable message paired with its record.
    """
    parser = parser or ModmailParser()
    cutoff = as_utc(cutoff)
    before: Any | None = None
    scanned = 0

    while scanned < max_scanned:
        page = await source.fetch_page(before, min(page_size, max_scanned - scanned))
        if not page:
            logger.debug("Reached the start of the modmail channel after %d messages", scanned)
            return

        for msg in page:
            if as_utc(msg.created_at) < cutoff:
                logger.info("Stopping at messages older than %s", cutoff.isoformat())
                return

            scanned += 1
            record = parser.parse_forward(extract_text(msg))
            if record is not None:
                yield ScannedRecord(record=record, source_message=msg)

            if scanned >= max_scanned:
                break

        before = page[-1]

    logger.info("Reached max scanned messages (%d)", max_scanned)
