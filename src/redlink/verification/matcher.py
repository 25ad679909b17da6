"""Match scanned modmail records against a verification query."""

from __future__ import annotations

from typing import AsyncIterable

from redlink.datatypes.verification_datatypes import (
    DEFAULT_BANNED_MARKER,
    MatchResult,
    ParsedRecord,
    ScannedRecord,
    VerificationQuery,
    normalize_identity,
)
from redlink.util.logger import get_logger

logger = get_logger("matcher")


class VerificationMatcher:
    """Consumes a newest-first record stream and stops at the first full match.

    A record matches when its status is not banned, its Reddit name equals the
    query's name and its claimed Discord name equals one of the candidate
    names. All comparisons are trimmed and case-insensitive; there is no
    partial matching.

    Records rejected only because of a banned status are remembered in
    :attr:`banned_match` (newest one) so callers can tell "blocked" apart from
    "nothing found".
    """

    def __init__(self, query: VerificationQuery, banned_marker: str = DEFAULT_BANNED_MARKER) -> None:
        self.query = query
        self.banned_marker = banned_marker
        self.target_external = normalize_identity(query.external_identity_input)
        self.candidates = {normalize_identity(name): name for name in query.candidate_local_names}
        self.banned_match: MatchResult | None = None

    def matched_local_name(self, record: ParsedRecord) -> str | None:
        """Return the candidate name (caller's casing) the record claims, if any."""
        return self.candidates.get(normalize_identity(record.local_identity_claim))

    def check(self, scanned: ScannedRecord) -> MatchResult | None:
        record = scanned.record
        banned = record.is_banned(self.banned_marker)

        if normalize_identity(record.external_identity) != self.target_external:
            return None

        local_name = self.matched_local_name(record)
        if local_name is None:
            logger.info(
                "Discord mismatch for u/%s: modmailName=%s, candidates=%s",
                record.external_identity,
                record.local_identity_claim,
                ", ".join(self.query.candidate_local_names),
            )
            return None

        result = MatchResult(record=record, source_message=scanned.source_message, local_name=local_name)
        if banned:
            logger.info("Skipping banned modmail for u/%s (status=%s)", record.external_identity, record.status)
            if self.banned_match is None:
                self.banned_match = result
            return None
        return result

    async def find_match(self, records: AsyncIterable[ScannedRecord]) -> MatchResult | None:
        """Return the newest matching record, or ``None`` once ``records`` is exhausted."""
        async for scanned in records:
            result = self.check(scanned)
            if result is not None:
                logger.info(
                    "Found latest matching modmail for u/%s and %s",
                    result.record.external_identity,
                    result.local_name,
                )
                return result
        return None
