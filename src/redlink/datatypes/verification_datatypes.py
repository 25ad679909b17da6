"""
Data structures shared by the verification pipeline.

The pipeline turns forwarded modmail messages into :class:`ParsedRecord`
entries, pairs them with their source message while scanning history
(:class:`ScannedRecord`), matches them against a :class:`VerificationQuery`
and finally reports an :class:`Outcome` to the command layer.

Key Features:
- `ParsedRecord`: the three fields extracted from one forwarded modmail.
- `VerificationQuery`: per-attempt lookup parameters.
- `MatchResult`: the newest record that links both identities.
- `OutcomeKind` / `Outcome`: what happened during one verification attempt.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Tuple

UNKNOWN_STATUS = "Unknown"
DEFAULT_BANNED_MARKER = "banned"


def normalize_identity(value: str | None) -> str:
    """Return ``value`` trimmed and lower-cased, treating ``None`` as empty."""
    return (value or "").strip().lower()


@dataclass(frozen=True, slots=True)
class ParsedRecord:
    """Structured view of one forwarded modmail submission.

    Attributes:
        external_identity (str): Reddit username the modmail came from.
        local_identity_claim (str): Discord name the sender asked to be linked.
        status (str): Moderation status of the sender, ``"Unknown"`` when absent.
    """

    external_identity: str
    local_identity_claim: str
    status: str = UNKNOWN_STATUS

    def is_banned(self, banned_marker: str) -> bool:
        """Return True when the status contains ``banned_marker`` (case-insensitive)."""
        marker = normalize_identity(banned_marker)
        return bool(marker) and marker in self.status.lower()


@dataclass(frozen=True, slots=True)
class ScannedRecord:
    """A parsed record together with the Discord message it came from."""

    record: ParsedRecord
    source_message: Any


@dataclass(frozen=True, slots=True)
class VerificationQuery:
    """Lookup parameters for a single verification attempt.

    ``candidate_local_names`` keeps the caller's order (username first) and the
    caller's casing so the matched name can be reused verbatim in the nickname.
    """

    external_identity_input: str
    candidate_local_names: Tuple[str, ...]
    lookback_cutoff: datetime
    max_scanned: int

    @classmethod
    def build(
        cls,
        external_identity_input: str,
        candidate_local_names: Iterable[str | None],
        lookback_cutoff: datetime,
        max_scanned: int,
    ) -> "VerificationQuery":
        """Create a query, dropping empty and case-duplicate candidate names."""
        seen: set[str] = set()
        candidates: list[str] = []
        for name in candidate_local_names:
            key = normalize_identity(name)
            if not key or key in seen:
                continue
            seen.add(key)
            candidates.append(name.strip())  # type: ignore[union-attr]
        return cls(
            external_identity_input=external_identity_input.strip(),
            candidate_local_names=tuple(candidates),
            lookback_cutoff=lookback_cutoff,
            max_scanned=max_scanned,
        )


@dataclass(frozen=True, slots=True)
class MatchResult:
    """The record that satisfied a query, its source message and the matched name."""

    record: ParsedRecord
    source_message: Any
    local_name: str

    @property
    def canonical_display_name(self) -> str:
        return f"{self.record.external_identity} | {self.local_name}"


class OutcomeKind(Enum):
    """Enumeration of verification attempt results."""

    VERIFIED = "verified"
    PARTIAL = "partial"
    NO_MATCH = "no_match"
    BANNED = "banned"
    ROLE_GRANT_FAILED = "role_grant_failed"
    UNAVAILABLE = "unavailable"
    INVALID_INPUT = "invalid_input"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Outcome:
    """Result of one verification attempt.

    Attributes:
        kind (OutcomeKind): What happened.
        query (VerificationQuery | None): The query that was run, if one was built.
        match (MatchResult | None): The matching record for VERIFIED/PARTIAL/ROLE_GRANT_FAILED,
            or the blocked record for BANNED.
        display_name (str | None): Nickname that was (or would have been) applied.
        detail (str | None): Free-form operator detail, such as the failing collaborator.
    """

    kind: OutcomeKind
    query: VerificationQuery | None = None
    match: MatchResult | None = None
    display_name: str | None = None
    detail: str | None = None

    @property
    def succeeded(self) -> bool:
        """Verification counts as successful once the role was granted."""
        return self.kind in (OutcomeKind.VERIFIED, OutcomeKind.PARTIAL)
