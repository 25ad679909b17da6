"""
Rule-driven parser for forwarded modmail text.

A forwarded modmail arrives as loosely structured lines such as::

    Author: [**Hermit_Toad**](https://www.reddit.com/u/Hermit_Toad)
    Body: Register Discord with Discord ID: pikachucatcher88
    Status: Active

The parser is configured with ordered :class:`LabelRule` and
:class:`ClaimPattern` objects instead of hard-coded branches, so every rule can
be tested (and reconfigured from YAML) on its own. Parsing fails closed: a
record is only produced when both identities were found.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Pattern, Sequence, Tuple

from redlink.datatypes.verification_datatypes import UNKNOWN_STATUS, ParsedRecord
from redlink.parsing.formatting import normalize_markdown
from redlink.util.logger import get_logger

logger = get_logger("field_parser")

IDENTITY_PREFIX_PATTERN = re.compile(r"^/?u/", re.IGNORECASE)


def strip_identity_prefix(value: str) -> str:
    """Drop a leading ``u/`` or ``/u/`` marker from a Reddit name."""
    return IDENTITY_PREFIX_PATTERN.sub("", value.strip(), count=1).strip()


def clean_identity(value: str) -> str:
    """Strip formatting residue left around a name after label removal."""
    value = normalize_markdown(value).strip("*").strip()
    return strip_identity_prefix(value)


@dataclass(frozen=True, slots=True)
class LabelRule:
    """Named set of line labels, tried in order (``"Participant:"`` before ``"Author:"``)."""

    name: str
    labels: Tuple[str, ...]

    def find(self, lines: Sequence[str]) -> str | None:
        """Return the remainder of the first line carrying the highest-priority label.

        Label priority wins over line order: a ``Participant:`` line further
        down beats an earlier ``Author:`` line.
        """
        for label in self.labels:
            prefix = label.lower()
            for line in lines:
                if line.lower().startswith(prefix):
                    return line[len(label):].strip()
        return None


@dataclass(frozen=True, slots=True)
class ClaimPattern:
    """Named regex capturing the claimed Discord name inside a body line."""

    name: str
    pattern: Pattern[str]

    @classmethod
    def compile(cls, name: str, expression: str) -> "ClaimPattern":
        """Compile ``expression``; the claimed name must be capture group 1.

        Raises:
            re.error: If the expression does not compile.
            ValueError: If the expression has no capture group.
        """
        pattern = re.compile(expression, re.IGNORECASE)
        if pattern.groups < 1:
            raise ValueError(f"claim pattern {name!r} has no capture group")
        return cls(name=name, pattern=pattern)

    def match(self, text: str) -> str | None:
        found = self.pattern.search(text)
        if not found:
            return None
        return found.group(1).strip() or None


DEFAULT_EXTERNAL_LABELS: Tuple[str, ...] = ("Participant:", "Author:")
DEFAULT_BODY_LABELS: Tuple[str, ...] = ("Body:",)
DEFAULT_STATUS_LABELS: Tuple[str, ...] = ("Status:",)
DEFAULT_CLAIM_PATTERNS: Tuple[Tuple[str, str], ...] = (
    # "Register Discord with Discord ID: name" / "Verify Discord: name"
    ("register_with_id", r"discord(?:\s+with\s+discord\s+id)?:\s*(\S+)"),
    # "Discord username: name" / "Discord ID: name"
    ("discord_handle", r"discord\s+(?:id|user(?:name)?|name)\s*:\s*(\S+)"),
)
DEFAULT_ECHO_PREFIXES: Tuple[str, ...] = (
    "✅ Linked Reddit",
    "I couldn't find a member",
    "✅ Successfully verified",
    "❌ I couldn't find a recent modmail",
)


@dataclass(frozen=True, slots=True)
class ParserSettings:
    """Label lists, claim patterns and echo prefixes used by :class:`ModmailParser`."""

    external_rule: LabelRule = field(default_factory=lambda: LabelRule("external_identity", DEFAULT_EXTERNAL_LABELS))
    body_rule: LabelRule = field(default_factory=lambda: LabelRule("body", DEFAULT_BODY_LABELS))
    status_rule: LabelRule = field(default_factory=lambda: LabelRule("status", DEFAULT_STATUS_LABELS))
    claim_patterns: Tuple[ClaimPattern, ...] = field(
        default_factory=lambda: tuple(ClaimPattern.compile(n, e) for n, e in DEFAULT_CLAIM_PATTERNS)
    )
    echo_prefixes: Tuple[str, ...] = DEFAULT_ECHO_PREFIXES

    @classmethod
    def from_values(
        cls,
        external_labels: Iterable[str] | None = None,
        body_labels: Iterable[str] | None = None,
        status_labels: Iterable[str] | None = None,
        claim_patterns: Iterable[Tuple[str, str]] | None = None,
        echo_prefixes: Iterable[str] | None = None,
    ) -> "ParserSettings":
        """Build settings from plain values, keeping defaults for anything omitted."""
        defaults = cls()
        return cls(
            external_rule=LabelRule("external_identity", tuple(external_labels)) if external_labels else defaults.external_rule,
            body_rule=LabelRule("body", tuple(body_labels)) if body_labels else defaults.body_rule,
            status_rule=LabelRule("status", tuple(status_labels)) if status_labels else defaults.status_rule,
            claim_patterns=(
                tuple(ClaimPattern.compile(n, e) for n, e in claim_patterns)
                if claim_patterns else defaults.claim_patterns
            ),
            echo_prefixes=tuple(echo_prefixes) if echo_prefixes else defaults.echo_prefixes,
        )


class ModmailParser:
    """Extracts a :class:`ParsedRecord` from normalized modmail text."""

    def __init__(self, settings: ParserSettings | None = None) -> None:
        self.settings = settings or ParserSettings()

    @staticmethod
    def split_lines(text: str) -> List[str]:
        return [line.strip() for line in text.split("\n") if line.strip()]

    def is_echo(self, first_line: str) -> bool:
        return any(first_line.startswith(prefix) for prefix in self.settings.echo_prefixes)

    def parse_external_identity(self, lines: Sequence[str]) -> str | None:
        labelled = self.settings.external_rule.find(lines)
        if labelled is not None:
            name = clean_identity(labelled)
            if name:
                return name
        return clean_identity(lines[0]) or None

    def parse_local_claim(self, lines: Sequence[str]) -> str | None:
        body = self.settings.body_rule.find(lines)
        if not body:
            return None
        body = normalize_markdown(body)
        for claim in self.settings.claim_patterns:
            name = claim.match(body)
            if name:
                return clean_identity(name) or None
        return None

    def parse_status(self, lines: Sequence[str]) -> str:
        remainder = self.settings.status_rule.find(lines)
        if remainder is None:
            return UNKNOWN_STATUS
        # Labels configured without a trailing colon leave it on the remainder
        if remainder.startswith(":"):
            remainder = remainder[1:]
        return remainder.strip() or UNKNOWN_STATUS

    def parse(self, text: str) -> ParsedRecord | None:
        """Parse normalized modmail text into a record.

        Returns ``None`` for empty text, for the bot's own replies echoed into
        the channel, and whenever either identity is missing.
        """
        lines = self.split_lines(text)
        if not lines:
            return None

        if self.is_echo(lines[0]):
            return None

        external_identity = self.parse_external_identity(lines)
        local_claim = self.parse_local_claim(lines)

        if not external_identity or not local_claim:
            logger.debug("Skipping modmail without both names. Full text was: %r", text)
            return None

        return ParsedRecord(
            external_identity=external_identity,
            local_identity_claim=local_claim,
            status=self.parse_status(lines),
        )

    def parse_forward(self, text: str) -> ParsedRecord | None:
        """Strip markdown from raw forwarded text, then :meth:`parse` it."""
        return self.parse(normalize_markdown(text))
