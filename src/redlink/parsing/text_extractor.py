"""Flatten a Discord message into the line-based text the field parser reads."""

from typing import Any, List


def _embed_lines(embed: Any) -> List[str]:
    lines: List[str] = []
    description = getattr(embed, "description", None)
    if description:
        lines.append(str(description))

    for field in getattr(embed, "fields", None) or ():
        name = getattr(field, "name", None) or ""
        value = getattr(field, "value", None) or ""
        lines.append(f"{name}: {value}")
    return lines


def extract_text(message: Any) -> str:
    """Build a single text blob from a message body and its embeds.

    The plain content comes first (when non-empty), followed by each embed in
    order: its description, then every field rendered as ``"Name: Value"``.

    Args:
        message: A ``discord.Message`` or any object exposing ``content`` and ``embeds``.

    Returns:
        str: Newline-joined text; empty when the message carries nothing readable.
    """
    parts: List[str] = []

    content = getattr(message, "content", None)
    if content and content.strip():
        parts.append(content)

    for embed in getattr(message, "embeds", None) or ():
        parts.extend(_embed_lines(embed))

    return "\n".join(parts)
