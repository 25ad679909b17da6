"""Markdown clean-up for forwarded modmail text."""

import re

# [label](url) -> label
LINK_PATTERN = re.compile(r"\[([^\[\]]+)\]\([^()\s]*\)")
# **run** -> run; "__" is not emphasis here, Reddit names contain underscores
EMPHASIS_PATTERN = re.compile(r"\*\*(.+?)\*\*")
# `run` -> run
INLINE_CODE_PATTERN = re.compile(r"`([^`\n]+)`")


def _strip_once(text: str) -> str:
    # Link labels may carry emphasis, so links go first.
    text = LINK_PATTERN.sub(r"\1", text)
    text = EMPHASIS_PATTERN.sub(r"\1", text)
    text = INLINE_CODE_PATTERN.sub(r"\1", text)
    return text.strip()


def normalize_markdown(text: str | None) -> str:
    """Remove link wrappers, doubled emphasis and inline code markers.

    Rewrites are repeated until the text stops changing, so nested markers such
    as ``[**name**](url)`` or ``****name****`` are fully unwrapped and the
    function is idempotent. Every rewrite shortens the text, which bounds the
    loop.

    Args:
        text (str | None): Raw text, possibly containing Discord markdown.

    Returns:
        str: The underlying text with both ends trimmed.
    """
    current = (text or "").strip()
    while True:
        stripped = _strip_once(current)
        if stripped == current:
            return current
        current = stripped
