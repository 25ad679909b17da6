"""
Parsing of forwarded modmail messages.

- **text_extractor.py**: flattens message content and embeds into one text blob.
- **formatting.py**: strips Discord markdown (links, ``**bold**``, inline code).
  ``__`` is left alone because Reddit names contain underscores.
- **field_parser.py**: rule-driven extraction of the Reddit name, the claimed
  Discord name and the moderation status.
"""
