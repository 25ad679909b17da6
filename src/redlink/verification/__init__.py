"""
Verification logic for redlink.

- **matcher.py**: finds the newest scanned record linking both identities.
- **outcome.py**: grants the role and applies the canonical nickname.
- **service.py**: entry points used by the cogs (``verify`` and ``lookup_profile``).
"""
