"""User-facing reply text for redlink commands."""
