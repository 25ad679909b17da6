"""Backward scanning of the forwarded-modmail channel history."""
