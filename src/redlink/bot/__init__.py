"""
Discord integration for redlink.

- **cogs/message_listener.py**: ``!verify`` / ``!reddit`` text commands, verify
  channel clean-up and modmail forward logging.
- **cogs/verification_cmds.py**: ``/verify`` and ``/reddit`` slash commands.
- **cogs/events_listener.py**: startup (slowmode) and command error handling.
"""
