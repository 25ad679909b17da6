"""
redlink - Reddit modmail verification bot for Discord

redlink links a Discord member to a Reddit account. The member sends a modmail
on Reddit saying ``Register Discord with Discord ID: <discord name>``; the
modmail is forwarded into a Discord channel. When the member then runs
``!verify <reddit name>``, redlink scans recent forwards for one that names both
accounts, grants the verified role and renames the member to
``"<reddit name> | <discord name>"``.

Core Components:

- **parsing**: flattens forwarded messages and extracts the Reddit name, the
  claimed Discord name and the moderation status.
- **history**: lazy, newest-first scan of the modmail channel.
- **verification**: matching, role/nickname application and the ``verify`` /
  ``lookup_profile`` entry points.
- **bot**: py-cord cogs for text and slash commands and lifecycle events.
- **configuration**: YAML tunables plus Discord IDs from the environment.
"""

__version__ = "0.1.0"
