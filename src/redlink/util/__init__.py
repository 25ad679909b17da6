"""
Utility functions and helpers for redlink.

- **logger.py**: Centralized logging configuration with colored console output
  through prompt_toolkit, a per-session rotating log file and suppression of
  noisy Discord/network loggers.

- **discord_utils.py**: Best-effort Discord helpers (replies, deletions,
  slowmode) that log failures instead of raising.
"""
