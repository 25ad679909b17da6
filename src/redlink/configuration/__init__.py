"""
Configuration management for redlink.

- **app_configuration.py**: YAML loader for tunables (scan limits, parser
  labels and patterns, profile URL template) plus :func:`build_settings`, which
  merges the YAML with the Discord IDs read from the environment into one
  frozen :class:`VerificationSettings` object created at startup.
"""
