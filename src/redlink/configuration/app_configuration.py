from __future__ import annotations

import fcntl
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Tuple

import yaml

from redlink.datatypes.verification_datatypes import DEFAULT_BANNED_MARKER
from redlink.history.modmail_scanner import DEFAULT_MAX_SCANNED, DEFAULT_PAGE_SIZE
from redlink.parsing.field_parser import ClaimPattern, ParserSettings
from redlink.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_RELATIVE_PATH = Path("config") / "app_config.yml"

DEFAULT_LOOKBACK_HOURS = 12.0
DEFAULT_SLOWMODE_SECONDS = 30
DEFAULT_COMMAND_PREFIX = "!"
DEFAULT_PROFILE_URL_TEMPLATE = "https://www.reddit.com/u/{name}"
MAX_PAGE_SIZE = 100


class ConfigurationError(RuntimeError):
    """Raised when a required setting is missing or malformed."""


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches the contents of ``config/app_config.yml`` and exposes
    typed properties with defaults for every tunable. A missing or malformed
    file, or a malformed value inside it, is logged and replaced by the default.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            if data is not None:
                logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
            return {}
        return data

    def section(self, key: str) -> Dict[str, Any]:
        value = self._data.get(key, {})
        return value if isinstance(value, dict) else {}

    def number(self, section: str, key: str, default: Any, cast: Callable[[Any], Any] = int) -> Any:
        """Return ``section.key`` converted with ``cast``, or ``default`` when absent or malformed."""
        raw = self.section(section).get(key)
        if raw is None:
            return default
        try:
            return cast(raw)
        except (TypeError, ValueError):
            logger.error("[APP CONFIGURATION] %s.%s must be a number, got %r; using %s.", section, key, raw, default)
            return default

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Re-read the YAML file, replace the cached mapping and return it."""
        self._data = self.load_from_disk()
        return self._data

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def lookback_hours(self) -> float:
        return self.number("scan", "lookback_hours", DEFAULT_LOOKBACK_HOURS, float)

    @property
    def max_scanned(self) -> int:
        return self.number("scan", "max_scanned", DEFAULT_MAX_SCANNED)

    @property
    def page_size(self) -> int:
        """Messages requested per history page; Discord caps this at 100."""
        return max(1, min(MAX_PAGE_SIZE, self.number("scan", "page_size", DEFAULT_PAGE_SIZE)))

    @property
    def slowmode_seconds(self) -> int:
        return self.number("verify_channel", "slowmode_seconds", DEFAULT_SLOWMODE_SECONDS)

    @property
    def command_prefix(self) -> str:
        return str(self.section("commands").get("prefix") or DEFAULT_COMMAND_PREFIX)

    @property
    def profile_url_template(self) -> str:
        return str(self._data.get("profile_url_template") or DEFAULT_PROFILE_URL_TEMPLATE)

    @property
    def banned_marker(self) -> str:
        return str(self.section("parser").get("banned_marker") or DEFAULT_BANNED_MARKER)

    @property
    def parser_settings(self) -> ParserSettings:
        """Parser rules from the ``parser`` section, defaults for anything left out.

        Claim patterns that do not compile or lack a capture group are logged
        and skipped; if none survive, the default patterns are used.
        """
        parser = self.section("parser")
        return ParserSettings.from_values(
            external_labels=_str_list(parser.get("external_labels")),
            body_labels=_str_list(parser.get("body_labels")),
            status_labels=_str_list(parser.get("status_labels")),
            claim_patterns=_claim_patterns(parser.get("claim_patterns")),
            echo_prefixes=_str_list(parser.get("echo_prefixes")),
        )


def _str_list(value: Any) -> List[str] | None:
    if isinstance(value, list):
        return [str(item) for item in value if str(item).strip()]
    return None


def _claim_patterns(value: Any) -> List[Tuple[str, str]] | None:
    if not isinstance(value, list):
        return None
    patterns: List[Tuple[str, str]] = []
    for index, item in enumerate(value):
        if not isinstance(item, dict) or not item.get("regex"):
            continue
        name, expression = str(item.get("name", f"pattern_{index}")), str(item["regex"])
        try:
            ClaimPattern.compile(name, expression)
        except (re.error, ValueError) as exc:
            logger.error("[APP CONFIGURATION] Ignoring claim pattern %r: %s", name, exc)
            continue
        patterns.append((name, expression))
    return patterns or None


def _required_id(environ: Mapping[str, str], key: str) -> int:
    raw = (environ.get(key) or "").strip()
    if not raw:
        raise ConfigurationError(f"'{key}' environment variable not set.")
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"'{key}' must be a Discord snowflake, got {raw!r}.") from exc


def _optional_number(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = (environ.get(key) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"'{key}' must be a number, got {raw!r}.") from exc


@dataclass(frozen=True, slots=True)
class VerificationSettings:
    """Everything the bot needs at runtime, built once by :func:`build_settings`.

    Attributes:
        guild_id (int): Guild the bot serves.
        modmail_channel_id (int): Channel receiving forwarded modmail.
        verify_channel_id (int): Channel where ``!verify`` is accepted.
        role_id (int): Role granted on successful verification.
        lookback_hours (float): Age limit of modmail considered during a scan.
        slowmode_seconds (int): Slowmode applied to the verify channel on startup.
        max_scanned (int): Upper bound on messages inspected per scan.
        page_size (int): History page size.
        command_prefix (str): Prefix of text commands.
        profile_url_template (str): Format string with a ``{name}`` placeholder.
        banned_marker (str): Status substring that blocks verification.
        parser (ParserSettings): Modmail parser rules.
    """

    guild_id: int
    modmail_channel_id: int
    verify_channel_id: int
    role_id: int
    lookback_hours: float = DEFAULT_LOOKBACK_HOURS
    slowmode_seconds: int = DEFAULT_SLOWMODE_SECONDS
    max_scanned: int = DEFAULT_MAX_SCANNED
    page_size: int = DEFAULT_PAGE_SIZE
    command_prefix: str = DEFAULT_COMMAND_PREFIX
    profile_url_template: str = DEFAULT_PROFILE_URL_TEMPLATE
    banned_marker: str = DEFAULT_BANNED_MARKER
    parser: ParserSettings = field(default_factory=ParserSettings)

    def profile_url(self, name: str) -> str:
        return self.profile_url_template.format(name=name)


def build_settings(app_config: AppConfig, environ: Mapping[str, str] | None = None) -> VerificationSettings:
    """Merge YAML tunables with the Discord IDs from the environment.

    ``MODMAIL_LOOKBACK_HOURS`` and ``VERIFY_SLOWMODE_SECONDS`` override the YAML
    values when set.

    Raises:
        ConfigurationError: If an ID is missing or not numeric.
    """
    env = os.environ if environ is None else environ
    return VerificationSettings(
        guild_id=_required_id(env, "GUILD_ID"),
        modmail_channel_id=_required_id(env, "WATCH_CHANNEL_ID"),
        verify_channel_id=_required_id(env, "VERIFY_COMMAND_CHANNEL_ID"),
        role_id=_required_id(env, "ROLE_ID"),
        lookback_hours=_optional_number(env, "MODMAIL_LOOKBACK_HOURS", app_config.lookback_hours),
        slowmode_seconds=int(_optional_number(env, "VERIFY_SLOWMODE_SECONDS", app_config.slowmode_seconds)),
        max_scanned=app_config.max_scanned,
        page_size=app_config.page_size,
        command_prefix=app_config.command_prefix,
        profile_url_template=app_config.profile_url_template,
        banned_marker=app_config.banned_marker,
        parser=app_config.parser_settings,
    )
