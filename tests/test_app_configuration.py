from pathlib import Path

import pytest

from redlink.configuration.app_configuration import (
    DEFAULT_MAX_SCANNED,
    AppConfig,
    ConfigurationError,
    VerificationSettings,
    build_settings,
)
from redlink.parsing.field_parser import ModmailParser

ENVIRON = {
    "GUILD_ID": "111",
    "WATCH_CHANNEL_ID": "222",
    "VERIFY_COMMAND_CHANNEL_ID": "333",
    "ROLE_ID": "444",
}


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "app_config.yml"


def test_app_config_reload_parses_yaml(config_path: Path) -> None:
    config_path.write_text(
        """
scan:
  lookback_hours: 6
  max_scanned: 250
  page_size: 50
verify_channel:
  slowmode_seconds: 10
commands:
  prefix: "?"
profile_url_template: "https://old.reddit.com/user/{name}"
parser:
  external_labels: ["From:"]
  claim_patterns:
    - name: custom
      regex: 'link (\\S+)'
  banned_marker: "suspended"
""",
        encoding="utf-8",
    )

    config = AppConfig(config_path)

    assert config.lookback_hours == pytest.approx(6.0)
    assert config.max_scanned == 250
    assert config.page_size == 50
    assert config.slowmode_seconds == 10
    assert config.command_prefix == "?"
    assert config.profile_url_template == "https://old.reddit.com/user/{name}"
    assert config.banned_marker == "suspended"

    parser = config.parser_settings
    assert parser.external_rule.labels == ("From:",)
    assert parser.body_rule.labels == ("Body:",)
    assert [p.name for p in parser.claim_patterns] == ["custom"]
    assert parser.claim_patterns[0].match("please link pika") == "pika"


def test_app_config_missing_file_returns_defaults(tmp_path: Path) -> None:
    config = AppConfig(tmp_path / "does_not_exist.yml")

    assert config.reload() == {}
    assert config.lookback_hours == pytest.approx(12.0)
    assert config.max_scanned == 500
    assert config.page_size == 100
    assert config.slowmode_seconds == 30
    assert config.command_prefix == "!"
    assert config.banned_marker == "banned"
    assert config.parser_settings.external_rule.labels == ("Participant:", "Author:")


def test_app_config_non_mapping_yaml_is_ignored(config_path: Path) -> None:
    config_path.write_text("- just\n- a list\n", encoding="utf-8")
    assert AppConfig(config_path).reload() == {}


def test_page_size_is_clamped(config_path: Path) -> None:
    config_path.write_text("scan:\n  page_size: 1000\n", encoding="utf-8")
    assert AppConfig(config_path).page_size == 100


def test_reload_picks_up_changes(config_path: Path) -> None:
    config_path.write_text("scan:\n  max_scanned: 10\n", encoding="utf-8")
    config = AppConfig(config_path)
    config_path.write_text("scan:\n  max_scanned: 20\n", encoding="utf-8")

    config.reload()

    assert config.max_scanned == 20


def test_build_settings_from_environment(tmp_path: Path) -> None:
    settings = build_settings(AppConfig(tmp_path / "missing.yml"), ENVIRON)

    assert isinstance(settings, VerificationSettings)
    assert settings.guild_id == 111
    assert settings.modmail_channel_id == 222
    assert settings.verify_channel_id == 333
    assert settings.role_id == 444
    assert settings.lookback_hours == pytest.approx(12.0)
    assert settings.slowmode_seconds == 30


def test_build_settings_environment_overrides(tmp_path: Path) -> None:
    environ = dict(ENVIRON, MODMAIL_LOOKBACK_HOURS="24", VERIFY_SLOWMODE_SECONDS="5")

    settings = build_settings(AppConfig(tmp_path / "missing.yml"), environ)

    assert settings.lookback_hours == pytest.approx(24.0)
    assert settings.slowmode_seconds == 5


@pytest.mark.parametrize("key", ["GUILD_ID", "WATCH_CHANNEL_ID", "VERIFY_COMMAND_CHANNEL_ID", "ROLE_ID"])
def test_build_settings_requires_ids(tmp_path: Path, key: str) -> None:
    environ = {k: v for k, v in ENVIRON.items() if k != key}
    with pytest.raises(ConfigurationError, match=key):
        build_settings(AppConfig(tmp_path / "missing.yml"), environ)


def test_build_settings_rejects_non_numeric_id(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        build_settings(AppConfig(tmp_path / "missing.yml"), dict(ENVIRON, ROLE_ID="verified"))


def test_shipped_config_file_loads() -> None:
    shipped = Path(__file__).parent.parent / "config" / "app_config.yml"
    config = AppConfig(shipped)
    assert config.max_scanned == 500
    assert [p.name for p in config.parser_settings.claim_patterns] == ["register_with_id", "discord_handle"]


@pytest.mark.parametrize(
    "yaml_text, attribute, expected",
    [
        ("scan:\n  max_scanned: lots\n", "max_scanned", DEFAULT_MAX_SCANNED),
        ("scan:\n  page_size: [1, 2]\n", "page_size", 100),
        ("scan:\n  lookback_hours: soon\n", "lookback_hours", 12.0),
        ("verify_channel:\n  slowmode_seconds: 2.5s\n", "slowmode_seconds", 30),
    ],
)
def test_non_numeric_scalars_fall_back_to_defaults(config_path: Path, yaml_text: str, attribute: str, expected) -> None:
    config_path.write_text(yaml_text, encoding="utf-8")
    assert getattr(AppConfig(config_path), attribute) == expected


def test_build_settings_survives_non_numeric_scan_value(config_path: Path) -> None:
    config_path.write_text("scan:\n  max_scanned: lots\n", encoding="utf-8")
    settings = build_settings(AppConfig(config_path), ENVIRON)
    assert settings.max_scanned == DEFAULT_MAX_SCANNED


def test_claim_pattern_without_group_is_skipped(config_path: Path) -> None:
    config_path.write_text(
        """
parser:
  claim_patterns:
    - name: groupless
      regex: 'discord:\\s*\\S+'
    - name: custom
      regex: 'link (\\S+)'
""",
        encoding="utf-8",
    )

    settings = build_settings(AppConfig(config_path), ENVIRON)

    assert [p.name for p in settings.parser.claim_patterns] == ["custom"]
    record = ModmailParser(settings.parser).parse("Author: a\nBody: please link b")
    assert record is not None and record.local_identity_claim == "b"


@pytest.mark.parametrize("regex", ["'(unclosed'", "'discord:\\s*\\S+'"])
def test_only_invalid_claim_patterns_fall_back_to_defaults(config_path: Path, regex: str) -> None:
    config_path.write_text(f"parser:\n  claim_patterns:\n    - name: broken\n      regex: {regex}\n", encoding="utf-8")

    settings = build_settings(AppConfig(config_path), ENVIRON)

    assert [p.name for p in settings.parser.claim_patterns] == ["register_with_id", "discord_handle"]
    record = ModmailParser(settings.parser).parse("Author: a\nBody: Discord: b")
    assert record is not None and record.local_identity_claim == "b"
