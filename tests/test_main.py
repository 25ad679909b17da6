"""Tests for the redlink entry point."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from redlink import main
from redlink.configuration.app_configuration import VerificationSettings

SETTINGS = VerificationSettings(guild_id=1, modmail_channel_id=2, verify_channel_id=3, role_id=4)


def test_resolve_base_dir_prefers_env(monkeypatch, tmp_path):
    monkeypatch.setenv("REDLINK_HOME", str(tmp_path))
    assert main.resolve_base_dir() == tmp_path.resolve()


def test_resolve_base_dir_from_source(monkeypatch):
    monkeypatch.delenv("REDLINK_HOME", raising=False)
    assert main.resolve_base_dir() == Path(main.__file__).resolve().parents[2]


def test_build_intents_enables_message_content_and_members():
    intents = main.build_intents()
    assert intents.message_content
    assert intents.members
    assert intents.guilds


def test_load_environment_requires_token(monkeypatch):
    monkeypatch.setattr(main, "load_dotenv", lambda **_: None)
    monkeypatch.delenv("DISCORD_BOT_TOKEN", raising=False)
    monkeypatch.delenv("DISCORD_TOKEN", raising=False)
    with pytest.raises(SystemExit):
        main.load_environment()


def test_load_environment_accepts_fallback_name(monkeypatch):
    monkeypatch.setattr(main, "load_dotenv", lambda **_: None)
    monkeypatch.delenv("DISCORD_BOT_TOKEN", raising=False)
    monkeypatch.setenv("DISCORD_TOKEN", "abc")
    assert main.load_environment() == "abc"


def test_load_settings_exits_on_missing_ids(monkeypatch):
    for name in ("GUILD_ID", "WATCH_CHANNEL_ID", "VERIFY_COMMAND_CHANNEL_ID", "ROLE_ID"):
        monkeypatch.delenv(name, raising=False)
    with pytest.raises(SystemExit):
        main.load_settings()


def test_load_cogs_registers_all_cogs():
    bot = MagicMock()
    main.load_cogs(bot, SETTINGS)
    names = {type(call.args[0]).__name__ for call in bot.add_cog.call_args_list}
    assert names == {"EventsListenerCog", "MessageListenerCog", "VerificationCog"}


@pytest.mark.asyncio
async def test_shutdown_runtime_closes_open_bot():
    bot = MagicMock()
    bot.is_closed.return_value = False
    bot.close = AsyncMock()

    await main.shutdown_runtime(bot)

    bot.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_async_main_reports_startup_failure(monkeypatch):
    monkeypatch.setattr(main, "load_environment", lambda: "token")
    monkeypatch.setattr(main, "load_settings", lambda: SETTINGS)
    monkeypatch.setattr(main, "create_bot", MagicMock(side_effect=RuntimeError("boom")))

    assert await main.async_main() == 1


def test_main_maps_system_exit(monkeypatch):
    def fake_run(coro):
        coro.close()
        raise SystemExit(1)

    monkeypatch.setattr(main.asyncio, "run", fake_run)
    assert main.main() == 1
