"""Tests for the best-effort Discord helpers."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from redlink.util import discord_utils


def http_error(cls, status):
    response = MagicMock()
    response.status = status
    response.reason = "error"
    return cls(response, "error")


def make_message(**kwargs):
    return SimpleNamespace(id=1, channel=SimpleNamespace(id=2), reply=AsyncMock(), delete=AsyncMock(), **kwargs)


def test_is_ignored_author():
    assert discord_utils.is_ignored_author(SimpleNamespace(bot=True))
    assert not discord_utils.is_ignored_author(SimpleNamespace(bot=False))
    assert not discord_utils.is_ignored_author(SimpleNamespace())


class TestSafeReply:
    """Tests for safe_reply."""

    @pytest.mark.asyncio
    async def test_success(self):
        message = make_message()
        assert await discord_utils.safe_reply(message, "hi") is True
        message.reply.assert_awaited_once_with("hi")

    @pytest.mark.asyncio
    async def test_forbidden(self):
        message = make_message()
        message.reply.side_effect = http_error(discord.Forbidden, 403)
        assert await discord_utils.safe_reply(message, "hi") is False

    @pytest.mark.asyncio
    async def test_http_error(self):
        message = make_message()
        message.reply.side_effect = http_error(discord.HTTPException, 500)
        assert await discord_utils.safe_reply(message, "hi") is False


class TestSafeDeleteMessage:
    """Tests for safe_delete_message."""

    @pytest.mark.asyncio
    async def test_success(self):
        message = make_message()
        assert await discord_utils.safe_delete_message(message) is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("cls, status", [(discord.NotFound, 404), (discord.Forbidden, 403)])
    async def test_recoverable_errors(self, cls, status):
        message = make_message()
        message.delete.side_effect = http_error(cls, status)
        assert await discord_utils.safe_delete_message(message) is False


class TestApplySlowmode:
    """Tests for apply_slowmode."""

    @pytest.mark.asyncio
    async def test_cached_channel(self):
        channel = SimpleNamespace(slowmode_delay=0, edit=AsyncMock())
        bot = SimpleNamespace(get_channel=MagicMock(return_value=channel), fetch_channel=AsyncMock())

        assert await discord_utils.apply_slowmode(bot, 3, 30) is True

        channel.edit.assert_awaited_once_with(slowmode_delay=30)
        bot.fetch_channel.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fetches_uncached_channel(self):
        channel = SimpleNamespace(slowmode_delay=0, edit=AsyncMock())
        bot = SimpleNamespace(get_channel=MagicMock(return_value=None), fetch_channel=AsyncMock(return_value=channel))

        assert await discord_utils.apply_slowmode(bot, 3, 30) is True

        bot.fetch_channel.assert_awaited_once_with(3)

    @pytest.mark.asyncio
    async def test_non_text_channel(self):
        bot = SimpleNamespace(get_channel=MagicMock(return_value=SimpleNamespace()), fetch_channel=AsyncMock())
        assert await discord_utils.apply_slowmode(bot, 3, 30) is False

    @pytest.mark.asyncio
    async def test_edit_failure(self):
        channel = SimpleNamespace(slowmode_delay=0, edit=AsyncMock(side_effect=http_error(discord.Forbidden, 403)))
        bot = SimpleNamespace(get_channel=MagicMock(return_value=channel), fetch_channel=AsyncMock())
        assert await discord_utils.apply_slowmode(bot, 3, 30) is False
