"""
redlink Discord Bot
===================

A Discord bot that links members to their Reddit accounts by matching a
``!verify`` command against modmail forwarded into a Discord channel.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. REDLINK_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("REDLINK_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()

import asyncio
import discord
from dotenv import load_dotenv

from redlink.configuration.app_configuration import (
    CONFIG_RELATIVE_PATH,
    AppConfig,
    ConfigurationError,
    VerificationSettings,
    build_settings,
)
from redlink.util.logger import get_logger, handle_exception


logger = get_logger("main")


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Returns
    -------
    str
        Discord bot token extracted from the loaded environment.

    Raises
    ------
    SystemExit
        If neither ``DISCORD_BOT_TOKEN`` nor ``DISCORD_TOKEN`` is set.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN") or os.getenv("DISCORD_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def load_settings() -> VerificationSettings:
    """Build the runtime settings from ``config/app_config.yml`` and the environment.

    Raises
    ------
    SystemExit
        If a required Discord ID is missing or malformed.
    """
    app_config = AppConfig(BASE_DIR / CONFIG_RELATIVE_PATH)
    try:
        return build_settings(app_config)
    except ConfigurationError as exc:
        logger.critical("Invalid configuration: %s", exc)
        sys.exit(1)


def build_intents() -> discord.Intents:
    """Construct the Discord intents required for redlink.

    Returns
    -------
    discord.Intents
        Intents enabling guild, member and message content events.
    """
    intents = discord.Intents.default()
    intents.guilds = True
    intents.messages = True
    intents.message_content = True
    intents.members = True
    return intents


def load_cogs(discord_bot_instance: discord.Bot, settings: VerificationSettings) -> None:
    """Register all cogs with the provided Discord bot instance."""
    from redlink.bot.cogs import events_listener, message_listener, verification_cmds

    events_listener.setup(discord_bot_instance, settings)
    message_listener.setup(discord_bot_instance, settings)
    verification_cmds.setup(discord_bot_instance, settings)

    logger.info("All cogs loaded successfully.")


def create_bot(settings: VerificationSettings) -> discord.Bot:
    """Instantiate the Discord bot and register all cogs."""
    bot = discord.Bot(intents=build_intents(), debug_guilds=[settings.guild_id])
    load_cogs(bot, settings)
    return bot


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and handle lifecycle logging around the connection."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: discord.Bot | None = None) -> None:
    """Close the Discord connection if it is still open."""
    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error while closing the Discord client: %s", exc)
    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Bootstrap settings and the bot, returning an exit code."""
    token = load_environment()
    settings = load_settings()

    try:
        bot = create_bot(settings)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        return 1

    exit_code = 0
    try:
        await start_bot(bot, token)
    except discord.LoginFailure as exc:
        logger.critical("Discord rejected the bot token: %s", exc)
        exit_code = 1
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot)

    return exit_code


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process exit code."""
    logger.info("Starting redlink…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    sys.exit(main())
