# bot.py
# Discord side: the bot client, its slash commands and the bridge into its event loop.

import asyncio
import concurrent.futures
import logging

import discord
from discord import app_commands
from discord.ext import commands

from .commands import GENERIC_FAILURE, DiscordInteractionContext

logger = logging.getLogger(__name__)

# How long an HTTP request waits for the bot to finish granting roles.
PLATFORM_TIMEOUT_SECONDS = 30


def create_bot(dispatcher) -> commands.Bot:
    intents = discord.Intents.default()
    intents.members = True
    bot = commands.Bot(command_prefix=commands.when_mentioned, intents=intents)

    @bot.event
    async def on_ready():
        logger.info('Logged in as %s (%s)', bot.user.name, bot.user.id)
        try:
            synced = await bot.tree.sync()
            logger.info('Successfully reloaded %d application (/) commands.', len(synced))
        except discord.HTTPException:
            logger.exception('Failed to sync application commands')

    @bot.tree.command(name='verify', description='Verify your account with SSO and get roles')
    @app_commands.guild_only()
    async def verify(interaction: discord.Interaction):
        await dispatcher.dispatch(DiscordInteractionContext(interaction))

    @bot.tree.command(name='assign', description='Assigns a role to a user.')
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_roles=True)
    @app_commands.describe(user='The user to assign the role to', role='The role to assign')
    async def assign(interaction: discord.Interaction, user: discord.Member, role: discord.Role):
        await dispatcher.dispatch(DiscordInteractionContext(interaction, user=user, role=role))

    @bot.tree.error
    async def on_app_command_error(interaction: discord.Interaction, error: app_commands.AppCommandError):
        logger.error('Unhandled error in /%s', interaction.command.name if interaction.command else '?',
                     exc_info=error)
        await DiscordInteractionContext(interaction).reply(GENERIC_FAILURE)

    return bot


def loop_submitter(bot, timeout=PLATFORM_TIMEOUT_SECONDS):
    """Return a callable that runs a coroutine on the bot's loop from another thread."""

    def submit(coro):
        future = asyncio.run_coroutine_threadsafe(coro, bot.loop)
        try:
            return future.result(timeout=timeout)
        except concurrent.futures.TimeoutError:
            # Stop granting roles for a request that has already failed.
            future.cancel()
            logger.error('Bot did not finish within %s seconds, cancelled', timeout)
            raise

    return submit
