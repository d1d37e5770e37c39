"""
Slash command handlers.

Handlers only see an ``InteractionContext``: the handful of things they read
from or do to a Discord interaction. ``DiscordInteractionContext`` adapts a
real ``discord.Interaction``; tests pass a fake.
"""

import logging
from typing import Any, Optional, Protocol

import discord

from .errors import PermissionDeniedError
from .reconciler import GRANT_ERRORS

logger = logging.getLogger(__name__)

INVOKER_DENIED = 'You do not have permission to assign roles.'
BOT_DENIED = "I don't have permission to manage roles!"
ASSIGN_FAILED = 'An error occurred while assigning the role.'
GENERIC_FAILURE = 'Something went wrong while running this command.'


class InteractionContext(Protocol):
    command_name: str
    user_id: str
    guild_id: Optional[str]

    def get_option(self, name: str) -> Any: ...

    def invoker_can_manage_roles(self) -> bool: ...

    def bot_can_manage_roles(self) -> bool: ...

    async def reply(self, content: str) -> None: ...


class DiscordInteractionContext:
    def __init__(self, interaction: discord.Interaction, **options):
        self.interaction = interaction
        self.command_name = interaction.command.name if interaction.command else ''
        self.user_id = str(interaction.user.id)
        self.guild_id = str(interaction.guild_id) if interaction.guild_id else None
        self._options = options

    def get_option(self, name):
        return self._options.get(name)

    def invoker_can_manage_roles(self):
        return self.interaction.permissions.manage_roles

    def bot_can_manage_roles(self):
        guild = self.interaction.guild
        return guild is not None and guild.me.guild_permissions.manage_roles

    async def reply(self, content):
        if self.interaction.response.is_done():
            await self.interaction.followup.send(content, ephemeral=True)
        else:
            await self.interaction.response.send_message(content, ephemeral=True)


class VerifyCommand:
    """/verify: hand the user a link that starts the Google sign-in."""

    name = 'verify'

    def __init__(self, flow):
        self.flow = flow

    async def execute(self, ctx: InteractionContext):
        link = self.flow.login_link(ctx.user_id, ctx.guild_id)
        await ctx.reply(f'Please authenticate using this link: {link}')


class AssignCommand:
    """/assign user role: grant one role to one member."""

    name = 'assign'

    @staticmethod
    def check_permissions(ctx: InteractionContext):
        if not ctx.invoker_can_manage_roles():
            raise PermissionDeniedError(INVOKER_DENIED)
        if not ctx.bot_can_manage_roles():
            raise PermissionDeniedError(BOT_DENIED)

    async def execute(self, ctx: InteractionContext):
        try:
            self.check_permissions(ctx)
        except PermissionDeniedError as e:
            logger.info('Denied /assign for user %s: %s', ctx.user_id, e)
            await ctx.reply(str(e))
            return

        target = ctx.get_option('user')
        role = ctx.get_option('role')
        try:
            await target.add_roles(role, reason=f'/assign by {ctx.user_id}')
        except GRANT_ERRORS:
            logger.exception('Failed to assign role %s to %s', role.id, target.id)
            await ctx.reply(ASSIGN_FAILED)
            return

        logger.info('User %s assigned role %s to %s', ctx.user_id, role.name, target.name)
        await ctx.reply(f'Successfully assigned {role.name} to {target.name}')


class CommandDispatcher:
    def __init__(self, *handlers):
        self.handlers = {handler.name: handler for handler in handlers}

    def register(self, handler):
        self.handlers[handler.name] = handler

    async def dispatch(self, ctx: InteractionContext):
        handler = self.handlers.get(ctx.command_name)
        if handler is None:
            logger.debug('Ignoring unknown command %r', ctx.command_name)
            return None
        return await handler.execute(ctx)
