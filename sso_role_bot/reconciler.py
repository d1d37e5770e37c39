"""
Turn abstract role labels into Discord role grants.

Best effort: each grant is tried on its own, a failed grant is logged and
recorded in the report, and the remaining grants still run. Only a missing
guild or member stops the batch, before any grant is attempted.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional

import aiohttp
import discord

from .errors import GuildNotFoundError, MemberNotFoundError, RoleGrantError
from .policy import VERIFIED

logger = logging.getLogger(__name__)

GRANT_REASON = 'SSO verification'

# What a single role grant can fail with: API errors and transport errors.
GRANT_ERRORS = (discord.HTTPException, aiohttp.ClientError, asyncio.TimeoutError)


class GrantStatus(enum.Enum):
    GRANTED = 'granted'
    FAILED = 'failed'
    SKIPPED = 'skipped'


@dataclass(frozen=True)
class GrantOutcome:
    label: str
    role_id: Optional[int]
    status: GrantStatus
    error: Optional[RoleGrantError] = None


@dataclass
class ReconcileReport:
    member_id: str
    outcomes: List[GrantOutcome] = field(default_factory=list)

    def _with(self, status):
        return [o.label for o in self.outcomes if o.status is status]

    @property
    def granted(self) -> List[str]:
        return self._with(GrantStatus.GRANTED)

    @property
    def failed(self) -> List[str]:
        return self._with(GrantStatus.FAILED)

    @property
    def skipped(self) -> List[str]:
        return self._with(GrantStatus.SKIPPED)

    @property
    def ok(self) -> bool:
        return not self.failed


class RoleReconciler:
    def __init__(self, mapping: Mapping[str, int], verified_role_id: Optional[int] = None):
        self.mapping = dict(mapping)
        self.verified_role_id = verified_role_id

    async def _fetch_member(self, guild, member_id: str):
        try:
            snowflake = int(member_id)
        except (TypeError, ValueError):
            raise MemberNotFoundError(f'invalid member id {member_id!r}') from None

        member = guild.get_member(snowflake)
        if member is not None:
            return member
        try:
            return await guild.fetch_member(snowflake)
        except discord.HTTPException as e:
            raise MemberNotFoundError(f'member {member_id} not found in guild {guild.id}') from e

    async def _grant(self, member, label: str, role_id: int) -> GrantOutcome:
        try:
            await member.add_roles(discord.Object(id=role_id), reason=GRANT_REASON)
        except GRANT_ERRORS as e:
            error = RoleGrantError(label, role_id, e)
            logger.error('Failed to add role %s (%s) to user %s: %s', label, role_id, member.id, e)
            return GrantOutcome(label, role_id, GrantStatus.FAILED, error)
        logger.info('Added role %s to user %s', label, member.id)
        return GrantOutcome(label, role_id, GrantStatus.GRANTED)

    async def apply(self, guild, member_id: str, labels: Iterable[str]) -> ReconcileReport:
        if guild is None:
            raise GuildNotFoundError('guild not found')

        member = await self._fetch_member(guild, member_id)
        report = ReconcileReport(member_id=member_id)

        for label in sorted(set(labels)):
            # Granted below regardless of the labels.
            if label == VERIFIED and self.verified_role_id is not None:
                continue
            role_id = self.mapping.get(label)
            if role_id is None:
                logger.debug('No role configured for label %s, skipping', label)
                report.outcomes.append(GrantOutcome(label, None, GrantStatus.SKIPPED))
                continue
            report.outcomes.append(await self._grant(member, label, role_id))

        # Every authenticated user gets the verified role.
        if self.verified_role_id is not None:
            report.outcomes.append(await self._grant(member, VERIFIED, self.verified_role_id))

        return report
