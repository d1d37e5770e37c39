import sys
from pathlib import Path
from types import SimpleNamespace

import discord
import pytest

# Ensure the repository root (parent directory of this file) is on the import path.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from sso_role_bot.policy import ExternalProfile  # noqa: E402


def http_error(cls, status, reason, text=''):
    """Build a discord.py HTTP exception without a live aiohttp response."""
    return cls(SimpleNamespace(status=status, reason=reason), text)


class FakeMember:
    def __init__(self, member_id, name=None, failing_role_ids=()):
        self.id = member_id
        self.name = name or f'user{member_id}'
        self.failing_role_ids = set(failing_role_ids)
        self.added = []

    async def add_roles(self, *roles, reason=None):
        for role in roles:
            if role.id in self.failing_role_ids:
                raise http_error(discord.Forbidden, 403, 'Forbidden', 'Missing Permissions')
            self.added.append(role.id)


class FakeGuild:
    def __init__(self, guild_id, members=()):
        self.id = guild_id
        self.members = {m.id: m for m in members}
        self.fetches = 0

    def get_member(self, member_id):
        # Empty cache: force the API fetch path.
        return None

    async def fetch_member(self, member_id):
        self.fetches += 1
        try:
            return self.members[member_id]
        except KeyError:
            raise http_error(discord.NotFound, 404, 'Not Found', 'Unknown Member') from None


class FakeOAuth:
    def __init__(self, profiles=None, error=None):
        self.profiles = profiles or {}
        self.error = error
        self.codes = []

    def authorization_url(self, state):
        return f'https://idp.example/auth?state={state}'

    def fetch_profile(self, code):
        self.codes.append(code)
        if self.error is not None:
            raise self.error
        return self.profiles[code]


def profile(email, sub='g-1'):
    return ExternalProfile(provider_user_id=sub, email=email, display_name='Ada', avatar_url='')


@pytest.fixture
def member():
    return FakeMember(111)


@pytest.fixture
def guild(member):
    return FakeGuild(222, [member])
