"""Carry the Discord user and guild through Google's redirect.

The OAuth ``state`` parameter is the only value Google echoes back to the
callback untouched, so the user/guild pair is packed into it instead of into a
server-side session.

Security: the token is plain encoded JSON. It is neither signed nor time-boxed,
so anyone can forge a state naming another user (CSRF / replay). Keep that in
mind before trusting it for anything beyond the role grants it drives.
"""

import base64
import binascii
import json
import logging
from dataclasses import dataclass

from .errors import CorrelationError

logger = logging.getLogger(__name__)

USER_KEY = 'discordUserId'
GUILD_KEY = 'guildId'


@dataclass(frozen=True)
class Correlation:
    chat_user_id: str
    guild_id: str


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode('ascii').rstrip('=')


def _b64decode(text: str) -> bytes:
    padded = text + '=' * (-len(text) % 4)
    return base64.urlsafe_b64decode(padded.encode('ascii'))


class IdentityCorrelator:
    """Issues and resolves correlation tokens. Stateless."""

    def issue(self, chat_user_id: str, guild_id: str) -> str:
        payload = json.dumps({USER_KEY: chat_user_id, GUILD_KEY: guild_id}, separators=(',', ':'))
        return _b64encode(payload.encode('utf-8'))

    def resolve(self, token) -> Correlation:
        if not token or not isinstance(token, str):
            raise CorrelationError('missing state')

        try:
            data = json.loads(_b64decode(token).decode('utf-8'))
        except (binascii.Error, UnicodeError, ValueError) as e:
            # json.JSONDecodeError is a ValueError
            raise CorrelationError(f'undecodable state: {e}') from e

        if not isinstance(data, dict):
            raise CorrelationError('state is not an object')

        user_id = data.get(USER_KEY)
        guild_id = data.get(GUILD_KEY)
        for key, value in ((USER_KEY, user_id), (GUILD_KEY, guild_id)):
            if not isinstance(value, str) or not value:
                raise CorrelationError(f"state is missing '{key}'")

        logger.debug('Decoded OAuth state: user=%s guild=%s', user_id, guild_id)
        return Correlation(chat_user_id=user_id, guild_id=guild_id)
