"""
Verification flow: /verify -> Google sign-in -> callback -> role grants.

Nothing is held between the /verify reply and the callback except the
correlation token inside the OAuth ``state``. A flow that never returns from
Google costs nothing and never expires. There is no retry: the user runs
/verify again.

Only the two terminal states exist as values: a FlowResult is either
COMPLETED or FAILED once the callback has run.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional
from urllib.parse import urlencode

from .errors import CorrelationError, PlatformLookupError, ValidationError
from .reconciler import ReconcileReport
from .store import IdentityRecord

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = 'Authentication successful! You can close this window now.'
BAD_STATE_MESSAGE = 'Missing Discord user ID or guild ID.'
FAILURE_MESSAGE = 'An error occurred during authentication.'


class FlowState(enum.Enum):
    COMPLETED = 'completed'
    FAILED = 'failed'


@dataclass(frozen=True)
class FlowResult:
    state: FlowState
    status_code: int
    message: str
    report: Optional[ReconcileReport] = None


class VerificationFlow:
    def __init__(self, correlator, oauth, policy, reconciler, store,
                 guild_lookup: Callable[[int], Any],
                 submit: Callable[[Any], Any],
                 app_url: str):
        """
        guild_lookup: guild ID -> guild object or None (``bot.get_guild``).
        submit: runs a coroutine on the bot's event loop and returns its result.
        """
        self.correlator = correlator
        self.oauth = oauth
        self.policy = policy
        self.reconciler = reconciler
        self.store = store
        self.guild_lookup = guild_lookup
        self.submit = submit
        self.app_url = app_url.rstrip('/')

    # --- Start ---

    def login_link(self, user_id, guild_id) -> str:
        """Link posted back to the user by /verify."""
        query = urlencode({'userId': user_id, 'guildId': guild_id})
        link = f'{self.app_url}/auth/login?{query}'
        logger.info('Generated auth URL for user %s: %s', user_id, link)
        return link

    def authorization_url(self, user_id, guild_id) -> str:
        if not user_id or not guild_id:
            raise ValidationError('Missing userId or guildId parameters')
        state = self.correlator.issue(str(user_id), str(guild_id))
        return self.oauth.authorization_url(state)

    # --- Callback ---

    async def _reconcile(self, guild_id: str, user_id: str, labels) -> ReconcileReport:
        guild = self.guild_lookup(int(guild_id)) if guild_id.isdigit() else None
        if guild is None:
            logger.error('Guild %s not found', guild_id)
        return await self.reconciler.apply(guild, user_id, labels)

    def complete(self, state, code) -> FlowResult:
        """Finish a flow from the callback's ``state`` and ``code``.

        Raises IdentityProviderError when Google rejects the code.
        """
        try:
            correlation = self.correlator.resolve(state)
        except CorrelationError as e:
            logger.error('Missing IDs in OAuth state: %s', e)
            return FlowResult(FlowState.FAILED, 400, BAD_STATE_MESSAGE)

        profile = self.oauth.fetch_profile(code)
        labels = self.policy.resolve(profile)
        logger.info('User %s verified as %s, labels %s',
                    correlation.chat_user_id, profile.email, sorted(labels))

        try:
            report = self.submit(self._reconcile(correlation.guild_id, correlation.chat_user_id, labels))
        except PlatformLookupError as e:
            logger.error('Aborting verification for user %s: %s', correlation.chat_user_id, e)
            return FlowResult(FlowState.FAILED, 500, FAILURE_MESSAGE)

        if not report.ok:
            logger.warning('Some roles could not be granted to user %s: %s',
                           correlation.chat_user_id, report.failed)

        self.store.put(correlation.chat_user_id, IdentityRecord.create(profile.email, labels))
        return FlowResult(FlowState.COMPLETED, 200, SUCCESS_MESSAGE, report)
