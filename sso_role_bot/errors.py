# errors.py
# Every error the bot raises on purpose. Anything else is treated as unexpected.


class RoleBotError(Exception):
    """Base class for errors raised by the bot."""


class ConfigError(RoleBotError):
    """A required setting is missing or malformed."""


class ValidationError(RoleBotError):
    """A required HTTP parameter is missing (HTTP 400)."""


class CorrelationError(RoleBotError):
    """The OAuth state could not be turned back into a user and guild."""


class IdentityProviderError(RoleBotError):
    """Google refused the authorization code or returned an unusable profile."""


class PlatformLookupError(RoleBotError):
    """Discord could not resolve the guild or the member."""


class GuildNotFoundError(PlatformLookupError):
    pass


class MemberNotFoundError(PlatformLookupError):
    pass


class RoleGrantError(RoleBotError):
    """A single role grant failed. Recorded per label, never raised out of a batch."""

    def __init__(self, label, role_id, cause=None):
        super().__init__(f"could not grant role {role_id} for label '{label}': {cause}")
        self.label = label
        self.role_id = role_id
        self.cause = cause


class PermissionDeniedError(RoleBotError):
    """The invoker or the bot itself is missing the Manage Roles permission."""
