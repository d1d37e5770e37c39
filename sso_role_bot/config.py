# config.py
# Settings come from environment variables (a local .env file is loaded by main.py).

import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from .errors import ConfigError

REQUIRED_VARS = (
    'DISCORD_TOKEN',
    'SSO_CLIENT_ID',
    'SSO_CLIENT_SECRET',
    'SSO_CALLBACK_URL',
    'APP_URL',
)

# Abstract role label -> environment variable holding the Discord role ID.
ROLE_ID_VARS = {
    'admin': 'ADMIN_ROLE_ID',
    'moderator': 'MODERATOR_ROLE_ID',
    'premium': 'PREMIUM_ROLE_ID',
}

DEFAULT_PORT = 3000


def _role_id(environ: Mapping[str, str], name: str) -> Optional[int]:
    raw = environ.get(name, '').strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"The environment variable '{name}' must be a Discord role ID, got {raw!r}.") from None


@dataclass(frozen=True)
class Config:
    discord_token: str
    sso_client_id: str
    sso_client_secret: str
    sso_callback_url: str
    app_url: str
    admin_role_id: Optional[int] = None
    moderator_role_id: Optional[int] = None
    premium_role_id: Optional[int] = None
    verified_role_id: Optional[int] = None
    port: int = DEFAULT_PORT
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = os.environ) -> 'Config':
        try:
            required = {name: environ[name] for name in REQUIRED_VARS}
        except KeyError as e:
            raise ConfigError(f"The environment variable '{e.args[0]}' is not set.") from None

        for name, value in required.items():
            if not value.strip():
                raise ConfigError(f"The environment variable '{name}' is empty.")

        port = environ.get('PORT', '').strip() or str(DEFAULT_PORT)
        if not port.isdigit():
            raise ConfigError(f"The environment variable 'PORT' must be a number, got {port!r}.")

        return cls(
            discord_token=required['DISCORD_TOKEN'],
            sso_client_id=required['SSO_CLIENT_ID'],
            sso_client_secret=required['SSO_CLIENT_SECRET'],
            sso_callback_url=required['SSO_CALLBACK_URL'],
            app_url=required['APP_URL'].rstrip('/'),
            admin_role_id=_role_id(environ, ROLE_ID_VARS['admin']),
            moderator_role_id=_role_id(environ, ROLE_ID_VARS['moderator']),
            premium_role_id=_role_id(environ, ROLE_ID_VARS['premium']),
            verified_role_id=_role_id(environ, 'VERIFIED_ROLE_ID'),
            port=int(port),
            log_level=environ.get('LOG_LEVEL', 'INFO').upper(),
        )

    def role_mapping(self) -> Dict[str, int]:
        """Label -> role ID for every label that has a role configured."""
        mapping = {
            'admin': self.admin_role_id,
            'moderator': self.moderator_role_id,
            'premium': self.premium_role_id,
        }
        return {label: role_id for label, role_id in mapping.items() if role_id is not None}
