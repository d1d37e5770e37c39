"""
Google OAuth2 client (authorization code flow).

Builds the consent URL and exchanges the code Google sends to the callback for
the user's verified profile. Correlation state is created and checked by the
caller; this client only passes it through.
"""

import logging
from urllib.parse import urlencode

# Small indirection to ease monkeypatching in tests
import requests as http

from .errors import IdentityProviderError
from .policy import ExternalProfile

logger = logging.getLogger(__name__)

AUTH_ENDPOINT = 'https://accounts.google.com/o/oauth2/v2/auth'
TOKEN_ENDPOINT = 'https://oauth2.googleapis.com/token'
USERINFO_ENDPOINT = 'https://openidconnect.googleapis.com/v1/userinfo'
SCOPES = ('openid', 'profile', 'email')
TIMEOUT_SECONDS = 10


def http_post(url, data, headers):
    return http.post(url, data=data, headers=headers, timeout=TIMEOUT_SECONDS)


def http_get(url, headers):
    return http.get(url, headers=headers, timeout=TIMEOUT_SECONDS)


class GoogleOAuthClient:
    def __init__(self, client_id: str, client_secret: str, redirect_uri: str):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri

    @classmethod
    def from_config(cls, config) -> 'GoogleOAuthClient':
        return cls(config.sso_client_id, config.sso_client_secret, config.sso_callback_url)

    def authorization_url(self, state: str) -> str:
        params = {
            'response_type': 'code',
            'client_id': self.client_id,
            'redirect_uri': self.redirect_uri,
            'scope': ' '.join(SCOPES),
            'state': state,
        }
        return f'{AUTH_ENDPOINT}?{urlencode(params)}'

    def exchange_code(self, code: str) -> str:
        """Return the access token for ``code``."""
        data = {
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'grant_type': 'authorization_code',
            'code': code,
            'redirect_uri': self.redirect_uri,
        }
        headers = {'Content-Type': 'application/x-www-form-urlencoded'}
        try:
            resp = http_post(TOKEN_ENDPOINT, data=data, headers=headers)
            resp.raise_for_status()
            return resp.json()['access_token']
        except (http.RequestException, KeyError, ValueError) as e:
            logger.error('Error exchanging code for token: %s', e)
            raise IdentityProviderError('token exchange failed') from e

    def fetch_profile(self, code: str) -> ExternalProfile:
        access_token = self.exchange_code(code)
        headers = {'Authorization': f'Bearer {access_token}'}
        try:
            resp = http_get(USERINFO_ENDPOINT, headers=headers)
            resp.raise_for_status()
            info = resp.json()
        except (http.RequestException, ValueError) as e:
            logger.error('Error getting user info: %s', e)
            raise IdentityProviderError('userinfo request failed') from e

        if not isinstance(info, dict) or not info.get('sub'):
            raise IdentityProviderError('userinfo response has no subject')

        return ExternalProfile(
            provider_user_id=str(info['sub']),
            email=info.get('email', ''),
            display_name=info.get('name', ''),
            avatar_url=info.get('picture', ''),
            # Google sends a bool; some deployments echo it as a string.
            email_verified=info.get('email_verified') in (True, 'true'),
        )
