"""HTTP contract tests for `sso_role_bot.web` using Flask's test client."""

import asyncio
from urllib.parse import parse_qs, urlparse

import pytest

from sso_role_bot.correlation import IdentityCorrelator
from sso_role_bot.errors import IdentityProviderError
from sso_role_bot.flow import VerificationFlow
from sso_role_bot.policy import RolePolicy
from sso_role_bot.reconciler import RoleReconciler
from sso_role_bot.store import IdentityStore
from sso_role_bot.web import create_app

from conftest import FakeGuild, FakeMember, FakeOAuth, profile


@pytest.fixture
def store():
    return IdentityStore()


@pytest.fixture
def oauth():
    return FakeOAuth({'good': profile('a@partner.com')})


@pytest.fixture
def client(oauth, store):
    guild = FakeGuild(222, [FakeMember(111)])
    flow = VerificationFlow(
        correlator=IdentityCorrelator(),
        oauth=oauth,
        policy=RolePolicy(),
        reconciler=RoleReconciler({'moderator': 20}, verified_role_id=99),
        store=store,
        guild_lookup={222: guild}.get,
        submit=asyncio.run,
        app_url='https://bot.example',
    )
    return create_app(flow).test_client()


def state(user_id='111', guild_id='222'):
    return IdentityCorrelator().issue(user_id, guild_id)


def test_health(client):
    resp = client.get('/')
    assert resp.status_code == 200
    assert resp.get_json() == {'status': 'ok'}


@pytest.mark.parametrize('query', ['', '?userId=1', '?guildId=2', '?userId=&guildId=2'])
def test_login_requires_both_parameters(client, query):
    resp = client.get(f'/auth/login{query}')
    assert resp.status_code == 400
    assert b'Missing userId or guildId' in resp.data


def test_login_redirects_to_provider_with_state(client):
    resp = client.get('/auth/login?userId=111&guildId=222')
    assert resp.status_code == 302
    location = resp.headers['Location']
    assert location.startswith('https://idp.example/auth')
    token = parse_qs(urlparse(location).query)['state'][0]
    assert IdentityCorrelator().resolve(token).chat_user_id == '111'


def test_callback_success(client, store):
    resp = client.get(f'/auth/callback?state={state()}&code=good')
    assert resp.status_code == 200
    assert b'Authentication successful' in resp.data
    assert store.get('111').roles == {'moderator', 'verified'}


@pytest.mark.parametrize('bad_state', ['', 'garbage', state('', '222')])
def test_callback_bad_state(client, store, bad_state):
    resp = client.get(f'/auth/callback?state={bad_state}&code=good')
    assert resp.status_code == 400
    assert len(store) == 0


def test_callback_provider_denied(client, oauth):
    resp = client.get(f'/auth/callback?state={state()}&error=access_denied')
    assert resp.status_code == 302
    assert resp.headers['Location'].endswith('/auth/failure')
    assert oauth.codes == []


def test_callback_without_code(client):
    resp = client.get(f'/auth/callback?state={state()}')
    assert resp.status_code == 302
    assert resp.headers['Location'].endswith('/auth/failure')


def test_callback_code_exchange_failure(client, oauth):
    oauth.error = IdentityProviderError('invalid_grant')
    resp = client.get(f'/auth/callback?state={state()}&code=good')
    assert resp.status_code == 302
    assert resp.headers['Location'].endswith('/auth/failure')


def test_callback_unknown_guild_is_generic_failure(client, store):
    resp = client.get(f'/auth/callback?state={state(guild_id="404")}&code=good')
    assert resp.status_code == 500
    assert resp.data == b'An error occurred during authentication.'
    assert len(store) == 0


def test_callback_unexpected_error_is_500_without_details(client, oauth):
    oauth.error = RuntimeError('secret internals')
    resp = client.get(f'/auth/callback?state={state()}&code=good')
    assert resp.status_code == 500
    assert b'secret internals' not in resp.data


def test_failure_page(client):
    resp = client.get('/auth/failure')
    assert resp.status_code == 200
    assert b'Authentication failed' in resp.data


def test_unknown_route_is_404(client):
    assert client.get('/nope').status_code == 404
