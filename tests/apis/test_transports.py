import aiohttp
import pytest

import attio
from attio._cogs.clients import auth, transports
from attio._cogs.clients.transports import Client, encode_query, get_transport
from attio._cogs.configs.configuration import ClientSettings
from attio._cogs.structs.exceptions import ConfigurationError


def test_query_encoding():
    query = encode_query({
        'limit': 10,
        'skip': None,
        'archived': True,
        'deleted': False,
        'ids': ['a', 'b'],
        'filter': {'name': 'Acme'},
    })
    assert query == [
        ('limit', '10'),
        ('archived', 'true'),
        ('deleted', 'false'),
        ('ids', 'a'),
        ('ids', 'b'),
        ('filter', '{"name":"Acme"}'),
    ]


def test_query_encoding_of_nothing():
    assert encode_query(None) == []
    assert encode_query({}) == []


def test_explicit_transport_wins(transport):
    other = object()
    assert get_transport(None, transport, other) is transport


async def test_current_transport_is_used_as_a_fallback(transport):
    token = transports.transport_var.set(transport)
    try:
        assert get_transport(None, None) is transport
    finally:
        transports.transport_var.reset(token)


def test_no_transport_fails():
    with pytest.raises(RuntimeError, match=r"No transport"):
        get_transport(None)


def test_client_settings_default_to_the_environment(monkeypatch):
    monkeypatch.setenv('ATTIO_API_KEY', 'env-key')
    client = Client()
    assert client.settings.auth.api_key == 'env-key'


def test_client_api_key_overrides_the_settings():
    client = Client('explicit-key', settings=ClientSettings())
    assert client.settings.auth.api_key == 'explicit-key'


def test_api_key_is_not_exposed_in_reprs():
    settings = ClientSettings()
    settings.auth.api_key = 'secret-key'
    assert 'secret-key' not in repr(settings)
    assert 'secret-key' not in repr(Client(settings=settings))


async def test_client_is_the_current_transport_within_its_context(settings, fake_api):
    settings.auth.server = fake_api.url
    client = Client(settings=settings)
    assert client.closed
    async with client:
        assert not client.closed
        assert get_transport() is client
        assert isinstance(auth.context_var.get(), auth.APIContext)
    assert client.closed
    assert transports.transport_var.get(None) is None


async def test_nested_client_contexts_keep_the_client_open(settings, fake_api):
    settings.auth.server = fake_api.url
    client = Client(settings=settings)
    async with client:
        async with client:
            pass
        assert not client.closed
    assert client.closed


async def test_client_refuses_to_open_with_invalid_settings():
    settings = ClientSettings()
    settings.networking.request_timeout = -1
    with pytest.raises(ConfigurationError):
        async with Client(settings=settings):
            pass


async def test_closed_client_refuses_requests(settings):
    client = Client(settings=settings)
    with pytest.raises(RuntimeError, match=r"not open"):
        await client.execute_request('GET', 'self')


async def test_get_params_go_to_the_query(client, fake_api):
    fake_api.add('get', '/v2/lists', {'data': []})
    await client.execute_request('GET', 'lists', {'limit': 5, 'archived': False})
    assert fake_api.requests[0].query == [('limit', '5'), ('archived', 'false')]
    assert fake_api.requests[0].data is None


async def test_post_params_go_to_the_body(client, fake_api):
    fake_api.add('post', '/v2/objects/people/records', {'data': {}})
    await client.execute_request('POST', 'objects/people/records', {'data': {'values': {}}},
                                 {'query': {'matching_attribute': 'email_addresses'}})
    assert fake_api.requests[0].data == {'data': {'values': {}}}
    assert fake_api.requests[0].query == [('matching_attribute', 'email_addresses')]


async def test_per_request_options(client, fake_api):
    fake_api.add('get', '/v2/self', {})
    await client.execute_request('GET', 'self', None, {
        'api_key': 'other-key',
        'headers': {'X-Custom': 'yes'},
        'timeout': 5,
    })
    headers = fake_api.requests[0].headers
    assert headers['Authorization'] == 'Bearer other-key'
    assert headers['X-Custom'] == 'yes'


async def test_user_provided_sessions_are_authenticated_per_request_and_not_closed(settings, fake_api):
    settings.auth.server = fake_api.url
    fake_api.add('get', '/v2/self', {})
    async with aiohttp.ClientSession() as session:
        async with Client(settings=settings, session=session) as client:
            await client.execute_request('GET', 'self')
        assert not session.closed
        assert 'Authorization' not in session.headers
    assert fake_api.requests[0].headers['Authorization'] == 'Bearer test-key'


async def test_resources_use_the_current_client(settings, fake_api):
    settings.auth.server = fake_api.url
    fake_api.add('get', '/v2/self', {'data': {'active': True, 'workspace_name': 'Acme'}})
    async with attio.Client(settings=settings):
        meta = await attio.Meta.identify()
    assert meta.active is True
    assert meta.workspace_name == 'Acme'
