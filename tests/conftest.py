import asyncio
import copy
import dataclasses
import json
import logging
import re
from typing import Any, Optional

import aiohttp.test_utils
import aiohttp.web
import pytest
import pytest_asyncio

import attio
from attio._cogs.clients.auth import APIContext
from attio._cogs.configs.configuration import ClientSettings


def pytest_configure(config):
    config.addinivalue_line('markers', "e2e: end-to-end tests with the real API.")


# Make all tests in this directory and below asyncio-compatible by default.
# Due to how pytest-async checks for these markers, they should be added as early as possible.
@pytest.hookimpl(hookwrapper=True)
def pytest_pycollect_makeitem(collector, name, obj):
    if collector.funcnamefilter(name) and asyncio.iscoroutinefunction(obj):
        pytest.mark.asyncio(obj)
    yield


@pytest.fixture(autouse=True)
def no_env(monkeypatch):
    """ Isolate the tests from the developer's real credentials & settings. """
    for name in ['ATTIO_API_KEY', 'ATTIO_API_BASE', 'ATTIO_API_VERSION',
                 'ATTIO_TIMEOUT', 'ATTIO_OPEN_TIMEOUT', 'ATTIO_MAX_RETRIES',
                 'ATTIO_WEBHOOK_SECRET']:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def settings():
    settings = ClientSettings()
    settings.auth.api_key = 'test-key'
    settings.auth.server = 'http://fake-host'
    settings.networking.error_backoffs = (0, 0, 0)
    settings.networking.backoff_jitter = 0
    return settings


@pytest.fixture()
def logger():
    return logging.getLogger('attio.tests')


#
# A fake API server: a real HTTP server with the pre-registered responses.
#

@dataclasses.dataclass(frozen=True)
class FakeRequest:
    method: str
    path: str
    query: list[tuple[str, str]]
    headers: dict[str, str]
    data: Any


class FakeAPI:
    """
    A catch-all ``aiohttp.web`` application serving the registered responses.

    The responses are served in the order of registration for the same
    method & path; the last one is repeated. Unregistered requests get 404.
    All the requests are remembered for the assertions later.
    """

    def __init__(self) -> None:
        super().__init__()
        self.requests: list[FakeRequest] = []
        self._responses: dict[tuple[str, str], list[tuple[int, Any, dict[str, str]]]] = {}
        self.url: Optional[str] = None

    def add(
            self,
            method: str,
            path: str,
            data: Any = None,
            *,
            status: int = 200,
            headers: Optional[dict[str, str]] = None,
    ) -> None:
        self._responses.setdefault((method.upper(), path), []).append((status, data, dict(headers or {})))

    def count(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r.method == method.upper() and r.path == path)

    async def handle(self, request: aiohttp.web.Request) -> aiohttp.web.StreamResponse:
        text = await request.text()
        data = json.loads(text) if text else None
        self.requests.append(FakeRequest(
            method=request.method,
            path=request.path,
            query=list(request.query.items()),
            headers=dict(request.headers),
            data=data,
        ))
        queue = self._responses.get((request.method, request.path))
        if not queue:
            return aiohttp.web.json_response({'status_code': 404, 'type': 'invalid_request_error',
                                              'code': 'not_found', 'message': 'Unexpected request'},
                                             status=404)
        status, body, headers = queue.pop(0) if len(queue) > 1 else queue[0]
        if body is None:
            return aiohttp.web.Response(status=status, headers=headers)
        return aiohttp.web.json_response(body, status=status, headers=headers)


@pytest_asyncio.fixture()
async def fake_api():
    api = FakeAPI()
    app = aiohttp.web.Application()
    app.router.add_route('*', '/{tail:.*}', api.handle)
    server = aiohttp.test_utils.TestServer(app)
    await server.start_server()
    api.url = str(server.make_url('')).rstrip('/')
    try:
        yield api
    finally:
        await server.close()


@pytest_asyncio.fixture()
async def context(settings, fake_api):
    settings.auth.server = fake_api.url
    context = APIContext(settings)
    try:
        yield context
    finally:
        await context.close()


@pytest_asyncio.fixture()
async def client(settings, fake_api):
    settings.auth.server = fake_api.url
    # Not as a context manager: the fixture's setup & teardown run in different contexts.
    client = attio.Client(settings=settings)
    await client.open()
    try:
        yield client
    finally:
        await client.close()


#
# A fake transport: no HTTP at all, only the recorded calls & the canned responses.
#

@dataclasses.dataclass(frozen=True)
class TransportCall:
    method: str
    path: str
    params: Any
    options: Any


class FakeTransport:

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[TransportCall] = []
        self._responses: dict[tuple[str, str], list[Any]] = {}

    def add(self, method: str, path: str, response: Any) -> None:
        self._responses.setdefault((method.upper(), path), []).append(response)

    async def execute_request(self, method, path, params=None, options=None):
        self.calls.append(TransportCall(method, path, copy.deepcopy(params), copy.deepcopy(options)))
        queue = self._responses.get((method.upper(), path))
        if not queue:
            raise AssertionError(f"Unexpected request: {method} {path}")
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, BaseException):
            raise response
        return copy.deepcopy(response)


@pytest.fixture()
def transport():
    return FakeTransport()


@pytest.fixture()
def assert_logs(caplog):
    """
    A function to assert the logs are present (by pattern).

    The listed message patterns MUST be present, in the order specified.
    Some other log messages can also be present, but they are ignored.
    """
    caplog.set_level(logging.DEBUG)

    def assert_logs_fn(patterns=(), prohibited=(), strict=False):
        __traceback_hide__ = True
        remaining_patterns = list(patterns)
        for message in caplog.messages:
            # The expected pattern is at position 0.
            # Looking-ahead: if one of the following patterns matches, while the
            # 0th does not, then the log message is missing, and we fail the test.
            for idx, pattern in enumerate(remaining_patterns):
                m = re.search(pattern, message)
                if m:
                    if idx == 0:
                        remaining_patterns[:1] = []
                        break  # out of `remaining_patterns` cycle
                    else:
                        skipped_patterns = remaining_patterns[:idx]
                        raise AssertionError(f"Few patterns were skipped: {skipped_patterns!r}")
                elif strict:
                    raise AssertionError(f"Unexpected log message: {message!r}")

            # Check that the prohibited patterns do not appear in any message.
            for pattern in prohibited:
                m = re.search(pattern, message)
                if m:
                    raise AssertionError(f"Prohibited log pattern found: {message!r} ~ {pattern!r}")

        # If all patterns have been matched in order, we are done.
        # if some are left, but the messages are over, then we fail.
        if remaining_patterns:
            raise AssertionError(f"Few patterns were missed: {remaining_patterns!r}")

    return assert_logs_fn
