"""
The transports: the only boundary of the resources with the outer world.

The resources never construct the URLs, the sessions, the connections.
They only ask a transport to execute a request with the already resolved path
and the already shaped parameters, and get the parsed response envelope back.

:class:`Client` is the default transport on top of ``aiohttp``. Any object
implementing the :class:`Transport` protocol can be used instead: e.g. a fake
one in the tests, or a proxying one in the applications.
"""
import collections.abc
import json
import logging
from contextvars import ContextVar, Token
from types import TracebackType
from typing import Any, Mapping, Optional, Protocol

import aiohttp
from typing_extensions import TypedDict

from attio._cogs.clients import api, auth
from attio._cogs.configs import configuration
from attio._cogs.helpers import typedefs

# The methods whose parameters go to the query string rather than to the body.
QUERY_METHODS = frozenset({'GET', 'HEAD', 'DELETE', 'OPTIONS'})


class RequestOptions(TypedDict, total=False):
    api_key: str                # a per-call override of the settings' API key (e.g. an OAuth token)
    timeout: float              # a per-call total timeout, in seconds
    headers: Mapping[str, str]  # extra headers
    query: Mapping[str, Any]    # extra query parameters for the body-carrying methods
    idempotent: bool            # an override of the method-based safety of retries


class Transport(Protocol):
    async def execute_request(
            self,
            method: str,
            path: str,
            params: Optional[Mapping[str, Any]] = None,
            options: Optional[RequestOptions] = None,
    ) -> Any: ...


# The transport of the currently active client, if any: used by the resources by default.
transport_var: ContextVar[Transport] = ContextVar('transport_var')


def get_transport(*candidates: Optional[Transport]) -> Transport:
    """
    Pick the first available transport, falling back to the current one.
    """
    for candidate in candidates:
        if candidate is not None:
            return candidate
    transport = transport_var.get(None)
    if transport is None:
        raise RuntimeError("No transport: pass transport=... or use the resources within an active client.")
    return transport


def encode_query(params: Optional[Mapping[str, Any]]) -> list[tuple[str, str]]:
    """
    Encode the parameters for the query string.

    ``None`` values are skipped, booleans become ``"true"``/``"false"``,
    lists become the repeated keys, nested mappings are JSON-encoded.
    """
    query: list[tuple[str, str]] = []
    for key, value in (params or {}).items():
        values = value if isinstance(value, (list, tuple, set, frozenset)) else [value]
        for item in values:
            if item is None:
                continue
            elif isinstance(item, bool):
                query.append((key, 'true' if item else 'false'))
            elif isinstance(item, collections.abc.Mapping):
                query.append((key, json.dumps(item, separators=(',', ':'))))
            else:
                query.append((key, str(item)))
    return query


class Client:
    """
    The default transport: an ``aiohttp`` session with the settings & logging.

    Used as an async context manager, it also becomes the current transport
    for the resources used within it::

        async with attio.Client(api_key='...'):
            record = await attio.Record.retrieve('rec_1', object='people')
    """

    def __init__(
            self,
            api_key: Optional[str] = None,
            *,
            settings: Optional[configuration.ClientSettings] = None,
            session: Optional[aiohttp.ClientSession] = None,
            logger: Optional[typedefs.Logger] = None,
    ) -> None:
        super().__init__()
        self.settings = settings if settings is not None else configuration.ClientSettings.from_env()
        if api_key is not None:
            self.settings.auth.api_key = api_key
        self.logger: typedefs.Logger = logger if logger is not None else logging.getLogger('attio.client')
        self._session = session
        self._context: Optional[auth.APIContext] = None
        self._tokens: list[tuple[Token[Transport], Token[auth.APIContext]]] = []

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self.settings.auth.base_url!r})'

    @property
    def closed(self) -> bool:
        return self._context is None

    async def open(self) -> None:
        if self._context is None:
            self.settings.validate()
            self._context = auth.APIContext(self.settings, session=self._session)

    async def close(self) -> None:
        if self._context is not None:
            context, self._context = self._context, None
            await context.close()

    async def __aenter__(self) -> "Client":
        await self.open()
        assert self._context is not None
        self._tokens.append((transport_var.set(self), auth.context_var.set(self._context)))
        return self

    async def __aexit__(
            self,
            exc_type: Optional[type[BaseException]],
            exc_val: Optional[BaseException],
            exc_tb: Optional[TracebackType],
    ) -> None:
        transport_token, context_token = self._tokens.pop()
        auth.context_var.reset(context_token)
        transport_var.reset(transport_token)
        if not self._tokens:
            await self.close()

    async def execute_request(
            self,
            method: str,
            path: str,
            params: Optional[Mapping[str, Any]] = None,
            options: Optional[RequestOptions] = None,
    ) -> Any:
        if self._context is None:
            raise RuntimeError("The client is not open: use it as `async with client:` or open it.")

        method = method.upper()
        options = options or {}

        headers: dict[str, str] = dict(options.get('headers') or {})
        if options.get('api_key'):
            headers['Authorization'] = f"Bearer {options['api_key']}"

        timeout: Optional[aiohttp.ClientTimeout] = None
        if options.get('timeout') is not None:
            timeout = aiohttp.ClientTimeout(
                total=options['timeout'],
                sock_connect=self.settings.networking.connect_timeout,
            )

        if method in QUERY_METHODS:
            query = encode_query({**(options.get('query') or {}), **(params or {})})
            payload = None
        else:
            query = encode_query(options.get('query'))
            payload = dict(params) if params is not None else None

        return await api.request(
            method=method,
            path=path,
            params=query or None,
            payload=payload,
            headers=headers or None,
            timeout=timeout,
            idempotent=options.get('idempotent'),
            settings=self.settings,
            context=self._context,
            logger=self.logger,
        )
