import functools
from collections.abc import Callable
from contextvars import ContextVar
from typing import Any, TypeVar, cast

import aiohttp

from attio._cogs.configs import configuration
from attio._cogs.helpers import versions

# The API context of the currently active client, if any.
# Used by the requesting routines when no context is passed explicitly.
context_var: ContextVar['APIContext'] = ContextVar('context_var')

# A typevar to show that we return a function with the same signature as given.
_F = TypeVar('_F', bound=Callable[..., Any])


def authenticated(fn: _F) -> _F:
    """
    A decorator to inject a pre-authenticated session to a requesting routine.

    If a context is explicitly passed, it is used as is. Otherwise, the context
    of the currently active client is injected (see :class:`attio.Client`).
    """
    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        if kwargs.get('context') is None:
            context = context_var.get(None)
            if context is None:
                raise RuntimeError("No API context: use the requests within an active client.")
            kwargs['context'] = context
        return await fn(*args, **kwargs)

    return cast(_F, wrapper)


class APIContext:
    """
    A container for an aiohttp session and the info for URL building.

    The container is constructed once per client and lives as long as
    the client is open. We assume that the whole client runs in the same
    event loop, so there is no need to split the sessions for multiple loops.
    """

    # The main contained object used by the API methods.
    session: aiohttp.ClientSession

    # Contextual information for URL building.
    base_url: str

    def __init__(
            self,
            settings: configuration.ClientSettings,
            *,
            session: aiohttp.ClientSession | None = None,
    ) -> None:
        super().__init__()
        self.session = session if session is not None else self.make_aiohttp_session(settings)
        self.base_url = settings.auth.base_url
        self._own_session = session is None

        # The user-provided sessions are not modified with our credentials, so they go per request.
        self.headers: dict[str, str] = {}
        if not self._own_session and settings.auth.api_key:
            self.headers['Authorization'] = f'Bearer {settings.auth.api_key}'

        # Self-identify unless the session already has its own user agent.
        if self.session.headers.get('User-Agent') is None:
            self.session.headers['User-Agent'] = f'attio-client/{versions.version or "unknown"}'

    def make_aiohttp_session(self, settings: configuration.ClientSettings) -> aiohttp.ClientSession:
        headers: dict[str, str] = {'Accept': 'application/json'}
        if settings.auth.api_key:
            headers['Authorization'] = f'Bearer {settings.auth.api_key}'
        return aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(limit=0),
            headers=headers,
        )

    def make_url(self, path: str) -> str:
        if '://' in path:
            return path
        return self.base_url.rstrip('/') + '/' + path.lstrip('/')

    async def close(self) -> None:
        # A user-provided session is closed by its owner, not by us.
        if self._own_session:
            await self.session.close()
