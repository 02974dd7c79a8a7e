"""
All configuration flags, options, settings to fine-tune the client.

All settings are grouped semantically just for convenience
(instead of a flat mega-object with all the values in it).

Some of the settings are flags, some are scalars, some are optional,
some are not (but all of them have reasonable defaults, except the API key).

The settings can be constructed directly, or from the environment variables
(see :meth:`ClientSettings.from_env`), and modified at runtime between requests.
"""
import collections.abc
import dataclasses
import os
from typing import Iterable, Mapping, Optional, Union

from attio._cogs.structs import exceptions

DEFAULT_SERVER = 'https://api.attio.com'
DEFAULT_API_VERSION = 'v2'


@dataclasses.dataclass
class AuthSettings:
    """
    Settings for authenticating to Attio's API.
    """

    api_key: Optional[str] = dataclasses.field(default=None, repr=False)
    """
    The API key or an OAuth access token, sent as a bearer token.

    It can be overridden per request with the ``api_key`` request option,
    e.g. when acting on behalf of several workspaces with their own tokens.
    """

    server: str = DEFAULT_SERVER
    """
    The root URL of the API server, without the API version.
    """

    api_version: str = DEFAULT_API_VERSION
    """
    The API version, used as a prefix of all relative resource paths.
    """

    @property
    def base_url(self) -> str:
        return f"{self.server.rstrip('/')}/{self.api_version.strip('/')}"


@dataclasses.dataclass
class NetworkingSettings:
    """
    Settings for the low-level HTTP communication with the API.
    """

    request_timeout: Optional[float] = 30
    """
    A total timeout of a single request attempt, in seconds (``None`` for none).

    The retries have their own timeouts, so the whole retried call
    can take longer than that, up to the sum of all attempts and all backoffs.
    """

    connect_timeout: Optional[float] = 10
    """
    A timeout of establishing a connection to the server, in seconds.
    """

    error_backoffs: Union[float, Iterable[float]] = (1, 2, 4, 8)
    """
    Backoffs in seconds before the retries of the failed requests.

    The length of the sequence defines the number of retries: e.g. 4 backoffs
    mean 5 attempts in total. A single number means one retry. An empty
    collection disables the retries completely.

    Only the rate-limited & temporarily unavailable responses are retried
    for all requests. Other server errors and the network errors are retried
    only for the idempotent requests, since it is unknown whether the server
    has executed the failed request or not.
    """

    backoff_jitter: float = 0.1
    """
    A relative jitter of the backoffs: e.g. 0.1 is ±10% of every delay.
    """

    max_retry_after: float = 300
    """
    The maximum delay accepted from the server's ``Retry-After`` header.

    The server-suggested delay is used instead of the configured backoff
    if it is longer, but never longer than this cap.
    """


@dataclasses.dataclass
class ClientSettings:
    auth: AuthSettings = dataclasses.field(default_factory=AuthSettings)
    networking: NetworkingSettings = dataclasses.field(default_factory=NetworkingSettings)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientSettings":
        """
        Build the settings from the ``ATTIO_*`` environment variables.

        The unset variables keep the defaults. ``ATTIO_MAX_RETRIES`` produces
        an exponential series of backoffs of that length: 1, 2, 4, 8, etc.
        """
        environ = os.environ if environ is None else environ
        settings = cls()
        settings.auth.api_key = environ.get('ATTIO_API_KEY') or None
        settings.auth.server = environ.get('ATTIO_API_BASE') or settings.auth.server
        settings.auth.api_version = environ.get('ATTIO_API_VERSION') or settings.auth.api_version
        if environ.get('ATTIO_TIMEOUT'):
            settings.networking.request_timeout = _parse_float(environ, 'ATTIO_TIMEOUT')
        if environ.get('ATTIO_OPEN_TIMEOUT'):
            settings.networking.connect_timeout = _parse_float(environ, 'ATTIO_OPEN_TIMEOUT')
        if environ.get('ATTIO_MAX_RETRIES'):
            retries = _parse_int(environ, 'ATTIO_MAX_RETRIES')
            settings.networking.error_backoffs = tuple(2 ** idx for idx in range(retries))
        settings.validate()
        return settings

    def validate(self) -> None:
        networking = self.networking
        for name in ['request_timeout', 'connect_timeout']:
            value = getattr(networking, name)
            if value is not None and value <= 0:
                raise exceptions.ConfigurationError(f"The {name} must be positive, got {value!r}.")

        backoffs = networking.error_backoffs
        backoffs = backoffs if isinstance(backoffs, collections.abc.Iterable) else [backoffs]
        if isinstance(backoffs, collections.abc.Collection) and any(b < 0 for b in backoffs):
            raise exceptions.ConfigurationError(f"The backoffs must be non-negative, got {backoffs!r}.")

        if not 0 <= networking.backoff_jitter < 1:
            raise exceptions.ConfigurationError(
                f"The backoff jitter must be in [0, 1), got {networking.backoff_jitter!r}.")
        if networking.max_retry_after < 0:
            raise exceptions.ConfigurationError(
                f"The max retry-after must be non-negative, got {networking.max_retry_after!r}.")
        if not self.auth.server.startswith(('http://', 'https://')):
            raise exceptions.ConfigurationError(f"The server must be an HTTP(S) URL, got {self.auth.server!r}.")


def _parse_float(environ: Mapping[str, str], name: str) -> float:
    try:
        return float(environ[name])
    except ValueError as e:
        raise exceptions.ConfigurationError(f"{name} must be a number, got {environ[name]!r}.") from e


def _parse_int(environ: Mapping[str, str], name: str) -> int:
    try:
        value = int(environ[name])
    except ValueError as e:
        raise exceptions.ConfigurationError(f"{name} must be an integer, got {environ[name]!r}.") from e
    if value < 0:
        raise exceptions.ConfigurationError(f"{name} must be non-negative, got {value!r}.")
    return value
