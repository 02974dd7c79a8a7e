"""
Attio API errors.

The underlying client library (now, ``aiohttp``) can be replaced in the future.
We cannot rely on embedding its exceptions all over the code in the client.
Hence, we have our own hierarchy of exceptions for the API errors.

The original errors of the client library are chained as the causes of our own
specialised errors -- for better explainability of errors in the stack traces.

Some selected statuses of the API errors are made into their own classes,
so that they could be intercepted and handled separately by the callers:
e.g. the validation errors, the absent resources, the rate limiting.
All other statuses are raised as the base classes of the 4xx & 5xx ranges
and are indistinguishable from each other (except via the exception's fields).

Unlike the underlying client library's errors, the API errors contain more
information about the reasons -- as provided by the API in its response bodies,
not guessed only by HTTP statuses alone: the error type & code, the message,
the failed fields of the validation errors.
"""
import collections.abc
import datetime
import email.utils
import json
from typing import Any, Collection, Mapping, Optional

import aiohttp
from typing_extensions import TypedDict

from attio._cogs.structs import exceptions


class RawValidationError(TypedDict, total=False):
    code: str
    path: Collection[str]
    message: str
    expected: Any
    received: Any


# https://developers.attio.com/reference/errors
class RawError(TypedDict, total=False):
    status_code: int
    type: str
    code: str
    message: str
    validation_errors: Collection[RawValidationError]


class APIError(exceptions.AttioError):

    def __init__(
            self,
            payload: Optional[RawError],
            *,
            status: int,
            method: Optional[str] = None,
            path: Optional[str] = None,
            request_id: Optional[str] = None,
            retry_after: Optional[float] = None,
    ) -> None:
        message = payload.get('message') if payload else None
        super().__init__(message, payload)
        self._status = status
        self._payload = payload
        self._method = method.upper() if method else None
        self._path = path
        self._request_id = request_id
        self._retry_after = retry_after

    def __str__(self) -> str:
        what = f"{self._method or '?'} {self._path or '?'}"
        code = f" ({self.code})" if self.code else ""
        return f"{self.message or 'Unknown error'}{code}; status={self._status}; {what}"

    @property
    def status(self) -> int:
        return self._status

    @property
    def payload(self) -> Optional[RawError]:
        return self._payload

    @property
    def type(self) -> Optional[str]:
        return self._payload.get('type') if self._payload else None

    @property
    def code(self) -> Optional[str]:
        return self._payload.get('code') if self._payload else None

    @property
    def message(self) -> Optional[str]:
        return self._payload.get('message') if self._payload else None

    @property
    def validation_errors(self) -> Collection[RawValidationError]:
        errors = self._payload.get('validation_errors') if self._payload else None
        return errors if isinstance(errors, list) else []

    @property
    def method(self) -> Optional[str]:
        return self._method

    @property
    def path(self) -> Optional[str]:
        return self._path

    @property
    def request_id(self) -> Optional[str]:
        return self._request_id

    @property
    def retry_after(self) -> Optional[float]:
        return self._retry_after


class APIClientError(APIError):
    pass


class APIBadRequestError(APIClientError):
    pass


class APIValidationError(APIBadRequestError):

    @property
    def fields(self) -> list[str]:
        """ The paths of the failed fields, dot-joined for the nested ones. """
        fields: list[str] = []
        for error in self.validation_errors:
            path = error.get('path') if isinstance(error, collections.abc.Mapping) else None
            if isinstance(path, str):
                fields.append(path)
            elif isinstance(path, collections.abc.Iterable):
                fields.append('.'.join(str(part) for part in path))
        return fields


class APIUnauthorizedError(APIClientError):
    pass


class APIForbiddenError(APIClientError):
    pass


class APINotFoundError(APIClientError):
    pass


class APIConflictError(APIClientError):
    pass


class APIRateLimitedError(APIClientError):
    pass


class APIServerError(APIError):
    pass


class APIServiceUnavailableError(APIServerError):
    pass


def build_error(
        status: int,
        payload: Any,
        *,
        method: Optional[str] = None,
        path: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
) -> APIError:
    """
    Map an HTTP status & the response body to a specialised API error.

    The bodies can come either flat or nested under the ``error`` key;
    anything that is not a mapping is treated as no body at all.
    """
    if isinstance(payload, collections.abc.Mapping) and isinstance(payload.get('error'), collections.abc.Mapping):
        payload = payload['error']
    if not isinstance(payload, collections.abc.Mapping):
        payload = None

    has_validation = bool(payload and isinstance(payload.get('validation_errors'), list) and payload['validation_errors'])
    cls: type[APIError] = (
        APIValidationError if status in (400, 422) and has_validation else
        APIBadRequestError if status == 400 else
        APIUnauthorizedError if status == 401 else
        APIForbiddenError if status == 403 else
        APINotFoundError if status == 404 else
        APIConflictError if status == 409 else
        APIRateLimitedError if status == 429 else
        APIServiceUnavailableError if status == 503 else
        APIServerError if status >= 500 else
        APIClientError
    )

    headers = {key.lower(): val for key, val in (headers or {}).items()}
    return cls(
        payload,  # type: ignore[arg-type]
        status=status,
        method=method,
        path=path,
        request_id=headers.get('x-request-id'),
        retry_after=parse_retry_after(headers.get('retry-after')),
    )


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """
    Parse the ``Retry-After`` header: either delta-seconds or an HTTP date.
    """
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=datetime.timezone.utc)
    return max(0.0, (when - datetime.datetime.now(datetime.timezone.utc)).total_seconds())


async def check_response(
        response: aiohttp.ClientResponse,
        *,
        method: Optional[str] = None,
        path: Optional[str] = None,
) -> None:
    """
    Check for the API errors, and raise with extended information.
    """
    if response.status >= 400:

        # Read the response's body before it is closed by raise_for_status().
        payload: Any
        try:
            payload = await response.json(content_type=None)
        except (json.JSONDecodeError, aiohttp.ContentTypeError, aiohttp.ClientConnectionError, UnicodeDecodeError):
            payload = None

        error = build_error(
            response.status,
            payload,
            method=method or response.method,
            path=path or response.url.path,
            headers=response.headers,
        )

        # Raise the client-specific error while keeping the original error in scope.
        # This call also closes the response's body, so it cannot be read afterwards.
        try:
            response.raise_for_status()
        except aiohttp.ClientResponseError as e:
            raise error from e


async def parse_response(
        response: aiohttp.ClientResponse,
) -> Any:
    """
    Read the successful response: the parsed JSON, or an empty dict if no body.
    """
    body = await response.read()
    if not body.strip():
        return {}
    return json.loads(body)
