import asyncio
import collections.abc
import itertools
import random
from typing import Any, Mapping, Optional, Sequence

import aiohttp

from attio._cogs.clients import auth, errors
from attio._cogs.configs import configuration
from attio._cogs.helpers import typedefs

# The methods that can be safely repeated if it is unknown whether they were executed.
IDEMPOTENT_METHODS = frozenset({'GET', 'HEAD', 'PUT', 'DELETE', 'OPTIONS'})

# The errors that happen before the server processes the request, so they are always retryable.
ALWAYS_RETRYABLE = (errors.APIRateLimitedError, errors.APIServiceUnavailableError)

# The errors where the server might or might not have executed the request.
AMBIGUOUS_ERRORS = (aiohttp.ClientConnectionError, errors.APIServerError, asyncio.TimeoutError)

RETRYABLE_ERRORS = ALWAYS_RETRYABLE + AMBIGUOUS_ERRORS

# The already encoded query parameters, with the repeated keys for the lists.
Query = Sequence[tuple[str, str]]


@auth.authenticated
async def request(
        method: str,
        path: str,  # relative to the server/api root.
        *,
        settings: configuration.ClientSettings,
        params: Optional[Query] = None,
        payload: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        idempotent: Optional[bool] = None,
        context: Optional[auth.APIContext] = None,  # injected by the decorator
        logger: typedefs.Logger,
) -> Any:
    if context is None:  # for type-checking!
        raise RuntimeError("API instance is not injected by the decorator.")

    url = context.make_url(path)
    method = method.upper()
    idempotent = method in IDEMPOTENT_METHODS if idempotent is None else idempotent

    if timeout is None:
        timeout = aiohttp.ClientTimeout(
            total=settings.networking.request_timeout,
            sock_connect=settings.networking.connect_timeout,
        )

    backoffs = settings.networking.error_backoffs
    backoffs = backoffs if isinstance(backoffs, collections.abc.Iterable) else [backoffs]
    count = len(backoffs) + 1 if isinstance(backoffs, collections.abc.Sized) else None
    backoff: Optional[float]
    for retry, backoff in enumerate(itertools.chain(backoffs, [None]), start=1):
        idx = f"#{retry}/{count}" if count is not None else f"#{retry}"
        what = f"{method} {url}"
        try:
            if retry > 1:
                logger.debug(f"Request attempt {idx}: {what}")

            response = await context.session.request(
                method=method,
                url=url,
                params=params,
                json=payload,
                headers={**context.headers, **(headers or {})} or None,
                timeout=timeout,
            )
            async with response:
                await errors.check_response(response, method=method, path=path)
                result = await errors.parse_response(response)

        except RETRYABLE_ERRORS as e:
            retryable = isinstance(e, ALWAYS_RETRYABLE) or idempotent
            if backoff is None or not retryable:  # i.e. the last or the only attempt.
                logger.error(f"Request attempt {idx} failed; escalating: {what} -> {e!r}")
                raise
            else:
                delay = get_delay(backoff, e, settings=settings)
                logger.error(f"Request attempt {idx} failed; will retry in {delay:.2f}s: {what} -> {e!r}")
                await asyncio.sleep(delay)  # non-awakable! but still cancellable.
        else:
            if retry > 1:
                logger.debug(f"Request attempt {idx} succeeded: {what}")
            return result

    raise RuntimeError("Broken retryable routine.")  # impossible, but needed for type-checking.


def get_delay(
        backoff: float,
        exc: BaseException,
        *,
        settings: configuration.ClientSettings,
) -> float:
    """
    The delay before the next attempt: the configured or server-suggested one, jittered.
    """
    delay = float(backoff)
    retry_after = exc.retry_after if isinstance(exc, errors.APIError) else None
    if retry_after is not None:
        delay = max(delay, min(retry_after, settings.networking.max_retry_after))
    jitter = settings.networking.backoff_jitter
    if jitter and delay:
        delay *= random.uniform(1 - jitter, 1 + jitter)
    return max(0.0, delay)
