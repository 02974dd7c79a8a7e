"""
Verification & parsing of Attio's webhook deliveries.

Every delivery is signed by the webhook's secret: the signature is
``"v1=" + hex(HMAC-SHA256(secret, f"{timestamp}.{body}"))`` and comes in the
``x-attio-signature`` header, with the timestamp in ``x-attio-timestamp``.
The timestamp must be within a tolerance from the current time to prevent
the replays of the old deliveries.

For ``aiohttp`` applications, :class:`WebhookReceiver` serves the deliveries
as a request handler, and passes the verified events to a user function.
"""
import collections.abc
import dataclasses
import hashlib
import hmac
import json
import logging
import time
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

import aiohttp.web

from attio._cogs.structs import exceptions

SIGNATURE_HEADER = 'x-attio-signature'
TIMESTAMP_HEADER = 'x-attio-timestamp'
SIGNATURE_PREFIX = 'v1='
DEFAULT_TOLERANCE = 300  # seconds

logger = logging.getLogger('attio.webhooks')

# The signatures are over the exact bytes of the deliveries, so only the raw bodies can be signed.
Body = Union[str, bytes]
Payload = Union[str, bytes, Mapping[str, Any]]


def _as_text(body: Body) -> str:
    if isinstance(body, bytes):
        try:
            return body.decode('utf-8')
        except UnicodeDecodeError as e:
            raise exceptions.SignatureVerificationError(f"The payload is not UTF-8: {e}") from e
    elif isinstance(body, str):
        return body
    else:
        raise TypeError(f"The payload must be the raw body as str or bytes, got {type(body).__name__}.")


def calculate_signature(payload: Body, timestamp: Union[str, int], secret: str) -> str:
    signed = f"{timestamp}.{_as_text(payload)}"
    digest = hmac.new(secret.encode('utf-8'), signed.encode('utf-8'), hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(
        payload: Optional[Body],
        signature: Optional[str],
        timestamp: Optional[Union[str, int]],
        secret: Optional[str],
        *,
        tolerance: Optional[float] = DEFAULT_TOLERANCE,
        now: Optional[float] = None,
) -> None:
    """
    Verify a webhook delivery, or raise :class:`SignatureVerificationError`.

    The payload must be the raw body exactly as delivered: a re-serialized
    JSON would not match the signature.

    ``tolerance=None`` disables the timestamp check (e.g. for the replays).
    """
    if payload is None:
        raise exceptions.SignatureVerificationError("The payload is missing.")
    if not signature:
        raise exceptions.SignatureVerificationError("The signature is missing.")
    if timestamp is None or timestamp == '':
        raise exceptions.SignatureVerificationError("The timestamp is missing.")
    if not secret:
        raise exceptions.SignatureVerificationError("The secret is missing.")

    try:
        seconds = int(timestamp)
    except ValueError as e:
        raise exceptions.SignatureVerificationError(f"The timestamp is malformed: {timestamp!r}") from e

    if tolerance is not None:
        current = time.time() if now is None else now
        if seconds < current - tolerance:
            raise exceptions.SignatureVerificationError("The timestamp is too old.")
        if seconds > current + tolerance:
            raise exceptions.SignatureVerificationError("The timestamp is too far in the future.")

    expected = calculate_signature(payload, timestamp, secret)
    if not hmac.compare_digest(signature.encode('utf-8'), expected.encode('utf-8')):
        raise exceptions.SignatureVerificationError("The signature does not match.")


def is_valid_signature(
        payload: Optional[Body],
        signature: Optional[str],
        timestamp: Optional[Union[str, int]],
        secret: Optional[str],
        **kwargs: Any,
) -> bool:
    try:
        verify_signature(payload, signature, timestamp, secret, **kwargs)
    except exceptions.SignatureVerificationError:
        return False
    else:
        return True


def extract_from_headers(headers: Mapping[str, str]) -> tuple[str, str]:
    """
    Get the signature & the timestamp from the headers, case-insensitively.

    Also accepts the CGI-style names (``HTTP_X_ATTIO_SIGNATURE``).
    """
    normalized = {key.lower().replace('_', '-').removeprefix('http-'): val for key, val in headers.items()}
    signature = normalized.get(SIGNATURE_HEADER)
    timestamp = normalized.get(TIMESTAMP_HEADER)
    if not signature:
        raise exceptions.SignatureVerificationError(f"Missing signature header: {SIGNATURE_HEADER}")
    if not timestamp:
        raise exceptions.SignatureVerificationError(f"Missing timestamp header: {TIMESTAMP_HEADER}")
    return signature, timestamp


@dataclasses.dataclass(frozen=True)
class WebhookEvent:
    event_type: Optional[str]
    id: Optional[Mapping[str, Any]]
    actor: Optional[Mapping[str, Any]]
    payload: Mapping[str, Any]
    webhook_id: Optional[str] = None

    @classmethod
    def parse(cls, body: Payload) -> "WebhookEvent":
        """
        Parse a delivery body into an event (the first one if there are many).
        """
        try:
            data = json.loads(_as_text(body)) if not isinstance(body, collections.abc.Mapping) else body
        except json.JSONDecodeError as e:
            raise exceptions.SignatureVerificationError(f"Invalid JSON payload: {e}") from e
        if not isinstance(data, collections.abc.Mapping):
            raise exceptions.SignatureVerificationError(f"Invalid payload: {data!r}")

        # The deliveries can batch several events for one webhook.
        events = data.get('events')
        event = events[0] if isinstance(events, list) and events else data
        return cls(
            event_type=event.get('event_type'),
            id=event.get('id'),
            actor=event.get('actor'),
            payload=event,
            webhook_id=data.get('webhook_id'),
        )

    @classmethod
    def parse_all(cls, body: Payload) -> list["WebhookEvent"]:
        data = json.loads(_as_text(body)) if not isinstance(body, collections.abc.Mapping) else body
        events = data.get('events') if isinstance(data, collections.abc.Mapping) else None
        if not isinstance(events, list):
            return [cls.parse(data)]
        return [dataclasses.replace(cls.parse(event), webhook_id=data.get('webhook_id')) for event in events]


EventFn = Callable[[WebhookEvent], Awaitable[None]]


class WebhookReceiver:
    """
    An ``aiohttp.web`` request handler for the signed webhook deliveries.

    Usage::

        receiver = WebhookReceiver(secret, on_event)
        app.add_routes([aiohttp.web.post('/attio', receiver.handle)])
    """

    def __init__(self, secret: str, fn: EventFn, *, tolerance: Optional[float] = DEFAULT_TOLERANCE) -> None:
        super().__init__()
        if not secret:
            raise exceptions.ConfigurationError("A webhook secret is required.")
        self.secret = secret
        self.fn = fn
        self.tolerance = tolerance

    async def handle(self, request: aiohttp.web.Request) -> aiohttp.web.Response:
        text = await request.text()
        try:
            signature, timestamp = extract_from_headers(request.headers)
            verify_signature(text, signature, timestamp, self.secret, tolerance=self.tolerance)
            events = WebhookEvent.parse_all(text)
        except exceptions.SignatureVerificationError as e:
            logger.warning(f"Rejected a webhook delivery: {e}")
            raise aiohttp.web.HTTPUnauthorized(reason=str(e))
        except json.JSONDecodeError as e:
            raise aiohttp.web.HTTPBadRequest(reason=str(e))

        for event in events:
            await self.fn(event)
        return aiohttp.web.json_response({'received': len(events)})
