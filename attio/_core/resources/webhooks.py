import collections.abc
import urllib.parse
from typing import Any, Mapping, Optional

from attio._cogs.clients import transports
from attio._cogs.structs import capabilities, exceptions
from attio._core.resources import base

# https://developers.attio.com/reference/webhooks
EVENTS = frozenset({
    'comment.created',
    'comment.deleted',
    'comment.resolved',
    'comment.unresolved',
    'list-attribute.created',
    'list-attribute.updated',
    'list-entry.created',
    'list-entry.deleted',
    'list-entry.updated',
    'list.created',
    'list.deleted',
    'list.updated',
    'note-content.updated',
    'note.created',
    'note.deleted',
    'note.updated',
    'object-attribute.created',
    'object-attribute.updated',
    'record.created',
    'record.deleted',
    'record.merged',
    'record.updated',
    'task.created',
    'task.deleted',
    'task.updated',
    'workspace-member.created',
})

ACTIVE = 'active'
PAUSED = 'paused'


class Webhook(base.APIResource):
    RESOURCE = 'webhook'
    ID_KEY = 'webhook_id'
    PATH = 'webhooks'
    CAPABILITIES = capabilities.Capability.ALL

    target_url = base.Field()
    subscriptions = base.Field(default=())
    status = base.Field()
    secret = base.Field(readonly=True)

    @classmethod
    def prepare_create(cls, attributes: Mapping[str, Any]) -> dict[str, Any]:
        prepared = dict(attributes)
        subscriptions = prepared.get('subscriptions')
        if isinstance(subscriptions, (list, tuple)):
            prepared['subscriptions'] = [
                dict(subscription, filter=subscription.get('filter'))
                if isinstance(subscription, collections.abc.Mapping) else subscription
                for subscription in subscriptions
            ]
        return prepared

    @classmethod
    def validate_create(cls, attributes: Mapping[str, Any], **extras: Any) -> None:
        target_url = attributes.get('target_url')
        if not isinstance(target_url, str) or not target_url:
            raise exceptions.InvalidRequestError("A webhook requires a target_url.")
        parsed = urllib.parse.urlparse(target_url)
        if parsed.scheme != 'https' or not parsed.netloc:
            raise exceptions.InvalidRequestError(f"A webhook target_url must be an HTTPS URL, got {target_url!r}.")

        subscriptions = attributes.get('subscriptions')
        if not isinstance(subscriptions, (list, tuple)) or not subscriptions:
            raise exceptions.InvalidRequestError("A webhook requires a non-empty list of subscriptions.")
        for subscription in subscriptions:
            event_type = subscription.get('event_type') if isinstance(subscription, collections.abc.Mapping) else None
            if not event_type:
                raise exceptions.InvalidRequestError(f"A subscription requires an event_type, got {subscription!r}.")
            if event_type not in EVENTS:
                raise exceptions.InvalidRequestError(f"Unknown webhook event type: {event_type!r}.")

    @property
    def event_types(self) -> list[str]:
        return [sub.get('event_type') for sub in self.subscriptions or () if isinstance(sub, collections.abc.Mapping)]

    @property
    def active(self) -> bool:
        return self.status == ACTIVE

    @property
    def paused(self) -> bool:
        return self.status == PAUSED

    async def pause(
            self,
            *,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
    ) -> "Webhook":
        self.status = PAUSED
        await self.save(transport=transport, options=options)
        return self

    async def resume(
            self,
            *,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
    ) -> "Webhook":
        self.status = ACTIVE
        await self.save(transport=transport, options=options)
        return self
