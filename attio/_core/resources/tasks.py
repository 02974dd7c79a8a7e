import collections.abc
import datetime
from typing import Any, Mapping, Optional

from attio._cogs.clients import transports
from attio._cogs.structs import capabilities, exceptions
from attio._core.resources import base

FORMATS = frozenset({'plaintext'})


class Task(base.APIResource):
    RESOURCE = 'task'
    ID_KEY = 'task_id'
    PATH = 'tasks'
    CAPABILITIES = capabilities.Capability.ALL

    content = base.Field()
    format = base.Field(default='plaintext')
    deadline_at = base.Field()
    is_completed = base.Field(default=False)
    linked_records = base.Field(default=())
    assignees = base.Field(default=())
    content_plaintext = base.Field(readonly=True)
    created_by_actor = base.Field(readonly=True)

    @classmethod
    def prepare_create(cls, attributes: Mapping[str, Any]) -> dict[str, Any]:
        prepared = dict(attributes)
        prepared.setdefault('format', 'plaintext')
        prepared.setdefault('deadline_at', None)
        prepared.setdefault('is_completed', False)
        prepared.setdefault('linked_records', [])
        prepared.setdefault('assignees', [])
        return prepared

    @classmethod
    def validate_create(cls, attributes: Mapping[str, Any], **extras: Any) -> None:
        content = attributes.get('content')
        if not isinstance(content, str) or not content.strip():
            raise exceptions.InvalidRequestError("A task requires a non-empty content.")
        if attributes.get('format', 'plaintext') not in FORMATS:
            raise exceptions.InvalidRequestError(f"Unsupported task format: {attributes['format']!r}.")

        for linked in attributes.get('linked_records') or []:
            if not isinstance(linked, collections.abc.Mapping):
                raise exceptions.InvalidRequestError(f"A linked record must be a mapping, got {linked!r}.")
            if not linked.get('target_object') or not linked.get('target_record_id'):
                raise exceptions.InvalidRequestError(
                    f"A linked record requires target_object and target_record_id, got {linked!r}.")

        for assignee in attributes.get('assignees') or []:
            if not isinstance(assignee, collections.abc.Mapping):
                raise exceptions.InvalidRequestError(f"An assignee must be a mapping, got {assignee!r}.")
            by_id = assignee.get('referenced_actor_type') and assignee.get('referenced_actor_id')
            by_email = assignee.get('workspace_member_email_address')
            if not by_id and not by_email:
                raise exceptions.InvalidRequestError(
                    "An assignee requires either referenced_actor_type & referenced_actor_id, "
                    f"or workspace_member_email_address, got {assignee!r}.")

    @property
    def deadline(self) -> Optional[datetime.datetime]:
        return base.parse_timestamp(self.deadline_at)

    @property
    def completed(self) -> bool:
        return bool(self.is_completed)

    @property
    def overdue(self) -> bool:
        deadline = self.deadline
        now = datetime.datetime.now(datetime.timezone.utc)
        return not self.completed and deadline is not None and deadline < now

    async def complete(
            self,
            *,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
    ) -> "Task":
        self.is_completed = True
        await self.save(transport=transport, options=options)
        return self
