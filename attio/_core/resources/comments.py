import collections.abc
import datetime
from typing import Any, Mapping, Optional

from attio._cogs.structs import capabilities, exceptions
from attio._core.resources import base

# The targets of a comment: exactly one of them must be given.
TARGETS = ('thread_id', 'record', 'entry')


class Comment(base.APIResource):
    """
    A comment on a record, on a list entry, or in an existing thread.

    The comments cannot be edited, only created & deleted.
    """
    RESOURCE = 'comment'
    ID_KEY = 'comment_id'
    PATH = 'comments'
    CAPABILITIES = capabilities.Capability.IMMUTABLE

    content = base.Field()
    format = base.Field(default='plaintext')
    author = base.Field()
    thread_id = base.Field()
    record = base.Field()
    entry = base.Field()
    content_plaintext = base.Field(readonly=True)
    resolved_at = base.Field(readonly=True)
    resolved_by = base.Field(readonly=True)

    @classmethod
    def prepare_create(cls, attributes: Mapping[str, Any]) -> dict[str, Any]:
        prepared = dict(attributes)
        prepared.setdefault('format', 'plaintext')
        return prepared

    @classmethod
    def validate_create(cls, attributes: Mapping[str, Any], **extras: Any) -> None:
        content = attributes.get('content')
        if not isinstance(content, str) or not content.strip():
            raise exceptions.InvalidRequestError("A comment requires a non-empty content.")

        author = attributes.get('author')
        if not isinstance(author, collections.abc.Mapping) or not author.get('type') or not author.get('id'):
            raise exceptions.InvalidRequestError("A comment requires an author with type & id.")

        targets = [target for target in TARGETS if attributes.get(target)]
        if len(targets) != 1:
            raise exceptions.InvalidRequestError(
                f"A comment requires exactly one of {', '.join(TARGETS)}; got: {targets or 'none'}.")

    @property
    def resolved(self) -> bool:
        return self.resolved_at is not None

    @property
    def resolution_time(self) -> Optional[datetime.datetime]:
        return base.parse_timestamp(self.resolved_at)
