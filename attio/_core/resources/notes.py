from typing import Any, Mapping, Optional

from attio._cogs.clients import transports
from attio._cogs.structs import capabilities, exceptions
from attio._core.resources import base, pages

FORMATS = frozenset({'plaintext', 'markdown'})


class Note(base.APIResource):
    """
    A note on a record. The notes cannot be edited, only created & deleted.
    """
    RESOURCE = 'note'
    ID_KEY = 'note_id'
    PATH = 'notes'
    CAPABILITIES = capabilities.Capability.IMMUTABLE

    parent_object = base.Field()
    parent_record_id = base.Field()
    title = base.Field()
    format = base.Field(default='plaintext')
    content = base.Field()
    content_plaintext = base.Field(readonly=True)
    content_markdown = base.Field(readonly=True)
    created_by_actor = base.Field(readonly=True)

    @classmethod
    def prepare_create(cls, attributes: Mapping[str, Any]) -> dict[str, Any]:
        prepared = dict(attributes)
        prepared.setdefault('format', 'plaintext')
        return prepared

    @classmethod
    def validate_create(cls, attributes: Mapping[str, Any], **extras: Any) -> None:
        missing = [name for name in ['parent_object', 'parent_record_id', 'title'] if not attributes.get(name)]
        if missing:
            raise exceptions.InvalidRequestError(f"A note requires: {', '.join(missing)}.")
        content = attributes.get('content')
        if not isinstance(content, str) or not content.strip():
            raise exceptions.InvalidRequestError("A note requires a non-empty content.")
        if attributes.get('format') not in FORMATS:
            raise exceptions.InvalidRequestError(
                f"Invalid note format: {attributes.get('format')!r}. Valid formats: {', '.join(sorted(FORMATS))}.")

    @classmethod
    async def for_record(
            cls,
            *,
            object: str,
            record_id: str,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
            **kwargs: Any,
    ) -> pages.ListPage["Note"]:
        params = {'parent_object': object, 'parent_record_id': record_id}
        return await cls.list(params, transport=transport, options=options, **kwargs)

    @property
    def text(self) -> str:
        return self.content_plaintext or self.content or ''
