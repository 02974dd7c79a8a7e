from typing import Any, Mapping, Optional

from attio._cogs.structs import capabilities, exceptions
from attio._core.resources import base, entries, pages


class List(base.APIResource):
    """
    A list: a collection of records of one object, with its own attributes.
    """
    RESOURCE = 'list'
    ID_KEY = 'list_id'
    PATH = 'lists'
    CAPABILITIES = capabilities.Capability.ALL

    name = base.Field()
    api_slug = base.Field()
    parent_object = base.Field()
    workspace_access = base.Field()
    workspace_member_access = base.Field()
    created_by_actor = base.Field(readonly=True)

    @classmethod
    def validate_create(cls, attributes: Mapping[str, Any], **extras: Any) -> None:
        missing = [name for name in ['name', 'parent_object'] if not attributes.get(name)]
        if missing:
            raise exceptions.InvalidRequestError(f"A list requires: {', '.join(missing)}.")

    @property
    def slug_or_id(self) -> str:
        return self.scalar_id or self.api_slug or ''

    async def entries(
            self,
            params: Optional[Mapping[str, Any]] = None,
            **kwargs: Any,
    ) -> pages.ListPage[entries.Entry]:
        kwargs.setdefault('transport', self._transport)
        return await entries.Entry.list(params, list=self.slug_or_id, **kwargs)

    async def add_record(
            self,
            record_id: str,
            *,
            object: str,
            values: Optional[Mapping[str, Any]] = None,
            **kwargs: Any,
    ) -> "entries.Entry":
        kwargs.setdefault('transport', self._transport)
        return await entries.Entry.create(
            values, list=self.slug_or_id, parent_record_id=record_id, parent_object=object, **kwargs)

    async def remove_entry(self, entry_id: str, **kwargs: Any) -> bool:
        kwargs.setdefault('transport', self._transport)
        return await entries.Entry.delete(entry_id, list=self.slug_or_id, **kwargs)

    async def contains_record(self, record_id: str, **kwargs: Any) -> bool:
        page = await self.entries(filter={'record_id': record_id}, limit=1, **kwargs)
        return bool(page)
