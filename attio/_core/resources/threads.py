from typing import Any, Mapping, Optional, Sequence

from attio._cogs.clients import transports
from attio._cogs.structs import capabilities, exceptions
from attio._core.resources import base, pages


class Thread(base.APIResource):
    """
    A thread of comments on a record or on a list entry. Read-only.
    """
    RESOURCE = 'thread'
    ID_KEY = 'thread_id'
    PATH = 'threads'
    CAPABILITIES = capabilities.Capability.READ_ONLY

    comments = base.Field(readonly=True, default=())

    @classmethod
    async def for_record(
            cls,
            *,
            object: str,
            record_id: str,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
            **kwargs: Any,
    ) -> pages.ListPage["Thread"]:
        params = {'object': object, 'record_id': record_id}
        return await cls.list(params, transport=transport, options=options, **kwargs)

    @classmethod
    async def for_entry(
            cls,
            *,
            list: str,
            entry_id: str,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
            **kwargs: Any,
    ) -> pages.ListPage["Thread"]:
        params = {'list': list, 'entry_id': entry_id}
        return await cls.list(params, transport=transport, options=options, **kwargs)

    @classmethod
    def validate_list(cls, params: Mapping[str, Any]) -> None:
        by_record = params.get('object') and params.get('record_id')
        by_entry = params.get('list') and params.get('entry_id')
        if not by_record and not by_entry:
            raise exceptions.InvalidRequestError(
                "Threads are listed either by object & record_id, or by list & entry_id.")

    @property
    def comment_count(self) -> int:
        return len(self.comments or ())

    @property
    def first_comment(self) -> Optional[Mapping[str, Any]]:
        comments: Sequence[Mapping[str, Any]] = self.comments or ()
        return comments[0] if comments else None

    @property
    def last_comment(self) -> Optional[Mapping[str, Any]]:
        comments: Sequence[Mapping[str, Any]] = self.comments or ()
        return comments[-1] if comments else None
