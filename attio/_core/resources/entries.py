"""
List entries: the records added to the lists, with the list-specific values.

The entries live under their lists, so the list's id or slug is needed
for every request: either explicitly as ``list=``, or from the entry's
composite identifier (which contains the ``list_id`` scope).
"""
from typing import Any, Mapping, Optional, TypeVar

from attio._cogs.clients import transports
from attio._cogs.structs import capabilities, exceptions, identifiers
from attio._core.resources import base

_E = TypeVar('_E', bound='Entry')


class Entry(base.APIResource):
    RESOURCE = 'entry'
    ID_KEY = 'entry_id'
    PATH = 'lists/{list}/entries'
    CONTEXT = {'list': 'list_id'}
    EXTRAS = ('parent_record_id', 'parent_object')
    CAPABILITIES = capabilities.Capability.ALL
    VALUES_KEY = 'entry_values'
    QUERY_LISTING = True

    def __init__(
            self,
            __attributes: Optional[Mapping[str, Any]] = None,
            *,
            list: Optional[str] = None,
            parent_record_id: Optional[str] = None,
            parent_object: Optional[str] = None,
            context: Optional[Mapping[str, Any]] = None,
            extras: Optional[Mapping[str, Any]] = None,
            **kwargs: Any,
    ) -> None:
        context = dict(context or {}, **({'list': list} if list is not None else {}))
        extras = dict(extras or {}, parent_record_id=parent_record_id, parent_object=parent_object)
        super().__init__(__attributes, context=context, extras=extras, **kwargs)

    @classmethod
    def validate_create(cls, attributes: Mapping[str, Any], **extras: Any) -> None:
        missing = [name for name in cls.EXTRAS if not extras.get(name)]
        if missing:
            raise exceptions.InvalidRequestError(f"An entry requires: {', '.join(missing)}.")

    @property
    def parent_record_id(self) -> Optional[str]:
        return self._metadata.get('parent_record_id') or self._extras.get('parent_record_id')

    @property
    def parent_object(self) -> Optional[str]:
        return self._metadata.get('parent_object') or self._extras.get('parent_object')

    @property
    def list_id(self) -> Optional[str]:
        if self._context.get('list') is not None:
            return str(self._context['list'])
        identifier = self._id
        return identifier.get('list_id') if isinstance(identifier, identifiers.CompositeId) else None

    @classmethod
    async def assert_(
            cls: type[_E],
            attributes: Mapping[str, Any],
            *,
            parent_record_id: str,
            parent_object: str,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
            **context: Any,
    ) -> _E:
        """
        Add the record to the list, or update its existing entry ("upsert").
        """
        cls.require(capabilities.Capability.CREATE | capabilities.Capability.UPDATE, 'assert')
        extras = dict(parent_record_id=parent_record_id, parent_object=parent_object)
        cls.validate_create(attributes, **extras)
        path = cls.collection_path(None, context)
        payload = cls.build_payload(attributes, **extras)
        transport = transports.get_transport(transport)
        response = await transport.execute_request('PUT', path, payload, options)
        return cls.from_wire(response, transport=transport, context=context)
