"""
The generic resource model: identity, attributes, change tracking, and CRUD.

Every resource type declares its paths, its identifier key, its capabilities,
and its known fields; everything else is generic and implemented here once:

* the construction of instances from the wire payloads (with the values
  ingested by the attribute specs of the declared fields, if any);
* the egress of the values for the create & update requests;
* the resolution of the identifiers & cross-resource contexts for the paths;
* the capability checks -- before any request is made;
* the partial updates of only the changed attributes on :meth:`APIResource.save`.

The resources do not know how the requests are delivered: they only use
a transport (see :mod:`attio._cogs.clients.transports`), either passed
explicitly, or bound to an instance, or the current one of an active client.
"""
import collections.abc
import datetime
import functools
import urllib.parse
from typing import Any, AsyncIterator, ClassVar, Iterator, KeysView, ItemsView, Mapping, \
                   Optional, TypeVar

import iso8601

from attio._cogs.clients import transports
from attio._cogs.structs import capabilities, diffs, exceptions, identifiers, tracking, values
from attio._core.engines import loggers
from attio._core.resources import pages

_R = TypeVar('_R', bound='APIResource')

# The wire keys that are never treated as attributes.
SERVICE_KEYS = frozenset({'id', 'created_at'})


class Field:
    """
    A declared attribute of a resource type, accessible as a typed property.

    The values are stored in the resource's tracked attributes, so the fields
    and the generic :meth:`APIResource.get`/:meth:`APIResource.set` accessors
    see the same values. The attribute spec is used for the value conversions.
    """

    def __init__(
            self,
            type: Optional[str] = 'raw',
            *,
            name: Optional[str] = None,
            multivalued: bool = False,
            target_object: Optional[str] = None,
            readonly: bool = False,
            default: Any = None,
    ) -> None:
        super().__init__()
        self.type = type
        self.name = name
        self.multivalued = multivalued
        self.target_object = target_object
        self.readonly = readonly
        self.default = default

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self.type!r}, name={self.name!r})'

    def __set_name__(self, owner: type, name: str) -> None:
        if self.name is None:
            self.name = name

    @property
    def spec(self) -> values.AttributeSpec:
        if self.name is None:
            raise TypeError("The field is not bound to a resource class.")
        return values.AttributeSpec(
            slug=self.name,
            type=self.type,
            multivalued=self.multivalued,
            target_object=self.target_object,
        )

    def __get__(self, instance: Optional["APIResource"], owner: type) -> Any:
        if instance is None:
            return self
        return instance.get(self.spec.slug, self.default)

    def __set__(self, instance: "APIResource", value: Any) -> None:
        if self.readonly:
            raise AttributeError(f"The field {self.name!r} is read-only.")
        instance.set(self.spec.slug, value)


def parse_timestamp(value: Any) -> Optional[datetime.datetime]:
    """
    Parse a timestamp from the wire: ISO 8601 strings, epoch seconds, datetimes.
    """
    if isinstance(value, datetime.datetime):
        return value
    elif isinstance(value, bool):
        return None
    elif isinstance(value, (int, float)):
        return datetime.datetime.fromtimestamp(value, tz=datetime.timezone.utc)
    elif isinstance(value, str) and value:
        try:
            return iso8601.parse_date(value)
        except iso8601.ParseError:
            return None
    else:
        return None


class APIResource:
    """
    The base class of all resource types.
    """

    # The name used in logs and errors.
    RESOURCE: ClassVar[str] = 'resource'

    # The key of the scalar id in the composite identifiers.
    ID_KEY: ClassVar[str] = 'id'

    # The path of the collection, relative to the API version's root, with the {context} placeholders.
    PATH: ClassVar[str] = ''

    # The placeholders of the path and the keys of the identifiers where they can be found.
    CONTEXT: ClassVar[Mapping[str, str]] = {}

    # The extra top-level creation arguments beside the attributes (e.g. the parent of an entry).
    EXTRAS: ClassVar[tuple[str, ...]] = ()

    # The operations permitted by the API.
    CAPABILITIES: ClassVar[capabilities.Capability] = capabilities.Capability.ALL

    # The key of the wrapped attribute values (e.g. "values" for records), or None for plain fields.
    VALUES_KEY: ClassVar[Optional[str]] = None

    # Whether the listing goes via "POST {collection}/query" instead of "GET {collection}".
    QUERY_LISTING: ClassVar[bool] = False

    # Whether the resource is a single document at PATH, with neither a collection nor ids.
    SINGLETON: ClassVar[bool] = False

    # The attribute specs of the declared fields; built for every subclass from its fields.
    schema: ClassVar[values.Schema] = values.Schema()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        specs: list[values.AttributeSpec] = []
        for klass in reversed(cls.__mro__):
            specs.extend(val.spec for val in vars(klass).values() if isinstance(val, Field))
        cls.schema = values.Schema(specs)

    def __init__(
            self,
            __attributes: Optional[Mapping[str, Any]] = None,
            *,
            transport: Optional[transports.Transport] = None,
            context: Optional[Mapping[str, Any]] = None,
            extras: Optional[Mapping[str, Any]] = None,
            **attributes: Any,
    ) -> None:
        super().__init__()
        self._id: Optional[identifiers.Identifier] = None
        self._created_at: Optional[datetime.datetime] = None
        self._metadata: dict[str, Any] = {}
        self._context: dict[str, Any] = {key: val for key, val in (context or {}).items() if val is not None}
        self._extras: dict[str, Any] = {key: val for key, val in (extras or {}).items() if val is not None}
        self._transport = transport
        self._tracker = tracking.AttributeTracker()
        self._tracker.update(dict(__attributes or {}, **attributes))

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} id={self.scalar_id!r} {dict(self._tracker)!r}>'

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, APIResource):
            return NotImplemented
        return (type(self) is type(other) and
                self._id == other._id and
                dict(self._tracker) == dict(other._tracker))

    __hash__ = None  # type: ignore[assignment]  # mutable

    #
    # Construction from the wire.
    #

    @classmethod
    def from_wire(
            cls: type[_R],
            payload: Mapping[str, Any],
            *,
            transport: Optional[transports.Transport] = None,
            context: Optional[Mapping[str, Any]] = None,
    ) -> _R:
        """
        Build an instance from the server's response (enveloped in ``data`` or not).
        """
        instance = cls(transport=transport, context=context)
        instance.update_from(payload)
        return instance

    def update_from(self, payload: Mapping[str, Any]) -> None:
        """
        Adopt the server's state of the resource; the local changes are lost.
        """
        if isinstance(payload.get('data'), collections.abc.Mapping):
            payload = payload['data']
        if 'id' in payload:
            self._id = identifiers.parse(payload['id'])
        if 'created_at' in payload:
            self._created_at = parse_timestamp(payload['created_at'])
        self._tracker.reset(self.ingest(payload))
        self._metadata = {
            key: tracking.clone(val) for key, val in payload.items()
            if key not in SERVICE_KEYS and self.VALUES_KEY is not None and key != self.VALUES_KEY
        }

    @classmethod
    def ingest(cls, payload: Mapping[str, Any]) -> dict[str, Any]:
        """ Extract & unwrap the attributes from a resource's wire payload. """
        if cls.VALUES_KEY is not None:
            return values.ingest_values(payload.get(cls.VALUES_KEY), cls.schema)
        return {key: values.ingest(val, cls.get_spec(key))
                for key, val in payload.items() if key not in SERVICE_KEYS}

    @classmethod
    def egress(cls, attributes: Mapping[str, Any]) -> dict[str, Any]:
        """ Shape the attributes for the request payloads. """
        shaped = {key: values.egress(val, cls.get_spec(key)) for key, val in attributes.items()}
        return {cls.VALUES_KEY: shaped} if cls.VALUES_KEY is not None else shaped

    @classmethod
    def get_spec(cls, name: str) -> Optional[values.AttributeSpec]:
        """
        The spec of an attribute for conversions.

        The undeclared wrapped values follow the generic rules (no spec);
        the undeclared plain fields are passed as is in both directions.
        """
        spec = cls.schema.get(name)
        if spec is None and cls.VALUES_KEY is None:
            spec = values.AttributeSpec(slug=name, type='raw')
        return spec

    @classmethod
    def build_payload(cls, attributes: Mapping[str, Any], **extras: Any) -> dict[str, Any]:
        """ The body of a create or an update request. """
        data = cls.egress(attributes)
        data.update({key: val for key, val in extras.items() if val is not None})
        return {'data': data}

    @classmethod
    def prepare_create(cls, attributes: Mapping[str, Any]) -> dict[str, Any]:
        """ Add the defaults required by the API for creation; overridden by the resource types. """
        return dict(attributes)

    @classmethod
    def validate_create(cls, attributes: Mapping[str, Any], **extras: Any) -> None:
        """ Check the creation arguments locally; overridden by the resource types. """

    @classmethod
    def validate_list(cls, params: Mapping[str, Any]) -> None:
        """ Check the listing arguments locally; overridden by the resource types. """

    #
    # Identity & state.
    #

    @property
    def id(self) -> Optional[identifiers.Identifier]:
        return self._id

    @property
    def scalar_id(self) -> Optional[str]:
        """ The resource's own scalar id, if it can be resolved. """
        try:
            return identifiers.resolve(self._id, self.ID_KEY) if self._id is not None else None
        except exceptions.IdentifierError:
            return None

    @property
    def persisted(self) -> bool:
        return self._id is not None

    @property
    def created_at(self) -> Optional[datetime.datetime]:
        return self._created_at

    @property
    def metadata(self) -> Mapping[str, Any]:
        """ The wire keys of the resource which are neither the id nor the attributes. """
        return self._metadata

    @property
    def context(self) -> Mapping[str, Any]:
        return self._context

    @property
    def transport(self) -> Optional[transports.Transport]:
        return self._transport

    @property
    def logger(self) -> loggers.ResourceLogger:
        return loggers.ResourceLogger(kind=self.RESOURCE, id=self.scalar_id)

    #
    # Attributes & their changes.
    #

    @property
    def attributes(self) -> Mapping[str, Any]:
        return self._tracker

    @property
    def original_attributes(self) -> Mapping[str, Any]:
        return self._tracker.original

    @property
    def changed(self) -> bool:
        return self._tracker.changed

    @property
    def changed_attributes(self) -> dict[str, Any]:
        return self._tracker.changed_attributes

    @property
    def changes(self) -> dict[str, tuple[Any, Any]]:
        return self._tracker.changes

    def diff(self) -> diffs.Diff:
        return self._tracker.diff()

    def get(self, name: str, default: Any = None) -> Any:
        return self._tracker.get(name, default)

    def set(self, name: str, value: Any) -> None:
        self._tracker.set(name, value)

    def discard(self, name: str) -> None:
        self._tracker.discard(name)

    def reset_changes(self) -> None:
        self._tracker.reset()

    def revert(self) -> None:
        self._tracker.revert()

    def __getitem__(self, name: str) -> Any:
        return self._tracker[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self._tracker.set(name, value)

    def __contains__(self, name: object) -> bool:
        return name in self._tracker

    def __iter__(self) -> Iterator[str]:
        return iter(self._tracker)

    def keys(self) -> KeysView[str]:
        return self._tracker.keys()

    def items(self) -> ItemsView[str, Any]:
        return self._tracker.items()

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        result['id'] = self._id.raw if self._id is not None else None
        if self._created_at is not None:
            result['created_at'] = self._created_at.isoformat()
        result.update(tracking.clone(dict(self._tracker)))
        return result

    #
    # Paths.
    #

    @classmethod
    def resolve_context(
            cls,
            id: Optional[identifiers.RawIdentifier | identifiers.Identifier],
            context: Mapping[str, Any],
    ) -> dict[str, str]:
        unexpected = set(context) - set(cls.CONTEXT)
        if unexpected:
            raise TypeError(f"{cls.__name__} got unexpected arguments: {', '.join(sorted(unexpected))}")
        return {name: identifiers.resolve_context(id, key, context.get(name))
                for name, key in cls.CONTEXT.items()}

    @classmethod
    def collection_path(
            cls,
            id: Optional[identifiers.RawIdentifier | identifiers.Identifier] = None,
            context: Optional[Mapping[str, Any]] = None,
    ) -> str:
        resolved = cls.resolve_context(id, context or {})
        quoted = {key: urllib.parse.quote(val, safe='') for key, val in resolved.items()}
        return cls.PATH.format(**quoted)

    @classmethod
    def instance_path(
            cls,
            id: Optional[identifiers.RawIdentifier | identifiers.Identifier],
            context: Optional[Mapping[str, Any]] = None,
    ) -> str:
        scalar = identifiers.resolve(id, cls.ID_KEY)
        return f"{cls.collection_path(id, context)}/{urllib.parse.quote(scalar, safe='')}"

    @classmethod
    def require(cls, needed: capabilities.Capability, operation: str) -> None:
        capabilities.require(cls.CAPABILITIES, needed, resource=cls.__name__, operation=operation)

    @classmethod
    def require_collection(cls, operation: str) -> None:
        if cls.SINGLETON:
            raise exceptions.InvalidRequestError(
                f"{cls.__name__} is a single document with no collection or ids: {operation!r} is not possible.")

    #
    # Class-level operations.
    #

    @classmethod
    async def list(
            cls: type[_R],
            params: Optional[Mapping[str, Any]] = None,
            *,
            filter: Optional[Mapping[str, Any]] = None,
            sort: Optional[Any] = None,
            cursor: Optional[str] = None,
            limit: Optional[int] = None,
            offset: Optional[int] = None,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
            **context: Any,
    ) -> pages.ListPage[_R]:
        """
        Fetch one page of the resources.

        The filters & sorts are sent as is. The cursor of the next page, if any,
        is available as :attr:`ListPage.next_cursor` exactly as returned.
        """
        cls.require(capabilities.Capability.READ, 'list')
        cls.require_collection('list')
        path = cls.collection_path(None, context)
        request: dict[str, Any] = dict(params or {})
        request.update({key: val for key, val in [
            ('filter', filter), ('sorts' if cls.QUERY_LISTING else 'sort', sort),
            ('cursor', cursor), ('limit', limit), ('offset', offset),
        ] if val is not None})
        cls.validate_list(request)

        transport = transports.get_transport(transport)
        if cls.QUERY_LISTING:
            response = await transport.execute_request(
                'POST', f'{path}/query', request, dict(options or {}, idempotent=True))  # type: ignore[arg-type]
        else:
            response = await transport.execute_request('GET', path, request, options)

        response = response if isinstance(response, collections.abc.Mapping) else {'data': response}
        raw_items = response.get('data') or []
        items = [cls.from_wire(item, transport=transport, context=context) for item in raw_items]
        has_more, next_cursor, next_offset, pagination = pages.parse_pagination(
            response, count=len(items), limit=limit, offset=offset)
        fetcher = functools.partial(
            cls.list, params, filter=filter, sort=sort, limit=limit, offset=offset,
            transport=transport, options=options, **context)
        return pages.ListPage(
            items,
            has_more=has_more,
            next_cursor=next_cursor,
            next_offset=next_offset,
            pagination=pagination,
            fetcher=fetcher,
        )

    @classmethod
    async def iterate(
            cls: type[_R],
            params: Optional[Mapping[str, Any]] = None,
            **kwargs: Any,
    ) -> AsyncIterator[_R]:
        """
        Iterate over all the resources across all the pages.
        """
        page = await cls.list(params, **kwargs)
        async for item in page.iterate():
            yield item

    @classmethod
    async def retrieve(
            cls: type[_R],
            id: identifiers.RawIdentifier | identifiers.Identifier,
            *,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
            **context: Any,
    ) -> _R:
        cls.require(capabilities.Capability.READ, 'retrieve')
        cls.require_collection('retrieve')
        path = cls.instance_path(id, context)
        transport = transports.get_transport(transport)
        response = await transport.execute_request('GET', path, None, options)
        return cls.from_wire(response, transport=transport, context=context)

    @classmethod
    async def create(
            cls: type[_R],
            attributes: Optional[Mapping[str, Any]] = None,
            *,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
            **kwargs: Any,
    ) -> _R:
        cls.require(capabilities.Capability.CREATE, 'create')
        context, extras = cls._split_kwargs(kwargs)
        attributes = cls.prepare_create(attributes or {})
        cls.validate_create(attributes, **extras)
        path = cls.collection_path(None, context)
        payload = cls.build_payload(attributes, **extras)
        transport = transports.get_transport(transport)
        response = await transport.execute_request('POST', path, payload, options)
        instance = cls.from_wire(response, transport=transport, context=context)
        instance.logger.debug(f"Created {cls.RESOURCE} with attributes: {sorted(attributes)!r}")
        return instance

    @classmethod
    async def update(
            cls: type[_R],
            id: identifiers.RawIdentifier | identifiers.Identifier,
            attributes: Mapping[str, Any],
            *,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
            **context: Any,
    ) -> _R:
        cls.require(capabilities.Capability.UPDATE, 'update')
        path = cls.instance_path(id, context)
        payload = cls.build_payload(attributes)
        transport = transports.get_transport(transport)
        response = await transport.execute_request('PATCH', path, payload, options)
        instance = cls.from_wire(response, transport=transport, context=context)
        instance.logger.debug(f"Updated {cls.RESOURCE} with attributes: {sorted(attributes)!r}")
        return instance

    @classmethod
    async def delete(
            cls,
            id: identifiers.RawIdentifier | identifiers.Identifier,
            *,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
            **context: Any,
    ) -> bool:
        cls.require(capabilities.Capability.DELETE, 'delete')
        path = cls.instance_path(id, context)
        transport = transports.get_transport(transport)
        await transport.execute_request('DELETE', path, None, options)
        loggers.ResourceLogger(kind=cls.RESOURCE, id=identifiers.resolve(id, cls.ID_KEY)).debug(
            f"Deleted {cls.RESOURCE}.")
        return True

    @classmethod
    def _split_kwargs(cls, kwargs: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
        context = {key: val for key, val in kwargs.items() if key not in cls.EXTRAS}
        extras = {key: val for key, val in kwargs.items() if key in cls.EXTRAS}
        return context, extras

    #
    # Instance-level operations.
    #

    async def save(
            self,
            *,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
    ) -> "APIResource":
        """
        Create the resource if it is new, or update only its changed attributes.
        """
        cls = type(self)
        transport = transports.get_transport(transport, self._transport)
        if self.persisted:
            cls.require(capabilities.Capability.UPDATE, 'save')
            if not self.changed:
                self.logger.debug("Nothing to save: no changes.")
                return self
            changed = self.changed_attributes
            path = cls.instance_path(self._id, self._context)
            payload = cls.build_payload(changed)
            response = await transport.execute_request('PATCH', path, payload, options)
            self.logger.debug(f"Saved the changed attributes: {sorted(changed)!r}")
        else:
            cls.require(capabilities.Capability.CREATE, 'save')
            attributes = cls.prepare_create(self._tracker)
            cls.validate_create(attributes, **self._extras)
            path = cls.collection_path(None, self._context)
            payload = cls.build_payload(attributes, **self._extras)
            response = await transport.execute_request('POST', path, payload, options)

        self._transport = self._transport or transport
        if isinstance(response, collections.abc.Mapping) and response:
            self.update_from(response)
        else:
            self.reset_changes()
        return self

    async def reload(
            self,
            *,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
    ) -> "APIResource":
        """ Re-fetch the resource from the server; the local changes are lost. """
        cls = type(self)
        cls.require(capabilities.Capability.READ, 'reload')
        transport = transports.get_transport(transport, self._transport)
        path = cls.PATH if cls.SINGLETON else cls.instance_path(self._id, self._context)
        response = await transport.execute_request('GET', path, None, options)
        self.update_from(response)
        return self

    async def destroy(
            self,
            *,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
    ) -> bool:
        """
        Delete the resource on the server and invalidate this instance.
        """
        cls = type(self)
        cls.require(capabilities.Capability.DELETE, 'destroy')
        transport = transports.get_transport(transport, self._transport)
        await cls.delete(self._id, transport=transport, options=options, **self._context)  # type: ignore[arg-type]
        self._id = None
        self._created_at = None
        self._metadata = {}
        self._tracker.clear()
        return True
