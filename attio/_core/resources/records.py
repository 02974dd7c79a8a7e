"""
Records: the instances of the objects (people, companies, deals, custom ones).

The records' attributes are the wrapped values of the object's attributes.
Their shapes depend on the attribute types, which are declared either by
the typed records (:class:`Person`, :class:`Company`, :class:`Deal`) via the fields,
or are taken from the object's attributes (see :meth:`Record.with_schema`).
Without the specs, the values follow the generic wrapping rules.
"""
import datetime
from typing import Any, ClassVar, Iterable, Mapping, Optional, Sequence, TypeVar

from attio._cogs.clients import transports
from attio._cogs.structs import capabilities, identifiers, periods, values
from attio._core.resources import base, batching, members, pages

_R = TypeVar('_R', bound='Record')


class Record(base.APIResource):
    RESOURCE = 'record'
    ID_KEY = 'record_id'
    PATH = 'objects/{object}/records'
    CONTEXT = {'object': 'object_id'}
    CAPABILITIES = capabilities.Capability.ALL
    VALUES_KEY = 'values'
    QUERY_LISTING = True

    # For the typed records: the object's slug, so that it is not needed in the calls.
    OBJECT: ClassVar[Optional[str]] = None

    def __init__(
            self,
            __attributes: Optional[Mapping[str, Any]] = None,
            *,
            object: Optional[str] = None,
            context: Optional[Mapping[str, Any]] = None,
            **kwargs: Any,
    ) -> None:
        context = dict(context or {}, **({'object': object} if object is not None else {}))
        super().__init__(__attributes, context=context, **kwargs)

    @classmethod
    def resolve_context(
            cls,
            id: Optional[identifiers.RawIdentifier | identifiers.Identifier],
            context: Mapping[str, Any],
    ) -> dict[str, str]:
        if cls.OBJECT is not None and context.get('object') is None:
            context = dict(context, object=cls.OBJECT)
        return super().resolve_context(id, context)

    @classmethod
    def with_schema(cls, attributes: Iterable[Any], *, name: Optional[str] = None) -> type["Record"]:
        """
        Make a record class with the schema of the object's attributes.

        The attributes are those of :meth:`attio.Object.list_attributes`
        (or the raw mappings of the API's attributes).
        """
        schema = cls.schema | values.Schema.from_attributes(attributes)
        subclass = type(name or f'{cls.__name__}WithSchema', (cls,), {})
        subclass.schema = schema
        return subclass

    @property
    def object(self) -> Optional[str]:
        """ The object's slug as used in the requests, or the object's id. """
        if self._context.get('object') is not None:
            return str(self._context['object'])
        if self.OBJECT is not None:
            return self.OBJECT
        identifier = self._id
        return identifier.get('object_id') if isinstance(identifier, identifiers.CompositeId) else None

    @property
    def web_url(self) -> Optional[str]:
        return self._metadata.get('web_url')

    @classmethod
    async def assert_(
            cls: type[_R],
            attributes: Mapping[str, Any],
            *,
            matching_attribute: str,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
            **context: Any,
    ) -> _R:
        """
        Create or update a record by a unique attribute ("upsert").
        """
        cls.require(capabilities.Capability.CREATE | capabilities.Capability.UPDATE, 'assert')
        path = cls.collection_path(None, context)
        payload = cls.build_payload(attributes)
        query = dict((options or {}).get('query') or {}, matching_attribute=matching_attribute)
        transport = transports.get_transport(transport)
        response = await transport.execute_request('PUT', path, payload, dict(options or {}, query=query))
        return cls.from_wire(response, transport=transport, context=context)

    @classmethod
    async def search(
            cls: type[_R],
            query: str,
            *,
            attributes: Sequence[str] = ('name',),
            limit: Optional[int] = None,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
            **context: Any,
    ) -> pages.ListPage[_R]:
        """
        Find the records which attributes contain the query string.
        """
        conditions = [{attribute: {'$contains': query}} for attribute in attributes]
        filter = conditions[0] if len(conditions) == 1 else {'$or': conditions}
        return await cls.list(filter=filter, limit=limit, transport=transport, options=options, **context)

    @classmethod
    async def find_by(
            cls: type[_R],
            *,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
            object: Optional[str] = None,
            **conditions: Any,
    ) -> Optional[_R]:
        """
        Find the first record with the exact attribute values, or ``None``.
        """
        if not conditions:
            raise TypeError("At least one condition is required.")
        context = {'object': object} if object is not None else {}
        page = await cls.list(filter=dict(conditions), limit=1, transport=transport, options=options, **context)
        return page[0] if page else None

    async def entries(
            self,
            *,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
    ) -> list[Mapping[str, Any]]:
        """
        The list entries of this record, as the raw summaries by the API.
        """
        transport = transports.get_transport(transport, self._transport)
        path = f"{self.instance_path(self._id, self._context)}/entries"
        response = await transport.execute_request('GET', path, None, options)
        return list(response.get('data') or [])

    #
    # Time periods.
    #

    def created_in(self, period: periods.TimePeriod) -> bool:
        return self.created_at is not None and self.created_at in period

    def age_in_days(self, *, now: Optional[datetime.datetime] = None) -> Optional[int]:
        if self.created_at is None:
            return None
        now = now or datetime.datetime.now(datetime.timezone.utc)
        return (now - self.created_at).days

    @classmethod
    async def in_period(cls: type[_R], period: periods.TimePeriod, **kwargs: Any) -> list[_R]:
        """
        All the records created within the period, across all the pages.

        The filtering is local: the records are fetched and checked one by one.
        """
        return [record async for record in cls.iterate(**kwargs) if record.created_in(period)]

    @classmethod
    async def recently_created(
            cls: type[_R],
            days: int = 7,
            *,
            today: Optional[datetime.date] = None,
            **kwargs: Any,
    ) -> list[_R]:
        return await cls.in_period(periods.TimePeriod.last_days(days, today=today), **kwargs)

    #
    # Batches.
    #

    @classmethod
    async def create_batch(
            cls: type[_R],
            items: Iterable[Mapping[str, Any]],
            *,
            concurrency: int = batching.DEFAULT_CONCURRENCY,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
            **context: Any,
    ) -> list[batching.BatchOutcome[_R]]:
        items = [dict(item) for item in items]
        for item in items:
            cls.validate_create(item)
        cls.require(capabilities.Capability.CREATE, 'create')
        cls.collection_path(None, context)  # fail early on no context
        return await batching.run_batch(
            [(lambda item=item: cls.create(item, transport=transport, options=options, **context))
             for item in items],
            concurrency=concurrency,
        )

    @classmethod
    async def update_batch(
            cls: type[_R],
            items: Iterable[tuple[identifiers.RawIdentifier | identifiers.Identifier, Mapping[str, Any]]],
            *,
            concurrency: int = batching.DEFAULT_CONCURRENCY,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
            **context: Any,
    ) -> list[batching.BatchOutcome[_R]]:
        items = list(items)
        cls.require(capabilities.Capability.UPDATE, 'update')
        for id, _ in items:
            cls.instance_path(id, context)  # fail early on bad ids
        return await batching.run_batch(
            [(lambda id=id, attrs=attrs: cls.update(id, attrs, transport=transport, options=options, **context))
             for id, attrs in items],
            concurrency=concurrency,
        )

    @classmethod
    async def delete_batch(
            cls,
            ids: Iterable[identifiers.RawIdentifier | identifiers.Identifier],
            *,
            concurrency: int = batching.DEFAULT_CONCURRENCY,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
            **context: Any,
    ) -> list[batching.BatchOutcome[bool]]:
        ids = list(ids)
        cls.require(capabilities.Capability.DELETE, 'delete')
        for id in ids:
            cls.instance_path(id, context)  # fail early on bad ids
        return await batching.run_batch(
            [(lambda id=id: cls.delete(id, transport=transport, options=options, **context))
             for id in ids],
            concurrency=concurrency,
        )


class Person(Record):
    OBJECT = 'people'

    name = base.Field('personal-name')
    email_addresses = base.Field('email-address', multivalued=True)
    phone_numbers = base.Field('phone-number', multivalued=True)
    job_title = base.Field('text')
    description = base.Field('text')
    company = base.Field('record-reference', target_object='companies')

    @property
    def full_name(self) -> Optional[str]:
        name = self.name
        if isinstance(name, Mapping):
            return name.get('full_name') or f"{name.get('first_name') or ''} {name.get('last_name') or ''}".strip() or None
        return name

    @property
    def first_name(self) -> Optional[str]:
        return self.name.get('first_name') if isinstance(self.name, Mapping) else None

    @property
    def last_name(self) -> Optional[str]:
        return self.name.get('last_name') if isinstance(self.name, Mapping) else None

    def set_name(
            self,
            full_name: Optional[str] = None,
            *,
            first_name: Optional[str] = None,
            last_name: Optional[str] = None,
    ) -> None:
        self.name = values.build_personal_name(full_name, first_name=first_name, last_name=last_name)

    @property
    def email(self) -> Optional[str]:
        emails = self.email_addresses or []
        return emails[0] if emails else None

    def add_email(self, email: str) -> None:
        emails = list(self.email_addresses or [])
        if email not in emails:
            self.email_addresses = emails + [email]

    def add_phone(self, number: str) -> None:
        phones = list(self.phone_numbers or [])
        if number not in phones:
            self.phone_numbers = phones + [number]

    @classmethod
    async def find_by_email(cls, email: str, **kwargs: Any) -> Optional["Person"]:
        return await cls.find_by(email_addresses=email, **kwargs)


class Company(Record):
    OBJECT = 'companies'

    name = base.Field('text')
    domains = base.Field('domain', multivalued=True)
    description = base.Field('text')
    team = base.Field('record-reference', multivalued=True, target_object='people')

    @property
    def domain(self) -> Optional[str]:
        domains = self.domains or []
        return domains[0] if domains else None

    def add_domain(self, domain: str) -> None:
        domains = list(self.domains or [])
        domain = domain.lower().removeprefix('https://').removeprefix('http://').removeprefix('www.').strip('/')
        if domain not in domains:
            self.domains = domains + [domain]

    @classmethod
    async def find_by_domain(cls, domain: str, **kwargs: Any) -> Optional["Company"]:
        return await cls.find_by(domains=domain, **kwargs)


# The default lost stage of the deals' pipeline; the won one is "Won 🎉" by default.
LOST_STAGE = 'Lost'


class Deal(Record):
    OBJECT = 'deals'

    name = base.Field('text')
    value = base.Field('currency')
    stage = base.Field('status')
    owner = base.Field('actor-reference')
    associated_company = base.Field('record-reference', target_object='companies')
    associated_people = base.Field('record-reference', multivalued=True, target_object='people')

    @classmethod
    def prepare_create(cls, attributes: Mapping[str, Any]) -> dict[str, Any]:
        attributes = dict(super().prepare_create(attributes))
        if 'status' in attributes and 'stage' not in attributes:
            attributes['stage'] = attributes.pop('status')
        return attributes

    @property
    def status(self) -> Optional[str]:
        return self.stage

    @property
    def won(self) -> bool:
        return isinstance(self.stage, str) and 'won' in self.stage.lower()

    @property
    def lost(self) -> bool:
        return isinstance(self.stage, str) and self.stage.lower() == LOST_STAGE.lower()

    @property
    def open(self) -> bool:
        return isinstance(self.stage, str) and not self.won and not self.lost

    async def update_stage(
            self,
            stage: str,
            *,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
    ) -> "Deal":
        self.stage = stage
        await self.save(transport=transport, options=options)
        return self

    update_status = update_stage

    async def update_value(
            self,
            value: float,
            *,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
    ) -> "Deal":
        self.value = value
        await self.save(transport=transport, options=options)
        return self

    async def company_record(self, **kwargs: Any) -> Optional[Company]:
        company = self.associated_company
        return await Company.retrieve(company, **kwargs) if isinstance(company, str) else None

    async def owner_record(self, **kwargs: Any) -> Optional[members.WorkspaceMember]:
        owner = self.owner
        return await members.WorkspaceMember.retrieve(owner, **kwargs) if isinstance(owner, str) else None

    @classmethod
    async def find_by_value_range(
            cls,
            *,
            min_value: Optional[float] = None,
            max_value: Optional[float] = None,
            **kwargs: Any,
    ) -> pages.ListPage["Deal"]:
        bounds = [('$gte', min_value), ('$lte', max_value)]
        conditions = [{'value': {op: bound}} for op, bound in bounds if bound is not None]
        filter = conditions[0] if len(conditions) == 1 else {'$and': conditions} if conditions else None
        return await cls.list(filter=filter, **kwargs)

    @classmethod
    async def find_by_owner(cls, member_id: str, **kwargs: Any) -> pages.ListPage["Deal"]:
        filter = {'owner': {'referenced_actor_type': 'workspace-member', 'referenced_actor_id': member_id}}
        return await cls.list(filter=filter, **kwargs)
