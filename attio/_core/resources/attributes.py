"""
Attributes of the objects & lists: the schema of the records' & entries' values.
"""
from typing import Any, Mapping, Optional

from attio._cogs.clients import transports
from attio._cogs.structs import capabilities, exceptions, identifiers, values
from attio._core.resources import base

# Which constraints are supported by which attribute types on creation.
TYPE_CONFIGS: Mapping[str, Mapping[str, bool]] = {
    'text': dict(required=True, unique=True),
    'number': dict(required=True, unique=True),
    'checkbox': dict(),
    'currency': dict(required=True),
    'date': dict(required=True),
    'timestamp': dict(required=True),
    'rating': dict(),
    'status': dict(required=True),
    'select': dict(required=True, multiselect=True),
    'record-reference': dict(required=True, multiselect=True, target=True),
    'actor-reference': dict(required=True, multiselect=True),
    'location': dict(required=True),
    'domain': dict(required=True, unique=True, multiselect=True),
    'email-address': dict(required=True, unique=True, multiselect=True),
    'phone-number': dict(required=True, multiselect=True),
    'personal-name': dict(required=True),
    'interaction': dict(),
}
TYPES = frozenset(TYPE_CONFIGS)


class Attribute(base.APIResource):
    """
    An attribute of an object or a list.

    The attributes live under their parents: either ``object=`` or ``list=``
    must be given (or be present in the attribute's composite identifier).
    The attributes cannot be deleted, only archived.
    """
    RESOURCE = 'attribute'
    ID_KEY = 'attribute_id'
    PATH = '{target}/{parent}/attributes'
    CONTEXT = {'object': 'object_id', 'list': 'list_id'}
    CAPABILITIES = capabilities.Capability.UNDELETABLE

    title = base.Field()
    description = base.Field()
    api_slug = base.Field()
    attribute_type = base.Field(name='type')
    is_required = base.Field(default=False)
    is_unique = base.Field(default=False)
    is_multiselect = base.Field(default=False)
    is_archived = base.Field(default=False)
    config = base.Field()

    @classmethod
    def resolve_context(
            cls,
            id: Optional[identifiers.RawIdentifier | identifiers.Identifier],
            context: Mapping[str, Any],
    ) -> dict[str, str]:
        unexpected = set(context) - set(cls.CONTEXT)
        if unexpected:
            raise TypeError(f"{cls.__name__} got unexpected arguments: {', '.join(sorted(unexpected))}")
        if context.get('object') is not None and context.get('list') is not None:
            raise exceptions.IdentifierError("An attribute belongs either to an object or to a list, not both.")

        identifier = identifiers.parse(id)
        in_list = context.get('list') is not None or (
            context.get('object') is None and
            isinstance(identifier, identifiers.CompositeId) and
            bool(identifier.get('list_id')) and not identifier.get('object_id'))
        if in_list:
            return {'target': 'lists', 'parent': identifiers.resolve_context(id, 'list_id', context.get('list'))}
        else:
            return {'target': 'objects', 'parent': identifiers.resolve_context(id, 'object_id', context.get('object'))}

    @classmethod
    def validate_create(cls, attributes: Mapping[str, Any], **extras: Any) -> None:
        missing = [name for name in ['title', 'api_slug', 'type'] if not attributes.get(name)]
        if missing:
            raise exceptions.InvalidRequestError(f"An attribute requires: {', '.join(missing)}.")

        kind = attributes['type']
        if kind not in TYPES:
            raise exceptions.InvalidRequestError(
                f"Invalid attribute type: {kind!r}. Valid types: {', '.join(sorted(TYPES))}.")

        supports = TYPE_CONFIGS[kind]
        for flag, option in [('is_required', 'required'), ('is_unique', 'unique'), ('is_multiselect', 'multiselect')]:
            if attributes.get(flag) and not supports.get(option):
                raise exceptions.InvalidRequestError(f"The attribute type {kind!r} does not support {flag}.")

        if supports.get('target'):
            config = attributes.get('config') or {}
            allowed = (config.get('record_reference') or {}).get('allowed_objects')
            if not allowed:
                raise exceptions.InvalidRequestError(
                    f"The attribute type {kind!r} requires config.record_reference.allowed_objects.")

    @property
    def spec(self) -> values.AttributeSpec:
        """ The spec for the conversion of this attribute's values in records. """
        schema = values.Schema.from_attributes([self])
        if self.api_slug not in schema:
            raise exceptions.InvalidRequestError("The attribute has no api_slug to build a spec.")
        return schema[self.api_slug]

    @property
    def archived(self) -> bool:
        return bool(self.is_archived)

    async def archive(
            self,
            *,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
    ) -> "Attribute":
        self.is_archived = True
        await self.save(transport=transport, options=options)
        return self

    async def unarchive(
            self,
            *,
            transport: Optional[transports.Transport] = None,
            options: Optional[transports.RequestOptions] = None,
    ) -> "Attribute":
        self.is_archived = False
        await self.save(transport=transport, options=options)
        return self
