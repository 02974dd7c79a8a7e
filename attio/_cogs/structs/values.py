"""
Attribute values: the wire format of Attio's API vs. the in-memory values.

On the wire, the values of records and list entries are wrapped into objects,
usually as lists of them, with different shapes per attribute type::

    {"name": [{"value": "Acme", "attribute_type": "text", ...}],
     "domains": [{"domain": "acme.com", "root_domain": "acme.com"}],
     "stage": [{"status": {"title": "Open", ...}}],
     "company": [{"target_object": "companies", "target_record_id": "..."}]}

In memory, they are plain values: ``"Acme"``, ``["acme.com"]``, ``"Open"``, etc.

The ingestion (wire → memory) unwraps the values exactly once; it is idempotent,
so that the already ingested values remain the same when ingested again.
The egress (memory → wire) wraps them back into the shapes expected by the API.

The shapes cannot be reliably guessed from the runtime types of the values:
e.g. a personal name must go as ``{"first_name": ..., "last_name": ...}``,
a domain as ``{"domain": ...}``, a text as ``{"value": ...}``, while all of them
are strings in memory. So, the normalization is parameterized by the attribute
specs (the attribute type & cardinality), usually taken from the schema of
the object (see :meth:`Schema.from_attributes`) or declared by typed records.

For the attributes without specs, the generic rules apply:

* ingestion unwraps ``{"value": X}`` and reference objects (``target_object``),
  normalizes lists element-wise, and collapses single-element lists;
* egress wraps scalars as ``{"value": X}``, passes mappings as they are
  (assuming they are already shaped by the caller), and processes lists
  element-wise.
"""
import collections.abc
import dataclasses
import enum
from typing import Any, Iterable, Mapping, Optional

from attio._cogs.structs import exceptions


class Shape(enum.Enum):
    """ How the values of an attribute type look on the wire. """
    SCALAR = 'scalar'           # {"value": X}
    KEYED = 'keyed'             # {"domain": X}, {"email_address": X}, ...
    CHOICE = 'choice'           # {"option": {"title": X}}, {"status": {"title": X}}
    STRUCTURED = 'structured'   # {"first_name": ..., "last_name": ...}
    REFERENCE = 'reference'     # {"target_object": ..., "target_record_id": X}
    ACTOR = 'actor'             # {"referenced_actor_type": ..., "referenced_actor_id": X}
    RAW = 'raw'                 # as is, in both directions


# Attio's attribute types, as reported in the attributes' "type" field.
SHAPES: Mapping[str, Shape] = {
    'text': Shape.SCALAR,
    'number': Shape.SCALAR,
    'checkbox': Shape.SCALAR,
    'date': Shape.SCALAR,
    'timestamp': Shape.SCALAR,
    'rating': Shape.SCALAR,
    'currency': Shape.KEYED,
    'domain': Shape.KEYED,
    'email-address': Shape.KEYED,
    'phone-number': Shape.KEYED,
    'select': Shape.CHOICE,
    'status': Shape.CHOICE,
    'personal-name': Shape.STRUCTURED,
    'location': Shape.STRUCTURED,
    'interaction': Shape.STRUCTURED,
    'record-reference': Shape.REFERENCE,
    'actor-reference': Shape.ACTOR,
    'raw': Shape.RAW,
}

# The keys of the wrapping objects for the keyed & choice types.
KEYS: Mapping[str, str] = {
    'currency': 'currency_value',
    'domain': 'domain',
    'email-address': 'email_address',
    'phone-number': 'original_phone_number',
    'select': 'option',
    'status': 'status',
}

REFERENCE_KEYS = ('target_record_id', 'target_object')
ACTOR_KEYS = ('referenced_actor_id', 'workspace_member_email_address')
SCALARS = (str, int, float, bool, type(None))


@dataclasses.dataclass(frozen=True)
class AttributeSpec:
    """
    The metadata of an attribute needed to convert its values.
    """

    slug: str
    """ The attribute's API slug, as used as a key in the values. """

    type: Optional[str] = None
    """ Attio's attribute type, e.g. ``"text"`` or ``"record-reference"``. """

    multivalued: bool = False
    """ Whether the attribute holds a list of values (e.g. a multiselect). """

    target_object: Optional[str] = None
    """ For references only: the object slug to refer to on egress. """

    @property
    def shape(self) -> Shape:
        return SHAPES.get(self.type or '', Shape.SCALAR)

    @property
    def key(self) -> Optional[str]:
        return KEYS.get(self.type or '')


class Schema(Mapping[str, AttributeSpec]):
    """
    A read-only collection of attribute specs, keyed by their slugs.
    """

    def __init__(self, __specs: Iterable[AttributeSpec] = ()) -> None:
        super().__init__()
        self._specs: dict[str, AttributeSpec] = {spec.slug: spec for spec in __specs}

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({list(self._specs.values())!r})'

    def __len__(self) -> int:
        return len(self._specs)

    def __iter__(self) -> collections.abc.Iterator[str]:
        return iter(self._specs)

    def __getitem__(self, slug: str) -> AttributeSpec:
        return self._specs[slug]

    def __or__(self, other: Iterable[AttributeSpec]) -> "Schema":
        specs = dict(self._specs)
        specs.update({spec.slug: spec for spec in (other.values() if isinstance(other, Schema) else other)})
        return Schema(specs.values())

    @classmethod
    def from_attributes(cls, attributes: Iterable[Any]) -> "Schema":
        """
        Build a schema from the attributes of an object or a list.

        The attributes can be either :class:`attio.Attribute` resources
        or the raw mappings as returned by the API.
        """
        specs: list[AttributeSpec] = []
        for attribute in attributes:
            get = attribute.get
            slug = get('api_slug')
            if not slug:
                continue
            config = get('config') or {}
            allowed = (config.get('record_reference') or {}).get('allowed_object_ids') or []
            specs.append(AttributeSpec(
                slug=slug,
                type=get('type'),
                multivalued=bool(get('is_multiselect')),
                target_object=allowed[0] if len(allowed) == 1 else None,
            ))
        return cls(specs)


def ingest(value: Any, spec: Optional[AttributeSpec] = None) -> Any:
    """
    Convert a wire value of an attribute to its in-memory representation.
    """
    if spec is None:
        return _ingest_generic(value)
    elif spec.shape is Shape.RAW:
        return value
    elif isinstance(value, (list, tuple)):
        items = [_ingest_item(item, spec) for item in value]
        if spec.multivalued:
            return items
        elif not items:
            return None
        elif len(items) == 1:
            return items[0]
        else:
            return items  # a single-valued attribute with many values? keep them all.
    elif spec.multivalued and value is not None:
        return [_ingest_item(value, spec)]
    else:
        return _ingest_item(value, spec)


def egress(value: Any, spec: Optional[AttributeSpec] = None) -> Any:
    """
    Convert an in-memory value of an attribute to its wire representation.
    """
    if spec is None:
        return _egress_generic(value)
    elif spec.shape is Shape.RAW:
        return value
    elif isinstance(value, (list, tuple, set, frozenset)):
        return [_egress_item(item, spec) for item in value]
    else:
        return _egress_item(value, spec)


def ingest_values(
        values: Optional[Mapping[str, Any]],
        schema: Optional[Mapping[str, AttributeSpec]] = None,
) -> dict[str, Any]:
    schema = schema if schema is not None else {}
    return {key: ingest(value, schema.get(key)) for key, value in (values or {}).items()}


def egress_values(
        values: Optional[Mapping[str, Any]],
        schema: Optional[Mapping[str, AttributeSpec]] = None,
) -> dict[str, Any]:
    schema = schema if schema is not None else {}
    return {key: egress(value, schema.get(key)) for key, value in (values or {}).items()}


def build_personal_name(
        full_name: Optional[str] = None,
        *,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
) -> dict[str, str]:
    """
    Build a personal name in the shape required by the API.

    The first word of the full name is the first name, the rest is the last
    name -- unless the parts are provided explicitly.
    """
    if full_name is not None and first_name is None and last_name is None:
        first_name, _, last_name = full_name.strip().partition(' ')
    first_name = (first_name or '').strip()
    last_name = (last_name or '').strip()
    full_name = full_name.strip() if full_name else f'{first_name} {last_name}'.strip()
    return {'first_name': first_name, 'last_name': last_name, 'full_name': full_name}


def _ingest_generic(value: Any) -> Any:
    if isinstance(value, collections.abc.Mapping):
        if 'value' in value:
            return _ingest_generic(value['value'])
        elif 'target_object' in value:
            return value.get('target_record_id') or value['target_object']
        else:
            return value
    elif isinstance(value, (list, tuple)):
        items = [_ingest_generic(item) for item in value]
        return items[0] if len(items) == 1 else items
    else:
        return value


def _egress_generic(value: Any) -> Any:
    if isinstance(value, SCALARS):
        return {'value': value}
    elif isinstance(value, collections.abc.Mapping):
        return value
    elif isinstance(value, (list, tuple, set, frozenset)):
        return [_egress_generic(item) for item in value]
    else:
        return {'value': str(value)}


def _ingest_item(value: Any, spec: AttributeSpec) -> Any:
    if not isinstance(value, collections.abc.Mapping):
        return value
    match spec.shape:
        case Shape.SCALAR:
            return value['value'] if 'value' in value else value
        case Shape.KEYED:
            key = spec.key or 'value'
            return value[key] if key in value else value.get('value', value)
        case Shape.CHOICE:
            key = spec.key or 'option'
            choice = value.get(key, value)
            if isinstance(choice, collections.abc.Mapping):
                return choice.get('title', choice)
            return choice
        case Shape.REFERENCE:
            for key in REFERENCE_KEYS:
                if value.get(key):
                    return value[key]
            return value
        case Shape.ACTOR:
            for key in ACTOR_KEYS:
                if value.get(key):
                    return value[key]
            return value
        case _:
            return value


def _egress_item(value: Any, spec: AttributeSpec) -> Any:
    match spec.shape:
        case Shape.SCALAR:
            if isinstance(value, collections.abc.Mapping):
                return value
            return {'value': value}
        case Shape.KEYED | Shape.CHOICE:
            if isinstance(value, collections.abc.Mapping):
                return value
            return {spec.key or 'value': value}
        case Shape.STRUCTURED:
            if spec.type == 'personal-name' and isinstance(value, str):
                return build_personal_name(value)
            if not isinstance(value, collections.abc.Mapping):
                raise exceptions.InvalidRequestError(
                    f"The attribute {spec.slug!r} of type {spec.type!r} requires "
                    f"a structured value, got {value!r}.")
            return value
        case Shape.REFERENCE:
            if isinstance(value, collections.abc.Mapping):
                return value
            if not spec.target_object:
                raise exceptions.InvalidRequestError(
                    f"The reference attribute {spec.slug!r} has no target object; "
                    f"pass the value as {{'target_object': ..., 'target_record_id': ...}}.")
            return {'target_object': spec.target_object, 'target_record_id': value}
        case Shape.ACTOR:
            if isinstance(value, collections.abc.Mapping):
                return value
            return {'referenced_actor_type': 'workspace-member', 'referenced_actor_id': value}
        case _:
            return value
