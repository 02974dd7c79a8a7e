"""
Identifiers of the resources, as they come from Attio's API.

Some resources are identified by plain strings. Most are identified by
composite objects with all the scopes of the resource::

    {"workspace_id": "...", "object_id": "...", "record_id": "..."}

The client does not interpret the identifiers beyond picking the scalar
needed for a request path. Which key is "the" identifier is declared
per resource type (e.g. ``record_id`` for records, ``entry_id`` for entries),
and the resolution is done here -- in one place for all resource types.

Some resource types also need another resource's id as a context
for their paths: e.g. the entries live under their lists, so ``list_id``
is required in addition to ``entry_id``. The context is either provided
explicitly by the caller, or taken from the same composite identifier
if it contains that scope. The resolver alone cannot invent the context.
"""
import collections.abc
import dataclasses
from typing import Any, Iterator, Mapping, Union

from attio._cogs.structs import exceptions


@dataclasses.dataclass(frozen=True, eq=False, repr=False)
class ScalarId:
    """
    A plain string identifier. It resolves to itself for any key.
    """
    value: str

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self.value!r})'

    def __str__(self) -> str:
        return self.value

    def __hash__(self) -> int:
        return hash(self.value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ScalarId):
            return self.value == other.value
        elif isinstance(other, str):
            return self.value == other
        else:
            return NotImplemented

    @property
    def raw(self) -> str:
        return self.value


@dataclasses.dataclass(frozen=True, eq=False, repr=False)
class CompositeId(Mapping[str, Any]):
    """
    A composite identifier: a read-only mapping of named scopes to their ids.
    """
    parts: tuple[tuple[str, Any], ...]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "CompositeId":
        return cls(tuple((str(key), val) for key, val in raw.items()))

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({dict(self.parts)!r})'

    def __hash__(self) -> int:
        return hash(frozenset(self.parts))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, collections.abc.Mapping):
            return dict(self.parts) == dict(other)
        else:
            return NotImplemented

    def __len__(self) -> int:
        return len(self.parts)

    def __iter__(self) -> Iterator[str]:
        return (key for key, _ in self.parts)

    def __getitem__(self, key: str) -> Any:
        for part_key, part_val in self.parts:
            if part_key == key:
                return part_val
        raise KeyError(key)

    @property
    def raw(self) -> dict[str, Any]:
        return dict(self.parts)


Identifier = Union[ScalarId, CompositeId]
RawIdentifier = Union[str, Mapping[str, Any]]


def parse(raw: Identifier | RawIdentifier | None) -> Identifier | None:
    """
    Convert a raw identifier from the wire (or from the user) to a tagged one.

    ``None`` stays ``None``: the resource is not persisted yet.
    """
    match raw:
        case None:
            return None
        case ScalarId() | CompositeId():
            return raw
        case str():
            return ScalarId(raw)
        case collections.abc.Mapping():
            return CompositeId.from_mapping(raw)
        case _:
            raise exceptions.IdentifierError(f"Unsupported identifier: {raw!r}")


def resolve(
        raw: Identifier | RawIdentifier | None,
        key: str,
) -> str:
    """
    Get a scalar id to be embedded in a request path.

    A scalar resolves to itself. A composite resolves to its value at ``key``.
    Fails if there is no id at all, if the composite has no such key,
    or if the resolved value is empty.
    """
    identifier = parse(raw)
    match identifier:
        case None:
            raise exceptions.IdentifierError(f"An identifier is required to resolve {key!r}.")
        case ScalarId():
            resolved = identifier.value
        case CompositeId():
            if key not in identifier:
                raise exceptions.IdentifierError(f"The identifier has no {key!r}: {identifier!r}")
            resolved = identifier[key]
    if resolved is None or resolved == '':
        raise exceptions.IdentifierError(f"The identifier resolves to an empty {key!r}: {identifier!r}")
    return str(resolved)


def resolve_context(
        raw: Identifier | RawIdentifier | None,
        key: str,
        explicit: Identifier | RawIdentifier | None = None,
) -> str:
    """
    Get a cross-resource context (e.g. ``list_id`` for an entry) for a path.

    The explicitly provided context has priority (and is resolved on its own,
    so that a whole composite id of the parent can be passed). Otherwise,
    the scope is looked up in the resource's own composite identifier.
    """
    if explicit is not None and explicit != '':
        return resolve(explicit, key)
    identifier = parse(raw)
    if isinstance(identifier, CompositeId) and identifier.get(key):
        return str(identifier[key])
    raise exceptions.IdentifierError(f"The context {key!r} is required but not provided.")
