"""
Tracking of the attribute changes between the load and the save of a resource.

The tracker keeps two states of the attributes: the original one (as loaded
from the server or as of the last save) and the current one (as modified
locally). The changed attributes are those whose current values differ from
the original values -- regardless of the intermediate writes: if a value is
changed and then set back to the original, it is not considered changed.

The states are isolated from the caller's values by structural cloning of
the nested mappings & lists, so that the caller's later in-place modifications
of the passed values do not leak into the tracked state unnoticed.
The same goes for the returned values: they are copies, and the modified
copies must be stored back via :meth:`AttributeTracker.set` to be tracked.

The tracker is not thread-safe: it assumes single-threaded access
to each individual resource instance.
"""
import collections.abc
from typing import Any, Iterable, Iterator, Mapping, MutableMapping

from attio._cogs.structs import diffs


def clone(value: Any) -> Any:
    """
    A structural (value-type) deep copy of the nested mappings & sequences.

    Scalars and unknown objects are shared, not copied: they are assumed
    to be immutable for the purposes of change tracking.
    """
    if isinstance(value, collections.abc.Mapping):
        return {key: clone(val) for key, val in value.items()}
    elif isinstance(value, list):
        return [clone(val) for val in value]
    elif isinstance(value, tuple):
        return tuple(clone(val) for val in value)
    elif isinstance(value, (set, frozenset)):
        return type(value)(clone(val) for val in value)
    else:
        return value


class AttributeTracker(Mapping[str, Any]):
    """
    The current attributes of a resource with their change tracking.

    It is a read-only mapping of the current values. All modifications go
    via :meth:`set`, so that they can be tracked.
    """

    def __init__(self, __attributes: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        self._current: MutableMapping[str, Any] = clone(dict(__attributes or {}))
        self._original: MutableMapping[str, Any] = clone(self._current)
        self._changed: set[str] = set()

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self._current!r}, changed={sorted(self._changed)!r})'

    def __len__(self) -> int:
        return len(self._current)

    def __iter__(self) -> Iterator[str]:
        return iter(self._current)

    def __getitem__(self, name: str) -> Any:
        return clone(self._current[name])

    @property
    def original(self) -> Mapping[str, Any]:
        return clone(self._original)

    @property
    def changed(self) -> bool:
        return bool(self._changed)

    @property
    def changed_names(self) -> frozenset[str]:
        return frozenset(self._changed)

    @property
    def changed_attributes(self) -> dict[str, Any]:
        """ The changed attributes with their current values, e.g. for partial updates. """
        return {name: clone(self._current.get(name)) for name in sorted(self._changed)}

    @property
    def changes(self) -> dict[str, tuple[Any, Any]]:
        """ The changed attributes with their original & current values. """
        return {name: (self._original.get(name), self._current.get(name)) for name in sorted(self._changed)}

    def diff(self) -> diffs.Diff:
        """ A field-level diff of the original vs. current attributes. """
        return diffs.diff(self._original, self._current)

    def set(self, name: str, value: Any) -> bool:
        """
        Store a new value and mark it as changed if it differs from the original.

        Returns ``True`` if the current value was modified, ``False`` otherwise.
        """
        if name in self._current and self._current[name] == value:
            return False

        self._current[name] = clone(value)
        if name in self._original and self._original[name] == value:
            self._changed.discard(name)
        else:
            self._changed.add(name)
        return True

    def update(self, __values: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> None:
        items = __values.items() if isinstance(__values, collections.abc.Mapping) else __values
        for name, value in items:
            self.set(name, value)

    def discard(self, name: str) -> None:
        """ Restore one attribute to its original value (or remove it if new). """
        if name in self._original:
            self._current[name] = clone(self._original[name])
        else:
            self._current.pop(name, None)
        self._changed.discard(name)

    def reset(self, __attributes: Mapping[str, Any] | None = None) -> None:
        """
        Accept the current (or the given) attributes as the new original state.

        Used after the resource is saved or re-loaded from the server.
        """
        if __attributes is not None:
            self._current = clone(dict(__attributes))
        self._original = clone(self._current)
        self._changed.clear()

    def revert(self) -> None:
        """ Discard all local changes and restore the original attributes. """
        self._current = clone(self._original)
        self._changed.clear()

    def clear(self) -> None:
        """ Forget everything: used when the resource is deleted. """
        self._current = {}
        self._original = {}
        self._changed.clear()
