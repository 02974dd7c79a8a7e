"""
Capabilities of the resource types: which operations the API permits on them.

Attio's API is not uniformly RESTful: some resources are read-only
(workspace members, the token's meta information, comment threads),
some are immutable once created (notes, comments), some cannot be deleted
(objects, attributes). The capabilities are declared per resource type and
checked centrally before any request is made.
"""
import enum

from attio._cogs.structs import exceptions


class Capability(enum.Flag):
    READ = enum.auto()
    CREATE = enum.auto()
    UPDATE = enum.auto()
    DELETE = enum.auto()

    READ_ONLY = READ
    IMMUTABLE = READ | CREATE | DELETE
    UNDELETABLE = READ | CREATE | UPDATE
    ALL = READ | CREATE | UPDATE | DELETE


def require(
        capabilities: Capability,
        needed: Capability,
        *,
        resource: str,
        operation: str,
) -> None:
    """
    Fail if the resource type does not permit the operation.
    """
    if needed not in capabilities:
        raise exceptions.ImmutableResourceError(
            f"{resource} does not support the {operation!r} operation.")
