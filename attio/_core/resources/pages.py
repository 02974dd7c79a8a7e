"""
Pages of the listed resources, with the pagination metadata as given by the API.

Attio paginates differently across the endpoints: some return cursors
(``next_cursor``, ``cursor``, or ``pagination.next_cursor``), some are paged
by ``limit`` & ``offset`` with no metadata at all. The page keeps all the
top-level keys except ``data`` verbatim, and exposes the next cursor
exactly as received -- the client does not interpret or reorder anything.
"""
import collections.abc
from typing import Any, AsyncIterator, Awaitable, Callable, Generic, Iterator, Mapping, \
                   Optional, Sequence, TypeVar, Union, overload

_R = TypeVar('_R')

# A function to fetch another page with the same query, given the cursor or the offset.
PageFetcher = Callable[..., Awaitable[Any]]


class ListPage(Sequence[_R], Generic[_R]):

    def __init__(
            self,
            items: Sequence[_R],
            *,
            has_more: bool = False,
            next_cursor: Optional[str] = None,
            next_offset: Optional[int] = None,
            pagination: Optional[Mapping[str, Any]] = None,
            fetcher: Optional[PageFetcher] = None,
    ) -> None:
        super().__init__()
        self._items = tuple(items)
        self._has_more = has_more
        self._next_cursor = next_cursor
        self._next_offset = next_offset
        self._pagination = dict(pagination or {})
        self._fetcher = fetcher

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({list(self._items)!r}, has_more={self._has_more!r})'

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[_R]:
        return iter(self._items)

    @overload
    def __getitem__(self, i: int) -> _R: ...

    @overload
    def __getitem__(self, s: slice) -> Sequence[_R]: ...

    def __getitem__(self, item: Union[int, slice]) -> Union[_R, Sequence[_R]]:
        return self._items[item]

    @property
    def items(self) -> Sequence[_R]:
        return self._items

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def next_cursor(self) -> Optional[str]:
        return self._next_cursor

    @property
    def next_offset(self) -> Optional[int]:
        return self._next_offset

    @property
    def pagination(self) -> Mapping[str, Any]:
        """ All the top-level keys of the response except the data, verbatim. """
        return self._pagination

    async def next_page(self) -> Optional["ListPage[_R]"]:
        """
        Fetch the next page of the same query, or ``None`` if this one is the last.
        """
        if not self._has_more or self._fetcher is None:
            return None
        elif self._next_cursor is not None:
            return await self._fetcher(cursor=self._next_cursor)
        elif self._next_offset is not None:
            return await self._fetcher(offset=self._next_offset)
        else:
            return None

    async def iterate(self) -> AsyncIterator[_R]:
        """ Iterate over the items of this page and all the following pages. """
        page: Optional[ListPage[_R]] = self
        while page:  # neither None nor empty
            for item in page:
                yield item
            page = await page.next_page()


def parse_pagination(
        response: Mapping[str, Any],
        *,
        count: int,
        limit: Optional[int],
        offset: Optional[int],
) -> tuple[bool, Optional[str], Optional[int], dict[str, Any]]:
    """
    Extract ``(has_more, next_cursor, next_offset, pagination)`` from a list response.

    The cursor-based metadata wins if present. Otherwise, for the offset-paged
    queries, the page is assumed to have more items if it is full.
    """
    pagination = {key: val for key, val in response.items() if key != 'data'}
    nested = pagination.get('pagination')
    nested = nested if isinstance(nested, collections.abc.Mapping) else {}

    next_cursor = (
        pagination.get('next_cursor') if pagination.get('next_cursor') is not None else
        pagination.get('cursor') if pagination.get('cursor') is not None else
        nested.get('next_cursor')
    )

    if 'has_more' in pagination:
        has_more = bool(pagination['has_more'])
    elif 'has_more' in nested:
        has_more = bool(nested['has_more'])
    elif next_cursor is not None:
        has_more = True
    else:
        has_more = limit is not None and count > 0 and count >= limit

    next_offset = (offset or 0) + count if limit is not None and next_cursor is None else None
    return has_more, next_cursor, next_offset, pagination
