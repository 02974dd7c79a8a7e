"""
Batches of independent operations with per-item outcomes.

The API has no transactional batches: every item is a separate request,
and some of them can fail while others succeed. Hence, the batches never
fail as a whole because of individual items: every item gets its own outcome,
either with a result or with an error, in the same order as the input.

Only the client's own errors (:class:`attio.AttioError`) are captured.
Other errors (programming errors, cancellations) are escalated as usual.
"""
import asyncio
import dataclasses
import logging
from typing import Any, Awaitable, Callable, Generic, Iterable, Optional, TypeVar

from attio._cogs.helpers import typedefs
from attio._cogs.structs import exceptions

_T = TypeVar('_T')

DEFAULT_CONCURRENCY = 5

logger = logging.getLogger('attio.batching')


@dataclasses.dataclass(frozen=True)
class BatchOutcome(Generic[_T]):
    index: int
    result: Optional[_T]
    error: Optional[exceptions.AttioError]

    @property
    def ok(self) -> bool:
        return self.error is None


async def run_batch(
        factories: Iterable[Callable[[], Awaitable[_T]]],
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        logger: typedefs.Logger = logger,
) -> list[BatchOutcome[_T]]:
    """
    Run the operations with a limited concurrency, and collect their outcomes.

    The operations are given as factories (e.g. lambdas) rather than coroutines,
    so that no coroutine is created before its turn comes.
    """
    if concurrency < 1:
        raise ValueError(f"The concurrency must be positive, got {concurrency!r}.")

    semaphore = asyncio.Semaphore(concurrency)

    async def run_one(index: int, factory: Callable[[], Awaitable[_T]]) -> BatchOutcome[_T]:
        async with semaphore:
            try:
                result = await factory()
            except exceptions.AttioError as e:
                logger.warning(f"Batch item #{index} failed: {e!r}")
                return BatchOutcome(index, None, e)
            else:
                return BatchOutcome(index, result, None)

    outcomes = await asyncio.gather(*(run_one(idx, factory) for idx, factory in enumerate(factories)))
    failed = sum(1 for outcome in outcomes if not outcome.ok)
    if failed:
        logger.info(f"Batch finished: {len(outcomes) - failed} succeeded, {failed} failed.")
    return list(outcomes)


def summarize(outcomes: Iterable[BatchOutcome[Any]]) -> dict[str, int]:
    outcomes = list(outcomes)
    failed = sum(1 for outcome in outcomes if not outcome.ok)
    return {'total': len(outcomes), 'succeeded': len(outcomes) - failed, 'failed': failed}
