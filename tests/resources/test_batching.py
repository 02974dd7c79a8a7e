import asyncio

import pytest

from attio import APIValidationError, AttioError, BatchOutcome, IdentifierError, \
                  InvalidRequestError, Record, run_batch
from attio._core.resources.batching import summarize


class StrictRecord(Record):
    OBJECT = 'deals'

    @classmethod
    def validate_create(cls, attributes, **extras):
        if not attributes.get('name'):
            raise InvalidRequestError("A deal requires a name.")


async def test_outcomes_are_in_the_input_order():
    async def ok(value):
        return value

    async def fail():
        raise AttioError("boo")

    outcomes = await run_batch([lambda: ok(1), fail, lambda: ok(3)])

    assert [outcome.index for outcome in outcomes] == [0, 1, 2]
    assert [outcome.ok for outcome in outcomes] == [True, False, True]
    assert outcomes[0].result == 1
    assert outcomes[2].result == 3
    assert str(outcomes[1].error) == "boo"
    assert summarize(outcomes) == {'total': 3, 'succeeded': 2, 'failed': 1}


async def test_concurrency_is_limited():
    running = 0
    peak = 0

    async def op():
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0)
        running -= 1

    await run_batch([op] * 10, concurrency=3)

    assert peak == 3


async def test_unexpected_errors_escalate():
    async def fail():
        raise ZeroDivisionError()

    with pytest.raises(ZeroDivisionError):
        await run_batch([fail])


async def test_invalid_concurrency():
    with pytest.raises(ValueError):
        await run_batch([], concurrency=0)


async def test_failed_items_are_logged(assert_logs):
    async def fail():
        raise AttioError("boo")

    await run_batch([fail])

    assert_logs([r"Batch item #0 failed", r"0 succeeded, 1 failed"])


async def test_creating_a_batch_with_a_partial_failure(transport):
    transport.add('POST', 'objects/deals/records', {'data': {'id': 'd1', 'values': {'name': [{'value': 'A'}]}}})
    transport.add('POST', 'objects/deals/records', APIValidationError(
        {'message': 'Invalid', 'validation_errors': [{'path': ['name'], 'code': 'invalid'}]}, status=400))

    outcomes = await StrictRecord.create_batch([{'name': 'A'}, {'name': 'B'}], transport=transport)

    assert all(isinstance(outcome, BatchOutcome) for outcome in outcomes)
    assert outcomes[0].ok
    assert outcomes[0].result.id == 'd1'
    assert not outcomes[1].ok
    assert isinstance(outcomes[1].error, APIValidationError)
    assert outcomes[1].error.fields == ['name']


async def test_batches_are_validated_before_any_request(transport):
    with pytest.raises(InvalidRequestError):
        await StrictRecord.create_batch([{'name': 'A'}, {}], transport=transport)
    with pytest.raises(IdentifierError):
        await StrictRecord.delete_batch(['d1', None], transport=transport)
    with pytest.raises(IdentifierError):
        await Record.update_batch([('d1', {'name': 'B'})], transport=transport)  # no object
    assert transport.calls == []


async def test_updating_and_deleting_in_batches(transport):
    transport.add('PATCH', 'objects/deals/records/d1', {'data': {'id': 'd1', 'values': {}}})
    transport.add('DELETE', 'objects/deals/records/d2', {})

    updated = await StrictRecord.update_batch([('d1', {'name': 'B'})], transport=transport)
    deleted = await StrictRecord.delete_batch(['d2'], transport=transport)

    assert updated[0].result.id == 'd1'
    assert deleted[0].result is True
    assert transport.calls[0].params == {'data': {'values': {'name': {'value': 'B'}}}}
