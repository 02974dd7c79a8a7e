"""
The unsupported operations fail locally, before any request is made.
"""
import pytest

from attio import Comment, ImmutableResourceError, InvalidRequestError, Meta, Note, Object, \
                  Thread, WorkspaceMember


@pytest.fixture()
def member(transport):
    return WorkspaceMember.from_wire({
        'id': {'workspace_id': 'w1', 'workspace_member_id': 'm1'},
        'first_name': 'Ada',
        'access_level': 'admin',
    }, transport=transport)


@pytest.fixture()
def note(transport):
    return Note.from_wire({
        'id': {'workspace_id': 'w1', 'note_id': 'n1'},
        'title': 'Call',
        'content_plaintext': 'Discussed the deal.',
    }, transport=transport)


async def test_read_only_resources_reject_saving(transport, member):
    member.set('first_name', 'Bob')
    with pytest.raises(ImmutableResourceError):
        await member.save()
    assert transport.calls == []


async def test_read_only_resources_reject_creation(transport):
    member = WorkspaceMember({'first_name': 'New'}, transport=transport)
    with pytest.raises(ImmutableResourceError):
        await member.save()
    with pytest.raises(ImmutableResourceError):
        await WorkspaceMember.create({'first_name': 'New'}, transport=transport)
    assert transport.calls == []


async def test_read_only_resources_reject_deletion(transport, member):
    with pytest.raises(ImmutableResourceError):
        await member.destroy()
    with pytest.raises(ImmutableResourceError):
        await WorkspaceMember.delete('m1', transport=transport)
    assert transport.calls == []
    assert member.persisted


async def test_immutable_resources_reject_updates(transport, note):
    note.set('title', 'Another')
    with pytest.raises(ImmutableResourceError):
        await note.save()
    with pytest.raises(ImmutableResourceError):
        await Note.update('n1', {'title': 'Another'}, transport=transport)
    with pytest.raises(ImmutableResourceError):
        await Comment.update('c1', {'content': 'Edited'}, transport=transport)
    assert transport.calls == []


async def test_immutable_resources_can_be_deleted(transport, note):
    transport.add('DELETE', 'notes/n1', {})
    assert await note.destroy()
    assert not note.persisted
    assert dict(note.attributes) == {}


async def test_undeletable_resources_reject_deletion(transport):
    with pytest.raises(ImmutableResourceError):
        await Object.delete('people', transport=transport)
    assert transport.calls == []


async def test_threads_are_read_only(transport):
    with pytest.raises(ImmutableResourceError):
        await Thread.create({'comments': []}, transport=transport)
    with pytest.raises(ImmutableResourceError):
        await Thread.delete('t1', transport=transport)
    assert transport.calls == []


async def test_meta_has_neither_ids_nor_collections(transport):
    with pytest.raises(InvalidRequestError):
        await Meta.retrieve('anything', transport=transport)
    with pytest.raises(InvalidRequestError):
        await Meta.list(transport=transport)
    with pytest.raises(ImmutableResourceError):
        await Meta.create({}, transport=transport)
    assert transport.calls == []
