import datetime

import pytest

from attio import APIResource, Field, IdentifierError, InvalidRequestError, Task
from attio._core.resources.base import parse_timestamp


class Widget(APIResource):
    RESOURCE = 'widget'
    ID_KEY = 'widget_id'
    PATH = 'widgets'

    name = Field()
    size = Field(readonly=True)
    color = Field(default='grey')


@pytest.fixture()
def widget(transport):
    return Widget.from_wire({'data': {
        'id': {'workspace_id': 'ws', 'widget_id': 'w1'},
        'created_at': '2024-01-02T03:04:05Z',
        'name': 'A',
        'size': 3,
    }}, transport=transport)


def test_fields_are_collected_into_the_schema():
    assert set(Widget.schema) == {'name', 'size', 'color'}


def test_unbound_fields_have_no_spec():
    with pytest.raises(TypeError):
        Field().spec


def test_readonly_fields_cannot_be_set(widget):
    with pytest.raises(AttributeError, match=r"read-only"):
        widget.size = 5
    assert widget.size == 3


def test_field_defaults():
    assert Widget().color == 'grey'
    assert Task().format == 'plaintext'
    assert 'color' not in Widget()


@pytest.mark.parametrize('value, expected', [
    ('2024-01-02T03:04:05Z', datetime.datetime(2024, 1, 2, 3, 4, 5, tzinfo=datetime.timezone.utc)),
    (0, datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)),
    (datetime.datetime(2020, 1, 1), datetime.datetime(2020, 1, 1)),
    ('not a date', None),
    ('', None),
    (True, None),
    (None, None),
])
def test_timestamps_parsing(value, expected):
    assert parse_timestamp(value) == expected


def test_construction_from_the_wire(widget):
    assert widget.persisted
    assert widget.scalar_id == 'w1'
    assert widget.id == {'workspace_id': 'ws', 'widget_id': 'w1'}
    assert widget.created_at == datetime.datetime(2024, 1, 2, 3, 4, 5, tzinfo=datetime.timezone.utc)
    assert widget.name == 'A'
    assert widget['size'] == 3
    assert 'name' in widget
    assert 'color' not in widget
    assert not widget.changed
    assert widget.metadata == {}


def test_new_resources_are_not_persisted():
    widget = Widget(name='A')
    assert not widget.persisted
    assert widget.scalar_id is None
    assert widget.changed_attributes == {'name': 'A'}


def test_to_dict(widget):
    assert widget.to_dict() == {
        'id': {'workspace_id': 'ws', 'widget_id': 'w1'},
        'created_at': '2024-01-02T03:04:05+00:00',
        'name': 'A',
        'size': 3,
    }


def test_equality(widget):
    same = Widget.from_wire({'id': {'workspace_id': 'ws', 'widget_id': 'w1'}, 'name': 'A', 'size': 3})
    other = Widget.from_wire({'id': {'workspace_id': 'ws', 'widget_id': 'w1'}, 'name': 'B', 'size': 3})
    assert widget == same
    assert widget != other
    assert widget != {'name': 'A', 'size': 3}


def test_changes_are_tracked(widget):
    widget.name = 'B'
    assert widget.changed
    assert widget.changes == {'name': ('A', 'B')}

    widget.name = 'A'
    assert not widget.changed

    widget['name'] = 'C'
    widget.revert()
    assert widget.name == 'A'
    assert not widget.changed


async def test_saving_a_new_resource_creates_it(transport):
    transport.add('POST', 'widgets', {'data': {'id': 'w1', 'name': 'A'}})
    widget = Widget(name='A')

    await widget.save(transport=transport)

    assert transport.calls[0].params == {'data': {'name': 'A'}}
    assert widget.scalar_id == 'w1'
    assert widget.transport is transport
    assert not widget.changed


async def test_saving_sends_only_the_changes(transport, widget):
    transport.add('PATCH', 'widgets/w1', {})
    widget.name = 'B'

    await widget.save()

    assert transport.calls[0].params == {'data': {'name': 'B'}}
    assert widget.name == 'B'
    assert not widget.changed


async def test_saving_with_no_changes_makes_no_requests(transport, widget, assert_logs):
    await widget.save()
    assert transport.calls == []
    assert_logs([r"Nothing to save: no changes\."])


async def test_reloading_loses_the_local_changes(transport, widget):
    transport.add('GET', 'widgets/w1', {'data': {'id': 'w1', 'name': 'Z'}})
    widget.name = 'B'

    await widget.reload()

    assert widget.name == 'Z'
    assert not widget.changed


async def test_destroying_invalidates_the_instance(transport, widget):
    transport.add('DELETE', 'widgets/w1', {})

    result = await widget.destroy()

    assert result is True
    assert not widget.persisted
    assert widget.created_at is None
    assert dict(widget.attributes) == {}


async def test_destroying_a_new_resource_fails_locally(transport):
    with pytest.raises(IdentifierError):
        await Widget(name='A').destroy(transport=transport)
    assert transport.calls == []


async def test_creation_is_logged(transport, assert_logs):
    transport.add('POST', 'widgets', {'id': 'w1', 'name': 'A'})
    await Widget.create({'name': 'A'}, transport=transport)
    assert_logs([r"Created widget with attributes: \['name'\]"])


async def test_listing_with_query_parameters(transport):
    transport.add('GET', 'widgets', {'data': [{'id': 'w1'}]})

    page = await Widget.list({'extra': 1}, sort='name', limit=5, transport=transport)

    assert len(page) == 1
    assert transport.calls[0].params == {'extra': 1, 'sort': 'name', 'limit': 5}


async def test_unexpected_context_arguments(transport):
    with pytest.raises(TypeError, match=r"unexpected arguments: object"):
        await Widget.list(object='people', transport=transport)


async def test_no_transport_at_all():
    with pytest.raises(RuntimeError, match=r"No transport"):
        await Widget.retrieve('w1')


class Settings(APIResource):
    RESOURCE = 'settings'
    PATH = 'settings'
    SINGLETON = True

    theme = Field()


async def test_singletons_are_neither_listed_nor_retrieved(transport):
    with pytest.raises(InvalidRequestError, match=r"Settings is a single document"):
        await Settings.list(transport=transport)
    with pytest.raises(InvalidRequestError, match=r"'retrieve' is not possible"):
        await Settings.retrieve('s1', transport=transport)
    with pytest.raises(InvalidRequestError):
        async for _ in Settings.iterate(transport=transport):
            pass
    assert transport.calls == []


async def test_singletons_are_reloaded_from_their_path(transport):
    transport.add('GET', 'settings', {'data': {'theme': 'dark'}})
    settings = Settings.from_wire({'theme': 'light'}, transport=transport)
    await settings.reload()
    assert settings.theme == 'dark'
    assert transport.calls[0].path == 'settings'
