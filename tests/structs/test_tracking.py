from attio._cogs.structs.diffs import DiffOperation
from attio._cogs.structs.tracking import AttributeTracker, clone


def test_clone_is_structural():
    value = {'a': [1, {'b': 2}], 'c': (3,)}
    cloned = clone(value)
    assert cloned == value
    assert cloned is not value
    assert cloned['a'] is not value['a']
    assert cloned['a'][1] is not value['a'][1]


def test_initial_state_is_unchanged():
    tracker = AttributeTracker({'name': 'Acme'})
    assert not tracker.changed
    assert dict(tracker) == {'name': 'Acme'}
    assert tracker.original == {'name': 'Acme'}


def test_setting_a_new_value_marks_it_changed():
    tracker = AttributeTracker({'name': 'Acme'})
    assert tracker.set('name', 'Acme Inc')
    assert tracker.changed
    assert tracker.changed_names == {'name'}
    assert tracker.changed_attributes == {'name': 'Acme Inc'}
    assert tracker.changes == {'name': ('Acme', 'Acme Inc')}


def test_setting_the_same_value_is_a_noop():
    tracker = AttributeTracker({'name': 'Acme'})
    assert not tracker.set('name', 'Acme')
    assert not tracker.changed


def test_setting_back_to_the_original_unmarks_the_change():
    tracker = AttributeTracker({'name': 'Acme'})
    tracker.set('name', 'Other')
    tracker.set('name', 'Acme')
    assert not tracker.changed


def test_caller_mutations_do_not_leak_into_the_state():
    value = ['a.com']
    tracker = AttributeTracker()
    tracker.set('domains', value)
    value.append('b.com')
    assert tracker['domains'] == ['a.com']


def test_discarding_restores_the_original_or_removes_the_new():
    tracker = AttributeTracker({'name': 'Acme'})
    tracker.set('name', 'Other')
    tracker.set('extra', 1)
    tracker.discard('name')
    tracker.discard('extra')
    assert dict(tracker) == {'name': 'Acme'}
    assert not tracker.changed


def test_resetting_accepts_the_current_state():
    tracker = AttributeTracker({'name': 'Acme'})
    tracker.set('name', 'Other')
    tracker.reset()
    assert not tracker.changed
    assert tracker.original == {'name': 'Other'}


def test_resetting_with_new_attributes_replaces_everything():
    tracker = AttributeTracker({'name': 'Acme'})
    tracker.set('name', 'Other')
    tracker.reset({'name': 'Server', 'domains': ['a.com']})
    assert dict(tracker) == {'name': 'Server', 'domains': ['a.com']}
    assert not tracker.changed


def test_reverting_drops_all_changes():
    tracker = AttributeTracker({'name': 'Acme'})
    tracker.update({'name': 'Other', 'extra': 1})
    tracker.revert()
    assert dict(tracker) == {'name': 'Acme'}
    assert not tracker.changed


def test_clearing_forgets_everything():
    tracker = AttributeTracker({'name': 'Acme'})
    tracker.clear()
    assert dict(tracker) == {}
    assert tracker.original == {}


def test_diff_of_the_changes():
    tracker = AttributeTracker({'name': 'Acme', 'old': 1})
    tracker.set('name', 'Other')
    tracker.set('new', 2)
    tracker.discard('old')  # no-op: unchanged
    diff = tracker.diff()
    assert diff == (
        (DiffOperation.ADD, ('new',), None, 2),
        (DiffOperation.CHANGE, ('name',), 'Acme', 'Other'),
    )
    assert diff.fields == {'new', 'name'}


def test_modified_copies_are_tracked_when_stored_back():
    tracker = AttributeTracker({'tags': ['a', 'b']})
    tags = tracker['tags']
    tags.append('c')
    assert tracker['tags'] == ['a', 'b']
    assert not tracker.changed

    assert tracker.set('tags', tags)
    assert tracker.changed_attributes == {'tags': ['a', 'b', 'c']}
    assert tracker.changes == {'tags': (['a', 'b'], ['a', 'b', 'c'])}


def test_returned_values_are_copies():
    tracker = AttributeTracker({'name': {'first_name': 'Ada'}})
    tracker.get('name')['first_name'] = 'Bob'
    tracker.original['name']['first_name'] = 'Eve'
    assert tracker['name'] == {'first_name': 'Ada'}
    assert tracker.original == {'name': {'first_name': 'Ada'}}
    assert not tracker.changed
