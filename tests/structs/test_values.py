import pytest

from attio._cogs.structs.exceptions import InvalidRequestError
from attio._cogs.structs.values import AttributeSpec, Schema, Shape, build_personal_name, \
                                       egress, egress_values, ingest, ingest_values


def test_generic_ingestion_unwraps_and_collapses_single_values():
    assert ingest([{'value': 'Acme', 'attribute_type': 'text'}]) == 'Acme'


def test_generic_ingestion_keeps_multiple_values_as_a_list():
    assert ingest([{'value': 1}, {'value': 2}]) == [1, 2]


def test_generic_ingestion_unwraps_references():
    wire = [{'target_object': 'companies', 'target_record_id': 'c1'}]
    assert ingest(wire) == 'c1'


def test_generic_ingestion_keeps_unknown_mappings():
    wire = [{'domain': 'acme.com', 'root_domain': 'acme.com'}]
    assert ingest(wire) == {'domain': 'acme.com', 'root_domain': 'acme.com'}


def test_generic_ingestion_is_idempotent():
    once = ingest([{'value': 'Acme'}])
    assert ingest(once) == once


def test_generic_egress_wraps_scalars_and_passes_mappings():
    assert egress('Acme') == {'value': 'Acme'}
    assert egress(None) == {'value': None}
    assert egress({'domain': 'acme.com'}) == {'domain': 'acme.com'}
    assert egress([1, 2]) == [{'value': 1}, {'value': 2}]


@pytest.mark.parametrize('type_, shape', [
    ('text', Shape.SCALAR),
    ('domain', Shape.KEYED),
    ('status', Shape.CHOICE),
    ('personal-name', Shape.STRUCTURED),
    ('record-reference', Shape.REFERENCE),
    ('actor-reference', Shape.ACTOR),
    ('raw', Shape.RAW),
    ('something-new', Shape.SCALAR),
])
def test_spec_shapes(type_, shape):
    assert AttributeSpec(slug='x', type=type_).shape is shape


def test_keyed_values_are_unwrapped_by_their_keys():
    spec = AttributeSpec(slug='domains', type='domain', multivalued=True)
    wire = [{'domain': 'acme.com', 'root_domain': 'acme.com'}]
    assert ingest(wire, spec) == ['acme.com']
    assert egress(['acme.com'], spec) == [{'domain': 'acme.com'}]


def test_multivalued_attributes_are_lists_even_with_one_value():
    spec = AttributeSpec(slug='emails', type='email-address', multivalued=True)
    assert ingest([{'email_address': 'a@x.com'}], spec) == ['a@x.com']
    assert ingest({'email_address': 'a@x.com'}, spec) == ['a@x.com']


def test_single_valued_attributes_collapse_and_empty_ones_become_none():
    spec = AttributeSpec(slug='title', type='text')
    assert ingest([{'value': 'CEO'}], spec) == 'CEO'
    assert ingest([], spec) is None


def test_choices_are_unwrapped_to_titles():
    spec = AttributeSpec(slug='stage', type='status')
    wire = [{'status': {'id': {'status_id': 's1'}, 'title': 'Open'}}]
    assert ingest(wire, spec) == 'Open'
    assert egress('Open', spec) == {'status': 'Open'}


def test_references_are_unwrapped_to_record_ids():
    spec = AttributeSpec(slug='company', type='record-reference', target_object='companies')
    wire = [{'target_object': 'companies', 'target_record_id': 'c1'}]
    assert ingest(wire, spec) == 'c1'
    assert egress('c1', spec) == {'target_object': 'companies', 'target_record_id': 'c1'}


def test_references_without_target_require_shaped_values():
    spec = AttributeSpec(slug='related', type='record-reference')
    with pytest.raises(InvalidRequestError, match=r"no target object"):
        egress('c1', spec)
    shaped = {'target_object': 'deals', 'target_record_id': 'd1'}
    assert egress(shaped, spec) == shaped


def test_actors_are_unwrapped_and_wrapped():
    spec = AttributeSpec(slug='owner', type='actor-reference')
    wire = [{'referenced_actor_type': 'workspace-member', 'referenced_actor_id': 'm1'}]
    assert ingest(wire, spec) == 'm1'
    assert egress('m1', spec) == {'referenced_actor_type': 'workspace-member', 'referenced_actor_id': 'm1'}


def test_personal_names_are_structured_on_egress():
    spec = AttributeSpec(slug='name', type='personal-name')
    assert egress('Ada Lovelace', spec) == {
        'first_name': 'Ada', 'last_name': 'Lovelace', 'full_name': 'Ada Lovelace',
    }


def test_structured_values_reject_scalars():
    spec = AttributeSpec(slug='location', type='location')
    with pytest.raises(InvalidRequestError, match=r"structured value"):
        egress('Berlin', spec)


def test_raw_values_are_passed_as_is():
    spec = AttributeSpec(slug='config', type='raw')
    value = [{'value': 1}]
    assert ingest(value, spec) is value
    assert egress(value, spec) is value


def test_values_mappings_use_the_schema_per_key():
    schema = Schema([AttributeSpec(slug='domains', type='domain', multivalued=True)])
    wire = {'domains': [{'domain': 'acme.com'}], 'name': [{'value': 'Acme'}]}
    assert ingest_values(wire, schema) == {'domains': ['acme.com'], 'name': 'Acme'}
    assert egress_values({'domains': ['acme.com'], 'name': 'Acme'}, schema) == {
        'domains': [{'domain': 'acme.com'}], 'name': {'value': 'Acme'},
    }


def test_schema_from_raw_attributes():
    schema = Schema.from_attributes([
        {'api_slug': 'team', 'type': 'record-reference', 'is_multiselect': True,
         'config': {'record_reference': {'allowed_object_ids': ['people']}}},
        {'api_slug': 'stage', 'type': 'status'},
        {'api_slug': None, 'type': 'text'},
    ])
    assert set(schema) == {'team', 'stage'}
    assert schema['team'] == AttributeSpec(slug='team', type='record-reference',
                                           multivalued=True, target_object='people')
    assert schema['stage'].multivalued is False


def test_schemas_are_merged_with_the_right_side_winning():
    left = Schema([AttributeSpec(slug='a', type='text'), AttributeSpec(slug='b', type='text')])
    merged = left | [AttributeSpec(slug='b', type='number')]
    assert merged['a'].type == 'text'
    assert merged['b'].type == 'number'


@pytest.mark.parametrize('kwargs, expected', [
    (dict(full_name='Ada Lovelace'), ('Ada', 'Lovelace', 'Ada Lovelace')),
    (dict(full_name='Ada'), ('Ada', '', 'Ada')),
    (dict(full_name='Ada King Lovelace'), ('Ada', 'King Lovelace', 'Ada King Lovelace')),
    (dict(first_name='Ada', last_name='Lovelace'), ('Ada', 'Lovelace', 'Ada Lovelace')),
])
def test_personal_names(kwargs, expected):
    name = build_personal_name(**kwargs)
    assert (name['first_name'], name['last_name'], name['full_name']) == expected


SCALAR_VALUES = ['Acme', '', 42, 0, 3.14, True, False, None]


@pytest.mark.parametrize('value', SCALAR_VALUES)
def test_generic_scalars_survive_egress_and_ingestion(value):
    assert ingest(egress(value)) == value


@pytest.mark.parametrize('type_', ['text', 'number', 'checkbox', 'date', 'timestamp', 'rating'])
@pytest.mark.parametrize('value', SCALAR_VALUES)
def test_scalar_specs_survive_egress_and_ingestion(value, type_):
    spec = AttributeSpec('x', type=type_)
    assert ingest(egress(value, spec), spec) == value


@pytest.mark.parametrize('wire', [
    [{'value': 'Acme'}],
    [{'value': 1}, {'value': 2}],
    [{'target_object': 'companies', 'target_record_id': 'c1'}],
    [{'domain': 'acme.com', 'root_domain': 'acme.com'}],
    {'value': None},
    [],
    None,
])
def test_generic_ingestion_is_idempotent_for_every_shape(wire):
    once = ingest(wire)
    assert ingest(once) == once


@pytest.mark.parametrize('spec, wire, expected', [
    (AttributeSpec('name', type='text'), [{'value': 'Acme'}], 'Acme'),
    (AttributeSpec('size', type='number'), [{'value': 5}], 5),
    (AttributeSpec('domains', type='domain', multivalued=True),
     [{'domain': 'a.com', 'root_domain': 'a.com'}], ['a.com']),
    (AttributeSpec('email', type='email-address'), [{'email_address': 'ada@example.com'}], 'ada@example.com'),
    (AttributeSpec('value', type='currency'), [{'currency_value': 100, 'currency_code': 'USD'}], 100),
    (AttributeSpec('stage', type='status'), [{'status': {'title': 'Won', 'id': {'status_id': 's1'}}}], 'Won'),
    (AttributeSpec('tags', type='select', multivalued=True),
     [{'option': {'title': 'A'}}, {'option': {'title': 'B'}}], ['A', 'B']),
    (AttributeSpec('name', type='personal-name'),
     [{'first_name': 'Ada', 'last_name': 'Lovelace', 'full_name': 'Ada Lovelace'}],
     {'first_name': 'Ada', 'last_name': 'Lovelace', 'full_name': 'Ada Lovelace'}),
    (AttributeSpec('company', type='record-reference'),
     [{'target_object': 'companies', 'target_record_id': 'c1'}], 'c1'),
    (AttributeSpec('team', type='record-reference', multivalued=True),
     [{'target_object': 'people', 'target_record_id': 'p1'},
      {'target_object': 'people', 'target_record_id': 'p2'}], ['p1', 'p2']),
    (AttributeSpec('owner', type='actor-reference'),
     [{'referenced_actor_type': 'workspace-member', 'referenced_actor_id': 'm1'}], 'm1'),
    (AttributeSpec('notes', type='raw'), [{'anything': 1}], [{'anything': 1}]),
    (AttributeSpec('name', type='text'), [], None),
])
def test_ingestion_by_specs_is_idempotent(spec, wire, expected):
    once = ingest(wire, spec)
    assert once == expected
    assert ingest(once, spec) == once
