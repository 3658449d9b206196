import copy

import pytest

from blueprintpng.compact import CompactTable, decode, decode_fields, decode_row, is_compact
from blueprintpng.exceptions import SchemaMismatch


DICTIONARY = ['name', 'qty']


def test_decode():
    table = CompactTable.from_json({
        '_': DICTIONARY,
        'v': [['Iron', 10], ['Clay', 4]],
    })

    assert decode(table) == [
        {'name': 'Iron', 'qty': 10},
        {'name': 'Clay', 'qty': 4},
    ]


def test_decode_nested():
    table = CompactTable.from_json({
        '_': DICTIONARY,
        'v': [[['A', 1], ['B', 2]]],
    })

    assert decode(table) == [
        [{'name': 'A', 'qty': 1}, {'name': 'B', 'qty': 2}],
    ]


def test_decode_deeply_nested():
    row = [[[['A', 1]], [['B', 2], ['C', 3]]]]

    assert decode_row(row, DICTIONARY) == [
        [[{'name': 'A', 'qty': 1}], [{'name': 'B', 'qty': 2}, {'name': 'C', 'qty': 3}]],
    ]


def test_values_are_not_interpreted():
    # only the first element decides if the row is nested
    row = ['Steel', [1, 2, 3]]

    assert decode_row(row, DICTIONARY) == {'name': 'Steel', 'qty': [1, 2, 3]}


def test_decode_is_deterministic():
    table = CompactTable.from_json({'_': DICTIONARY, 'v': [['Iron', 10], [['A', 1]]]})

    assert decode(table) == decode(table)


def test_row_length_mismatch():
    with pytest.raises(SchemaMismatch):
        decode_row(['Iron'], DICTIONARY)

    with pytest.raises(SchemaMismatch):
        decode_row(['Iron', 10, 'extra'], DICTIONARY)

    with pytest.raises(SchemaMismatch):
        decode_row([], DICTIONARY)

    # the mismatch is detected at any depth
    with pytest.raises(SchemaMismatch):
        decode_row([['A', 1], ['B']], DICTIONARY)


def test_row_not_a_list():
    with pytest.raises(SchemaMismatch):
        decode(CompactTable(dictionary=tuple(DICTIONARY), rows=['Iron']))


def test_duplicated_names():
    with pytest.raises(SchemaMismatch):
        CompactTable.from_json({'_': ['name', 'name'], 'v': []})


def test_not_compact():
    with pytest.raises(SchemaMismatch):
        CompactTable.from_json({'_': DICTIONARY})

    assert is_compact({'_': [], 'v': []})
    assert not is_compact({'_': 'name', 'v': []})
    assert not is_compact([DICTIONARY, []])


def test_empty():
    assert decode(CompactTable.from_json({'_': DICTIONARY, 'v': []})) == []
    assert decode_row([], []) == {}


def test_decode_fields():
    obj = {
        'version': 3,
        'buildings': {'_': DICTIONARY, 'v': [['Smelter', 2]]},
        'meta': {'author': 'me'},
    }
    original = copy.deepcopy(obj)

    decoded = decode_fields(obj)

    assert decoded == {
        'version': 3,
        'buildings': [{'name': 'Smelter', 'qty': 2}],
        'meta': {'author': 'me'},
    }
    # the input is untouched
    assert obj == original


def test_decode_fields_mismatch():
    with pytest.raises(SchemaMismatch):
        decode_fields({'buildings': {'_': DICTIONARY, 'v': [['Smelter']]}})


def test_names_must_be_strings():
    with pytest.raises(SchemaMismatch):
        CompactTable.from_json({'_': [['name'], 'qty'], 'v': []})

    with pytest.raises(SchemaMismatch):
        CompactTable.from_json({'_': [1, 'qty'], 'v': []})


def test_nested_too_deeply():
    row = ['Iron']
    for _ in range(5000):
        row = [row]

    with pytest.raises(SchemaMismatch):
        decode(CompactTable(dictionary=('name',), rows=[row]))
