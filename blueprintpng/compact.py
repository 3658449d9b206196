'''
# Compact tables

To avoid repeating the field names for each object the parser service
sends lists of records as

    {"_": ["name", "qty"], "v": [["Iron", 10], ["Clay", 4]]}

i.e. a dictionary of field names and rows of values aligned to it. A row
can itself be a list of rows (and so on) in which case it decodes to a
list of records:

    {"_": ["name", "qty"], "v": [[["A", 1], ["B", 2]]]}

decodes to [[{"name": "A", "qty": 1}, {"name": "B", "qty": 2}]].
'''
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

from .exceptions import SchemaMismatch


logger = logging.getLogger(__name__)

DICTIONARY_KEY = '_'
ROWS_KEY = 'v'


@dataclass(frozen=True)
class CompactTable:
    dictionary: Tuple[str, ...]
    rows: Sequence[Any]

    def __post_init__(self):
        for name in self.dictionary:
            if not isinstance(name, str):
                raise SchemaMismatch(f'field names must be strings, not {name.__class__.__name__}')

        if len(set(self.dictionary)) != len(self.dictionary):
            raise SchemaMismatch(f'duplicated field names in dictionary {list(self.dictionary)!r}')

    @classmethod
    def from_json(cls, obj: Dict[str, Any]) -> "CompactTable":
        if not is_compact(obj):
            raise SchemaMismatch('not a compact table')

        return cls(dictionary=tuple(obj[DICTIONARY_KEY]), rows=obj[ROWS_KEY])


def is_compact(obj) -> bool:
    return (
        isinstance(obj, dict)
        and isinstance(obj.get(DICTIONARY_KEY), list)
        and isinstance(obj.get(ROWS_KEY), list)
    )


def decode_row(row, dictionary: Sequence[str]):
    if not isinstance(row, (list, tuple)):
        raise SchemaMismatch(f'row must be a list, not {row.__class__.__name__}')

    # a list of rows
    if len(row) > 0 and isinstance(row[0], (list, tuple)):
        return [decode_row(inner, dictionary) for inner in row]

    if len(row) != len(dictionary):
        raise SchemaMismatch(f'row has {len(row)} values but the dictionary has {len(dictionary)} fields')

    return dict(zip(dictionary, row))


def decode(table: CompactTable) -> List[Any]:
    try:
        return [decode_row(row, table.dictionary) for row in table.rows]
    except RecursionError as e:
        raise SchemaMismatch('rows are nested too deeply') from e


def decode_fields(obj: Dict[str, Any]) -> Dict[str, Any]:
    '''Returns a copy of obj with every compact table decoded, the other
    fields are untouched.'''
    result = {}
    for key, value in obj.items():
        if is_compact(value):
            logger.debug('decompressing field \'%s\'', key)
            value = decode(CompactTable.from_json(value))

        result[key] = value

    return result
