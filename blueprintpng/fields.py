"""
A Field is "fundamental" datatype from the format point of view, something directly
packable/unpackable without need for relayouting.
"""
import logging
import struct
from enum import Enum
from typing import Dict

from .enum import Compliant
from .meta import FieldBase, Endianess
from .properties import Dependency
from .exceptions import MalformedContainer, TruncatedContainer, UnpackException


class Field(FieldBase):
    """Base class to subclass from"""

    def __init__(self, name=None, father=None, default=None, offset=None,
                 endianess=Endianess.LITTLE_ENDIAN, compliant=Compliant.INHERIT, is_magic=False):
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self.name = name
        self.father = father
        self.default = default
        self.offset = offset
        self.endianess = endianess
        self.compliant = compliant
        self.is_magic = is_magic

        self.init()

    def init(self):
        self.value = self.value_from_default()

    def value_from_default(self):
        return self.default

    def __str__(self):
        return str(self.value)

    def get_dependencies(self) -> Dict[str, Dependency]:
        """Return the dictionary containing as key the attribute depending on other fields"""
        return {_k.lstrip('_'): _v for _k, _v in self.__dict__.items() if isinstance(_v, Dependency)}

    def is_compliant(self, level):
        '''Walk up the hierarchy while the fields inherit their compliance.'''
        instance = self
        while instance is not None:
            if instance.compliant & level:
                return True
            if not instance.compliant & Compliant.INHERIT:
                break

            instance = instance.father

        return False

    value = property(
        fget=lambda self: self._get_value(),
        fset=lambda self, value: self._set_value(value))

    def _get_value(self):
        return self._value

    def _set_value(self, value):
        self._value = value

    def _get_size(self):
        raise NotImplementedError(f"method {self.__class__.__name__}._get_size() not implemented")

    size = property(
        fget=lambda self: self._get_size(),
    )

    def _get_raw(self) -> bytes:
        raise NotImplementedError(f"method {self.__class__.__name__}._get_raw() not implemented")

    raw = property(
        fget=lambda self: self._get_raw(),
    )

    def relayout(self, offset=0):
        self.offset = offset

        return self.size

    def _update_value(self):
        '''This is used to update the binary value before packing'''
        pass

    def pack(self):
        self._update_value()
        return self.raw

    def unpack(self, stream):
        raise NotImplementedError('you need to implement this in the subclass')

    def _read(self, stream, size):
        '''Read exactly "size" bytes, checking the request against what
        remains in the stream before reading anything.'''
        remaining = stream.remaining()
        if size > remaining:
            raise TruncatedContainer(
                f'{self.__class__.__name__} needs {size} bytes but only {remaining} remain',
                offset=stream.tell())

        return stream.read(size)


class StructField(Field):
    """
    Simplest of the fields: mimic the behaviour of the struct module packing/unpacking
    integers to/from bytes.

    The main advantage is the possibility to indicate via the "enum" argument some subclass
    of enum.Enum so to have directly a representation of the integer value of the field itself.
    """

    def __init__(self, format, default=0, enum=None, **kw):
        self.format = format
        self.enum = enum
        super().__init__(default=default, **kw)

    def __repr__(self):
        if not self.enum:
            return '<%s(%s)>' % (self.__class__.__name__, hex(self.value))

        return f'<{self.__class__.__name__}({self.value!r})>'

    def value_from_default(self):
        if not self.enum or isinstance(self.default, self.enum):
            return super().value_from_default()

        return self.enum(self.default)

    def get_format(self):
        return '%s%s' % ('<' if self.endianess == Endianess.LITTLE_ENDIAN else '>', self.format)

    def _get_size(self):
        return struct.calcsize(self.get_format())

    def _get_raw(self) -> bytes:
        value = self.value.value if isinstance(self.value, Enum) else self.value
        return struct.pack(self.get_format(), value)

    def _unpack_enum(self, value: int):
        try:
            return self.enum(value)
        except ValueError:
            self.logger.warning(f'enum {self.enum!r} doesn\'t have element with value 0x{value:x} in it')

        return value

    def unpack(self, stream):
        offset = stream.tell()
        raw = self._read(stream, self.size)
        value = struct.unpack(self.get_format(), raw)[0]

        if self.enum:
            value = self._unpack_enum(value)

        if self.is_magic and value != self.default:
            self.logger.warning('the magic doesn\'t correspond')
            if self.is_compliant(Compliant.MAGIC):
                raise MalformedContainer(f'expected magic {self.default!r}, found {value!r}', offset=offset)

        self._value = value


class StringField(Field):
    """Represent a contiguous chunk of bytes.

    The length can be fixed or a Dependency from another field: in the
    latter case setting a new value updates the field it depends on.
    """

    def __init__(self, n=None, **kw):
        if n is None and 'default' not in kw:
            raise ValueError("StringField must have 'n' or 'default' indicated!")

        self._length = n if n is not None else len(kw['default'])

        super().__init__(**kw)

    def __repr__(self):
        return '<%s(%s)>' % (self.__class__.__name__, repr(self.value))

    @property
    def length(self):
        if isinstance(self._length, Dependency):
            if self.father is None:
                return len(self._value)
            return self._length.resolve(self)

        return self._length

    def value_from_default(self):
        if self.default is not None:
            return self.default

        return b'' if isinstance(self._length, Dependency) else b'\x00' * self._length

    def _get_size(self):
        return len(self.value)

    def _set_value(self, value) -> None:
        value = bytes(value)
        if isinstance(self._length, Dependency):
            if self.father is not None:
                self._length.resolve_and_set(self, len(value))
        elif len(value) != self._length:
            raise ValueError(f'you are trying to set a value with the wrong size (that is {self._length} bytes)')

        self._value = value

    def _get_raw(self):
        return self.value

    def unpack(self, stream):
        offset = stream.tell()
        length = self.length

        if self.is_magic:
            value = stream.read(length)
            if value != self.default:
                self.logger.warning('the magic doesn\'t correspond')
                if self.is_compliant(Compliant.MAGIC):
                    raise MalformedContainer(f'expected magic {self.default!r}, found {value!r}', offset=offset)
        else:
            value = self._read(stream, length)

        self._value = value


class ArrayField(Field):
    '''Un/Pack an array of Chunks.

    You can indicate an explicit number of elements via the parameter named "n"
    or you can indicate with a callable returning True which element is the terminator
    for the list via the parameter named "canary". Without both the elements are
    unpacked until the end of the stream.
    '''

    def __init__(self, field, n=None, canary=None, **kw):
        self.field = field
        self._n = n
        self._canary = canary

        kw.setdefault('default', [])

        super().__init__(**kw)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.value!r})>'

    def __getitem__(self, item):
        return self.value[item]

    def __len__(self):
        return len(self.value)

    def __iter__(self):
        return iter(self.value)

    def value_from_default(self):
        return list(self.default)

    def _get_raw(self):
        return b''.join(element.raw for element in self.value)

    def _get_size(self):
        return sum(element.size for element in self.value)

    def relayout(self, offset=0):
        self.offset = offset
        size = 0
        for element in self.value:
            size += element.relayout(offset=offset + size)

        return size

    def _update_value(self):
        for element in self.value:
            element._update_value()

    def instance_element(self):
        return self.field.create(father=self)  # pass the father so that we don't lose the hierarchy

    def append(self, element):
        element.father = self
        self.value.append(element)

    def unpack(self, stream):
        self._value = []

        while self._n is None or len(self._value) < self._n:
            if stream.at_end():
                break

            element = self.instance_element()
            element.offset = stream.tell()

            try:
                element.unpack(stream)
            except UnpackException as e:
                e.chain.insert(0, str(len(self._value)))
                raise

            self._value.append(element)

            if self._canary is not None and self._canary(element):
                self.logger.debug('canary found after %d elements', len(self._value))
                break


class PaddingField(Field):
    '''Takes as much stream as possible'''

    def __init__(self, **kw):
        kw.setdefault('default', b'')
        super().__init__(**kw)

    def _get_size(self):
        return len(self.value)

    def _get_raw(self):
        return self.value

    def unpack(self, stream):
        self._value = stream.read_all()
