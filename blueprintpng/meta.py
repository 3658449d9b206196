import copy
import logging
from enum import Enum, auto


logger = logging.getLogger(__name__)


class Endianess(Enum):
    LITTLE_ENDIAN = auto()
    BIG_ENDIAN    = auto()


class FieldDescriptor(object):
    """Gives each Chunk instance its own copy of a declared field.

    The field declared in the class body is a template: the first time the
    attribute is read from an instance the template is deep-copied and the
    copy is linked to the instance via "father". Assigning to the attribute
    changes the value of the field, not the field itself.
    """

    def __init__(self, field_instance: "FieldBase", field_name: str):
        self.field = field_instance
        self.field.name = field_name

    @property
    def name(self) -> str:
        return self.field.name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self.field

        try:
            return instance.__dict__[self.name]
        except KeyError:
            field = instance.__dict__[self.name] = self.field.create(father=instance)
            return field

    def __set__(self, instance, value):
        self.__get__(instance).value = value


class FieldBase(object):

    def contribute_to_chunk(self, cls, name):
        logger.debug('adding field \'%s\' to %s', name, cls.__name__)
        cls._meta.fields.append(name)
        setattr(cls, name, FieldDescriptor(self, name))

    def create(self, father):
        instance = copy.deepcopy(self)
        instance.father = father
        return instance


class Meta(object):
    """Names of the fields of a Chunk class, in unpacking order."""

    def __init__(self, fields=()):
        self.fields = list(fields)


class MetaChunk(type):
    '''Collect the fields in order of declaration, a little like Django models
    do. The fields of the parent chunks come first.'''

    def __new__(cls, name, bases, attrs):
        fields = {k: v for k, v in attrs.items() if isinstance(v, FieldBase)}
        new_cls = super().__new__(cls, name, bases, {k: v for k, v in attrs.items() if k not in fields})

        inherited = []
        for base in bases:
            for field_name in getattr(base, '_meta', Meta()).fields:
                if field_name not in inherited:
                    inherited.append(field_name)

        new_cls._meta = Meta(inherited)

        for field_name, field in fields.items():
            if field_name in new_cls._meta.fields:
                raise AttributeError(f'field {field_name} is already present in class {name}')

            field.contribute_to_chunk(new_cls, field_name)

        return new_cls
