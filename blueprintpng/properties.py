import logging


class Dependency:
    '''This makes the relation between fields possible.

    In practice this class allows to write something like

        class Simple(Chunk):
            length = fields.StructField('I')
            data = fields.StringField(Dependency('.length'))

    and have the length of the string contained in the field named 'data'
    strictly connected to the field named 'length': reading uses the value
    of 'length', writing a new value into 'data' updates 'length'.

    The expression is resolved like a relative module path: the leading '.'
    indicates the father of the field, the following components are
    attributes to traverse.
    '''
    def __init__(self, expression):
        if not expression.startswith('.'):
            raise ValueError(f'only relative expressions are supported, not \'{expression}\'')
        self.expression = expression
        self.logger = logging.getLogger(__name__)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.expression})>'

    def resolve_field(self, instance):
        field = instance.father
        if field is None:
            raise AttributeError(f'cannot resolve {self!r} for a field without father')

        # '.length'.split('.') -> ['', 'length']
        for component_name in self.expression.split('.')[1:]:
            field = getattr(field, component_name)

        self.logger.debug(' resolved %r as field %s', self, field.__class__.__name__)

        return field

    def resolve(self, instance):
        '''With this method we resolve the attribute with respect to the instance
        passed as argument.'''
        return self.resolve_field(instance).value

    def resolve_and_set(self, instance, value):
        self.resolve_field(instance).value = value
