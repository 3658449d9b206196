import io
import logging
import os


logger = logging.getLogger(__name__)


class Stream(object):
    '''This is a simple wrapper around bytes/file objects to
    uniform their properties: mainly we need to know how many bytes
    are remaining so that a length read from the data can be checked
    before trusting it.'''
    def __init__(self, obj):
        '''Here we normalize the object in order to be accessed as a normal file object'''
        self._type = type(obj)
        self.obj = obj

        init_method_name = 'init_%s' % self.obj.__class__.__name__

        init_method = getattr(self, init_method_name, None)

        if init_method is None:
            raise ValueError(f'don\'t know how to make a stream out of \'{self._type.__name__}\'')

        init_method()

        self._size = self.obj.seek(0, os.SEEK_END)
        self.obj.seek(0)

    def __getattr__(self, name):
        if name == 'obj':
            raise AttributeError(name)
        return getattr(self.obj, name)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self._type.__name__}, size={self._size})>'

    def init_str(self):
        '''We think this is a path'''
        logger.debug('opening path \'%s\'' % self.obj)
        with open(self.obj, 'rb') as f:
            self.obj = io.BytesIO(f.read())

    def init_PosixPath(self):
        self.obj = str(self.obj)
        self.init_str()

    def init_bytes(self):
        '''We think these are raw bytes'''
        self.obj = io.BytesIO(self.obj)

    def init_bytearray(self):
        self.obj = io.BytesIO(bytes(self.obj))

    def init_memoryview(self):
        self.obj = io.BytesIO(self.obj.tobytes())

    def init_BytesIO(self):
        pass

    def remaining(self):
        return self._size - self.obj.tell()

    def at_end(self):
        return self.remaining() <= 0

    def seek(self, offset):
        if not isinstance(offset, int):
            raise ValueError('\'%s\' is the wrong kind of offset to use' % offset.__class__.__name__)

        return self.obj.seek(offset)

    def read_all(self):
        return self.obj.read()
