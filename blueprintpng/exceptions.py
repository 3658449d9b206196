class BlueprintException(Exception):
    '''Base class to extend in order to throw exception in blueprintpng.

    The "chain" attribute represents the chain of the fields that were
    being unpacked when the exception happened (outermost first), "offset"
    is the position in the stream where it makes sense to look.
    '''

    def __init__(self, message='', chain=None, offset=None):
        self.message = message
        self.chain = chain if chain is not None else []
        self.offset = offset
        super().__init__(message)

    def __str__(self):
        msg = self.message
        if self.chain:
            msg = f'{msg} [{".".join(self.chain)}]'
        if self.offset is not None:
            msg = f'{msg} at offset 0x{self.offset:x}'

        return msg


class UnpackException(BlueprintException):
    pass


class MalformedContainer(UnpackException):
    '''The magic doesn't correspond or the structure is not the expected one.'''
    pass


class TruncatedContainer(UnpackException):
    '''The data ends before what the format declares.'''
    pass


class CorruptChunk(UnpackException):

    def __init__(self, message='', tag=None, **kwargs):
        self.tag = tag
        super().__init__(message, **kwargs)


class NotABlueprintContainer(BlueprintException):
    '''A valid container without blueprint inside: for a plain image
    this is the expected outcome, not a corruption.'''
    pass


class SchemaMismatch(BlueprintException):
    pass


class StreamDecodeError(BlueprintException):
    pass
