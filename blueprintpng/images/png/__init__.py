'''
# Portable Network Graphics

The specification is at <http://www.libpng.org/pub/png/spec/1.2/PNG-Contents.html> and
is available a full test-suite with a lot of PNG images covering all
the possible cases at <http://www.schaik.com/pngsuite/>.

A PNG file is the signature followed by a sequence of chunks, the first
one is IHDR and the last one is IEND. Whatever follows IEND is not part of
the format but some tools append data there, so we keep it as "trailer".

'''
from enum import Enum

from blueprintpng.core import Chunk
from blueprintpng import fields
from blueprintpng.common import crc
from blueprintpng.enum import Compliant
from blueprintpng.exceptions import CorruptChunk, MalformedContainer, TruncatedContainer
from blueprintpng.meta import Endianess
from blueprintpng.properties import Dependency
from .utils import chunk_type_properties


PNG_SIGNATURE = b'\x89\x50\x4e\x47\x0d\x0a\x1a\x0a'


class PNGColorType(Enum):
    '''The color type definition of the PNG is a little tricky and doesn't seem
    to follow a bit-mask. We are going to list all the valid cases.'''
    GRAYSCALE = 0x00
    RGB       = 0x02
    RGB_PALETTE = 0x03
    GS_ALPHA    = 0x04
    RGBA        = 0x06


class IHDRData(Chunk):
    '''
    Width and height give the image dimensions in pixels.
    Bit depth is a single-byte integer giving the number of bits per sample or per palette index (not per pixel).
    Color type is a single-byte integer that describes the interpretation of the image data.
    '''
    width       = fields.StructField('I', endianess=Endianess.BIG_ENDIAN)
    height      = fields.StructField('I', endianess=Endianess.BIG_ENDIAN)
    depth       = fields.StructField('B')
    color       = fields.StructField('B', enum=PNGColorType, default=PNGColorType.GRAYSCALE)
    compression = fields.StructField('B')
    filter      = fields.StructField('B')
    interlace   = fields.StructField('B')

    def __str__(self):
        return '%dx%dx%d' % (
            self.width.value,
            self.height.value,
            self.depth.value,
        )


class PNGHeader(Chunk):
    magic = fields.StringField(8, default=PNG_SIGNATURE, is_magic=True)


class PNGChunk(Chunk):
    '''This is the main data structure of the format: the 4 fields represent
    a chunk into the file. Each field is intended big-endian.

    A chunk is defined as critical or ancillary depending on the case of the
    starting letter of the type field.

    The crc field is network-byte-order CRC-32 computed over the chunk type and chunk data, but not the length.

    # Critical chunks

     1. IHDR: contains image's width, height, bit depth, color type, compression method, filter method and interlace method
     2. PLTE: contains the palette data
     3. IDAT: contains the actual image data (compressed)
     4. IEND: is the terminator chunk
    '''
    length = fields.StructField('I', endianess=Endianess.BIG_ENDIAN)
    type   = fields.StringField(4)
    data   = fields.StringField(Dependency('.length'))
    crc    = crc.CRCField(['type', 'data'], endianess=Endianess.BIG_ENDIAN)

    @classmethod
    def build(cls, tag: bytes, data: bytes) -> "PNGChunk":
        '''Create a new chunk with length and crc consistent with its content.'''
        chunk = cls()
        chunk.type.value = tag
        chunk.data.value = data
        chunk.crc._update_value()

        return chunk

    @property
    def tag(self) -> bytes:
        return self.type.value

    def isCritical(self):
        return not chunk_type_properties(self.tag).ancillary

    def unpack(self, stream):
        try:
            super().unpack(stream)
        except CorruptChunk as e:
            e.tag = self.tag
            raise

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.tag!r}, length={self.length.value}, crc=0x{self.crc.value:08x})>'


class PNGFile(Chunk):
    header  = PNGHeader()
    chunks  = fields.ArrayField(PNGChunk(), canary=lambda x: x.tag == b'IEND')
    trailer = fields.PaddingField()

    def validate(self):
        if len(self.chunks) == 0:
            raise TruncatedContainer('no chunks after the signature', offset=len(PNG_SIGNATURE))

        if self.chunks[0].tag != b'IHDR':
            raise MalformedContainer('the first chunk must be IHDR', offset=len(PNG_SIGNATURE))

        if self.chunks[-1].tag != b'IEND':
            end = self.chunks.offset + self.chunks.size
            raise TruncatedContainer('IEND chunk not found', offset=end)


def scan(data, compliant=Compliant.STRICT) -> PNGFile:
    '''Parse a PNG container.

    With the default compliance a wrong signature raises MalformedContainer,
    a wrong CRC raises CorruptChunk and data ending before IEND raises
    TruncatedContainer. Pass Compliant.NONE to only log signature and CRC
    problems.
    '''
    return PNGFile(data, compliant=compliant)


def serialize(chunks, trailer=b'') -> bytes:
    '''Build a container out of (tag, data) couples, recomputing lengths and CRCs.'''
    png = PNGFile()
    for tag, data in chunks:
        png.chunks.append(PNGChunk.build(tag, data))
    png.trailer.value = trailer

    return png.pack()
