import logging
from collections import namedtuple
from typing import List

from bitstring import BitArray


logger = logging.getLogger(__name__)


KNOWN_CRITICAL = (b'IHDR', b'PLTE', b'IDAT', b'IEND')
MAX_CHUNKS = 1000
MAX_DIMENSION = 1000000

VALID_BIT_DEPTHS = {
    0: (1, 2, 4, 8, 16),
    2: (8, 16),
    3: (1, 2, 4, 8),
    4: (8, 16),
    6: (8, 16),
}


ChunkTypeProperties = namedtuple('ChunkTypeProperties', ['ancillary', 'private', 'reserved', 'safe_to_copy'])


def chunk_type_properties(tag: bytes) -> ChunkTypeProperties:
    '''Each byte of a chunk type carries a property in its fifth bit (the
    one that makes a letter lowercase):

     1. ancillary: the chunk is not necessary to display the image
     2. private: not defined by the PNG standard
     3. reserved: must be zero for the current version of PNG
     4. safe to copy: editors can copy it without knowing what it is
    '''
    if len(tag) != 4:
        raise ValueError(f'chunk type must be 4 bytes long, not {len(tag)}')

    bits = BitArray(tag)

    return ChunkTypeProperties(*[bits[idx * 8 + 2] for idx in range(4)])


def get_chunks_by_tag(chunks, tag: bytes) -> list:
    return [_ for _ in chunks if _.tag == tag]


def structure_warnings(png) -> List[str]:
    '''Returns a list of things that look suspicious in an (already valid)
    container without rejecting it.'''
    from . import IHDRData, PNGColorType

    warnings = []

    ihdr = png.chunks[0].data.value
    if len(ihdr) != 13:
        warnings.append('IHDR chunk has invalid length')
    else:
        header = IHDRData(ihdr)
        width, height = header.width.value, header.height.value

        if width == 0 or height == 0 or width > MAX_DIMENSION or height > MAX_DIMENSION:
            warnings.append(f'PNG dimensions are unusual: {width}x{height}')

        color = header.color.value
        if not isinstance(color, PNGColorType):
            warnings.append(f'Invalid PNG color type: {color}')
        elif header.depth.value not in VALID_BIT_DEPTHS[color.value]:
            warnings.append('Unusual bit depth for color type')

    for chunk in png.chunks:
        if chunk.isCritical() and chunk.tag not in KNOWN_CRITICAL:
            warnings.append(f'Unknown critical chunk: {chunk.tag.decode("latin1")}')

    if not get_chunks_by_tag(png.chunks, b'IDAT'):
        warnings.append('PNG file missing IDAT chunk')

    if len(png.chunks) >= MAX_CHUNKS:
        warnings.append('PNG file has too many chunks')

    if png.trailer.size:
        warnings.append(f'{png.trailer.size} bytes after IEND chunk')

    for warning in warnings:
        logger.debug(warning)

    return warnings
