'''
Separate a blueprint PNG into its two halves and put them back together.

A blueprint PNG is a normal image plus one (or more) ancillary chunks
carrying the blueprint. Uploading it we want two independent files:

 1. the "data-only" container: the structural chunks and the payload,
    without pixels. It's not drawable but tools that understand only the
    container can still open it, and it's much smaller;
 2. the "image-only" container: structural and pixel chunks, a plain PNG
    to use as preview.

Everything is rebuilt from scratch (lengths and CRCs recomputed) so the
output depends only on the input bytes.
'''
import hashlib
import io
import logging
import math
from dataclasses import dataclass
from pathlib import PurePath
from typing import Iterable, List, Optional, Tuple

from PIL import Image

from ..images.png import PNGFile, scan, serialize
from .config import ContainerFormat, DEFAULT_FORMAT
from .locator import ChunkClassification, ChunkRole, classify, locate


logger = logging.getLogger(__name__)

IEND = b'IEND'


@dataclass(frozen=True)
class ExtractionResult:
    stripped_file: bytes
    image_blob: Optional[bytes]
    original_size: int
    stripped_size: int
    compression_ratio: float
    legacy: bool = False

    @property
    def digest(self) -> str:
        '''Identifies the blueprint independently from its preview.'''
        return hashlib.sha256(self.stripped_file).hexdigest()

    def describe(self) -> str:
        return '%s -> %s (%s%% smaller)' % (
            format_bytes(self.original_size),
            format_bytes(self.stripped_size),
            self.compression_ratio,
        )


def format_bytes(size: int) -> str:
    if size == 0:
        return '0 Bytes'

    k = 1024
    sizes = ['Bytes', 'KB', 'MB', 'GB']
    i = min(int(math.floor(math.log(size, k))), len(sizes) - 1)

    return f'{round(size / k ** i, 2):g} {sizes[i]}'


def compression_ratio(original_size: int, stripped_size: int) -> float:
    '''Percentage of bytes saved, always between 0 and 100.'''
    if original_size <= 0:
        return 0.0

    ratio = (1 - stripped_size / original_size) * 100

    return round(min(max(ratio, 0.0), 100.0), 1)


def artifact_names(filename: str) -> Tuple[str, str]:
    '''The data-only container keeps the original name, the preview is always a PNG.'''
    path = PurePath(filename)

    return path.name, f'{path.stem}-preview.png'


def split_payload(payload: bytes, size: int) -> List[bytes]:
    if not payload:
        return [b'']

    return [payload[idx:idx + size] for idx in range(0, len(payload), size)]


def is_renderable(data: bytes) -> bool:
    '''Ask Pillow if the container is a PNG it can display.'''
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.verify()
    except (OSError, SyntaxError, ValueError) as e:
        logger.warning(f'Pillow refuses the image: {e}')
        return False

    return True


def _as_png(data) -> PNGFile:
    return data if isinstance(data, PNGFile) else scan(data)


def _rebuild(located: ChunkClassification, roles: Iterable[ChunkRole], trailer=b'') -> bytes:
    roles = tuple(roles)
    chunks = [(chunk.tag, chunk.data.value) for chunk, role in located.roles if role in roles]

    return serialize(chunks, trailer=trailer)


def extract(data, fmt: ContainerFormat = DEFAULT_FORMAT) -> ExtractionResult:
    '''Split a blueprint PNG (bytes, path or already scanned) into its data-only
    and image-only containers.

    Raises NotABlueprintContainer for images without blueprint and the
    scanning exceptions for broken files.
    '''
    png = _as_png(data)
    # scanning consumes the whole input, trailer included
    original_size = png.size

    located = locate(png, fmt)

    stripped_file = _rebuild(
        located,
        (ChunkRole.STRUCTURAL, ChunkRole.PAYLOAD),
        trailer=located.trailer if located.legacy else b'',
    )

    image_blob = None
    if located.image_chunks:
        image_blob = _rebuild(located, (ChunkRole.STRUCTURAL, ChunkRole.IMAGE))

        if fmt.verify_preview and not is_renderable(image_blob):
            image_blob = None
    else:
        logger.info('no pixel data, no preview to extract')

    stripped_size = len(stripped_file)

    result = ExtractionResult(
        stripped_file=stripped_file,
        image_blob=image_blob,
        original_size=original_size,
        stripped_size=stripped_size,
        compression_ratio=compression_ratio(original_size, stripped_size),
        legacy=located.legacy,
    )

    logger.debug('extracted blueprint: %s', result.describe())

    return result


def combine(data_file, image_file, fmt: ContainerFormat = DEFAULT_FORMAT) -> bytes:
    '''Inverse of extract(): put the payload of the data-only container back
    into the image, just before IEND.'''
    located = locate(_as_png(data_file), fmt)
    image = _as_png(image_file)

    chunks = [
        (chunk.tag, chunk.data.value) for chunk in image.chunks
        if chunk.tag != IEND and classify(chunk, fmt) != ChunkRole.PAYLOAD
    ]
    chunks.extend((chunk.tag, chunk.data.value) for chunk in located.payload_chunks)
    chunks.append((IEND, b''))

    return serialize(chunks, trailer=located.trailer if located.legacy else b'')


def embed(image_file, payload: bytes, fmt: ContainerFormat = DEFAULT_FORMAT) -> bytes:
    '''Store the blueprint into the image, replacing any previous one.'''
    image = _as_png(image_file)

    chunks = [
        (chunk.tag, chunk.data.value) for chunk in image.chunks
        if chunk.tag != IEND and classify(chunk, fmt) != ChunkRole.PAYLOAD
    ]
    pieces = split_payload(payload, fmt.max_chunk_size)
    logger.debug('embedding %d bytes of blueprint in %d chunks', len(payload), len(pieces))
    chunks.extend((fmt.payload_tag, piece) for piece in pieces)
    chunks.append((IEND, b''))

    return serialize(chunks)


def brand(data, branding_image: bytes, fmt: ContainerFormat = DEFAULT_FORMAT) -> bytes:
    '''Embed a small image identifying the file as a blueprint, replacing
    the previous one if any.'''
    png = _as_png(data)

    chunks = [(chunk.tag, chunk.data.value) for chunk in png.chunks if chunk.tag not in (fmt.branding_tag, IEND)]
    chunks.append((fmt.branding_tag, branding_image))
    chunks.append((IEND, b''))

    return serialize(chunks, trailer=png.trailer.value)


def branding(data, fmt: ContainerFormat = DEFAULT_FORMAT) -> Optional[bytes]:
    for chunk in _as_png(data).chunks:
        if chunk.tag == fmt.branding_tag:
            return chunk.data.value

    return None
