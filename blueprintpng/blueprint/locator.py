'''
Find where the blueprint is inside a PNG container.

Every chunk has one role: it carries the blueprint (payload), it carries
what is needed to draw the image (pixels, palette, transparency) or it's
structural, i.e. everything else (IHDR, IEND, color profiles, text,
branding...) and must be kept in whatever container we derive.
'''
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Tuple

from ..exceptions import NotABlueprintContainer
from ..images.png import PNGChunk, PNGFile
from .config import ContainerFormat, DEFAULT_FORMAT


logger = logging.getLogger(__name__)


class ChunkRole(Enum):
    PAYLOAD    = auto()
    IMAGE      = auto()
    STRUCTURAL = auto()


@dataclass(frozen=True)
class ChunkClassification:
    roles: Tuple[Tuple[PNGChunk, ChunkRole], ...]
    trailer: bytes = b''
    legacy: bool = False

    def by_role(self, role: ChunkRole) -> Tuple[PNGChunk, ...]:
        return tuple(chunk for chunk, _role in self.roles if _role == role)

    @property
    def payload_chunks(self):
        return self.by_role(ChunkRole.PAYLOAD)

    @property
    def image_chunks(self):
        return self.by_role(ChunkRole.IMAGE)

    @property
    def structural_chunks(self):
        return self.by_role(ChunkRole.STRUCTURAL)

    @property
    def payload(self) -> bytes:
        '''The blueprint: the concatenation of the payload chunks in file order
        or, for the format written by the game, what follows IEND.'''
        if self.legacy:
            return self.trailer

        return b''.join(chunk.data.value for chunk in self.payload_chunks)


def classify(chunk: PNGChunk, fmt: ContainerFormat = DEFAULT_FORMAT) -> ChunkRole:
    tag = chunk.tag

    if tag == fmt.payload_tag:
        return ChunkRole.PAYLOAD
    elif tag in fmt.image_tags:
        return ChunkRole.IMAGE

    return ChunkRole.STRUCTURAL


def locate(png: PNGFile, fmt: ContainerFormat = DEFAULT_FORMAT) -> ChunkClassification:
    '''Classify the chunks of a scanned container.

    Raises NotABlueprintContainer when there is no blueprint at all: for an
    arbitrary image this is the normal outcome.
    '''
    roles = []
    for chunk in png.chunks:
        role = classify(chunk, fmt)
        logger.debug('chunk %r at offset %s is %s', chunk.tag, chunk.offset, role.name)
        roles.append((chunk, role))

    trailer = png.trailer.value
    has_payload = any(role == ChunkRole.PAYLOAD for _, role in roles)
    legacy = not has_payload and trailer.startswith(fmt.legacy_signature)

    if not has_payload and not legacy:
        raise NotABlueprintContainer(f'no {fmt.payload_tag.decode("latin1")} chunk found')

    if legacy:
        logger.info('found %d bytes of blueprint after IEND', len(trailer))

    return ChunkClassification(roles=tuple(roles), trailer=trailer, legacy=legacy)
