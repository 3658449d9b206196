from dataclasses import dataclass
from typing import FrozenSet

from ..images.png.utils import chunk_type_properties


@dataclass(frozen=True)
class ContainerFormat:
    """How a blueprint is stored inside a PNG.

    The default tags are part of the file format: blueprints already
    shared use them, so they must never change.

    The payload tag must be ancillary (lowercase first letter) otherwise
    image viewers would refuse to open the file.
    """

    payload_tag: bytes = b'afBP'
    branding_tag: bytes = b'afBR'
    image_tags: FrozenSet[bytes] = frozenset({b'IDAT', b'PLTE', b'tRNS'})
    # payload larger than this is split into several consecutive chunks
    max_chunk_size: int = 0x100000
    # the game itself appends the blueprint after IEND, starting with this
    legacy_signature: bytes = b'\x0e\x00\x00\x00UploadedImage'
    # not enforced by the codec, exposed for the callers
    max_file_size: int = 20 * 1024 * 1024
    verify_preview: bool = True

    def __post_init__(self):
        for tag in (self.payload_tag, self.branding_tag):
            if not chunk_type_properties(tag).ancillary:
                raise ValueError(f'chunk type {tag!r} must be ancillary')

        if self.payload_tag in self.image_tags or self.payload_tag == self.branding_tag:
            raise ValueError(f'chunk type {self.payload_tag!r} is already used')

        if self.max_chunk_size <= 0 or self.max_chunk_size > 0x7fffffff:
            raise ValueError(f'invalid max_chunk_size {self.max_chunk_size}')


DEFAULT_FORMAT = ContainerFormat()
