#!/usr/bin/env python3
'''
Dump the chunks of a PNG with the role they have for blueprints.

 $ bpinspect.py MyFactory.png
 $ SHOW=1 bpinspect.py MyFactory.png  # display also the preview

The file is parsed in lenient mode: wrong CRCs are reported, not fatal.
'''
import io
import logging
import os
import sys

from PIL import Image

from blueprintpng.blueprint import classify, extract
from blueprintpng.enum import Compliant
from blueprintpng.exceptions import NotABlueprintContainer
from blueprintpng.images.png import IHDRData, scan
from blueprintpng.images.png.utils import chunk_type_properties, structure_warnings


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)
logger.setLevel(level=logging.INFO if 'DEBUG' not in os.environ else logging.DEBUG)


def usage(progname):
    print(f'usage: {progname} <png file path>')
    sys.exit(1)


if __name__ == '__main__':
    if len(sys.argv) < 2:
        usage(sys.argv[0])

    filepath = sys.argv[1]

    png = scan(filepath, compliant=Compliant.NONE)

    print(f'header: {IHDRData(png.chunks[0].data.value)}')

    for idx, chunk in enumerate(png.chunks):
        properties = chunk_type_properties(chunk.tag)
        flags = ''.join(_[0] if getattr(properties, _) else '-' for _ in properties._fields)
        valid = 'ok' if chunk.crc.is_valid() else 'BAD CRC'
        print(f'[{idx:02d}] 0x{chunk.offset:08x} {chunk!r} {flags} {classify(chunk).name} {valid}')

    for warning in structure_warnings(png):
        print(f'warning: {warning}')

    try:
        result = extract(png)
    except NotABlueprintContainer:
        print('no blueprint inside')
        sys.exit(0)

    print(f'blueprint: {result.describe()}{" (legacy)" if result.legacy else ""}')

    if result.image_blob is not None and 'SHOW' in os.environ:
        Image.open(io.BytesIO(result.image_blob)).show()
