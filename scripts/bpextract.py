#!/usr/bin/env python3
'''
Split a blueprint PNG into the blueprint file (without pixels) and the
preview image.

 $ bpextract.py MyFactory.png out/
'''
import logging
import os
import sys
from pathlib import Path

from blueprintpng.blueprint import DEFAULT_FORMAT, artifact_names, extract, format_bytes
from blueprintpng.exceptions import NotABlueprintContainer, UnpackException


logging.basicConfig(level=logging.DEBUG if 'DEBUG' in os.environ else logging.INFO)
logger = logging.getLogger(__name__)


def usage(progname):
    print(f'usage: {progname} <png file path> [output directory]')
    sys.exit(1)


if __name__ == '__main__':
    if len(sys.argv) < 2:
        usage(sys.argv[0])

    path = Path(sys.argv[1])
    outdir = Path(sys.argv[2]) if len(sys.argv) > 2 else Path('.')

    size = path.stat().st_size
    if size > DEFAULT_FORMAT.max_file_size:
        print(f'file must be smaller than {format_bytes(DEFAULT_FORMAT.max_file_size)}')
        sys.exit(1)

    try:
        result = extract(path.read_bytes())
    except NotABlueprintContainer:
        print(f'{path} is a plain image, no blueprint inside')
        sys.exit(2)
    except UnpackException as e:
        logger.error(f'{path} is not a valid PNG: {e}')
        sys.exit(1)

    data_name, preview_name = artifact_names(path.name)
    outdir.mkdir(parents=True, exist_ok=True)

    (outdir / data_name).write_bytes(result.stripped_file)
    print(f'blueprint: {outdir / data_name} {result.describe()}')
    print(f'sha256: {result.digest}')

    if result.image_blob is not None:
        (outdir / preview_name).write_bytes(result.image_blob)
        print(f'preview: {outdir / preview_name} ({format_bytes(len(result.image_blob))})')
