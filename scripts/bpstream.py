#!/usr/bin/env python3
'''
Decode a recorded event stream of the parser service (or stdin) and print
the save data as JSON.

 $ curl -N https://<parser>/logs/<id> | bpstream.py -
'''
import asyncio
import json
import logging
import os
import sys

from blueprintpng.events import read_save_data
from blueprintpng.exceptions import StreamDecodeError


logging.basicConfig(level=logging.DEBUG if 'DEBUG' in os.environ else logging.INFO)
logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096


def usage(progname):
    print(f'usage: {progname} <stream file path | ->')
    sys.exit(1)


async def iter_file(f):
    loop = asyncio.get_running_loop()
    while True:
        chunk = await loop.run_in_executor(None, f.read1 if hasattr(f, 'read1') else f.read, CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


async def main(f):
    def on_progress(progress):
        print(f'parsing {progress}%', file=sys.stderr)

    return await read_save_data(iter_file(f), on_progress=on_progress)


if __name__ == '__main__':
    if len(sys.argv) < 2:
        usage(sys.argv[0])

    path = sys.argv[1]
    f = sys.stdin.buffer if path == '-' else open(path, 'rb')

    try:
        save_data = asyncio.run(main(f))
    except StreamDecodeError as e:
        logger.error(f'failed to decode the stream: {e}')
        sys.exit(1)
    finally:
        f.close()

    print(json.dumps(save_data, indent=2))
