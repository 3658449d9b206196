import io
import random

import pytest
from PIL import Image

from blueprintpng.blueprint import embed


def png_bytes(image, **kwargs):
    buf = io.BytesIO()
    image.save(buf, 'PNG', **kwargs)
    return buf.getvalue()


@pytest.fixture
def plain_png():
    """A small RGB image without blueprint."""
    image = Image.new('RGB', (16, 16), color=(200, 30, 30))
    return png_bytes(image)


@pytest.fixture
def palette_png():
    """Palette image with transparency: it has PLTE and tRNS chunks."""
    image = Image.new('P', (8, 8), color=1)
    image.putpalette([0, 0, 0, 255, 0, 0, 0, 255, 0])
    return png_bytes(image, transparency=0)


@pytest.fixture
def payload():
    """Something looking like a blueprint exported by the game."""
    return b'\x0e\x00\x00\x00UploadedImage' + bytes(range(256)) * 80


@pytest.fixture
def blueprint_png(plain_png, payload):
    return embed(plain_png, payload)


@pytest.fixture
def large_png():
    """About 5MB of incompressible pixels."""
    width, height = 1300, 1300
    pixels = random.Random(0).randbytes(width * height * 3)
    image = Image.frombytes('RGB', (width, height), pixels)
    return png_bytes(image, compress_level=1)
