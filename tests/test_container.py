import io

import pytest
from PIL import Image

from blueprintpng.blueprint import (
    ChunkRole,
    ContainerFormat,
    DEFAULT_FORMAT,
    artifact_names,
    brand,
    branding,
    combine,
    embed,
    extract,
    format_bytes,
    locate,
)
from blueprintpng.blueprint import container
from blueprintpng.blueprint.container import compression_ratio, is_renderable
from blueprintpng.exceptions import NotABlueprintContainer, UnpackException
from blueprintpng.images.png import scan


def tags(data):
    return [_.tag for _ in scan(data).chunks]


def test_plain_image_is_not_a_blueprint(plain_png):
    png = scan(plain_png)

    with pytest.raises(NotABlueprintContainer):
        locate(png)

    with pytest.raises(NotABlueprintContainer) as excinfo:
        extract(plain_png)

    assert not isinstance(excinfo.value, UnpackException)


def test_locate(blueprint_png, payload):
    located = locate(scan(blueprint_png))

    assert not located.legacy
    assert located.payload == payload
    assert [_.tag for _ in located.payload_chunks] == [b'afBP']
    assert [_.tag for _ in located.structural_chunks] == [b'IHDR', b'IEND']
    assert {_.tag for _ in located.image_chunks} == {b'IDAT'}
    assert [role for _, role in located.roles][-2:] == [ChunkRole.PAYLOAD, ChunkRole.STRUCTURAL]


def test_locate_palette(palette_png, payload):
    located = locate(scan(embed(palette_png, payload)))

    assert {_.tag for _ in located.image_chunks} == {b'PLTE', b'tRNS', b'IDAT'}


def test_extract(blueprint_png, payload):
    result = extract(blueprint_png)

    assert tags(result.stripped_file) == [b'IHDR', b'afBP', b'IEND']
    assert locate(scan(result.stripped_file)).payload == payload

    assert b'afBP' not in tags(result.image_blob)
    with Image.open(io.BytesIO(result.image_blob)) as image:
        assert image.size == (16, 16)
        assert image.convert('RGB').getpixel((3, 3)) == (200, 30, 30)

    assert result.original_size == len(blueprint_png)
    assert result.stripped_size == len(result.stripped_file)
    assert not result.legacy


def test_extract_palette_preview(palette_png, payload):
    result = extract(embed(palette_png, payload))

    assert tags(result.image_blob) == tags(palette_png)


def test_extract_is_deterministic(blueprint_png):
    first, second = extract(blueprint_png), extract(blueprint_png)

    assert first == second
    assert first.digest == second.digest


def test_digest_ignores_the_pixels(plain_png, payload):
    buf = io.BytesIO()
    Image.new('RGB', (16, 16), color=(0, 0, 255)).save(buf, 'PNG')
    repainted = buf.getvalue()

    assert repainted != plain_png
    assert extract(embed(repainted, payload)).digest == extract(embed(plain_png, payload)).digest
    assert extract(embed(plain_png, payload)).digest != extract(embed(plain_png, b'other')).digest


def test_size_invariant(blueprint_png):
    result = extract(blueprint_png)

    assert result.stripped_size <= result.original_size
    assert 0 <= result.compression_ratio <= 100


def test_no_pixels_no_preview(blueprint_png):
    data_only = extract(extract(blueprint_png).stripped_file)

    assert data_only.image_blob is None
    assert data_only.compression_ratio == 0


def test_preview_refused_by_pillow(blueprint_png, monkeypatch):
    monkeypatch.setattr(container, 'is_renderable', lambda data: False)

    assert extract(blueprint_png).image_blob is None
    assert extract(blueprint_png, ContainerFormat(verify_preview=False)).image_blob is not None


def test_is_renderable(plain_png):
    assert is_renderable(plain_png)
    assert not is_renderable(b'definitely not an image')


def test_large_container(large_png):
    payload = bytes(range(256)) * 80  # 20KB
    data = embed(large_png, payload)

    assert len(data) > 4 * 1024 * 1024

    result = extract(data)

    assert result.stripped_size < 100 * 1024
    assert result.stripped_size >= len(payload)
    assert result.compression_ratio > 95
    assert locate(scan(result.stripped_file)).payload == payload


def test_split_payload(plain_png, payload):
    fmt = ContainerFormat(max_chunk_size=1000)
    data = embed(plain_png, payload, fmt)

    located = locate(scan(data), fmt)

    assert len(located.payload_chunks) == -(-len(payload) // 1000)
    assert all(_.length.value <= 1000 for _ in located.payload_chunks)
    assert located.payload == payload

    result = extract(data, fmt)

    assert locate(scan(result.stripped_file), fmt).payload == payload


def test_empty_payload(plain_png):
    data = embed(plain_png, b'')

    located = locate(scan(data))

    assert len(located.payload_chunks) == 1
    assert located.payload == b''
    assert locate(scan(extract(data).stripped_file)).payload == b''


def test_embed_replaces_payload(blueprint_png):
    data = embed(blueprint_png, b'another blueprint')

    assert tags(data).count(b'afBP') == 1
    assert locate(scan(data)).payload == b'another blueprint'


def test_combine(blueprint_png):
    result = extract(blueprint_png)

    assert combine(result.stripped_file, result.image_blob) == blueprint_png


def test_combine_needs_a_blueprint(plain_png):
    with pytest.raises(NotABlueprintContainer):
        combine(plain_png, plain_png)


def test_legacy_trailer(plain_png):
    trailer = DEFAULT_FORMAT.legacy_signature + b'\x01\x02\x03 blueprint data'
    data = plain_png + trailer

    located = locate(scan(data))

    assert located.legacy
    assert located.payload == trailer

    result = extract(data)

    assert result.legacy
    assert result.stripped_file.endswith(b'IEND\xaeB`\x82' + trailer)
    assert b'IDAT' not in tags(result.stripped_file)
    assert scan(result.image_blob).trailer.value == b''

    assert combine(result.stripped_file, result.image_blob) == data


def test_unknown_trailer_is_not_a_blueprint(plain_png):
    with pytest.raises(NotABlueprintContainer):
        extract(plain_png + b'garbage')


def test_branding(blueprint_png, payload):
    assert branding(blueprint_png) is None

    data = brand(blueprint_png, b'tiny logo')
    assert branding(data) == b'tiny logo'

    data = brand(data, b'another logo')
    assert tags(data).count(b'afBR') == 1
    assert branding(data) == b'another logo'

    # branding is structural: it's in both halves
    result = extract(data)
    assert branding(result.stripped_file) == b'another logo'
    assert branding(result.image_blob) == b'another logo'
    assert locate(scan(result.stripped_file)).payload == payload


def test_container_format_validation():
    with pytest.raises(ValueError):
        ContainerFormat(payload_tag=b'ABCD')

    with pytest.raises(ValueError):
        ContainerFormat(payload_tag=b'tRNS')

    with pytest.raises(ValueError):
        ContainerFormat(max_chunk_size=0)


def test_compression_ratio():
    assert compression_ratio(1000, 100) == 90.0
    assert compression_ratio(3, 1) == 66.7
    assert compression_ratio(100, 150) == 0.0
    assert compression_ratio(0, 0) == 0.0


def test_artifact_names():
    assert artifact_names('uploads/Factory.PNG') == ('Factory.PNG', 'Factory-preview.png')
    assert artifact_names('blueprint.bp.png') == ('blueprint.bp.png', 'blueprint.bp-preview.png')


def test_format_bytes():
    assert format_bytes(0) == '0 Bytes'
    assert format_bytes(500) == '500 Bytes'
    assert format_bytes(1024) == '1 KB'
    assert format_bytes(1536) == '1.5 KB'
    assert format_bytes(20 * 1024 * 1024) == '20 MB'
