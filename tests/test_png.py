import struct
import zlib

import pytest

from raycaster.png import (
    ColorType,
    ErrorCode,
    PixelFormat,
    PngError,
    PngImage,
    determine_format,
    paeth_predictor,
    remove_padding_bits,
    unfilter,
    unfilter_scanline,
)


def _chunk(kind: bytes, data: bytes) -> bytes:
    crc = zlib.crc32(kind + data) & 0xFFFFFFFF
    return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", crc)


def _ihdr(width, height, depth, color_type, interlace=0, compression=0, filter_method=0):
    return _chunk(
        b"IHDR",
        struct.pack(">IIBBBBB", width, height, depth, color_type, compression, filter_method, interlace),
    )


def _png(width, height, depth, color_type, filtered, *, interlace=0, before=b"", idat_parts=1):
    compressed = zlib.compress(filtered)
    step = max(1, -(-len(compressed) // idat_parts))
    idats = b"".join(
        _chunk(b"IDAT", compressed[i:i + step]) for i in range(0, len(compressed), step)
    )
    return (
        b"\x89PNG\r\n\x1a\n"
        + _ihdr(width, height, depth, color_type, interlace)
        + before
        + idats
        + _chunk(b"IEND", b"")
    )


def _filter_row(kind, row, previous, bytewidth):
    out = bytearray([kind])
    for i, value in enumerate(row):
        left = row[i - bytewidth] if i >= bytewidth else 0
        up = previous[i] if previous is not None else 0
        upper_left = previous[i - bytewidth] if previous is not None and i >= bytewidth else 0
        predicted = {
            0: 0,
            1: left,
            2: up,
            3: (left + up) // 2,
            4: paeth_predictor(left, up, upper_left),
        }[kind]
        out.append((value - predicted) & 0xFF)
    return bytes(out)


def _filter_image(rows, bytewidth, kinds):
    out = bytearray()
    previous = None
    for row, kind in zip(rows, kinds):
        out += _filter_row(kind, row, previous, bytewidth)
        previous = row
    return bytes(out)


def _rows(width_bytes, height, seed=7):
    return [bytes((seed + 37 * (r * width_bytes + c)) % 256 for c in range(width_bytes)) for r in range(height)]


@pytest.mark.parametrize("a,b,c", [(0, 0, 0), (10, 200, 30), (255, 0, 128), (5, 5, 5), (100, 50, 200)])
def test_paeth_returns_one_of_inputs(a, b, c):
    assert paeth_predictor(a, b, c) in (a, b, c)


@pytest.mark.parametrize("b", [0, 1, 77, 255])
def test_paeth_with_only_upper_neighbour_returns_it(b):
    assert paeth_predictor(0, b, 0) == b


def test_unfilter_scanline_none_is_identity():
    line = bytes([3, 1, 4, 1, 5])
    assert unfilter_scanline(line, None, 1, 0) == line


def test_unfilter_scanline_up_without_previous_is_identity():
    line = bytes([9, 8, 7])
    assert unfilter_scanline(line, None, 1, 2) == line


@pytest.mark.parametrize("kind", [0, 1, 2, 3, 4])
@pytest.mark.parametrize("bytewidth", [1, 3, 4])
def test_unfilter_scanline_round_trip(kind, bytewidth):
    previous = bytes((i * 91 + 13) % 256 for i in range(12))
    row = bytes((i * 53 + 200) % 256 for i in range(12))
    filtered = _filter_row(kind, row, previous, bytewidth)
    assert unfilter_scanline(filtered[1:], previous, bytewidth, kind) == row


@pytest.mark.parametrize("kind", [1, 3, 4])
def test_unfilter_scanline_round_trip_first_line(kind):
    row = bytes((i * 71 + 3) % 256 for i in range(9))
    filtered = _filter_row(kind, row, None, 3)
    assert unfilter_scanline(filtered[1:], None, 3, kind) == row


def test_unfilter_scanline_unknown_filter():
    with pytest.raises(PngError) as info:
        unfilter_scanline(b"\x00\x01", None, 1, 5)
    assert info.value.code is ErrorCode.MALFORMED


def test_unfilter_round_trip_mixed_filters():
    rows = _rows(12, 5)
    filtered = _filter_image(rows, 3, [0, 1, 2, 3, 4])
    assert unfilter(filtered, 4, 5, 24) == b"".join(rows)


def test_unfilter_rejects_short_data():
    with pytest.raises(PngError) as info:
        unfilter(b"\x00\x01\x02", 4, 2, 8)
    assert info.value.code is ErrorCode.MALFORMED


def test_remove_padding_bits_packs_rows():
    data = bytes([0b10100000, 0b11000000])
    assert remove_padding_bits(data, 3, 8, 2) == bytes([0xB8])


def test_remove_padding_bits_without_padding_is_identity():
    data = bytes([0x12, 0x34, 0x56])
    assert remove_padding_bits(data, 8, 8, 3) == data


@pytest.mark.parametrize(
    "color_type,depth,expected",
    [
        (0, 1, PixelFormat.LUMINANCE1),
        (0, 8, PixelFormat.LUMINANCE8),
        (2, 8, PixelFormat.RGB8),
        (2, 16, PixelFormat.RGB16),
        (4, 4, PixelFormat.LUMINANCE_ALPHA4),
        (6, 8, PixelFormat.RGBA8),
        (6, 16, PixelFormat.RGBA16),
        (2, 4, PixelFormat.BADFORMAT),
        (0, 16, PixelFormat.BADFORMAT),
        (3, 8, PixelFormat.BADFORMAT),
    ],
)
def test_determine_format(color_type, depth, expected):
    assert determine_format(color_type, depth) is expected


def test_read_header_fields():
    rows = _rows(12, 2)
    image = PngImage(_png(4, 2, 8, 2, _filter_image(rows, 3, [0, 0])))
    image.read_header()
    assert (image.width, image.height) == (4, 2)
    assert image.color_type is ColorType.RGB
    assert image.format is PixelFormat.RGB8
    assert image.components == 3
    assert image.bpp == 24
    assert image.pixelsize == 24
    assert image.buffer == b""


def test_decode_rgb8():
    rows = _rows(12, 2)
    image = PngImage(_png(4, 2, 8, 2, _filter_image(rows, 3, [0, 0])))
    assert image.decode() == b"".join(rows)
    assert image.size == 24


def test_decode_rgba8_with_filters():
    rows = _rows(12, 3, seed=41)
    image = PngImage(_png(3, 3, 8, 6, _filter_image(rows, 4, [1, 4, 3])))
    assert image.decode() == b"".join(rows)
    assert image.format is PixelFormat.RGBA8


def test_decode_luminance1_removes_padding():
    filtered = bytes([0, 0b10100000, 0, 0b01100000])
    image = PngImage(_png(3, 2, 1, 0, filtered))
    assert image.decode() == bytes([0xAC])
    assert image.pixelsize == 2


def test_decode_multiple_idat_chunks():
    rows = _rows(12, 3, seed=99)
    data = _png(3, 3, 8, 6, _filter_image(rows, 4, [2, 2, 2]), idat_parts=3)
    assert PngImage(data).decode() == b"".join(rows)


def test_ancillary_chunk_is_ignored():
    rows = _rows(12, 2)
    data = _png(4, 2, 8, 2, _filter_image(rows, 3, [0, 1]), before=_chunk(b"tEXt", b"note"))
    assert PngImage(data).decode() == b"".join(rows)


def test_decode_twice_returns_same_buffer():
    rows = _rows(12, 2)
    image = PngImage(_png(4, 2, 8, 2, _filter_image(rows, 3, [0, 0])))
    first = image.decode()
    assert image.decode() == first == b"".join(rows)


def test_from_file(tmp_path):
    rows = _rows(12, 2)
    path = tmp_path / "image.png"
    path.write_bytes(_png(4, 2, 8, 2, _filter_image(rows, 3, [0, 0])))
    assert PngImage.from_file(path).decode() == b"".join(rows)


def test_from_file_missing(tmp_path):
    with pytest.raises(PngError) as info:
        PngImage.from_file(tmp_path / "missing.png")
    assert info.value.code is ErrorCode.NOT_FOUND


def test_too_short_is_not_png():
    with pytest.raises(PngError) as info:
        PngImage(b"\x89PNG").decode()
    assert info.value.code is ErrorCode.NOT_PNG


def test_bad_signature_is_not_png():
    data = bytearray(_png(4, 2, 8, 2, bytes(26)))
    data[1] = ord("X")
    with pytest.raises(PngError) as info:
        PngImage(bytes(data)).read_header()
    assert info.value.code is ErrorCode.NOT_PNG


def test_first_chunk_must_be_ihdr():
    data = bytearray(_png(4, 2, 8, 2, bytes(26)))
    data[12:16] = b"IHDX"
    with pytest.raises(PngError) as info:
        PngImage(bytes(data)).read_header()
    assert info.value.code is ErrorCode.MALFORMED


def test_palette_format_unsupported():
    with pytest.raises(PngError) as info:
        PngImage(_png(2, 2, 8, 3, bytes(6))).read_header()
    assert info.value.code is ErrorCode.UNFORMAT


def test_interlaced_rejected():
    with pytest.raises(PngError) as info:
        PngImage(_png(4, 2, 8, 2, bytes(26), interlace=1)).read_header()
    assert info.value.code is ErrorCode.UNINTERLACED


def test_unknown_compression_method_rejected():
    data = b"\x89PNG\r\n\x1a\n" + _ihdr(4, 2, 8, 2, compression=1) + _chunk(b"IEND", b"")
    with pytest.raises(PngError) as info:
        PngImage(data).read_header()
    assert info.value.code is ErrorCode.MALFORMED


def test_unknown_critical_chunk_unsupported():
    data = _png(4, 2, 8, 2, bytes(26), before=_chunk(b"ABCD", b"x"))
    with pytest.raises(PngError) as info:
        PngImage(data).decode()
    assert info.value.code is ErrorCode.UNSUPPORTED


def test_truncated_chunk_malformed():
    data = b"\x89PNG\r\n\x1a\n" + _ihdr(4, 2, 8, 2) + b"\x00\x00\x00"
    with pytest.raises(PngError) as info:
        PngImage(data).decode()
    assert info.value.code is ErrorCode.MALFORMED


def test_bad_zlib_stream_malformed():
    data = (
        b"\x89PNG\r\n\x1a\n"
        + _ihdr(4, 2, 8, 2)
        + _chunk(b"IDAT", b"\x00\x00garbage")
        + _chunk(b"IEND", b"")
    )
    with pytest.raises(PngError) as info:
        PngImage(data).decode()
    assert info.value.code is ErrorCode.MALFORMED


def test_short_image_data_malformed():
    rows = _rows(12, 2)
    data = _png(4, 2, 8, 2, _filter_image(rows[:1], 3, [0]))
    with pytest.raises(PngError) as info:
        PngImage(data).decode()
    assert info.value.code is ErrorCode.MALFORMED


def test_error_is_sticky():
    rows = _rows(12, 2)
    image = PngImage(_png(4, 2, 8, 2, bytes([7]) + _filter_image(rows, 3, [0, 0])[1:]))
    with pytest.raises(PngError) as first:
        image.decode()
    with pytest.raises(PngError) as second:
        image.decode()
    assert first.value.code is ErrorCode.MALFORMED
    assert second.value.code is ErrorCode.MALFORMED
    assert image.error is ErrorCode.MALFORMED