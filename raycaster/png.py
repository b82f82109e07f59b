"""Decoding of non-interlaced PNG images into raw pixel buffers."""

from __future__ import annotations

import enum
import os
from typing import NoReturn

from raycaster.inflate import InflateError, inflate

__all__ = [
    "ErrorCode",
    "PngError",
    "ColorType",
    "PixelFormat",
    "PngImage",
    "paeth_predictor",
    "unfilter_scanline",
    "unfilter",
    "remove_padding_bits",
    "determine_format",
]

_SIGNATURE = b"\x89PNG\r\n\x1a\n"
_MIN_SIZE = 29
_FIRST_CHUNK_AFTER_HEADER = 33
_INT_MAX = 2**31 - 1


class ErrorCode(enum.IntEnum):
    """Reasons a PNG could not be read."""

    OK = 0
    NO_MEMORY = 1
    NOT_FOUND = 2
    NOT_PNG = 3
    MALFORMED = 4
    UNSUPPORTED = 5
    UNINTERLACED = 6
    UNFORMAT = 7
    PARAM = 8


_MESSAGES = {
    ErrorCode.OK: "no error",
    ErrorCode.NO_MEMORY: "memory allocation failed",
    ErrorCode.NOT_FOUND: "file not found",
    ErrorCode.NOT_PNG: "data does not have a PNG header",
    ErrorCode.MALFORMED: "data is not a valid PNG image",
    ErrorCode.UNSUPPORTED: "critical chunk type is not supported",
    ErrorCode.UNINTERLACED: "interlaced images are not supported",
    ErrorCode.UNFORMAT: "color format is not supported",
    ErrorCode.PARAM: "invalid parameter",
}


class PngError(Exception):
    """Raised when a PNG cannot be read; ``code`` tells why."""

    def __init__(self, code: ErrorCode, message: str | None = None) -> None:
        self.code = ErrorCode(code)
        super().__init__(message or _MESSAGES[self.code])


class ColorType(enum.IntEnum):
    LUM = 0
    RGB = 2
    LUMA = 4
    RGBA = 6


class PixelFormat(enum.IntEnum):
    BADFORMAT = 0
    RGB8 = 1
    RGB16 = 2
    RGBA8 = 3
    RGBA16 = 4
    LUMINANCE1 = 5
    LUMINANCE2 = 6
    LUMINANCE4 = 7
    LUMINANCE8 = 8
    LUMINANCE_ALPHA1 = 9
    LUMINANCE_ALPHA2 = 10
    LUMINANCE_ALPHA4 = 11
    LUMINANCE_ALPHA8 = 12


_FORMATS = {
    (ColorType.LUM, 1): PixelFormat.LUMINANCE1,
    (ColorType.LUM, 2): PixelFormat.LUMINANCE2,
    (ColorType.LUM, 4): PixelFormat.LUMINANCE4,
    (ColorType.LUM, 8): PixelFormat.LUMINANCE8,
    (ColorType.RGB, 8): PixelFormat.RGB8,
    (ColorType.RGB, 16): PixelFormat.RGB16,
    (ColorType.LUMA, 1): PixelFormat.LUMINANCE_ALPHA1,
    (ColorType.LUMA, 2): PixelFormat.LUMINANCE_ALPHA2,
    (ColorType.LUMA, 4): PixelFormat.LUMINANCE_ALPHA4,
    (ColorType.LUMA, 8): PixelFormat.LUMINANCE_ALPHA8,
    (ColorType.RGBA, 8): PixelFormat.RGBA8,
    (ColorType.RGBA, 16): PixelFormat.RGBA16,
}

_COMPONENTS = {
    ColorType.LUM: 1,
    ColorType.RGB: 3,
    ColorType.LUMA: 2,
    ColorType.RGBA: 4,
}


class _State(enum.Enum):
    ERROR = -1
    DECODED = 0
    HEADER = 1
    NEW = 2


def paeth_predictor(a: int, b: int, c: int) -> int:
    """Return whichever of ``a``, ``b``, ``c`` is closest to ``a + b - c``."""
    p = a + b - c
    pa = abs(p - a)
    pb = abs(p - b)
    pc = abs(p - c)
    if pa <= pb and pa <= pc:
        return a
    if pb <= pc:
        return b
    return c


def unfilter_scanline(
    scanline: bytes | bytearray,
    previous: bytes | bytearray | None,
    bytewidth: int,
    filter_type: int,
) -> bytes:
    """Undo one PNG filter on a scanline given the previous reconstructed line."""
    length = len(scanline)
    if filter_type == 0:
        return bytes(scanline)
    if filter_type == 2:
        if previous is None:
            return bytes(scanline)
        return bytes((s + p) & 0xFF for s, p in zip(scanline, previous))
    if filter_type not in (1, 3, 4):
        raise PngError(ErrorCode.MALFORMED, f"unknown filter type {filter_type}")

    recon = bytearray(length)
    for i, value in enumerate(scanline):
        left = recon[i - bytewidth] if i >= bytewidth else 0
        up = previous[i] if previous is not None else 0
        upper_left = previous[i - bytewidth] if previous is not None and i >= bytewidth else 0
        if filter_type == 1:
            predicted = left
        elif filter_type == 3:
            predicted = (left + up) // 2
        else:
            predicted = paeth_predictor(left, up, upper_left)
        recon[i] = (value + predicted) & 0xFF
    return bytes(recon)


def unfilter(data: bytes | bytearray, width: int, height: int, bpp: int) -> bytes:
    """Unfilter ``height`` scanlines, each preceded by its filter-type byte."""
    bytewidth = (bpp + 7) // 8
    line_bytes = (width * bpp + 7) // 8
    if len(data) < height * (line_bytes + 1):
        raise PngError(ErrorCode.MALFORMED, "image data is shorter than the image")
    out = bytearray()
    previous: bytes | None = None
    for row in range(height):
        start = row * (line_bytes + 1)
        filter_type = data[start]
        line = unfilter_scanline(
            data[start + 1:start + 1 + line_bytes], previous, bytewidth, filter_type
        )
        out += line
        previous = line
    return bytes(out)


def remove_padding_bits(
    data: bytes | bytearray, out_line_bits: int, in_line_bits: int, height: int
) -> bytes:
    """Pack rows of ``out_line_bits`` bits taken from rows ``in_line_bits`` apart."""
    total_bits = len(data) * 8
    if height and (height - 1) * in_line_bits + out_line_bits > total_bits:
        raise PngError(ErrorCode.MALFORMED, "image data is shorter than the image")
    source = int.from_bytes(bytes(data), "big")
    mask = (1 << out_line_bits) - 1
    packed = 0
    for row in range(height):
        end = row * in_line_bits + out_line_bits
        packed = (packed << out_line_bits) | ((source >> (total_bits - end)) & mask)
    out_bits = out_line_bits * height
    out_bytes = (out_bits + 7) // 8
    packed <<= out_bytes * 8 - out_bits
    return packed.to_bytes(out_bytes, "big")


def determine_format(color_type: int, depth: int) -> PixelFormat:
    """Return the pixel format for a colour type and bit depth, or BADFORMAT."""
    try:
        kind = ColorType(color_type)
    except ValueError:
        return PixelFormat.BADFORMAT
    return _FORMATS.get((kind, depth), PixelFormat.BADFORMAT)


class PngImage:
    """A PNG image read from bytes; ``decode`` fills ``buffer`` with raw pixels."""

    def __init__(self, source: bytes | bytearray | memoryview) -> None:
        self.source = bytes(source)
        self.width = 0
        self.height = 0
        self.color_type = ColorType.RGBA
        self.depth = 8
        self.format = PixelFormat.RGBA8
        self.buffer = b""
        self.error = ErrorCode.OK
        self._state = _State.NEW

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> PngImage:
        """Read the whole file at ``path`` as an undecoded image."""
        try:
            with open(path, "rb") as handle:
                data = handle.read()
        except OSError as exc:
            raise PngError(ErrorCode.NOT_FOUND, f"cannot open {os.fspath(path)!r}") from exc
        return cls(data)

    @property
    def size(self) -> int:
        return len(self.buffer)

    @property
    def components(self) -> int:
        return _COMPONENTS.get(self.color_type, 0)

    @property
    def bpp(self) -> int:
        return self.depth * self.components

    @property
    def pixelsize(self) -> int:
        bits = self.bpp
        return bits + bits % 8

    def _fail(self, code: ErrorCode, message: str | None = None) -> NoReturn:
        self.error = code
        self._state = _State.ERROR
        raise PngError(code, message)

    def _check_error(self) -> None:
        if self.error is not ErrorCode.OK:
            raise PngError(self.error)

    def read_header(self) -> None:
        """Parse the signature and IHDR chunk."""
        self._check_error()
        if self._state is not _State.NEW:
            return
        source = self.source
        if len(source) < _MIN_SIZE or source[:8] != _SIGNATURE:
            self._fail(ErrorCode.NOT_PNG)
        if source[12:16] != b"IHDR":
            self._fail(ErrorCode.MALFORMED, "first chunk is not IHDR")

        width = int.from_bytes(source[16:20], "big")
        height = int.from_bytes(source[20:24], "big")
        depth = source[24]
        raw_color_type = source[25]
        pixel_format = determine_format(raw_color_type, depth)
        if pixel_format is PixelFormat.BADFORMAT:
            self._fail(ErrorCode.UNFORMAT)
        self.width = width
        self.height = height
        self.depth = depth
        self.color_type = ColorType(raw_color_type)
        self.format = pixel_format

        if source[26] != 0:
            self._fail(ErrorCode.MALFORMED, "unknown compression method")
        if source[27] != 0:
            self._fail(ErrorCode.MALFORMED, "unknown filter method")
        if source[28] != 0:
            self._fail(ErrorCode.UNINTERLACED)
        self._state = _State.HEADER

    def _collect_image_data(self) -> bytes:
        source = self.source
        compressed = bytearray()
        position = _FIRST_CHUNK_AFTER_HEADER
        while position < len(source):
            if position + 12 > len(source):
                self._fail(ErrorCode.MALFORMED, "truncated chunk header")
            length = int.from_bytes(source[position:position + 4], "big")
            if length > _INT_MAX:
                self._fail(ErrorCode.MALFORMED, "chunk length too large")
            if position + length + 12 > len(source):
                self._fail(ErrorCode.MALFORMED, "truncated chunk")
            kind = source[position + 4:position + 8]
            if kind == b"IDAT":
                compressed += source[position + 8:position + 8 + length]
            elif kind == b"IEND":
                break
            elif not source[position + 4] & 32:
                self._fail(ErrorCode.UNSUPPORTED, f"unsupported critical chunk {kind!r}")
            position += length + 12
        return bytes(compressed)

    def _post_process(self, inflated: bytes) -> bytes:
        bpp = self.bpp
        width, height = self.width, self.height
        if bpp == 0:
            raise PngError(ErrorCode.MALFORMED, "zero bits per pixel")
        line_bits = width * bpp
        padded_bits = ((line_bits + 7) // 8) * 8
        if bpp < 8 and line_bits != padded_bits:
            unfiltered = unfilter(inflated, width, height, bpp)
            return remove_padding_bits(unfiltered, line_bits, padded_bits, height)
        return unfilter(inflated, width, height, bpp)

    def decode(self) -> bytes:
        """Decode the image data into ``buffer`` and return it."""
        self._check_error()
        self.read_header()
        if self._state is not _State.HEADER:
            return self.buffer
        self.buffer = b""

        compressed = self._collect_image_data()
        inflated_size = (self.width * (self.height * self.bpp + 7)) // 8 + self.height
        try:
            inflated = inflate(compressed, inflated_size)
        except InflateError as exc:
            self._fail(ErrorCode.MALFORMED, str(exc))

        try:
            self.buffer = self._post_process(inflated)
        except PngError as exc:
            self.buffer = b""
            self._fail(exc.code, str(exc))
        else:
            self._state = _State.DECODED
        finally:
            self.source = b""
        return self.buffer