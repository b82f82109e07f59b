"""DEFLATE and zlib stream decompression."""

from __future__ import annotations

from collections.abc import Iterable

__all__ = ["InflateError", "BitReader", "HuffmanTree", "inflate_raw", "inflate"]


class InflateError(ValueError):
    """Raised when compressed data is malformed or does not fit the output."""


_END_OF_BLOCK = 256
_FIRST_LENGTH_CODE = 257
_LAST_LENGTH_CODE = 285
_MAX_BIT_LENGTH = 15
_NUM_LITERAL_SYMBOLS = 288
_NUM_DISTANCE_SYMBOLS = 32
_NUM_CODE_LENGTH_CODES = 19

_LENGTH_BASE = (
    3, 4, 5, 6, 7, 8, 9, 10, 11, 13, 15, 17, 19, 23, 27, 31, 35, 43, 51, 59,
    67, 83, 99, 115, 131, 163, 195, 227, 258,
)
_LENGTH_EXTRA = (
    0, 0, 0, 0, 0, 0, 0, 0, 1, 1, 1, 1, 2, 2, 2, 2, 3, 3, 3, 3, 4, 4, 4, 4,
    5, 5, 5, 5, 0,
)
_DISTANCE_BASE = (
    1, 2, 3, 4, 5, 7, 9, 13, 17, 25, 33, 49, 65, 97, 129, 193, 257, 385, 513,
    769, 1025, 1537, 2049, 3073, 4097, 6145, 8193, 12289, 16385, 24577,
)
_DISTANCE_EXTRA = (
    0, 0, 0, 0, 1, 1, 2, 2, 3, 3, 4, 4, 5, 5, 6, 6, 7, 7, 8, 8, 9, 9, 10, 10,
    11, 11, 12, 12, 13, 13,
)
_CODE_LENGTH_ORDER = (16, 17, 18, 0, 8, 7, 9, 6, 10, 5, 11, 4, 12, 3, 13, 2, 14, 1, 15)


class BitReader:
    """Reads bits least-significant first from a byte string."""

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self.data = bytes(data)
        self.position = 0

    @property
    def byte_position(self) -> int:
        """Index of the byte holding the next bit."""
        return self.position >> 3

    def read_bit(self) -> int:
        index = self.position >> 3
        if index >= len(self.data):
            raise InflateError("unexpected end of compressed data")
        bit = (self.data[index] >> (self.position & 7)) & 1
        self.position += 1
        return bit

    def read_bits(self, count: int) -> int:
        """Read ``count`` bits; the first bit read is the least significant."""
        value = 0
        for shift in range(count):
            value |= self.read_bit() << shift
        return value

    def align_to_byte(self) -> None:
        self.position = (self.position + 7) & ~7


class HuffmanTree:
    """Canonical Huffman decoding tree built from per-symbol code lengths."""

    def __init__(self, lengths: Iterable[int]) -> None:
        self.lengths = tuple(lengths)
        num_codes = len(self.lengths)
        self.num_codes = num_codes
        if any(length < 0 or length > _MAX_BIT_LENGTH for length in self.lengths):
            raise InflateError("code length out of range")

        counts = [0] * (_MAX_BIT_LENGTH + 1)
        for length in self.lengths:
            if length:
                counts[length] += 1
        next_code = [0] * (_MAX_BIT_LENGTH + 1)
        for bits in range(1, _MAX_BIT_LENGTH + 1):
            next_code[bits] = (next_code[bits - 1] + counts[bits - 1]) << 1

        unfilled = -1
        nodes = [unfilled] * (2 * num_codes)
        filled = 0
        for symbol, length in enumerate(self.lengths):
            if not length:
                continue
            code = next_code[length]
            next_code[length] += 1
            position = 0
            for i in range(length):
                bit = (code >> (length - i - 1)) & 1
                if position > num_codes - 2:
                    raise InflateError("oversubscribed Huffman code")
                slot = 2 * position + bit
                entry = nodes[slot]
                if entry == unfilled:
                    if i + 1 == length:
                        nodes[slot] = symbol
                        position = 0
                    else:
                        filled += 1
                        nodes[slot] = filled + num_codes
                        position = filled
                elif entry < num_codes or i + 1 == length:
                    raise InflateError("oversubscribed Huffman code")
                else:
                    position = entry - num_codes
        self._nodes = [0 if entry == unfilled else entry for entry in nodes]

    def decode_symbol(self, reader: BitReader) -> int:
        """Read one symbol from ``reader``."""
        position = 0
        while True:
            entry = self._nodes[(position << 1) | reader.read_bit()]
            if entry < self.num_codes:
                return entry
            position = entry - self.num_codes
            if position >= self.num_codes:
                raise InflateError("invalid Huffman code")


_FIXED_LITERAL_TREE = HuffmanTree([8] * 144 + [9] * 112 + [7] * 24 + [8] * 8)
_FIXED_DISTANCE_TREE = HuffmanTree([5] * _NUM_DISTANCE_SYMBOLS)


def _require_input(reader: BitReader) -> None:
    if reader.byte_position >= len(reader.data):
        raise InflateError("bit pointer past end of compressed data")


def _read_dynamic_trees(reader: BitReader) -> tuple[HuffmanTree, HuffmanTree]:
    if reader.byte_position >= len(reader.data) - 2:
        raise InflateError("truncated dynamic block header")

    hlit = reader.read_bits(5) + 257
    hdist = reader.read_bits(5) + 1
    hclen = reader.read_bits(4) + 4

    code_length_lengths = [0] * _NUM_CODE_LENGTH_CODES
    for index in _CODE_LENGTH_ORDER[:hclen]:
        code_length_lengths[index] = reader.read_bits(3)
    code_length_tree = HuffmanTree(code_length_lengths)

    total = hlit + hdist
    lengths: list[int] = []
    while len(lengths) < total:
        code = code_length_tree.decode_symbol(reader)
        if code <= 15:
            lengths.append(code)
            continue
        if code == 16:
            _require_input(reader)
            repeat = 3 + reader.read_bits(2)
            if not lengths:
                raise InflateError("repeat code with no previous length")
            value = lengths[-1]
        elif code == 17:
            _require_input(reader)
            repeat = 3 + reader.read_bits(3)
            value = 0
        elif code == 18:
            _require_input(reader)
            repeat = 11 + reader.read_bits(7)
            value = 0
        else:
            raise InflateError("invalid code length symbol")
        if len(lengths) + repeat > total:
            raise InflateError("code lengths exceed declared count")
        lengths.extend([value] * repeat)

    literal_lengths = lengths[:hlit] + [0] * (_NUM_LITERAL_SYMBOLS - hlit)
    distance_lengths = lengths[hlit:] + [0] * (_NUM_DISTANCE_SYMBOLS - hdist)
    if literal_lengths[_END_OF_BLOCK] == 0:
        raise InflateError("end-of-block code has zero length")
    return HuffmanTree(literal_lengths), HuffmanTree(distance_lengths)


def _inflate_huffman(
    reader: BitReader,
    out: bytearray,
    out_size: int,
    literal_tree: HuffmanTree,
    distance_tree: HuffmanTree,
) -> None:
    while True:
        code = literal_tree.decode_symbol(reader)
        if code == _END_OF_BLOCK:
            return
        if code <= 255:
            if len(out) >= out_size:
                raise InflateError("output buffer overflow")
            out.append(code)
        elif _FIRST_LENGTH_CODE <= code <= _LAST_LENGTH_CODE:
            index = code - _FIRST_LENGTH_CODE
            _require_input(reader)
            length = _LENGTH_BASE[index] + reader.read_bits(_LENGTH_EXTRA[index])

            distance_code = distance_tree.decode_symbol(reader)
            if distance_code > 29:
                raise InflateError("invalid distance code")
            _require_input(reader)
            distance = _DISTANCE_BASE[distance_code] + reader.read_bits(
                _DISTANCE_EXTRA[distance_code]
            )

            if distance > len(out):
                raise InflateError("distance reaches before start of output")
            if len(out) + length >= out_size:
                raise InflateError("output buffer overflow")
            start = len(out) - distance
            for offset in range(length):
                out.append(out[start + offset])


def _inflate_stored(reader: BitReader, out: bytearray, out_size: int) -> None:
    reader.align_to_byte()
    data = reader.data
    p = reader.byte_position
    if p + 4 >= len(data):
        raise InflateError("truncated stored block header")
    length = data[p] | (data[p + 1] << 8)
    complement = data[p + 2] | (data[p + 3] << 8)
    p += 4
    if length + complement != 0xFFFF:
        raise InflateError("stored block length check failed")
    if len(out) + length >= out_size:
        raise InflateError("output buffer overflow")
    if p + length > len(data):
        raise InflateError("stored block runs past end of data")
    out += data[p:p + length]
    reader.position = (p + length) * 8


def inflate_raw(data: bytes | bytearray | memoryview, out_size: int) -> bytes:
    """Decompress a raw DEFLATE stream whose output must stay within ``out_size``."""
    reader = BitReader(data)
    out = bytearray()
    final = False
    while not final:
        _require_input(reader)
        final = bool(reader.read_bit())
        block_type = reader.read_bits(2)
        if block_type == 3:
            raise InflateError("invalid block type")
        if block_type == 0:
            _inflate_stored(reader, out, out_size)
        elif block_type == 1:
            _inflate_huffman(reader, out, out_size, _FIXED_LITERAL_TREE, _FIXED_DISTANCE_TREE)
        else:
            literal_tree, distance_tree = _read_dynamic_trees(reader)
            _inflate_huffman(reader, out, out_size, literal_tree, distance_tree)
    return bytes(out)


def inflate(data: bytes | bytearray | memoryview, out_size: int) -> bytes:
    """Decompress a zlib stream whose output must stay within ``out_size``."""
    data = bytes(data)
    if len(data) < 2:
        raise InflateError("zlib header missing")
    cmf, flags = data[0], data[1]
    if (cmf * 256 + flags) % 31 != 0:
        raise InflateError("zlib header check failed")
    if (cmf & 15) != 8 or ((cmf >> 4) & 15) > 7:
        raise InflateError("unsupported zlib compression method")
    if (flags >> 5) & 1:
        raise InflateError("preset dictionary not allowed")
    return inflate_raw(data[2:], out_size)