#
# Copyright (C) 2026 pixcheck Developers — LGPL-3.0-or-later
#
"""
Packed pixel formats.

A FormatDescriptor says how many bits each channel occupies and in
which order the channels are laid out inside a pixel. From that alone
we can pull normalized channel values out of a raw pixel (decode),
put them back (encode), and snap a continuous color onto the grid of
values the format can represent (quantize).

Only packed integer formats with 1, 4, 8, 16 or 32 bits per pixel are
modelled.
"""

# pylint: disable=invalid-name

import re
import sys

from enum import Enum
from typing import NamedTuple

import numpy as np

from pixcheck.color import Color
from pixcheck.errors import FormatError, UnsupportedFormatError
from pixcheck.types import ByteOrder


SUPPORTED_BPP = (1, 4, 8, 16, 32)


class ChannelOrder(Enum):
    """
    Channel layout types, valued by their format-code type field
    """
    OTHER = 0
    A = 1
    ARGB = 2
    ABGR = 3
    COLOR = 4
    GRAY = 5
    YUY2 = 6
    YV12 = 7
    BGRA = 8


class ChannelLayout(NamedTuple):
    """
    Bit offset of each channel within a pixel
    """
    a: int
    r: int
    g: int
    b: int


def mask(width: int) -> int:
    return (1 << width) - 1


class FormatDescriptor(NamedTuple):
    """
    Bit layout of a packed pixel format

    Widths are in bits. A zero width means the channel is absent:
    absent alpha reads as opaque, absent color reads as black.
    """
    name: str
    order: ChannelOrder
    bpp: int
    a: int
    r: int
    g: int
    b: int

    @classmethod
    def create(cls, name, order, bpp, a, r, g, b) -> 'FormatDescriptor':
        """
        Create a descriptor, checking that the channels fit the pixel
        """
        fmt = cls(name, ChannelOrder(order), bpp, a, r, g, b)
        if min(a, r, g, b) < 0:
            raise FormatError('Negative channel width in %s' % name)
        if a + r + g + b > bpp:
            raise FormatError('Channels of %s need %d bits, pixel has %d'
                              % (name, a + r + g + b, bpp))
        if bpp not in SUPPORTED_BPP:
            raise FormatError('Unsupported pixel size %d in %s' % (bpp, name))
        return fmt


    @classmethod
    def from_code(cls, code: int, name: str = None) -> 'FormatDescriptor':
        """
        Unpack an engine format code

        Codes carry bpp in the top byte, then the channel order type,
        then four 4-bit widths for a, r, g and b.
        """
        bpp = (code >> 24) & 0xff
        order = (code >> 16) & 0xff
        a, r, g, b = [(code >> shift) & 0x0f for shift in (12, 8, 4, 0)]
        try:
            order = ChannelOrder(order)
        except ValueError:
            raise FormatError('Unknown channel order %d in code 0x%08x' % (order, code))
        if name is None:
            name = '0x%08x' % code
        return cls.create(name, order, bpp, a, r, g, b)


    @property
    def code(self) -> int:
        """
        The engine format code for this descriptor
        """
        for width in (self.a, self.r, self.g, self.b):
            if width > 0x0f:
                raise FormatError('%s does not fit a format code' % self.name)
        return (self.bpp << 24) | (self.order.value << 16) | \
                (self.a << 12) | (self.r << 8) | (self.g << 4) | self.b


    @property
    def has_alpha(self) -> bool:
        return self.a > 0


    @property
    def has_color(self) -> bool:
        return self.r > 0


    def __str__(self):
        return self.name


class FormatList(tuple):
    """
    Tuple of FormatDescriptors, coerced from format names
    """
    def __new__(cls, items=()):
        return super().__new__(cls, [x if isinstance(x, FormatDescriptor) else get_format(x)
                                     for x in items])

    @property
    def names(self) -> list:
        return [fmt.name for fmt in self]


class PixelStorage(NamedTuple):
    """
    How a raw pixel read from an engine's buffer is laid out

    The engine's first pixel is read as one unsigned word of word_bits
    bits in the target's byte order. On big-endian targets the pixel
    sits in the most significant bits of that word.
    """
    byte_order: ByteOrder = ByteOrder.LITTLE
    word_bits: int = 32

    @classmethod
    def native(cls, word_bits: int = 32) -> 'PixelStorage':
        return cls(ByteOrder(sys.byteorder), word_bits)


    @property
    def word_bytes(self) -> int:
        return self.word_bits // 8


    def align(self, raw: int, fmt: FormatDescriptor) -> int:
        """
        Move the pixel's bits down to bit 0 of the raw value
        """
        if self.byte_order is ByteOrder.BIG:
            if fmt.bpp > self.word_bits:
                raise FormatError('%s does not fit a %d-bit word' % (fmt.name, self.word_bits))
            return raw >> (self.word_bits - fmt.bpp)
        return raw


# Offset calculators, per channel order

def _argb_offsets(fmt):
    b = 0
    g = b + fmt.b
    r = g + fmt.g
    return ChannelLayout(a=r + fmt.r, r=r, g=g, b=b)


def _abgr_offsets(fmt):
    r = 0
    g = r + fmt.r
    b = g + fmt.g
    return ChannelLayout(a=b + fmt.b, r=r, g=g, b=b)


def _bgra_offsets(fmt):
    r = fmt.bpp - (fmt.b + fmt.g + fmt.r)
    g = r + fmt.r
    return ChannelLayout(a=0, r=r, g=g, b=g + fmt.g)


def _a_offsets(fmt):
    return ChannelLayout(0, 0, 0, 0)


_OFFSETS = {
    ChannelOrder.ARGB: _argb_offsets,
    ChannelOrder.ABGR: _abgr_offsets,
    ChannelOrder.BGRA: _bgra_offsets,
    ChannelOrder.A: _a_offsets,
}


def channel_offsets(fmt: FormatDescriptor) -> ChannelLayout:
    """
    Bit offset of each channel of a format

    :raises UnsupportedFormatError: for channel orders that are not packed RGBA
    """
    calc = _OFFSETS.get(fmt.order)
    if calc is None:
        raise UnsupportedFormatError(fmt)
    return calc(fmt)


def _widths(fmt):
    return ChannelLayout(fmt.a, fmt.r, fmt.g, fmt.b)


def _extract(raw, offset, width, default):
    if width == 0:
        return default
    return ((raw >> offset) & mask(width)) / mask(width)


def decode(raw: int, fmt: FormatDescriptor, storage: PixelStorage = None) -> Color:
    """
    Decode a raw pixel to normalized channel values

    :param raw: The pixel, as read from the buffer
    :param fmt: Format of the buffer
    :param storage: Layout of the raw read; little-endian if None

    :return: The decoded color
    """
    if storage is not None:
        raw = storage.align(raw, fmt)

    offsets = channel_offsets(fmt)
    return Color(_extract(raw, offsets.r, fmt.r, 0.0),
                 _extract(raw, offsets.g, fmt.g, 0.0),
                 _extract(raw, offsets.b, fmt.b, 0.0),
                 _extract(raw, offsets.a, fmt.a, 1.0))


def _round(value, width):
    return int(value * mask(width) + 0.5) / mask(width)


def quantize(color: Color, fmt: FormatDescriptor) -> Color:
    """
    Snap a color onto the values a format can store

    Formats without color report black, formats without alpha
    report opaque, whatever the input color was.
    """
    if not fmt.has_color:
        r = g = b = 0.0
    else:
        r, g, b = [_round(v, w) if w else 0.0 for v, w in zip(color[:3], (fmt.r, fmt.g, fmt.b))]

    if not fmt.has_alpha:
        a = 1.0
    else:
        a = _round(color.a, fmt.a)

    return Color(r, g, b, a)


def encode(color: Color, fmt: FormatDescriptor) -> int:
    """
    Pack a color into a raw pixel, rounding to nearest
    """
    offsets = channel_offsets(fmt)
    raw = 0
    for value, width, offset in zip(color, _widths(fmt)[1:] + (fmt.a,),
                                    offsets[1:] + (offsets.a,)):
        if width:
            value = min(max(value, 0.0), 1.0)
            raw |= int(value * mask(width) + 0.5) << offset
    return raw


def encode_short(channels: tuple, fmt: FormatDescriptor) -> int:
    """
    Pack 16-bit channels (r, g, b, a) by keeping their top bits
    """
    offsets = channel_offsets(fmt)
    raw = 0
    for value, width, offset in zip(channels, _widths(fmt)[1:] + (fmt.a,),
                                    offsets[1:] + (offsets.a,)):
        if width:
            raw |= (value >> (16 - width)) << offset
    return raw


def decode_array(raw: np.ndarray, fmt: FormatDescriptor) -> np.ndarray:
    """
    Decode an array of raw pixels

    :return: float64 array with a trailing r, g, b, a axis
    """
    offsets = channel_offsets(fmt)
    raw = raw.astype(np.uint64)
    out = np.empty(raw.shape + (4,), dtype=np.float64)
    for idx, (width, offset, default) in enumerate(zip(
            (fmt.r, fmt.g, fmt.b, fmt.a),
            (offsets.r, offsets.g, offsets.b, offsets.a),
            (0.0, 0.0, 0.0, 1.0))):
        if width == 0:
            out[..., idx] = default
        else:
            out[..., idx] = ((raw >> np.uint64(offset)) & np.uint64(mask(width))) / mask(width)
    return out


def encode_array(colors: np.ndarray, fmt: FormatDescriptor) -> np.ndarray:
    """
    Pack an array of r, g, b, a values, rounding to nearest
    """
    offsets = channel_offsets(fmt)
    raw = np.zeros(colors.shape[:-1], dtype=np.uint64)
    for idx, (width, offset) in enumerate(zip(
            (fmt.r, fmt.g, fmt.b, fmt.a),
            (offsets.r, offsets.g, offsets.b, offsets.a))):
        if width:
            values = np.clip(colors[..., idx], 0.0, 1.0) * mask(width) + 0.5
            raw |= values.astype(np.uint64) << np.uint64(offset)
    return raw.astype(np.uint32)


_FORMAT_TOKEN = re.compile(r'([axrgb])(\d+)')


def parse_format(name: str) -> FormatDescriptor:
    """
    Build a descriptor from a format name such as a8r8g8b8

    Channels are listed from the most significant bits down. 'x'
    marks padding. Color channels in r, g, b order make an ARGB
    format; b, g, r order makes ABGR, or BGRA when the alpha or
    padding comes last. Names without color channels are alpha-only.
    """
    tokens = _FORMAT_TOKEN.findall(name)
    if not tokens or ''.join(l + w for l, w in tokens) != name:
        raise FormatError('Malformed format name: %s' % name)

    letters = [l for l, _ in tokens]
    widths = dict((l, int(w)) for l, w in tokens if l != 'x')
    if len(widths) != len([l for l in letters if l != 'x']):
        raise FormatError('Repeated channel in format name: %s' % name)

    bpp = sum(int(w) for _, w in tokens)
    colors = [l for l in letters if l in 'rgb']

    if not colors:
        order = ChannelOrder.A
    elif colors == ['r', 'g', 'b'] and letters[-1] == 'b':
        order = ChannelOrder.ARGB
    elif colors == ['b', 'g', 'r'] and letters[-1] == 'r':
        order = ChannelOrder.ABGR
    elif colors == ['b', 'g', 'r'] and letters[0] == 'b' and len(letters) == 4:
        order = ChannelOrder.BGRA
    else:
        raise FormatError('Unsupported channel layout: %s' % name)

    return FormatDescriptor.create(name, order, bpp, widths.get('a', 0),
                                   widths.get('r', 0), widths.get('g', 0),
                                   widths.get('b', 0))


# Formats exercised by the default matrix
DEFAULT_FORMAT_NAMES = ('a8', 'a8r8g8b8', 'x8r8g8b8', 'a8b8g8r8', 'x8b8g8r8',
                        'b8g8r8a8', 'b8g8r8x8')

# Packed formats engines commonly implement beyond the defaults
EXTRA_FORMAT_NAMES = ('x2r10g10b10', 'a2r10g10b10', 'x2b10g10r10', 'a2b10g10r10',
                      'r5g6b5', 'b5g6r5', 'a1r5g5b5', 'x1r5g5b5', 'a1b5g5r5',
                      'x1b5g5r5', 'a4r4g4b4', 'x4r4g4b4', 'a4b4g4r4', 'x4b4g4r4',
                      'r3g3b2', 'b2g3r3', 'a2r2g2b2', 'a2b2g2r2', 'x4a4',
                      'a4', 'r1g2b1', 'b1g2r1', 'a1r1g1b1', 'a1b1g1r1', 'a1')

FORMATS = dict((name, parse_format(name))
               for name in DEFAULT_FORMAT_NAMES + EXTRA_FORMAT_NAMES)


def get_format(name) -> FormatDescriptor:
    """
    Look up a format by name, parsing names not in the registry
    """
    if isinstance(name, FormatDescriptor):
        return name
    if name in FORMATS:
        return FORMATS[name]
    return parse_format(str(name))
