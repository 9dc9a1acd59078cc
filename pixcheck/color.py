#
# Copyright (C) 2026 pixcheck Developers — LGPL-3.0-or-later
#

# pylint: disable=invalid-name

from collections.abc import Iterable
from typing import NamedTuple


class Color(NamedTuple):
    """
    RGBA color with float channels

    Channels are nominally in [0, 1] but are never clamped here:
    premultiplication and operator math may step outside the range
    before a quantize brings them back.
    """
    r: float
    g: float
    b: float
    a: float

    @classmethod
    def from_value(cls, value) -> 'Color':
        """
        Coerce a color from a 4-sequence of numbers

        :param value: A Color, or an iterable of r, g, b, a
        :return: The color
        """
        if isinstance(value, Color):
            return value
        if isinstance(value, str) or not isinstance(value, Iterable):
            raise TypeError('Unable to convert %r to color' % (value,))

        channels = tuple(value)
        if len(channels) != 4:
            raise TypeError('Color needs 4 channels, got %d' % len(channels))
        return cls(*[float(x) for x in channels])


    def premultiply(self) -> 'Color':
        """
        Multiply the color channels by alpha
        """
        return Color(self.r * self.a, self.g * self.a, self.b * self.a, self.a)


    def broadcast_alpha(self) -> 'Color':
        """
        Color with alpha copied into every channel
        """
        return Color(self.a, self.a, self.a, self.a)


    def to_short(self) -> tuple:
        """
        16-bit fixed point channels, as an engine fill color
        """
        return tuple(to_short(x) for x in self)


    def describe(self) -> str:
        return '%.2f %.2f %.2f %.2f' % self


def to_short(value: float) -> int:
    """
    Convert a normalized channel to 16-bit fixed point.

    Maps 1.0 to 0xffff rather than overflowing to 0x10000.
    """
    i = int(value * 65536)
    i -= i >> 16
    return i


class ColorList(tuple):
    """
    Tuple of Colors, coerced from lists of channel values
    """
    def __new__(cls, items=()):
        return super().__new__(cls, [Color.from_value(x) for x in items])

    def premultiply(self) -> 'ColorList':
        return ColorList(color.premultiply() for color in self)


# Straight alpha, premultiplied by the driver
DEFAULT_COLORS = ColorList([
    (1.0, 1.0, 1.0, 1.0),
    (1.0, 0.0, 0.0, 1.0),
    (0.0, 1.0, 0.0, 1.0),
    (0.0, 0.0, 1.0, 1.0),
    (0.0, 0.0, 0.0, 1.0),
    (0.5, 0.0, 0.0, 0.5)])
