#
# Copyright (C) 2026 pixcheck Developers — LGPL-3.0-or-later
#
"""
Quantization-aware color difference.
"""

from typing import NamedTuple

from pixcheck.color import Color
from pixcheck.format import FormatDescriptor


# Differences up to this many scaled units are rounding noise
TOLERANCE = 3.0


class ChannelScale(NamedTuple):
    """
    Multiplier applied to each channel's difference

    Roughly the number of steps the destination can represent per
    channel, so a scaled difference of 1 is about one step.
    """
    r: float = 1 << 5
    g: float = 1 << 6
    b: float = 1 << 5
    a: float = 32.0

    @classmethod
    def for_format(cls, fmt: FormatDescriptor) -> 'ChannelScale':
        """
        Scale derived from a format's channel widths

        Absent channels keep the default scale.
        """
        default = cls()
        return cls(*[float(1 << width) if width else fallback
                     for width, fallback in zip((fmt.r, fmt.g, fmt.b, fmt.a), default)])


DEFAULT_SCALE = ChannelScale()


def distance(expected: Color, actual: Color, scale: ChannelScale = DEFAULT_SCALE) -> float:
    """
    Largest scaled per-channel difference between two colors

    Symmetric in its color arguments.
    """
    return max(abs(a - e) * s for e, a, s in zip(expected, actual, scale))


def within_tolerance(expected: Color, actual: Color, scale: ChannelScale = DEFAULT_SCALE,
                     tolerance: float = TOLERANCE) -> bool:
    return distance(expected, actual, scale) <= tolerance
