#
# Copyright (C) 2026 pixcheck Developers — LGPL-3.0-or-later
#
"""
Common types and enumerations which are used by everything.
"""

from enum import Enum


class Family(Enum):
    """
    Operator families
    """
    PLAIN = 'plain'
    DISJOINT = 'disjoint'
    CONJOINT = 'conjoint'
    BLEND = 'blend'


class Operator(Enum):
    """
    Compositing operators understood by the engine under test.

    Tuples, in the form of:
        (opcode, family)

    The opcode is the engine's numeric operator id. Members of the
    BLEND family are listed so that a test table naming them fails
    loudly instead of silently; the oracle has no formula for them.
    """
    def __init__(self, opcode, family):
        self._opcode = opcode
        self._family = Family(family)

    @property
    def opcode(self) -> int:
        return self._opcode

    @property
    def family(self) -> Family:
        return self._family

    @classmethod
    def supported(cls) -> tuple:
        """
        All operators the oracle can evaluate, in table order
        """
        return tuple(op for op in cls if op.family is not Family.BLEND)


    CLEAR = (0x00, 'plain')
    SRC = (0x01, 'plain')
    DST = (0x02, 'plain')
    OVER = (0x03, 'plain')
    OVER_REVERSE = (0x04, 'plain')
    IN = (0x05, 'plain')
    IN_REVERSE = (0x06, 'plain')
    OUT = (0x07, 'plain')
    OUT_REVERSE = (0x08, 'plain')
    ATOP = (0x09, 'plain')
    ATOP_REVERSE = (0x0a, 'plain')
    XOR = (0x0b, 'plain')
    ADD = (0x0c, 'plain')
    SATURATE = (0x0d, 'plain')

    DISJOINT_CLEAR = (0x10, 'disjoint')
    DISJOINT_SRC = (0x11, 'disjoint')
    DISJOINT_DST = (0x12, 'disjoint')
    DISJOINT_OVER = (0x13, 'disjoint')
    DISJOINT_OVER_REVERSE = (0x14, 'disjoint')
    DISJOINT_IN = (0x15, 'disjoint')
    DISJOINT_IN_REVERSE = (0x16, 'disjoint')
    DISJOINT_OUT = (0x17, 'disjoint')
    DISJOINT_OUT_REVERSE = (0x18, 'disjoint')
    DISJOINT_ATOP = (0x19, 'disjoint')
    DISJOINT_ATOP_REVERSE = (0x1a, 'disjoint')
    DISJOINT_XOR = (0x1b, 'disjoint')

    CONJOINT_CLEAR = (0x20, 'conjoint')
    CONJOINT_SRC = (0x21, 'conjoint')
    CONJOINT_DST = (0x22, 'conjoint')
    CONJOINT_OVER = (0x23, 'conjoint')
    CONJOINT_OVER_REVERSE = (0x24, 'conjoint')
    CONJOINT_IN = (0x25, 'conjoint')
    CONJOINT_IN_REVERSE = (0x26, 'conjoint')
    CONJOINT_OUT = (0x27, 'conjoint')
    CONJOINT_OUT_REVERSE = (0x28, 'conjoint')
    CONJOINT_ATOP = (0x29, 'conjoint')
    CONJOINT_ATOP_REVERSE = (0x2a, 'conjoint')
    CONJOINT_XOR = (0x2b, 'conjoint')

    MULTIPLY = (0x30, 'blend')
    SCREEN = (0x31, 'blend')
    OVERLAY = (0x32, 'blend')
    DARKEN = (0x33, 'blend')
    LIGHTEN = (0x34, 'blend')
    COLOR_DODGE = (0x35, 'blend')
    COLOR_BURN = (0x36, 'blend')
    HARD_LIGHT = (0x37, 'blend')
    SOFT_LIGHT = (0x38, 'blend')
    DIFFERENCE = (0x39, 'blend')
    EXCLUSION = (0x3a, 'blend')
    HSL_HUE = (0x3b, 'blend')
    HSL_SATURATION = (0x3c, 'blend')
    HSL_COLOR = (0x3d, 'blend')
    HSL_LUMINOSITY = (0x3e, 'blend')


class OperatorList(tuple):
    """
    Tuple of Operators, coerced from names
    """
    def __new__(cls, items=()):
        ops = []
        for item in items:
            if isinstance(item, Operator):
                ops.append(item)
            elif isinstance(item, str) and item.upper() in Operator.__members__:
                ops.append(Operator[item.upper()])
            else:
                raise ValueError('Unknown operator: %s' % item)
        return super().__new__(cls, ops)


class RepeatMode(Enum):
    """
    How an image is sampled outside of its bounds
    """
    NONE = 0
    NORMAL = 1
    PAD = 2
    REFLECT = 3


class ByteOrder(Enum):
    """
    Byte order of the target platform's pixel storage
    """
    LITTLE = 'little'
    BIG = 'big'


class Metric(Enum):
    """
    Source of the per-channel scale used by the difference metric
    """
    FIXED = 'fixed'
    FORMAT = 'format'
