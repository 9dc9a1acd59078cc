#
# Copyright (C) 2026 pixcheck Developers — LGPL-3.0-or-later
#

"""
Reference composition model.

Turns source, mask and destination colors into the per-channel operands
of the blend formulas, and computes the color an engine is expected to
leave in the destination once every input has been stored in its pixel
format.
"""

from typing import NamedTuple, Optional

from pixcheck.blending import evaluate
from pixcheck.color import Color
from pixcheck.format import ChannelOrder, FormatDescriptor, quantize
from pixcheck.types import Operator


class Operand(NamedTuple):
    """
    A premultiplied color and the format it is stored in

    format is None for solid images, which have no backing buffer
    and hold the color at full precision.
    """
    color: Color
    format: Optional[FormatDescriptor] = None

    def corrected(self) -> Color:
        if self.format is None:
            return self.color
        return quantize(self.color, self.format)


def source_operands(src: Color, mask: Optional[Color], component_alpha: bool) -> tuple:
    """
    Effective source value and source alpha, per channel

    Without a mask both come straight from the source. A mask scales
    them by its alpha, or channel by channel in component-alpha mode.

    :return: (value, alpha) colors
    """
    if mask is None:
        return src, src.broadcast_alpha()

    if component_alpha:
        value = Color(*[s * m for s, m in zip(src, mask)])
        alpha = Color(*[src.a * m for m in mask])
    else:
        value = Color(*[s * mask.a for s in src])
        alpha = Color(*[src.a * mask.a] * 4)

    return value, alpha


def compose(op: Operator, src: Color, mask: Optional[Color], dst: Color,
            component_alpha: bool = False) -> Color:
    """
    Composite one pixel with exact arithmetic

    Alpha is composited like any other channel, against the real
    destination alpha.

    :param op: The operator
    :param src: Premultiplied source color
    :param mask: Mask color, or None
    :param dst: Premultiplied destination color
    :param component_alpha: Per-channel mask coverage

    :return: The composited color
    """
    value, alpha = source_operands(src, mask, component_alpha)
    return Color(*[evaluate(op, v, d, a, dst.a) for v, d, a in zip(value, dst, alpha)])


def broadcasts_mask_alpha(fmt: FormatDescriptor) -> bool:
    """
    True if a component-alpha mask in this format uses its alpha
    as the coverage of every channel.

    Only alpha-only formats qualify.
    """
    return fmt.order is ChannelOrder.A and not fmt.has_color


def expected_color(op: Operator, src: Operand, mask: Optional[Operand], dst: Operand,
                   component_alpha: bool = False) -> Color:
    """
    The color an engine should produce for one composite

    Every buffered input is first corrected to its own format, the
    composite runs in exact arithmetic, and the result is corrected to
    the destination format.
    """
    if dst.format is None:
        raise ValueError('Destination operand needs a format')

    mask_color = None
    if mask is not None:
        mask_color = mask.corrected()
        if component_alpha and mask.format is not None and broadcasts_mask_alpha(mask.format):
            mask_color = mask_color.broadcast_alpha()

    result = compose(op, src.corrected(), mask_color, dst.corrected(), component_alpha)
    return quantize(result, dst.format)
