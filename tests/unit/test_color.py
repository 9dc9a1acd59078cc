#
# Copyright (C) 2026 pixcheck Developers — LGPL-3.0-or-later
#

"""Unit tests for pixcheck.color module."""

from __future__ import annotations

import pytest

from pixcheck.color import DEFAULT_COLORS, Color, ColorList, to_short

# ─────────────────────────────────────────────────────────────────────────────
# to_short tests
# ─────────────────────────────────────────────────────────────────────────────


class TestToShort:
    """Tests for the 16-bit fixed point conversion."""

    def test_zero(self):
        assert to_short(0.0) == 0

    def test_one_does_not_overflow(self):
        """1.0 maps to 0xffff, not 0x10000."""
        assert to_short(1.0) == 0xffff

    def test_half(self):
        assert to_short(0.5) == 0x8000

    def test_quarter(self):
        assert to_short(0.25) == 0x4000

    def test_color_to_short(self, red):
        assert red.to_short() == (0xffff, 0, 0, 0xffff)


# ─────────────────────────────────────────────────────────────────────────────
# Color tests
# ─────────────────────────────────────────────────────────────────────────────


class TestColor:
    """Tests for the Color tuple."""

    def test_premultiply(self):
        assert Color(0.5, 0.0, 0.0, 0.5).premultiply() == Color(0.25, 0.0, 0.0, 0.5)

    def test_premultiply_opaque_unchanged(self, red):
        assert red.premultiply() == red

    def test_broadcast_alpha(self):
        assert Color(0.1, 0.2, 0.3, 0.4).broadcast_alpha() == Color(0.4, 0.4, 0.4, 0.4)

    def test_describe(self, red):
        assert red.describe() == '1.00 0.00 0.00 1.00'

    def test_from_value_list(self):
        color = Color.from_value([1, 0, 0, 1])
        assert color == Color(1.0, 0.0, 0.0, 1.0)
        assert isinstance(color.r, float)

    def test_from_value_color(self, red):
        assert Color.from_value(red) is red

    def test_from_value_string_rejected(self):
        with pytest.raises(TypeError):
            Color.from_value('red')

    def test_from_value_wrong_length(self):
        with pytest.raises(TypeError):
            Color.from_value([1.0, 0.0, 0.0])

    def test_not_clamped(self):
        """Channels outside [0, 1] are kept as given."""
        assert Color(1.5, -0.5, 0.0, 1.0).r == 1.5


# ─────────────────────────────────────────────────────────────────────────────
# ColorList tests
# ─────────────────────────────────────────────────────────────────────────────


class TestColorList:
    """Tests for ColorList coercion."""

    def test_coerces_lists(self):
        colors = ColorList([[1, 0, 0, 1], (0, 1, 0, 1)])
        assert all(isinstance(c, Color) for c in colors)
        assert colors[1] == Color(0.0, 1.0, 0.0, 1.0)

    def test_premultiply(self):
        colors = ColorList([(0.5, 0.0, 0.0, 0.5)]).premultiply()
        assert isinstance(colors, ColorList)
        assert colors[0] == Color(0.25, 0.0, 0.0, 0.5)

    def test_default_palette(self):
        assert len(DEFAULT_COLORS) == 6
        assert DEFAULT_COLORS[-1] == Color(0.5, 0.0, 0.0, 0.5)
