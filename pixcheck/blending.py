#
# Copyright (C) 2026 pixcheck Developers — LGPL-3.0-or-later
#

"""
Porter-Duff blend formulas.

Every supported operator composites one channel as

    result = min(src * Fa + dst * Fb, 1.0)

where the coefficients Fa and Fb are given by a pair of rules over the
source and destination alphas. The rules are data (OPERATOR_RULES) and
a single interpreter evaluates them. Ratio rules have a defined value
when their denominator alpha is zero instead of dividing by it.
"""

from enum import Enum
from typing import NamedTuple, Union

import numpy as np

from frozendict import frozendict

from pixcheck.errors import UnsupportedOperatorError
from pixcheck.types import Operator


class Alpha(Enum):
    SRC = 'src'
    DST = 'dst'


class Constant(NamedTuple):
    value: float


class AlphaOf(NamedTuple):
    which: Alpha


class OneMinus(NamedTuple):
    which: Alpha


class SafeRatio(NamedTuple):
    """
    numerator / alpha(denominator), clamped into [0, 1]

    Evaluates to zero_limit when the denominator alpha is 0. With
    complement set the value is max(0, 1 - ratio), otherwise
    min(1, ratio).
    """
    numerator: 'Rule'
    denominator: Alpha
    zero_limit: float
    complement: bool = False


Rule = Union[Constant, AlphaOf, OneMinus, SafeRatio]


ZERO = Constant(0.0)
ONE = Constant(1.0)
SRC_ALPHA = AlphaOf(Alpha.SRC)
DST_ALPHA = AlphaOf(Alpha.DST)
INV_SRC_ALPHA = OneMinus(Alpha.SRC)
INV_DST_ALPHA = OneMinus(Alpha.DST)

# min(1, (1 - dA) / sA) and its destination mirror
DISJOINT_OVER_SRC = SafeRatio(INV_DST_ALPHA, Alpha.SRC, 1.0)
DISJOINT_OVER_DST = SafeRatio(INV_SRC_ALPHA, Alpha.DST, 1.0)

# max(0, 1 - (1 - dA) / sA)
DISJOINT_IN_SRC = SafeRatio(INV_DST_ALPHA, Alpha.SRC, 0.0, complement=True)
DISJOINT_IN_DST = SafeRatio(INV_SRC_ALPHA, Alpha.DST, 0.0, complement=True)

# min(1, dA / sA)
CONJOINT_IN_SRC = SafeRatio(DST_ALPHA, Alpha.SRC, 1.0)
CONJOINT_IN_DST = SafeRatio(SRC_ALPHA, Alpha.DST, 1.0)

# max(0, 1 - dA / sA)
CONJOINT_OUT_SRC = SafeRatio(DST_ALPHA, Alpha.SRC, 0.0, complement=True)
CONJOINT_OUT_DST = SafeRatio(SRC_ALPHA, Alpha.DST, 0.0, complement=True)


OPERATOR_RULES = frozendict({
    Operator.CLEAR: (ZERO, ZERO),
    Operator.SRC: (ONE, ZERO),
    Operator.DST: (ZERO, ONE),
    Operator.OVER: (ONE, INV_SRC_ALPHA),
    Operator.OVER_REVERSE: (INV_DST_ALPHA, ONE),
    Operator.IN: (DST_ALPHA, ZERO),
    Operator.IN_REVERSE: (ZERO, SRC_ALPHA),
    Operator.OUT: (INV_DST_ALPHA, ZERO),
    Operator.OUT_REVERSE: (ZERO, INV_SRC_ALPHA),
    Operator.ATOP: (DST_ALPHA, INV_SRC_ALPHA),
    Operator.ATOP_REVERSE: (INV_DST_ALPHA, SRC_ALPHA),
    Operator.XOR: (INV_DST_ALPHA, INV_SRC_ALPHA),
    Operator.ADD: (ONE, ONE),
    Operator.SATURATE: (DISJOINT_OVER_SRC, ONE),

    Operator.DISJOINT_CLEAR: (ZERO, ZERO),
    Operator.DISJOINT_SRC: (ONE, ZERO),
    Operator.DISJOINT_DST: (ZERO, ONE),
    Operator.DISJOINT_OVER: (ONE, DISJOINT_OVER_DST),
    Operator.DISJOINT_OVER_REVERSE: (DISJOINT_OVER_SRC, ONE),
    Operator.DISJOINT_IN: (DISJOINT_IN_SRC, ZERO),
    Operator.DISJOINT_IN_REVERSE: (ZERO, DISJOINT_IN_DST),
    Operator.DISJOINT_OUT: (DISJOINT_OVER_SRC, ZERO),
    Operator.DISJOINT_OUT_REVERSE: (ZERO, DISJOINT_OVER_DST),
    Operator.DISJOINT_ATOP: (DISJOINT_IN_SRC, DISJOINT_OVER_DST),
    Operator.DISJOINT_ATOP_REVERSE: (DISJOINT_OVER_SRC, DISJOINT_IN_DST),
    Operator.DISJOINT_XOR: (DISJOINT_OVER_SRC, DISJOINT_OVER_DST),

    Operator.CONJOINT_CLEAR: (ZERO, ZERO),
    Operator.CONJOINT_SRC: (ONE, ZERO),
    Operator.CONJOINT_DST: (ZERO, ONE),
    Operator.CONJOINT_OVER: (ONE, CONJOINT_OUT_DST),
    Operator.CONJOINT_OVER_REVERSE: (CONJOINT_OUT_SRC, ONE),
    Operator.CONJOINT_IN: (CONJOINT_IN_SRC, ZERO),
    Operator.CONJOINT_IN_REVERSE: (ZERO, CONJOINT_IN_DST),
    Operator.CONJOINT_OUT: (CONJOINT_OUT_SRC, ZERO),
    Operator.CONJOINT_OUT_REVERSE: (ZERO, CONJOINT_OUT_DST),
    Operator.CONJOINT_ATOP: (CONJOINT_IN_SRC, CONJOINT_OUT_DST),
    Operator.CONJOINT_ATOP_REVERSE: (CONJOINT_OUT_SRC, CONJOINT_IN_DST),
    Operator.CONJOINT_XOR: (CONJOINT_OUT_SRC, CONJOINT_OUT_DST),
})


def _select(which, src_alpha, dst_alpha):
    return src_alpha if which is Alpha.SRC else dst_alpha


def coefficient(rule: Rule, src_alpha: float, dst_alpha: float) -> float:
    """
    Evaluate one coefficient rule

    :param rule: The rule
    :param src_alpha: Source alpha
    :param dst_alpha: Destination alpha

    :return: The coefficient
    """
    if isinstance(rule, Constant):
        return rule.value

    if isinstance(rule, AlphaOf):
        return _select(rule.which, src_alpha, dst_alpha)

    if isinstance(rule, OneMinus):
        return 1.0 - _select(rule.which, src_alpha, dst_alpha)

    if isinstance(rule, SafeRatio):
        denominator = _select(rule.denominator, src_alpha, dst_alpha)
        if denominator == 0.0:
            return rule.zero_limit

        ratio = coefficient(rule.numerator, src_alpha, dst_alpha) / denominator
        if rule.complement:
            return max(0.0, 1.0 - ratio)
        return min(1.0, ratio)

    raise TypeError('Not a coefficient rule: %r' % (rule,))


def get_rules(op: Operator) -> tuple:
    """
    The (Fa, Fb) rules of an operator

    :raises UnsupportedOperatorError: if the operator has no formula
    """
    rules = OPERATOR_RULES.get(op)
    if rules is None:
        raise UnsupportedOperatorError(op)
    return rules


def coefficients(op: Operator, src_alpha: float, dst_alpha: float) -> tuple:
    """
    The (Fa, Fb) coefficients of an operator at the given alphas
    """
    fa, fb = get_rules(op)
    return coefficient(fa, src_alpha, dst_alpha), coefficient(fb, src_alpha, dst_alpha)


def evaluate(op: Operator, src: float, dst: float, src_alpha: float, dst_alpha: float) -> float:
    """
    Composite a single channel

    :param op: The operator
    :param src: Source channel value (premultiplied)
    :param dst: Destination channel value (premultiplied)
    :param src_alpha: Source alpha for this channel
    :param dst_alpha: Destination alpha

    :return: The composited channel value
    """
    fa, fb = coefficients(op, src_alpha, dst_alpha)
    return min(src * fa + dst * fb, 1.0)


def _coefficient_array(rule, src_alpha, dst_alpha):
    if isinstance(rule, Constant):
        return np.full_like(src_alpha, rule.value)

    if isinstance(rule, AlphaOf):
        return _select(rule.which, src_alpha, dst_alpha)

    if isinstance(rule, OneMinus):
        return 1.0 - _select(rule.which, src_alpha, dst_alpha)

    if isinstance(rule, SafeRatio):
        denominator = _select(rule.denominator, src_alpha, dst_alpha)
        numerator = _coefficient_array(rule.numerator, src_alpha, dst_alpha)
        ratio = np.divide(numerator, denominator,
                          out=np.zeros_like(numerator), where=denominator != 0.0)
        if rule.complement:
            value = np.maximum(0.0, 1.0 - ratio)
        else:
            value = np.minimum(1.0, ratio)
        return np.where(denominator == 0.0, rule.zero_limit, value)

    raise TypeError('Not a coefficient rule: %r' % (rule,))


def evaluate_array(op: Operator, src: np.ndarray, dst: np.ndarray,
                   src_alpha: np.ndarray, dst_alpha: np.ndarray) -> np.ndarray:
    """
    Composite whole arrays of channel values

    All arguments must broadcast to a common shape.
    """
    src, dst, src_alpha, dst_alpha = np.broadcast_arrays(
        *[np.asarray(x, dtype=np.float64) for x in (src, dst, src_alpha, dst_alpha)])

    fa, fb = get_rules(op)
    return np.minimum(src * _coefficient_array(fa, src_alpha, dst_alpha)
                      + dst * _coefficient_array(fb, src_alpha, dst_alpha), 1.0)
