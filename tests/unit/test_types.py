#
# Copyright (C) 2026 pixcheck Developers — LGPL-3.0-or-later
#

"""Unit tests for pixcheck.types and pixcheck.log modules."""

from __future__ import annotations

import logging

import pytest

from pixcheck.log import LOG_TRACE, Log
from pixcheck.types import Family, Operator, OperatorList


class TestOperator:
    """Tests for the operator enumeration."""

    def test_opcodes(self):
        assert Operator.CLEAR.opcode == 0x00
        assert Operator.SATURATE.opcode == 0x0d
        assert Operator.DISJOINT_CLEAR.opcode == 0x10
        assert Operator.CONJOINT_XOR.opcode == 0x2b
        assert Operator.MULTIPLY.opcode == 0x30

    def test_families(self):
        assert Operator.OVER.family is Family.PLAIN
        assert Operator.DISJOINT_OVER.family is Family.DISJOINT
        assert Operator.CONJOINT_OVER.family is Family.CONJOINT
        assert Operator.SCREEN.family is Family.BLEND

    def test_supported(self):
        supported = Operator.supported()
        assert len(supported) == 38
        assert Operator.MULTIPLY not in supported
        assert [op.opcode for op in supported] == sorted(op.opcode for op in supported)

    def test_operator_list(self):
        assert OperatorList(['over', Operator.ADD]) == (Operator.OVER, Operator.ADD)

    def test_operator_list_unknown(self):
        with pytest.raises(ValueError):
            OperatorList(['FROB'])


class TestLog:
    """Tests for the logger registry."""

    def test_cached(self):
        assert Log.get('pixcheck.test') is Log.get('pixcheck.test')

    def test_trace_level(self):
        assert logging.getLevelName(LOG_TRACE) == 'TRACE'

    def test_set_level(self):
        logger = Log.get('pixcheck.test')
        try:
            Log.set_level(logging.DEBUG)
            assert logger.level == logging.DEBUG
            assert Log.get('pixcheck.test.other').level == logging.DEBUG
        finally:
            Log.set_level(logging.INFO)
        assert logger.level == logging.INFO
