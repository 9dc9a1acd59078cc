#
# Copyright (C) 2026 pixcheck Developers — LGPL-3.0-or-later
#

"""Unit tests for pixcheck.driver module."""

from __future__ import annotations

import pytest

from pixcheck.color import Color, ColorList
from pixcheck.driver import (CaseMatrix, CaseResult, CompositeCase, FixtureImage, ImageSpec,
                             MatrixDriver, RunSummary, Size, SizeList, run_parallel, shard)
from pixcheck.engine import SoftwareEngine
from pixcheck.errors import EngineError, FatalOracleError
from pixcheck.format import FormatList
from pixcheck.types import Metric, Operator, OperatorList, RepeatMode


class BrokenEngine(SoftwareEngine):
    """Reads back an empty pixel whatever was composited."""

    def read_raw_pixel(self, image):
        super().read_raw_pixel(image)
        return 0


class ShiftedEngine(SoftwareEngine):
    """Reads back black with red four 8-bit steps too high."""

    def read_raw_pixel(self, image):
        super().read_raw_pixel(image)
        return 0x00040000


class FailingFillEngine(SoftwareEngine):
    def fill_rectangle(self, image, color, rect, op=Operator.SRC):
        raise EngineError('fill failed')


# ─────────────────────────────────────────────────────────────────────────────
# Matrix enumeration tests
# ─────────────────────────────────────────────────────────────────────────────


class TestSize:
    """Tests for fixture size parsing."""

    def test_plain(self):
        assert Size.parse('10') == Size(10, RepeatMode.NONE)
        assert Size.parse(10) == Size(10, RepeatMode.NONE)

    def test_repeat(self):
        size = Size.parse('1R')
        assert size == Size(1, RepeatMode.NORMAL)
        assert str(size) == '1R'

    @pytest.mark.parametrize("value", ['0', 'R', 'x1', '-1'])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            Size.parse(value)

    def test_size_list(self):
        assert [str(s) for s in SizeList(['1', '1r', 10])] == ['1', '1R', '10']


class TestCaseMatrix:
    """Tests for case enumeration arithmetic."""

    def test_counts(self, small_matrix):
        assert small_matrix.destination_count == 4
        assert small_matrix.operand_indices == range(-2, 4)
        assert small_matrix.case_count == 4 * 6 * 6 * 3 * 2

    def test_destination(self, small_matrix, a8):
        dst = small_matrix.destination(3)
        assert dst.color == small_matrix.colors[1]
        assert dst.format == a8
        assert dst.size == 1

    def test_solid_operands(self, small_matrix):
        assert small_matrix.operand(-1).is_solid
        assert small_matrix.operand(-1).color == small_matrix.colors[0]
        assert small_matrix.operand(-2).color == small_matrix.colors[1]

    def test_buffered_operands(self):
        colors = ColorList([(1, 0, 0, 1), (0, 1, 0, 1)])
        matrix = CaseMatrix(colors, FormatList(['a8r8g8b8', 'a8']),
                            SizeList(['1', '1R', '10']), OperatorList(['SRC']))
        # sizes vary fastest, then formats, then colors
        spec = matrix.operand(0)
        assert (spec.color, spec.format.name, spec.size, spec.repeat) == \
                (colors[0], 'a8r8g8b8', 1, RepeatMode.NONE)
        spec = matrix.operand(1)
        assert (spec.size, spec.repeat) == (1, RepeatMode.NORMAL)
        spec = matrix.operand(4)
        assert (spec.color, spec.format.name, spec.size) == (colors[0], 'a8', 1)
        spec = matrix.operand(11)
        assert (spec.color, spec.format.name, spec.size) == (colors[1], 'a8', 10)

    def test_default_sized_matrix(self):
        colors = ColorList([(0, 0, 0, 1)] * 6)
        formats = FormatList(['a8'] * 7)
        matrix = CaseMatrix(colors, formats, SizeList(['1', '1R', '10']),
                            OperatorList(Operator.supported()))
        operands = 6 + 3 * 6 * 7
        assert matrix.case_count == 42 * operands * operands * 3 * 38

    def test_describe(self, argb32, red):
        assert ImageSpec(red, argb32).describe() == 'solid'
        assert ImageSpec(red, argb32, 10, RepeatMode.NORMAL).describe() == 'a8r8g8b8 10x10R'


# ─────────────────────────────────────────────────────────────────────────────
# Fixture tests
# ─────────────────────────────────────────────────────────────────────────────


class TestFixtureImage:
    """Tests for fixture image lifetime."""

    def test_released_on_exit(self, engine, argb32, red):
        with FixtureImage(engine, ImageSpec(red, argb32, 2)) as fixture:
            assert engine.live_images == 1
            assert engine.read_raw_pixel(fixture.handle) == 0xffff0000
        assert engine.live_images == 0
        assert fixture.handle is None

    def test_solid(self, engine, argb32, red):
        with FixtureImage(engine, ImageSpec(red, argb32)) as fixture:
            assert fixture.handle.is_solid
        assert engine.live_images == 0

    def test_repeat_applied(self, engine, argb32, red):
        with FixtureImage(engine, ImageSpec(red, argb32, 1, RepeatMode.NORMAL)) as fixture:
            assert fixture.handle.repeat is RepeatMode.NORMAL

    def test_released_on_error(self, argb32, red, little_endian):
        engine = FailingFillEngine(little_endian)
        with pytest.raises(EngineError):
            with FixtureImage(engine, ImageSpec(red, argb32, 1)):
                pass
        assert engine.live_images == 0

    def test_released_when_body_raises(self, engine, argb32, red):
        with pytest.raises(RuntimeError):
            with FixtureImage(engine, ImageSpec(red, argb32, 1)):
                raise RuntimeError('boom')
        assert engine.live_images == 0


# ─────────────────────────────────────────────────────────────────────────────
# Driver tests
# ─────────────────────────────────────────────────────────────────────────────


class TestMatrixDriver:
    """Tests for running composites against an engine."""

    def test_red_over_white(self, engine, small_matrix, argb32, red, white):
        driver = MatrixDriver(engine, small_matrix)
        result = driver.run_case(CompositeCase(ImageSpec(white, argb32, 1), Operator.OVER,
                                               ImageSpec(red, argb32)))
        assert result.actual == Color(1.0, 0.0, 0.0, 1.0)
        assert result.expected == Color(1.0, 0.0, 0.0, 1.0)
        assert result.passed
        assert result.distance == 0.0

    def test_clear_onto_format_without_alpha(self, engine, small_matrix, xrgb32, red, blue):
        driver = MatrixDriver(engine, small_matrix)
        result = driver.run_case(CompositeCase(ImageSpec(blue, xrgb32, 1), Operator.CLEAR,
                                               ImageSpec(red, xrgb32, 1)))
        assert result.actual == Color(0.0, 0.0, 0.0, 1.0)
        assert result.expected == Color(0.0, 0.0, 0.0, 1.0)
        assert result.passed

    def test_masked_case(self, engine, small_matrix, argb32, a8, white, red, transparent):
        driver = MatrixDriver(engine, small_matrix)
        case = CompositeCase(ImageSpec(transparent, argb32, 1), Operator.SRC,
                             ImageSpec(white, argb32), ImageSpec(red, a8, 1), True)
        result = driver.run_case(case)
        assert result.actual == Color(1.0, 1.0, 1.0, 1.0)
        assert result.passed
        assert engine.live_images == 0

    def test_big_endian(self, big_endian, small_matrix, a8, half_red):
        engine = SoftwareEngine(big_endian)
        driver = MatrixDriver(engine, small_matrix)
        result = driver.run_case(CompositeCase(ImageSpec(Color(0.0, 0.0, 0.0, 1.0), a8, 1),
                                               Operator.SRC, ImageSpec(half_red, a8)))
        assert result.raw == 0x80000000
        assert result.actual.a == pytest.approx(128 / 255)
        assert result.passed

    def test_full_run(self, engine, small_matrix):
        summary = MatrixDriver(engine, small_matrix).run()
        assert summary.total == small_matrix.case_count
        assert summary.ok, '\n\n'.join(r.report() for r in summary.failures[:5])
        assert engine.live_images == 0

    def test_enumeration_order(self, engine, small_matrix):
        results = list(MatrixDriver(engine, small_matrix).iter_results([0]))
        assert len(results) == 6 * 6 * 3 * 2

        first, second, third = results[:3]
        assert [r.case.operator for r in (first, second)] == [Operator.OVER, Operator.ADD]
        assert first.case.mask is None
        assert third.case.mask is not None
        assert not third.case.component_alpha
        assert first.case.source.is_solid

    def test_component_alpha_only_for_buffered_masks(self, engine, small_matrix):
        for result in MatrixDriver(engine, small_matrix).iter_results([0]):
            if result.case.component_alpha:
                assert not result.case.mask.is_solid

    def test_failures_recorded(self, little_endian):
        engine = BrokenEngine(little_endian)
        matrix = CaseMatrix(ColorList([(1, 0, 0, 1)]), FormatList(['a8r8g8b8']),
                            SizeList(['1']), OperatorList(['SRC']))
        summary = MatrixDriver(engine, matrix).run()

        assert summary.total == matrix.case_count
        assert not summary.ok
        assert summary.failed == len(summary.failures) > 0
        assert engine.live_images == 0

        report = summary.failures[0].report()
        assert 'SRC' in report
        assert 'got:' in report
        assert '[00000000]' in report

    def test_format_metric(self, little_endian):
        """A per-format scale catches off-by-a-few-steps errors on deep formats."""
        engine = ShiftedEngine(little_endian)
        matrix = CaseMatrix(ColorList([(0, 0, 0, 1)]), FormatList(['x8r8g8b8']),
                            SizeList(['1']), OperatorList(['SRC']))
        assert MatrixDriver(engine, matrix).run().ok
        assert not MatrixDriver(engine, matrix, metric=Metric.FORMAT).run().ok

    def test_blend_mode_aborts(self, engine):
        matrix = CaseMatrix(ColorList([(1, 0, 0, 1)]), FormatList(['a8r8g8b8']),
                            SizeList(['1']), OperatorList(['MULTIPLY']))
        with pytest.raises(FatalOracleError):
            MatrixDriver(engine, matrix).run()
        assert engine.live_images == 0


# ─────────────────────────────────────────────────────────────────────────────
# Result and summary tests
# ─────────────────────────────────────────────────────────────────────────────


class TestRunSummary:
    """Tests for run tallies."""

    def _result(self, passed, argb32, red):
        case = CompositeCase(ImageSpec(red, argb32, 1), Operator.OVER, ImageSpec(red, argb32))
        return CaseResult(case, red, red, 0xffff0000, 0.0 if passed else 10.0, passed)

    def test_record(self, argb32, red):
        summary = RunSummary()
        summary.record(self._result(True, argb32, red))
        summary.record(self._result(False, argb32, red))
        assert (summary.passed, summary.total, summary.failed) == (1, 2, 1)
        assert not summary.ok

    def test_merge(self, argb32, red):
        first = RunSummary(3, 3)
        second = RunSummary(1, 2, [self._result(False, argb32, red)])
        merged = first.merge(second)
        assert (merged.passed, merged.total) == (4, 5)
        assert len(merged.failures) == 1

    def test_kept_failures_are_capped(self, argb32, red):
        summary = RunSummary(keep=2)
        for _ in range(5):
            summary.record(self._result(False, argb32, red))
        assert (summary.total, summary.failed) == (5, 5)
        assert len(summary.failures) == 2

    def test_merge_keeps_cap(self, argb32, red):
        failures = [self._result(False, argb32, red) for _ in range(3)]
        merged = RunSummary(0, 3, failures, keep=4).merge(RunSummary(0, 3, failures))
        assert merged.failed == 6
        assert len(merged.failures) == 4

    def test_empty_is_ok(self):
        assert RunSummary().ok

    def test_report_with_mask(self, argb32, a8, red):
        case = CompositeCase(ImageSpec(red, argb32, 1), Operator.IN, ImageSpec(red, argb32),
                             ImageSpec(red, a8, 10, RepeatMode.NORMAL), True)
        report = CaseResult(case, red, red, 0xffff0000, 4.0, False).report()
        assert report.startswith('IN CA composite test error of 4.0000')
        assert 'msk color: 1.00 0.00 0.00 1.00' in report
        assert 'src: solid, mask: a8 10x10R, dst: a8r8g8b8 1x1' in report


# ─────────────────────────────────────────────────────────────────────────────
# Sharding and parallel tests
# ─────────────────────────────────────────────────────────────────────────────


class TestSharding:
    """Tests for splitting destinations."""

    def test_shard(self):
        assert list(shard(10, 1, 3)) == [1, 4, 7]

    def test_shards_cover_all(self):
        covered = sorted(i for n in range(4) for i in shard(10, n, 4))
        assert covered == list(range(10))

    @pytest.mark.parametrize("index,count", [(3, 3), (-1, 3), (0, 0)])
    def test_invalid(self, index, count):
        with pytest.raises(ValueError):
            shard(10, index, count)

    def test_partial_run(self, engine, small_matrix):
        summary = MatrixDriver(engine, small_matrix).run(shard(4, 0, 2))
        assert summary.total == small_matrix.case_count // 2

    @pytest.mark.slow
    def test_run_parallel(self, small_matrix, little_endian):
        summary = run_parallel('software', small_matrix, 2, storage=little_endian)
        assert summary.total == small_matrix.case_count
        assert summary.ok
