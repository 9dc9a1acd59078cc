#
# Copyright (C) 2026 pixcheck Developers — LGPL-3.0-or-later
#

# pylint: disable=too-many-arguments, too-many-locals

"""
Exhaustive composite test driver.

Enumerates every destination, source, mask, component-alpha mode and
operator of a CaseMatrix, runs each composite on the engine under
test, and compares the engine's pixel with the oracle's expected
color.

Sources and masks are indexed the same way. Negative indices -1 .. -C
are solid images of color 0 .. C-1. Non-negative indices walk sizes
fastest, then formats, then colors.
"""

from concurrent.futures import ProcessPoolExecutor
from typing import NamedTuple, Optional

from pixcheck.color import Color, ColorList
from pixcheck.compose import Operand, expected_color
from pixcheck.engine import Engine, Rect, create_engine
from pixcheck.format import FormatDescriptor, FormatList, PixelStorage, decode
from pixcheck.log import LOG_TRACE, Log
from pixcheck.metric import DEFAULT_SCALE, TOLERANCE, ChannelScale, distance
from pixcheck.types import Metric, Operator, OperatorList, RepeatMode


# Failing results a RunSummary keeps for reporting
MAX_FAILURES = 100


class Size(NamedTuple):
    """
    Edge length of a square fixture and how it repeats
    """
    size: int
    repeat: RepeatMode = RepeatMode.NONE

    @classmethod
    def parse(cls, value) -> 'Size':
        """
        Parse a size such as 10 or '1R' (R for normal repeat)
        """
        if isinstance(value, Size):
            return value
        text = str(value).strip().upper()
        repeat = RepeatMode.NONE
        if text.endswith('R'):
            repeat = RepeatMode.NORMAL
            text = text[:-1]
        if not text.isdigit() or int(text) < 1:
            raise ValueError('Invalid fixture size: %s' % value)
        return cls(int(text), repeat)


    def __str__(self):
        return '%d%s' % (self.size, 'R' if self.repeat is RepeatMode.NORMAL else '')


class SizeList(tuple):
    def __new__(cls, items=()):
        return super().__new__(cls, [Size.parse(x) for x in items])


class ImageSpec(NamedTuple):
    """
    Description of one fixture image

    size 0 is a solid image without a buffer; format is then unused.
    """
    color: Color
    format: FormatDescriptor
    size: int = 0
    repeat: RepeatMode = RepeatMode.NONE

    @property
    def is_solid(self) -> bool:
        return self.size == 0


    @property
    def operand(self) -> Operand:
        return Operand(self.color, None if self.is_solid else self.format)


    def describe(self) -> str:
        if self.is_solid:
            return 'solid'
        return '%s %dx%d%s' % (self.format.name, self.size, self.size,
                               'R' if self.repeat is not RepeatMode.NONE else '')


class CaseMatrix(NamedTuple):
    """
    The space of composites to test

    colors must already be premultiplied.
    """
    colors: ColorList
    formats: FormatList
    sizes: SizeList
    operators: OperatorList

    @property
    def destination_count(self) -> int:
        return len(self.colors) * len(self.formats)


    @property
    def operand_indices(self) -> range:
        """
        Indices of every source or mask fixture
        """
        return range(-len(self.colors), len(self.sizes) * self.destination_count)


    @property
    def case_count(self) -> int:
        """
        Number of composites a full run performs
        """
        operands = len(self.operand_indices)
        return self.destination_count * operands * operands * 3 * len(self.operators)


    def destination(self, index: int) -> ImageSpec:
        nformats = len(self.formats)
        return ImageSpec(self.colors[index // nformats], self.formats[index % nformats], 1)


    def operand(self, index: int) -> ImageSpec:
        if index < 0:
            return ImageSpec(self.colors[-index - 1], self.formats[0])

        nsizes, nformats = len(self.sizes), len(self.formats)
        size = self.sizes[index % nsizes]
        return ImageSpec(self.colors[index // nsizes // nformats],
                         self.formats[index // nsizes % nformats],
                         size.size, size.repeat)


class FixtureImage(object):
    """
    An engine image built from an ImageSpec, alive inside a with block
    """

    def __init__(self, engine: Engine, spec: ImageSpec):
        self.engine = engine
        self.spec = spec
        self.handle = None


    def __enter__(self) -> 'FixtureImage':
        spec = self.spec
        if spec.is_solid:
            self.handle = self.engine.create_solid_image(spec.color)
            return self

        self.handle = self.engine.create_image(spec.format, spec.size, spec.size)
        try:
            self.fill()
            if spec.repeat is not RepeatMode.NONE:
                self.engine.set_repeat(self.handle, spec.repeat)
        except BaseException:
            self.engine.release(self.handle)
            self.handle = None
            raise
        return self


    def __exit__(self, *exc):
        if self.handle is not None:
            self.engine.release(self.handle)
            self.handle = None
        return False


    def fill(self):
        size = self.spec.size
        self.engine.fill_rectangle(self.handle, self.spec.color, Rect(0, 0, size, size))


class CompositeCase(NamedTuple):
    destination: ImageSpec
    operator: Operator
    source: ImageSpec
    mask: Optional[ImageSpec] = None
    component_alpha: bool = False


class CaseResult(NamedTuple):
    """
    Outcome of one composite
    """
    case: CompositeCase
    expected: Color
    actual: Color
    raw: int
    distance: float
    passed: bool

    def report(self) -> str:
        """
        Human readable description of a mismatch
        """
        case = self.case
        lines = ['%s %scomposite test error of %.4f --'
                 % (case.operator.name, 'CA ' if case.component_alpha else '', self.distance),
                 '           R    G    B    A',
                 'got:       %s [%08x]' % (self.actual.describe(), self.raw),
                 'expected:  %s' % self.expected.describe(),
                 'src color: %s' % case.source.color.describe()]
        images = ['src: %s' % case.source.describe()]
        if case.mask is not None:
            lines.append('msk color: %s' % case.mask.color.describe())
            images.append('mask: %s' % case.mask.describe())
        lines.append('dst color: %s' % case.destination.color.describe())
        images.append('dst: %s' % case.destination.describe())
        lines.append(', '.join(images))
        return '\n'.join(lines)


class RunSummary(object):
    """
    Pass/fail tally of a run

    Only the first `keep` failing results are held on to; every
    failure is already logged as it happens.
    """

    def __init__(self, passed: int = 0, total: int = 0, failures=None,
                 keep: int = MAX_FAILURES):
        self.passed = passed
        self.total = total
        self.keep = keep
        self.failures = list(failures)[:keep] if failures else []


    @property
    def failed(self) -> int:
        return self.total - self.passed


    @property
    def ok(self) -> bool:
        return self.passed == self.total


    def record(self, result: CaseResult):
        self.total += 1
        if result.passed:
            self.passed += 1
        elif len(self.failures) < self.keep:
            self.failures.append(result)


    def merge(self, other: 'RunSummary') -> 'RunSummary':
        return RunSummary(self.passed + other.passed, self.total + other.total,
                          self.failures + other.failures, self.keep)


    def __repr__(self):
        return 'RunSummary(passed=%d, total=%d)' % (self.passed, self.total)


class MatrixDriver(object):
    """
    Runs a CaseMatrix against an engine

    Fixtures live exactly as long as their level of the enumeration.
    A mismatch is logged and recorded, never raised: the run always
    covers the whole matrix.
    """

    def __init__(self, engine: Engine, matrix: CaseMatrix,
                 scale: ChannelScale = None, tolerance: float = TOLERANCE,
                 metric: Metric = Metric.FIXED):
        self._engine = engine
        self._matrix = matrix
        self._scale = scale if scale is not None else DEFAULT_SCALE
        self._metric = metric
        self._tolerance = tolerance
        self._logger = Log.get('pixcheck.driver')


    @property
    def matrix(self) -> CaseMatrix:
        return self._matrix


    def _case_scale(self, fmt: FormatDescriptor) -> ChannelScale:
        if self._metric is Metric.FORMAT:
            return ChannelScale.for_format(fmt)
        return self._scale


    def composite(self, dst: FixtureImage, op: Operator, src: FixtureImage,
                  mask: Optional[FixtureImage], component_alpha: bool) -> CaseResult:
        """
        Run one composite on live fixtures and judge the result
        """
        engine = self._engine
        size = dst.spec.size

        dst.fill()
        if mask is not None:
            engine.set_component_alpha(mask.handle, component_alpha)
        engine.composite(op, src.handle, mask.handle if mask is not None else None,
                         dst.handle, 0, 0, 0, 0, 0, 0, size, size)

        raw = engine.read_raw_pixel(dst.handle)
        actual = decode(raw, dst.spec.format, engine.storage)

        case = CompositeCase(dst.spec, op, src.spec,
                             mask.spec if mask is not None else None, component_alpha)
        expected = expected_color(op, src.spec.operand,
                                  mask.spec.operand if mask is not None else None,
                                  dst.spec.operand, component_alpha)

        diff = distance(expected, actual, self._case_scale(dst.spec.format))
        result = CaseResult(case, expected, actual, raw, diff, diff <= self._tolerance)

        if result.passed:
            self._logger.log(LOG_TRACE, '%s ok (%.4f)', op.name, diff)
        else:
            self._logger.error('%s\n', result.report())

        return result


    def run_case(self, case: CompositeCase) -> CaseResult:
        """
        Run a single case, building and releasing its own fixtures
        """
        engine = self._engine
        with FixtureImage(engine, case.destination) as dst, \
                FixtureImage(engine, case.source) as src:
            if case.mask is None:
                return self.composite(dst, case.operator, src, None, False)
            with FixtureImage(engine, case.mask) as mask:
                return self.composite(dst, case.operator, src, mask, case.component_alpha)


    def iter_results(self, destinations=None):
        """
        Generate the result of every case, in enumeration order

        :param destinations: Destination indices to cover, all if None
        """
        matrix = self._matrix
        engine = self._engine

        if destinations is None:
            destinations = range(matrix.destination_count)

        for d in destinations:
            self._logger.debug('destination %d/%d: %s', d + 1, matrix.destination_count,
                               matrix.destination(d).describe())

            with FixtureImage(engine, matrix.destination(d)) as dst:
                for s in matrix.operand_indices:
                    with FixtureImage(engine, matrix.operand(s)) as src:
                        for m in matrix.operand_indices:
                            with FixtureImage(engine, matrix.operand(m)) as mask:
                                for ca in (-1, 0, 1):
                                    for op in matrix.operators:
                                        if ca == -1:
                                            yield self.composite(dst, op, src, None, False)
                                        elif ca == 0:
                                            yield self.composite(dst, op, src, mask, False)
                                        else:
                                            yield self.composite(dst, op, src, mask,
                                                                 not mask.spec.is_solid)


    def run(self, destinations=None) -> RunSummary:
        """
        Run the matrix, or a subset of its destinations

        :return: The tally of the run
        """
        summary = RunSummary()
        for result in self.iter_results(destinations):
            summary.record(result)

        self._logger.info('%s: %d/%d composites passed', self._engine.name,
                          summary.passed, summary.total)
        return summary


def shard(total: int, index: int, count: int) -> range:
    """
    Destination indices of one shard out of count, strided so shards
    get a similar mix of formats

    :param total: Number of destinations
    :param index: Shard number, 0 based
    :param count: Number of shards
    """
    if count < 1 or not 0 <= index < count:
        raise ValueError('Invalid shard %d/%d' % (index, count))
    return range(index, total, count)


def _run_destinations(engine_name: str, storage: PixelStorage, matrix: CaseMatrix,
                      scale: ChannelScale, tolerance: float, metric: Metric,
                      destinations: list) -> RunSummary:
    engine = create_engine(engine_name, storage)
    return MatrixDriver(engine, matrix, scale, tolerance, metric).run(destinations)


def run_parallel(engine_name: str, matrix: CaseMatrix, jobs: int,
                 storage: PixelStorage = None, scale: ChannelScale = None,
                 tolerance: float = TOLERANCE, metric: Metric = Metric.FIXED,
                 destinations=None) -> RunSummary:
    """
    Run destinations across worker processes, one engine per worker

    Cases share no fixtures, so the destinations are independent.
    """
    if destinations is None:
        destinations = range(matrix.destination_count)
    destinations = list(destinations)
    jobs = max(1, min(jobs, len(destinations)))

    chunks = [destinations[i::jobs] for i in range(jobs)]
    summary = RunSummary()
    with ProcessPoolExecutor(max_workers=jobs) as pool:
        futures = [pool.submit(_run_destinations, engine_name, storage, matrix,
                               scale if scale is not None else DEFAULT_SCALE,
                               tolerance, metric, chunk)
                   for chunk in chunks if chunk]
        for future in futures:
            summary = summary.merge(future.result())

    return summary
