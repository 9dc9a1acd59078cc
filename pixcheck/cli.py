#
# Copyright (C) 2026 pixcheck Developers — LGPL-3.0-or-later
#

# pylint: disable=too-many-return-statements

"""
Command line front end.
"""

import logging
import sys
from argparse import ArgumentParser, ArgumentTypeError

from argcomplete import autocomplete
from colr import color

from pixcheck.config import MatrixConfig
from pixcheck.driver import RunSummary, run_parallel, shard
from pixcheck.engine import ENGINES, create_engine
from pixcheck.errors import ConfigError, EngineError, FatalOracleError
from pixcheck.log import Log
from pixcheck.metric import TOLERANCE
from pixcheck.types import Metric, Operator, OperatorList
from pixcheck.version import __version__


EXIT_PASS = 0
EXIT_FAIL = 1
EXIT_FATAL = 2


def parse_shard(value: str) -> tuple:
    """
    Parse a shard selector of the form I/N, I counting from 0
    """
    try:
        index, count = (int(x) for x in value.split('/'))
    except ValueError:
        raise ArgumentTypeError('Shard must look like I/N: %s' % value)

    if count < 1 or not 0 <= index < count:
        raise ArgumentTypeError('Shard index out of range: %s' % value)
    return index, count


class PixcheckConsole(object):
    """
    The pixcheck command
    """

    def __init__(self, argv=None):
        self._parser = ArgumentParser(description=self.description)

        self._parser.add_argument('-v', '--version', action='version', version=self.version)
        self._parser.add_argument('-g', '--debug', action='store_true',
                                  help='Enable debug output')
        self._parser.add_argument('--color', action='store_true',
                                  help='Colored log and summary output')
        self._parser.add_argument('-p', '--profile', type=str,
                                  help='Test matrix profile (default: the full matrix)')
        self._parser.add_argument('-c', '--config', type=str,
                                  help='Profile file to use instead of the packaged one')
        self._parser.add_argument('-l', '--list-profiles', action='store_true',
                                  help='List available profiles')
        self._parser.add_argument('-e', '--engine', choices=sorted(ENGINES), default='software',
                                  help='Engine under test')
        self._parser.add_argument('-o', '--operator', action='append', metavar='OP',
                                  choices=[op.name for op in Operator],
                                  help='Only test this operator (repeatable)')
        self._parser.add_argument('-j', '--jobs', type=int, default=1,
                                  help='Number of worker processes')
        self._parser.add_argument('--shard', type=parse_shard, metavar='I/N',
                                  help='Only run shard I of N, counting from 0')
        self._parser.add_argument('--count', action='store_true',
                                  help='Print the number of composites and exit')

        autocomplete(self._parser)
        self._args = self._parser.parse_args(argv)

        Log.enable_color(self._args.color)
        Log.set_level(logging.DEBUG if self._args.debug else logging.INFO)
        self._logger = Log.get('pixcheck.cli')


    @property
    def description(self):
        return 'Differential tester for Porter-Duff compositing engines'


    @property
    def version(self):
        return 'pixcheck-%s' % __version__


    def _style(self, text: str, fore: str) -> str:
        if not self._args.color:
            return text
        return color(text, fore=fore, style='bright')


    def _list_profiles(self, root: MatrixConfig):
        for profile in root.walk():
            print('%s %s' % (self._style(str(profile.get('name', '-')).ljust(12), 'cyan'),
                             profile.get('description', '')))


    def _summarize(self, summary: RunSummary):
        if summary.ok:
            status = self._style('PASS', 'green')
        else:
            status = self._style('FAIL', 'red')
        print('%s %d/%d composites passed, %d failed'
              % (status, summary.passed, summary.total, summary.failed))


    def run(self) -> int:
        args = self._args

        try:
            root = MatrixConfig.profiles(args.config)
            profile = MatrixConfig.get_profile(args.profile, args.config)
        except (ConfigError, OSError) as err:
            self._logger.error('%s', err)
            return EXIT_FATAL

        if args.list_profiles:
            self._list_profiles(root)
            return EXIT_PASS

        operators = OperatorList(args.operator) if args.operator else None
        try:
            matrix = profile.matrix(operators)
        except ConfigError as err:
            self._logger.error('%s', err)
            return EXIT_FATAL

        if args.count:
            print(matrix.case_count)
            return EXIT_PASS

        destinations = None
        if args.shard is not None:
            destinations = shard(matrix.destination_count, *args.shard)

        self._logger.info('Profile %s: %d composites on %s', profile.get('name'),
                          matrix.case_count if destinations is None
                          else matrix.case_count // matrix.destination_count * len(destinations),
                          args.engine)
        try:
            if args.jobs > 1:
                summary = run_parallel(args.engine, matrix, args.jobs,
                                       storage=profile.storage(),
                                       tolerance=profile.get('tolerance', TOLERANCE),
                                       metric=profile.get('metric', Metric.FIXED),
                                       destinations=destinations)
            else:
                engine = create_engine(args.engine, profile.storage())
                summary = profile.driver(engine, operators).run(destinations)

        except FatalOracleError as err:
            self._logger.critical('Aborted: %s', err)
            return EXIT_FATAL

        except EngineError as err:
            self._logger.error('%s', err)
            return EXIT_FATAL

        self._summarize(summary)
        return EXIT_PASS if summary.ok else EXIT_FAIL


def run():
    sys.exit(PixcheckConsole().run())


if __name__ == '__main__':
    run()
