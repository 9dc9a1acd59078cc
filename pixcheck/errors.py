#
# Copyright (C) 2026 pixcheck Developers — LGPL-3.0-or-later
#

"""
Exception hierarchy.

Mismatches between the oracle and an engine are not errors: they are
recorded as failed cases. The exceptions here describe problems with the
oracle's own tables or with the environment it runs in.
"""


class PixcheckError(Exception):
    """
    Base class for all pixcheck errors
    """


class FatalOracleError(PixcheckError):
    """
    The oracle was asked to do something it cannot model.

    Raised when the test table names an operator or pixel format the
    oracle has no formula for. A run that hits this is aborted: any
    result it produced afterwards would be meaningless.
    """


class UnsupportedOperatorError(FatalOracleError):
    def __init__(self, operator):
        super().__init__('No blend formula for operator %s' % getattr(operator, 'name', operator))
        self.operator = operator

    def __reduce__(self):
        return self.__class__, (self.operator,)


class UnsupportedFormatError(FatalOracleError):
    def __init__(self, fmt):
        super().__init__('Unsupported channel order %s in format %s'
                         % (fmt.order.name, fmt.name))
        self.format = fmt

    def __reduce__(self):
        return self.__class__, (self.format,)


class FormatError(PixcheckError, ValueError):
    """
    Malformed format descriptor or format name
    """


class ConfigError(PixcheckError, ValueError):
    """
    Invalid test matrix configuration
    """


class EngineError(PixcheckError):
    """
    The engine under test could not be loaded or driven
    """
