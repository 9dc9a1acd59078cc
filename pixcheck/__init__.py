from .blending import coefficients, evaluate
from .color import Color, ColorList
from .compose import Operand, compose, expected_color
from .config import MatrixConfig
from .driver import CaseMatrix, MatrixDriver, RunSummary
from .engine import Engine, SoftwareEngine, create_engine
from .errors import FatalOracleError, PixcheckError
from .format import FormatDescriptor, PixelStorage, decode, get_format, quantize
from .metric import distance
from .types import Operator
from .version import __version__
