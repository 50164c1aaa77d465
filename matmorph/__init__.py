from .file_utils import *
from .version import __version__  # noqa: F401
from . import utils
from . import patterns
from . import continuation
from . import morphology
from . import filters3x3
from . import pair
from .continuation import ContinuationMode
from .pair import MatrixPairMorphology
