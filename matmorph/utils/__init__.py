from .common_types import *
from .multithreading import *
from .repr import *
