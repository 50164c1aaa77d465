from .base import *
from .basic import *
from .continued import *
