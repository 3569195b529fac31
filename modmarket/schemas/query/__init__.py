from .complex_query import *
from .patterns import *
from .analysis import *
