from .responses import *
from .search import *
