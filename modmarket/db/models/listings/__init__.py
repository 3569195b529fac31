from .listings import *
from .modifications import *
