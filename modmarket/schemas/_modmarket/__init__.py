from .market_model import *
