""" Data models and parameter handling

"""
__all__ = ['data_models', 'parameters']

from .data_models import *
from .parameters import *
