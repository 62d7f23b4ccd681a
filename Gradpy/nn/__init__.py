"""
Neural network module for Gradpy.

Thin layers composed from the core's dot, add and relu operators.
"""

from .module import Module
from .linear import MLP, Linear

__all__ = [
    "Module",
    "Linear",
    "MLP",
]
