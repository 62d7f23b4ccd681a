"""
Operations module for Gradpy.

This module contains the closed set of differentiable operations, plus the
softmax and mean-squared-error composites built from them.
"""

from .elementwise import Exp, Identity, ReLU
from .reduction import Sum
from .basic import Add, Div, Dot, Mul, Sub, softmax
from .loss import mse_loss

__all__ = [
    # Basic operations
    "Add",
    "Sub",
    "Mul",
    "Div",
    "Dot",
    # Element-wise operations
    "Exp",
    "Identity",
    "ReLU",
    # Reduction operations
    "Sum",
    # Composites
    "softmax",
    "mse_loss",
]
