"""
Gradpy: reverse-mode automatic differentiation over numpy arrays

This library builds a dynamic computation graph as expressions are evaluated
and computes the gradients of an output with respect to every input in a
single backward pass. It is small enough to train linear layers and
multilayer perceptrons with stochastic gradient descent.
"""

from .core import (
    BorrowError,
    DivisionByZeroError,
    Function,
    Graph,
    GradpyError,
    NoGradientError,
    NumericalOverflowError,
    OpKind,
    ShapeMismatchError,
    StaleHandleError,
    Variable,
    get_graph,
)
from .functional import (
    add,
    backward,
    div,
    dot,
    exp,
    gradient_of,
    identity,
    make_leaf,
    mse_loss,
    mul,
    relu,
    retain_gradient,
    softmax,
    sub,
    sum,
    value_of,
    zero_gradient,
)

__version__ = "0.1.0"

__all__ = [
    "Variable",
    "Graph",
    "get_graph",
    "Function",
    "OpKind",
    "GradpyError",
    "NoGradientError",
    "DivisionByZeroError",
    "ShapeMismatchError",
    "BorrowError",
    "NumericalOverflowError",
    "StaleHandleError",
    "make_leaf",
    "add",
    "sub",
    "mul",
    "div",
    "dot",
    "exp",
    "identity",
    "sum",
    "relu",
    "softmax",
    "mse_loss",
    "backward",
    "value_of",
    "gradient_of",
    "zero_gradient",
    "retain_gradient",
]
