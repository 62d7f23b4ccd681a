"""
Core functionality for Gradpy.

This module contains the fundamental building blocks of the autograd engine:
graph nodes, handles, the operator base class and the backward engine.
"""

from .errors import (
    BorrowError,
    DivisionByZeroError,
    GradpyError,
    NoGradientError,
    NumericalOverflowError,
    ShapeMismatchError,
    StaleHandleError,
)
from .node import GraphNode
from .variable import Variable
from .function import Function, OpKind, function_for
from .graph import Graph, get_graph

__all__ = [
    "Variable",
    "GraphNode",
    "Function",
    "OpKind",
    "function_for",
    "Graph",
    "get_graph",
    "GradpyError",
    "NoGradientError",
    "DivisionByZeroError",
    "ShapeMismatchError",
    "BorrowError",
    "NumericalOverflowError",
    "StaleHandleError",
]
