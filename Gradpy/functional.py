"""
Functional interface to the autograd engine.

Every function accepts :class:`~Gradpy.core.variable.Variable` handles and
routes through the operators' ``subscribe``; arithmetic operators on handles
(``a + b``, ``a @ b`` ...) are equivalent sugar.
"""

from typing import Any, Optional

import numpy as np
from numpy.typing import NDArray

from .core.graph import Graph, get_graph
from .core.variable import Variable
from .ops.basic import Add, Div, Dot, Mul, Sub
from .ops.basic import softmax as _softmax
from .ops.elementwise import Exp, Identity, ReLU
from .ops.loss import mse_loss as _mse_loss
from .ops.reduction import Sum

__all__ = [
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


def make_leaf(value: Any, retain_gradient: bool = True, graph: Optional[Graph] = None) -> Variable:
    """
    Creates a leaf node.

    Args:
        value: Array-like or scalar; copied, scalars become shape ``(1,)``
        retain_gradient: Whether backward should store this node's gradient
        graph: Graph to create the node in (default: the global graph)
    """
    if graph is None:
        graph = get_graph()
    return graph.leaf(value, retain_grad=retain_gradient)


def add(a: Variable, b: Variable) -> Variable:
    return Add.subscribe(a, b)


def sub(a: Variable, b: Variable) -> Variable:
    return Sub.subscribe(a, b)


def mul(a: Variable, b: Variable) -> Variable:
    return Mul.subscribe(a, b)


def div(a: Variable, b: Variable) -> Variable:
    return Div.subscribe(a, b)


def dot(a: Variable, b: Variable) -> Variable:
    return Dot.subscribe(a, b)


def exp(a: Variable) -> Variable:
    return Exp.subscribe(a)


def identity(a: Variable) -> Variable:
    return Identity.subscribe(a)


def sum(a: Variable) -> Variable:  # noqa: A001
    return Sum.subscribe(a)


def relu(a: Variable) -> Variable:
    return ReLU.subscribe(a)


def softmax(a: Variable) -> Variable:
    return _softmax(a)


def mse_loss(pred: Variable, target: Any) -> Variable:
    return _mse_loss(pred, target)


def backward(root: Variable, gradient: Optional[NDArray[Any]] = None) -> None:
    root.graph.backward(root, gradient)


def value_of(h: Variable) -> NDArray[np.float64]:
    """Returns a copy of the node's value."""
    with h.read() as node:
        return node.value.copy()


def gradient_of(h: Variable) -> NDArray[np.float64]:
    """
    Returns a copy of the node's gradient.

    Raises:
        NoGradientError: If the node does not retain its gradient
    """
    return h.gradient()


def zero_gradient(h: Variable) -> None:
    """Resets the gradient buffer; logs a warning and does nothing if there is none."""
    h.zero_grad()


def retain_gradient(h: Variable) -> Variable:
    return h.retain_grad()
