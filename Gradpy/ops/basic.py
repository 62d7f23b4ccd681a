from typing import Any

import numpy as np
from numpy.typing import NDArray

from ..core.errors import DivisionByZeroError, ShapeMismatchError
from ..core.function import Function, Gradients, OpKind
from ..core.node import GraphNode
from ..core.variable import Variable
from .elementwise import Exp
from .reduction import Sum


class Add(Function):
    kind = OpKind.ADD

    @staticmethod
    def forward(x: NDArray[Any], y: NDArray[Any]) -> NDArray[Any]:
        Function.broadcast_shape("Add", x, y)
        return x + y

    @staticmethod
    def backward(grad_output: NDArray[Any], left: GraphNode, right: GraphNode) -> Gradients:
        return (
            Function.reduce_grad(grad_output, left.shape),
            Function.reduce_grad(grad_output, right.shape),
        )


class Sub(Function):
    kind = OpKind.SUB

    @staticmethod
    def forward(x: NDArray[Any], y: NDArray[Any]) -> NDArray[Any]:
        Function.broadcast_shape("Sub", x, y)
        return x - y

    @staticmethod
    def backward(grad_output: NDArray[Any], left: GraphNode, right: GraphNode) -> Gradients:
        return (
            Function.reduce_grad(grad_output, left.shape),
            Function.reduce_grad(-grad_output, right.shape),
        )


class Mul(Function):
    """Elementwise (Hadamard) product."""

    kind = OpKind.MUL

    @staticmethod
    def forward(x: NDArray[Any], y: NDArray[Any]) -> NDArray[Any]:
        Function.broadcast_shape("Mul", x, y)
        return x * y

    @staticmethod
    def backward(grad_output: NDArray[Any], left: GraphNode, right: GraphNode) -> Gradients:
        return (
            Function.reduce_grad(grad_output * right.value, left.shape),
            Function.reduce_grad(grad_output * left.value, right.shape),
        )


class Div(Function):
    """
    Elementwise division.

    Forward: f(x, y) = x / y
    Backward: df/dx = 1/y, df/dy = -x/y²

    Any zero in the denominator raises DivisionByZeroError, in forward as
    well as in backward (an optimizer may have changed the value since).
    """

    kind = OpKind.DIV

    @staticmethod
    def forward(x: NDArray[Any], y: NDArray[Any]) -> NDArray[Any]:
        Function.broadcast_shape("Div", x, y)
        if np.any(y == 0):
            raise DivisionByZeroError("forward")
        return x / y

    @staticmethod
    def backward(grad_output: NDArray[Any], left: GraphNode, right: GraphNode) -> Gradients:
        x, y = left.value, right.value
        if np.any(y == 0):
            raise DivisionByZeroError("backward")

        grad_x = grad_output / y
        grad_y = -(grad_output * x) / (y * y)
        return (
            Function.reduce_grad(grad_x, left.shape),
            Function.reduce_grad(grad_y, right.shape),
        )


class Dot(Function):
    """Matrix product of two rank-2 operands (m×k · k×n)."""

    kind = OpKind.DOT

    @staticmethod
    def forward(x: NDArray[Any], y: NDArray[Any]) -> NDArray[Any]:
        if x.ndim != 2 or y.ndim != 2:
            raise ShapeMismatchError("Dot", x.shape, y.shape, detail="operands must be rank 2")
        if x.shape[1] != y.shape[0]:
            raise ShapeMismatchError("Dot", x.shape, y.shape, detail="inner dimensions differ")
        return np.matmul(x, y)

    @staticmethod
    def backward(grad_output: NDArray[Any], left: GraphNode, right: GraphNode) -> Gradients:
        # dL/dx = g · yᵀ (m×n · n×k), dL/dy = xᵀ · g (k×m · m×n)
        grad_x = np.matmul(grad_output, right.value.T)
        grad_y = np.matmul(left.value.T, grad_output)
        return grad_x, grad_y


def softmax(x: Variable) -> Variable:
    """
    Softmax over all elements of ``x``, built from differentiable operators.

    The maximum is subtracted first as a constant leaf, so large inputs never
    overflow in the exponential. Softmax is invariant to that shift, so the
    constant does not change the gradient.
    """
    with x.read() as node:
        peak = np.max(node.value)

    shifted = Sub.subscribe(x, x.graph.leaf(peak, retain_grad=False))
    exps = Exp.subscribe(shifted)
    return Div.subscribe(exps, Sum.subscribe(exps))
