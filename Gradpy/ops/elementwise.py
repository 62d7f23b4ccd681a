from typing import Any

import numpy as np
from numpy.typing import NDArray

from ..core.errors import NumericalOverflowError
from ..core.function import Function, Gradients, OpKind
from ..core.node import GraphNode


def _exp(x: NDArray[Any]) -> NDArray[Any]:
    with np.errstate(over="ignore"):
        result = np.exp(x)
    if np.any(np.isinf(result) & np.isfinite(x)):
        raise NumericalOverflowError("Exp")
    return result


class Exp(Function):
    """
    Exponential operation.

    Forward: f(x) = exp(x)
    Backward: f'(x) = exp(x)

    Inputs large enough to overflow float64 (about 709.78) raise
    NumericalOverflowError instead of producing inf; use softmax for
    normalised exponentials of large values.
    """

    kind = OpKind.EXP
    unary = True

    @staticmethod
    def forward(x: NDArray[Any], y: NDArray[Any]) -> NDArray[Any]:
        return _exp(x)

    @staticmethod
    def backward(grad_output: NDArray[Any], left: GraphNode, right: GraphNode) -> Gradients:
        # d/dx(exp(x)) = exp(x)
        return grad_output * _exp(left.value), None


class Identity(Function):
    kind = OpKind.IDENTITY
    unary = True

    @staticmethod
    def forward(x: NDArray[Any], y: NDArray[Any]) -> NDArray[Any]:
        return x.copy()

    @staticmethod
    def backward(grad_output: NDArray[Any], left: GraphNode, right: GraphNode) -> Gradients:
        return grad_output, None


class ReLU(Function):
    """
    Rectified linear unit: max(x, 0).

    The subgradient at x == 0 is taken to be 0.
    """

    kind = OpKind.RELU
    unary = True

    @staticmethod
    def forward(x: NDArray[Any], y: NDArray[Any]) -> NDArray[Any]:
        return np.maximum(x, 0.0)

    @staticmethod
    def backward(grad_output: NDArray[Any], left: GraphNode, right: GraphNode) -> Gradients:
        return grad_output * (left.value > 0), None
