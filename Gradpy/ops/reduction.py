from typing import Any

import numpy as np
from numpy.typing import NDArray

from ..core.function import Function, Gradients, OpKind
from ..core.node import GraphNode


class Sum(Function):
    """Sum of all elements; the result has shape ``(1,)``."""

    kind = OpKind.SUM
    unary = True

    @staticmethod
    def forward(x: NDArray[Any], y: NDArray[Any]) -> NDArray[Any]:
        return np.array([np.sum(x)])

    @staticmethod
    def backward(grad_output: NDArray[Any], left: GraphNode, right: GraphNode) -> Gradients:
        # Broadcast gradient to match input shape
        grad = np.broadcast_to(grad_output.reshape(()), left.shape)
        return grad.copy(), None
