from typing import Any, Union

import numpy as np
from numpy.typing import NDArray

from ..core.errors import ShapeMismatchError
from ..core.variable import Variable
from .basic import Div, Mul, Sub
from .reduction import Sum


def mse_loss(
    predictions: Variable, targets: Union[Variable, NDArray[Any], float]
) -> Variable:
    """
    Mean Squared Error Loss: L = 1/N * Σ(pred - target)²

    Composed from Sub, Mul, Sum and Div, so both operands receive their
    analytical gradients:

        dL/dpred   =  2 (pred - target) / N
        dL/dtarget = -2 (pred - target) / N

    Args:
        predictions: Predicted values
        targets: Expected values; arrays are wrapped as constant leaves, and
            scalars (or single-element arrays) are broadcast to the
            predictions' shape

    Returns:
        The loss as a shape ``(1,)`` variable

    Raises:
        ShapeMismatchError: If predictions and targets differ in shape
    """
    if not isinstance(targets, Variable):
        values = np.asarray(targets, dtype=np.float64)
        if values.size == 1:
            values = np.broadcast_to(values.reshape(()), predictions.shape)
        targets = predictions.graph.leaf(values, retain_grad=False)

    if predictions.shape != targets.shape:
        raise ShapeMismatchError("mse_loss", predictions.shape, targets.shape)

    diff = Sub.subscribe(predictions, targets)
    squared = Mul.subscribe(diff, diff)
    count = predictions.graph.leaf(float(diff.data.size), retain_grad=False)
    return Div.subscribe(Sum.subscribe(squared), count)
