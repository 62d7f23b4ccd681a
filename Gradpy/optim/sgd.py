from typing import Dict, Iterable, Union

import numpy as np

from ..core.variable import Variable
from .optimizer import Optimizer


class SGD(Optimizer):
    """
    Implements stochastic gradient descent with optional momentum.

    Each step computes ``value -= lr * update`` where ``update`` is the
    gradient (plus ``weight_decay * value``), smoothed by the momentum buffer
    when momentum is non-zero.

    Args:
        params: Parameters to optimize; each must retain its gradient
        lr: Learning rate (default: 0.1)
        momentum: Momentum factor (default: 0)
        weight_decay: Weight decay (L2 penalty) (default: 0)
    """

    def __init__(
        self,
        params: Iterable[Variable],
        lr: float = 0.1,
        momentum: float = 0.0,
        weight_decay: float = 0.0,
    ) -> None:
        if lr < 0.0:
            raise ValueError(f"Invalid learning rate: {lr}")
        if momentum < 0.0:
            raise ValueError(f"Invalid momentum value: {momentum}")
        if weight_decay < 0.0:
            raise ValueError(f"Invalid weight_decay value: {weight_decay}")

        defaults: Dict[str, Union[float, bool]] = dict(
            lr=lr,
            momentum=momentum,
            weight_decay=weight_decay,
        )
        super().__init__(params, defaults)

    def step(self) -> None:
        """Performs a single optimization step."""
        for p in self._params:
            with p.mutate() as node:
                grad = node.grad
                if grad is None:
                    continue

                # Apply weight decay
                if self.defaults["weight_decay"] != 0:
                    grad = grad + self.defaults["weight_decay"] * node.value

                if self.defaults["momentum"] != 0:
                    state = self.state[p]
                    if "momentum_buffer" not in state:
                        buf = np.array(grad, copy=True)
                    else:
                        buf = state["momentum_buffer"] * self.defaults["momentum"] + grad
                    state["momentum_buffer"] = buf
                    grad = buf

                node.value = node.value - self.defaults["lr"] * grad
