from typing import Any, Dict, Iterable, List

from ..core.errors import NoGradientError
from ..core.variable import Variable

OptState = Dict[Variable, Dict[str, Any]]  # Per-parameter state, keyed by handle
OptDefaults = Dict[str, Any]  # Default hyperparameters dictionary


class Optimizer:
    """
    Base class for all optimizers.

    This class provides the basic infrastructure for parameter optimization
    in neural networks. It handles parameter management, gradient zeroing,
    and state tracking across optimization steps.

    Args:
        params: An iterable of parameters to optimize
        defaults: Dictionary of default hyperparameter values for the optimizer

    Raises:
        NoGradientError: If a parameter does not retain its gradient
    """

    def __init__(self, params: Iterable[Variable], defaults: OptDefaults) -> None:
        self.defaults = defaults
        self._params: List[Variable] = list(params)
        self.state: OptState = {}

        for p in self._params:
            if not p.retains_grad:
                raise NoGradientError(p.index)
            self.state[p] = {}

    @property
    def params(self) -> List[Variable]:
        return list(self._params)

    def zero_grad(self) -> None:
        """
        Clears the gradients of all optimized parameters.

        This should be called before computing gradients for the next step,
        to ensure we don't accumulate gradients from previous steps.
        """
        for p in self._params:
            p.zero_grad()

    def step(self) -> None:
        """
        Performs a single optimization step.

        Raises:
            NotImplementedError: If not implemented by subclass
        """
        raise NotImplementedError
